"""
Staff Roster Dashboard
Workforce Reconciliation Core

A toolkit for reconciling personnel roster, service-history and
per-school summary extracts into unified person and school records,
with demographic and staffing aggregates for dashboard rendering.
"""

__version__ = "0.1.0"
__project__ = "Staff Roster Dashboard"

from .config import DashboardSettings, load_settings
from .reconciliation import ReconciliationResult, run_reconciliation

__all__ = [
    "DashboardSettings",
    "load_settings",
    "ReconciliationResult",
    "run_reconciliation",
]
