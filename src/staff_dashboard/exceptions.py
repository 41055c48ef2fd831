"""
Exceptions raised by the reconciliation core.

Only conditions that make a whole pass meaningless are raised; row-level
problems are recorded in PassDiagnostics instead.
"""


class DashboardError(Exception):
    """Base class for fatal reconciliation errors."""


class SourceReadError(DashboardError):
    """A source extract could not be opened, decoded, or has no header row."""


class CacheCorruptError(DashboardError):
    """The service-date cache is fresh but cannot be read back."""


class UnparsableDateError(ValueError):
    """Date text did not match any accepted day/month/year layout."""
