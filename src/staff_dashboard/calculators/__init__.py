"""Aggregates derived from reconciled person and school records."""

from .demographics import aggregate, classify_sex, DemographicsResult
from .rankings import top_n, ranked_summary, as_chart_series
from .staffing import derive_staffing, needed_teachers, load_ratio

__all__ = [
    "aggregate",
    "classify_sex",
    "DemographicsResult",
    "top_n",
    "ranked_summary",
    "as_chart_series",
    "derive_staffing",
    "needed_teachers",
    "load_ratio",
]
