"""
Top-N frequency rankings for dashboard charts
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import DashboardSettings
from ..models import PersonRecord


def top_n(counts: Dict[str, int], n: int) -> List[Tuple[str, int]]:
    """
    Highest counts first, ties broken by ascending key

    Examples:
        >>> top_n({'B': 5, 'A': 5, 'C': 3}, 2)
        [('A', 5), ('B', 5)]
    """
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return ordered[:max(n, 0)]


def as_chart_series(pairs: List[Tuple[str, int]]) -> Dict[str, list]:
    """Split ranked pairs into parallel label/value lists."""
    return {
        'labels': [label for label, _ in pairs],
        'values': [value for _, value in pairs],
    }


def ranked_summary(persons: Iterable[PersonRecord],
                   settings: Optional[DashboardSettings] = None,
                   n: Optional[int] = None) -> Dict[str, List[Tuple[str, int]]]:
    """
    Top zones, designations and categories by employee count

    Records without a designation are counted under the unknown-role label.
    """
    settings = settings or DashboardSettings()
    if n is None:
        n = settings.ranking_size

    zones: Counter = Counter()
    roles: Counter = Counter()
    categories: Counter = Counter()
    for person in persons:
        zones[person.zone or settings.unknown_zone] += 1
        roles[person.role or settings.unknown_role] += 1
        categories[person.category or settings.default_category] += 1

    return {
        'zones': top_n(zones, n),
        'roles': top_n(roles, n),
        'categories': top_n(categories, n),
    }
