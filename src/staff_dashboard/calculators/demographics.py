"""
Demographic aggregation

Counts employees by zone and designation, split by category and religion
and by sex, then rolls the zone tables up to designation totals. Categories
and religions are whatever values appear in the records; nothing is
pre-enumerated.

Cell layout:
    {
        'categories': {'GENERAL': {'male': 3, 'female': 2}, ...},
        'attributes': {'HINDU': {'male': 1, 'female': 4}, ...},
        'total_male': 4,
        'total_female': 6,
        'total_unclassified': 1,
        'total': 11,
    }

total == total_male + total_female + total_unclassified at every level.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..config import DashboardSettings
from ..models import PersonRecord

logger = logging.getLogger(__name__)

MALE = 'male'
FEMALE = 'female'
UNCLASSIFIED = 'unclassified'

TOTAL_FIELDS = ('total_male', 'total_female', 'total_unclassified', 'total')


def classify_sex(value: str, settings: Optional[DashboardSettings] = None) -> str:
    """
    Classify free-text sex as male, female or unclassified

    Examples:
        >>> classify_sex('m')
        'male'
        >>> classify_sex(' Female ')
        'female'
        >>> classify_sex('Other')
        'unclassified'
    """
    settings = settings or DashboardSettings()
    token = (value or '').strip().upper()
    if token in {t.upper() for t in settings.male_tokens}:
        return MALE
    if token in {t.upper() for t in settings.female_tokens}:
        return FEMALE
    return UNCLASSIFIED


def _new_cell() -> dict:
    return {
        'categories': defaultdict(lambda: {MALE: 0, FEMALE: 0}),
        'attributes': defaultdict(lambda: {MALE: 0, FEMALE: 0}),
        'total_male': 0,
        'total_female': 0,
        'total_unclassified': 0,
        'total': 0,
    }


def _add_to_cell(cell: dict, category: str, attribute: str, sex: str):
    category_counts = cell['categories'][category]
    attribute_counts = cell['attributes'][attribute]
    if sex == MALE:
        category_counts[MALE] += 1
        attribute_counts[MALE] += 1
        cell['total_male'] += 1
    elif sex == FEMALE:
        category_counts[FEMALE] += 1
        attribute_counts[FEMALE] += 1
        cell['total_female'] += 1
    else:
        cell['total_unclassified'] += 1
    cell['total'] += 1


def _merge_cell(target: dict, source: dict):
    for key in ('categories', 'attributes'):
        for label, counts in source[key].items():
            target[key][label][MALE] += counts[MALE]
            target[key][label][FEMALE] += counts[FEMALE]
    for name in TOTAL_FIELDS:
        target[name] += source[name]


def _freeze_cell(cell: dict) -> dict:
    """Plain dict with label keys sorted for stable presentation."""
    frozen = {
        'categories': {k: dict(v) for k, v in sorted(cell['categories'].items())},
        'attributes': {k: dict(v) for k, v in sorted(cell['attributes'].items())},
    }
    for name in TOTAL_FIELDS:
        frozen[name] = cell[name]
    return frozen


@dataclass
class DemographicsResult:
    """Zone x designation table, designation rollup and flat totals."""
    zones: Dict[str, Dict[str, dict]] = field(default_factory=dict)
    overall: Dict[str, dict] = field(default_factory=dict)
    category_totals: Dict[str, int] = field(default_factory=dict)
    sex_totals: Dict[str, int] = field(default_factory=dict)
    category_keys: List[str] = field(default_factory=list)
    attribute_keys: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'zones': self.zones,
            'overall': self.overall,
            'category_totals': self.category_totals,
            'sex_totals': self.sex_totals,
            'category_keys': self.category_keys,
            'attribute_keys': self.attribute_keys,
        }


def aggregate(persons: Iterable[PersonRecord],
              settings: Optional[DashboardSettings] = None) -> DemographicsResult:
    """
    Build demographic tables from person records

    Only records with both a zone and a designation count. Records whose sex
    is unclassified are counted in `total` and `total_unclassified` but in
    no sex-specific counter.

    Args:
        persons: Person records (e.g. the values of the reconciled map)
        settings: Sex tokens and default category/religion tokens

    Returns:
        DemographicsResult
    """
    settings = settings or DashboardSettings()

    table: Dict[str, Dict[str, dict]] = defaultdict(dict)
    category_totals: Counter = Counter()
    sex_totals = {MALE: 0, FEMALE: 0}

    for person in persons:
        zone = (person.zone or '').strip().upper()
        role = (person.role or '').strip()
        if not zone or not role:
            continue

        category = settings.canonical_category(person.category) or settings.default_category
        attribute = (person.attribute or '').strip().upper() or settings.default_attribute
        sex = classify_sex(person.sex, settings)

        cell = table[zone].get(role)
        if cell is None:
            cell = table[zone][role] = _new_cell()
        _add_to_cell(cell, category, attribute, sex)

        category_totals[category] += 1
        if sex in sex_totals:
            sex_totals[sex] += 1

    rollup: Dict[str, dict] = {}
    for zone_cells in table.values():
        for role, cell in zone_cells.items():
            if role not in rollup:
                rollup[role] = _new_cell()
            _merge_cell(rollup[role], cell)

    zones = {
        zone: {role: _freeze_cell(cell) for role, cell in sorted(cells.items())}
        for zone, cells in sorted(table.items())
    }
    overall = {role: _freeze_cell(cell) for role, cell in sorted(rollup.items())}

    category_keys = sorted({k for cell in overall.values() for k in cell['categories']})
    attribute_keys = sorted({k for cell in overall.values() for k in cell['attributes']})

    logger.info(f"Demographics built: zones={len(zones)}, overall designations={len(overall)}")
    for category, count in sorted(category_totals.items()):
        logger.debug(f"  {category}: {count} employees")

    return DemographicsResult(
        zones=zones,
        overall=overall,
        category_totals=dict(sorted(category_totals.items())),
        sex_totals=sex_totals,
        category_keys=category_keys,
        attribute_keys=attribute_keys,
    )
