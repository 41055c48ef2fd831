"""
Teacher staffing per school

Needed teachers come from the school's present-student counter and a fixed
students-per-teacher ratio; actual teachers from roster designations.

    needed  = ceil(capacity / persons_per_teacher), never below 0
    surplus = actual - needed   (negative means vacancies)
    ratio   = capacity / actual (0 when the school has no teachers)
"""

import logging
import math
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from ..config import DashboardSettings
from ..models import PersonRecord, StaffingRecord, UnitRecord

logger = logging.getLogger(__name__)

TEACHER = 'teacher'
PRINCIPAL = 'principal'
SPECIAL_EDUCATOR = 'special_educator'


def needed_teachers(capacity: int, persons_per_teacher: float) -> int:
    """
    Teachers required for a capacity figure

    Examples:
        >>> needed_teachers(81, 40)
        3
        >>> needed_teachers(0, 40)
        0
    """
    if persons_per_teacher <= 0:
        raise ValueError(f"persons_per_teacher must be positive, got {persons_per_teacher}")
    return max(int(math.ceil(capacity / persons_per_teacher)), 0)


def load_ratio(capacity: int, actual_teachers: int) -> float:
    """Students per actual teacher; 0.0 when there are no teachers."""
    if actual_teachers <= 0:
        return 0.0
    return capacity / actual_teachers


def classify_role(role: str, settings: DashboardSettings) -> Optional[str]:
    """
    Staffing class of a designation

    A teacher keyword takes precedence, then principal, then special educator.
    """
    text = (role or '').lower()
    if any(k.lower() in text for k in settings.teacher_keywords):
        return TEACHER
    if any(k.lower() in text for k in settings.principal_keywords):
        return PRINCIPAL
    if any(k.lower() in text for k in settings.special_educator_keywords):
        return SPECIAL_EDUCATOR
    return None


def derive_staffing(units: Dict[str, UnitRecord], persons: Iterable[PersonRecord],
                    persons_per_teacher: Optional[float] = None,
                    settings: Optional[DashboardSettings] = None) -> List[StaffingRecord]:
    """
    One staffing record per school in the summary extract

    Args:
        units: School records keyed by unit id
        persons: Person records
        persons_per_teacher: Students per teacher (defaults to settings)
        settings: Role keywords and capacity counter name

    Returns:
        StaffingRecord list ordered by school name, then id
    """
    settings = settings or DashboardSettings()
    if persons_per_teacher is None:
        persons_per_teacher = settings.persons_per_teacher

    staff_by_unit: Dict[str, List[PersonRecord]] = defaultdict(list)
    for person in persons:
        if person.unit_id:
            staff_by_unit[person.unit_id].append(person)

    records = []
    for unit_id, unit in units.items():
        staff = staff_by_unit.get(unit_id, [])
        classes = [classify_role(p.role, settings) for p in staff]
        actual = classes.count(TEACHER)
        capacity = unit.counter(settings.capacity_counter)
        needed = needed_teachers(capacity, persons_per_teacher)

        records.append(StaffingRecord(
            unit_id=unit_id,
            name=unit.name,
            zone=unit.zone,
            needed_teachers=needed,
            actual_teachers=actual,
            surplus_vacancy=actual - needed,
            has_principal=PRINCIPAL in classes,
            has_special_educator=SPECIAL_EDUCATOR in classes,
            total_staff=len(staff),
            ratio=load_ratio(capacity, actual),
        ))

    records.sort(key=lambda r: (r.name, r.unit_id))

    vacancies = sum(-r.surplus_vacancy for r in records if r.surplus_vacancy < 0)
    logger.info(f"Staffing derived for {len(records):,} schools ({vacancies:,} teacher vacancies)")
    return records
