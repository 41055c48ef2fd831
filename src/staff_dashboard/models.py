"""
Record types produced by a reconciliation pass

All records serialize to plain dicts of strings, ints, floats and bools.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict


@dataclass
class PersonRecord:
    """One employee, keyed by canonical person id."""
    person_id: str
    name: str = ''
    role: str = ''
    sex: str = ''
    dob: str = ''
    age: int = 0
    unit_id: str = ''
    unit_name: str = ''
    zone: str = ''
    status: str = ''
    category: str = ''
    attribute: str = ''
    marital_status: str = ''
    mobile: str = ''
    email: str = ''
    service_start: str = ''
    extra: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class UnitRecord:
    """One school from the summary extract, with its counters."""
    unit_id: str
    name: str = ''
    zone: str = ''
    inspector: str = ''
    counters: Dict[str, int] = field(default_factory=dict)

    def counter(self, name: str) -> int:
        return self.counters.get(name, 0)

    def to_dict(self) -> dict:
        data = {
            'unit_id': self.unit_id,
            'name': self.name,
            'zone': self.zone,
            'inspector': self.inspector,
        }
        data.update(self.counters)
        return data


@dataclass
class StaffingRecord:
    """Teacher requirement and actual staffing for one school."""
    unit_id: str
    name: str
    zone: str
    needed_teachers: int
    actual_teachers: int
    surplus_vacancy: int
    has_principal: bool
    has_special_educator: bool
    total_staff: int
    ratio: float

    def to_dict(self) -> dict:
        return asdict(self)
