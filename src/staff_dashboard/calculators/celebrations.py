"""
Birthday and service-anniversary selection

Picks the employees to greet on a given day. Sending the greetings is left
to the caller.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, List, Optional

from ..models import PersonRecord
from ..processors.date_parser import try_parse_date


@dataclass
class Celebrations:
    """Matches for one day plus how many dates could be parsed at all."""
    matches: List[dict] = field(default_factory=list)
    valid_dates: int = 0

    def to_dict(self) -> dict:
        return {'matches': self.matches, 'valid_dates': self.valid_dates}


def _select(persons: Iterable[PersonRecord], today: date,
            date_of: Callable[[PersonRecord], str]) -> Celebrations:
    result = Celebrations()
    for person in persons:
        raw = date_of(person)
        if not raw or not person.email:
            continue
        parsed = try_parse_date(raw)
        if parsed is None:
            continue
        result.valid_dates += 1
        if (parsed.month, parsed.day) == (today.month, today.day):
            result.matches.append({
                'person_id': person.person_id,
                'name': person.name,
                'email': person.email,
                'sex': person.sex,
                'years': today.year - parsed.year,
            })
    return result


def find_birthdays(persons: Iterable[PersonRecord], today: Optional[date] = None) -> Celebrations:
    """Employees with an email whose date of birth falls on today's day and month."""
    return _select(persons, today or date.today(), lambda p: p.dob)


def find_service_anniversaries(persons: Iterable[PersonRecord],
                               today: Optional[date] = None) -> Celebrations:
    """Employees with an email who joined on today's day and month in an earlier year."""
    today = today or date.today()
    result = _select(persons, today, lambda p: p.service_start)
    result.matches = [m for m in result.matches if m['years'] > 0]
    return result
