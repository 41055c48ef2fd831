"""
Cross-source joiner

Builds one PersonRecord per roster employee and one UnitRecord per school
in the summary extract. The roster decides who exists; the service history
only enriches people already on the roster.

Precedence:
- contact fields (email, name, sex, marital status): roster, first non-empty value
- category: service history, first row that carries one, else the default token
- marital status / religion: roster first, service history as fallback
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..config import DashboardSettings
from ..models import PersonRecord, UnitRecord
from .date_parser import compute_age, try_parse_date
from .diagnostics import (
    ACCEPTED, DEFAULT_CATEGORY, DUPLICATE_PERSON_ID, DUPLICATE_UNIT_ID,
    NOT_IN_ROSTER, UNPARSABLE_DOB, UNPARSABLE_SERVICE_START,
    UNRESOLVED_PERSON_ID, UNRESOLVED_UNIT_ID, PassDiagnostics, skipped,
)
from .identity import resolve_person_id, resolve_unit_id
from .source_reader import SourceTable
from .text_normalizer import parse_count, strip_dot_zero

logger = logging.getLogger(__name__)

ROSTER = 'roster'
HISTORY = 'history'
SUMMARY = 'summary'

CONTACT_FIELDS = ('email', 'name', 'sex', 'marital_status', 'attribute')


def first_value(table: SourceTable, row: Sequence[str], names: Sequence[str]) -> str:
    """First non-empty value among the listed columns."""
    for name in names:
        value = table.get(row, name)
        if value:
            return value
    return ''


@dataclass
class HistoryAttributes:
    """Per-person values taken from the service-history extract."""
    category: Dict[str, str] = field(default_factory=dict)
    marital_status: Dict[str, str] = field(default_factory=dict)
    attribute: Dict[str, str] = field(default_factory=dict)


def collect_roster_contacts(roster: SourceTable, settings: DashboardSettings) -> Dict[str, Dict[str, str]]:
    """Pass 1: email, name, sex, marital status and religion per roster id."""
    columns = settings.roster_columns
    contacts: Dict[str, Dict[str, str]] = {}

    for row in roster.rows:
        person_id = resolve_person_id(roster.get(row, *columns['person_id']))
        if not person_id:
            continue
        values = contacts.setdefault(person_id, {})
        for name in CONTACT_FIELDS:
            if values.get(name):
                continue
            value = roster.get(row, *columns[name])
            if value:
                values[name] = value

    return contacts


def collect_history_attributes(history: SourceTable, roster_ids: set,
                               settings: DashboardSettings,
                               diagnostics: PassDiagnostics) -> HistoryAttributes:
    """Pass 2: category, fallback marital status and religion from service history."""
    columns = settings.history_columns
    found = HistoryAttributes()

    for row in history.rows:
        person_id = resolve_person_id(history.get(row, *columns['person_id']))
        if not person_id:
            diagnostics.record(HISTORY, skipped(UNRESOLVED_PERSON_ID))
            continue
        if person_id not in roster_ids:
            diagnostics.record(HISTORY, skipped(NOT_IN_ROSTER))
            continue
        diagnostics.record(HISTORY, ACCEPTED)

        category = settings.canonical_category(first_value(history, row, columns['category']))
        if category and person_id not in found.category:
            found.category[person_id] = category

        marital = first_value(history, row, columns['marital_status'])
        if marital and person_id not in found.marital_status:
            found.marital_status[person_id] = marital

        attribute = first_value(history, row, columns['attribute'])
        if attribute and person_id not in found.attribute:
            found.attribute[person_id] = attribute

    logger.info(f"Loaded category for {len(found.category):,} employees from service history")
    return found


def reconcile(roster: SourceTable, history: SourceTable,
              service_dates: Optional[Dict[str, str]] = None,
              settings: Optional[DashboardSettings] = None,
              today: Optional[date] = None,
              diagnostics: Optional[PassDiagnostics] = None) -> Dict[str, PersonRecord]:
    """
    Join roster and service history into person records

    Args:
        roster: Personnel roster (authoritative for who exists)
        history: Service-history extract
        service_dates: Person id -> service-start date (see service_cache)
        settings: Column aliases and category policy
        today: Reference date for ages
        diagnostics: Collector for skipped rows and field-level notes

    Returns:
        Dict mapping person id to PersonRecord, in roster order
    """
    settings = settings or DashboardSettings()
    diagnostics = diagnostics if diagnostics is not None else PassDiagnostics()
    service_dates = service_dates or {}
    columns = settings.roster_columns

    contacts = collect_roster_contacts(roster, settings)
    from_history = collect_history_attributes(history, set(contacts), settings, diagnostics)

    persons: Dict[str, PersonRecord] = {}
    for row in roster.rows:
        person_id = resolve_person_id(roster.get(row, *columns['person_id']))
        if not person_id:
            diagnostics.record(ROSTER, skipped(UNRESOLVED_PERSON_ID))
            continue
        if person_id in persons:
            diagnostics.record(ROSTER, skipped(DUPLICATE_PERSON_ID))
            continue
        diagnostics.record(ROSTER, ACCEPTED)

        contact = contacts.get(person_id, {})

        unit_name = roster.get(row, *columns['unit'])
        unit_id = resolve_unit_id(unit_name)
        if not unit_id:
            diagnostics.note(ROSTER, UNRESOLVED_UNIT_ID)

        zone = roster.get(row, *columns['zone']).upper() or settings.unknown_zone

        dob = roster.get(row, *columns['dob'])
        if dob and try_parse_date(dob) is None:
            diagnostics.note(ROSTER, UNPARSABLE_DOB)

        service_start = service_dates.get(person_id, '')
        if service_start and try_parse_date(service_start) is None:
            diagnostics.note(ROSTER, UNPARSABLE_SERVICE_START)

        category = from_history.category.get(person_id)
        if not category:
            category = settings.default_category
            diagnostics.note(ROSTER, DEFAULT_CATEGORY)

        attribute = contact.get('attribute') or from_history.attribute.get(person_id, '')

        persons[person_id] = PersonRecord(
            person_id=person_id,
            name=contact.get('name', ''),
            role=roster.get(row, *columns['role']),
            sex=contact.get('sex', ''),
            dob=dob,
            age=compute_age(dob, today),
            unit_id=unit_id,
            unit_name=unit_name,
            zone=zone,
            status=roster.get(row, *columns['status']),
            category=category,
            attribute=attribute.upper() or settings.default_attribute,
            marital_status=contact.get('marital_status') or from_history.marital_status.get(person_id, ''),
            mobile=strip_dot_zero(roster.get(row, *columns['mobile'])),
            email=contact.get('email', ''),
            service_start=service_start,
            extra={name: roster.get(row, name) for name in settings.passthrough_columns},
        )

    enriched = sum(1 for pid in persons if pid in from_history.category)
    logger.info(f"Joined {len(persons):,} employees ({enriched:,} category-enriched from service history)")
    return persons


def build_units(summary: SourceTable, settings: Optional[DashboardSettings] = None,
                diagnostics: Optional[PassDiagnostics] = None) -> Dict[str, UnitRecord]:
    """
    School records from the summary extract

    Rows with no resolvable school id are skipped; a later row for the same
    id replaces the earlier one.
    """
    settings = settings or DashboardSettings()
    diagnostics = diagnostics if diagnostics is not None else PassDiagnostics()
    columns = settings.summary_columns

    units: Dict[str, UnitRecord] = {}
    for row in summary.rows:
        name = summary.get(row, *columns['unit'])
        unit_id = resolve_unit_id(name)
        if not unit_id:
            diagnostics.record(SUMMARY, skipped(UNRESOLVED_UNIT_ID))
            continue
        if unit_id in units:
            diagnostics.note(SUMMARY, DUPLICATE_UNIT_ID)
        diagnostics.record(SUMMARY, ACCEPTED)

        units[unit_id] = UnitRecord(
            unit_id=unit_id,
            name=name,
            zone=summary.get(row, *columns['zone']).upper() or settings.unknown_zone,
            inspector=summary.get(row, *columns['inspector']),
            counters={
                counter: parse_count(summary.get(row, *aliases))
                for counter, aliases in settings.unit_counters.items()
            },
        )

    logger.info(f"Loaded {len(units):,} schools from summary extract")
    return units


def collect_labels(units: Dict[str, UnitRecord], persons: Dict[str, PersonRecord]) -> Dict[str, List[str]]:
    """Distinct school ids, zones and roles across both record sets."""
    unit_ids = set(units)
    zones = {u.zone for u in units.values() if u.zone}
    roles = set()
    for person in persons.values():
        if person.unit_id:
            unit_ids.add(person.unit_id)
        if person.zone:
            zones.add(person.zone)
        if person.role:
            roles.add(person.role)
    return {
        'unit_ids': sorted(unit_ids),
        'zones': sorted(zones),
        'roles': sorted(roles),
    }
