"""
One reconciliation pass

Reads the three extracts, resolves the service-start cache, joins people
and schools, and derives every aggregate the dashboard renders. Each call
rebuilds everything from the extracts; nothing is carried over between
passes except the service-start cache file.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .calculators.demographics import DemographicsResult, aggregate
from .calculators.rankings import ranked_summary
from .calculators.staffing import derive_staffing
from .config import DashboardSettings
from .models import PersonRecord, StaffingRecord, UnitRecord
from .processors.diagnostics import MISSING_COLUMN, PassDiagnostics
from .processors.joiner import HISTORY, ROSTER, SUMMARY, build_units, collect_labels, reconcile
from .processors.service_cache import load_or_rebuild
from .processors.source_reader import SourceTable, load_source

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class ReconciliationResult:
    """Everything a pass produces."""
    persons: Dict[str, PersonRecord]
    units: Dict[str, UnitRecord]
    demographics: DemographicsResult
    staffing: List[StaffingRecord]
    rankings: Dict[str, List[Tuple[str, int]]]
    headline: Dict[str, int]
    diagnostics: PassDiagnostics = field(default_factory=PassDiagnostics)


def headline_totals(units: Dict[str, UnitRecord], persons: Dict[str, PersonRecord]) -> Dict[str, int]:
    """Employee, school, zone and designation counts for the dashboard header."""
    labels = collect_labels(units, persons)
    return {
        'total_persons': len(persons),
        'total_units': len(labels['unit_ids']),
        'total_zones': len(labels['zones']),
        'total_roles': len(labels['roles']),
    }


def check_columns(table: SourceTable, source: str, columns: Dict[str, List[str]],
                  required: List[str], diagnostics: PassDiagnostics) -> List[str]:
    """
    Warn about logical fields none of whose column aliases are present

    A missing column is not fatal: every row simply reads the field as
    empty. Each missing field is counted as a note against the source.

    Returns:
        Names of the missing logical fields
    """
    missing = [name for name in required if not table.has_column(*columns.get(name, []))]
    for name in missing:
        tried = ', '.join(columns.get(name, []))
        logger.warning(f"{source} extract {table.path} has no {name} column (tried: {tried})")
        diagnostics.note(source, MISSING_COLUMN)
    return missing


def run_reconciliation(roster_path: PathLike, history_path: PathLike, summary_path: PathLike,
                       cache_path: PathLike, force_rebuild: bool = False,
                       settings: Optional[DashboardSettings] = None,
                       today: Optional[date] = None) -> ReconciliationResult:
    """
    Run a full reconciliation pass

    Args:
        roster_path: Personnel roster extract
        history_path: Service-history extract
        summary_path: Per-school summary extract
        cache_path: Service-start date cache file
        force_rebuild: Rebuild the cache even if it looks fresh
        settings: Pass settings (defaults if None)
        today: Reference date for ages

    Returns:
        ReconciliationResult

    Raises:
        SourceReadError: If an extract is missing, unreadable or has no header
        CacheCorruptError: If a fresh cache cannot be read back
    """
    settings = settings or DashboardSettings()
    diagnostics = PassDiagnostics()

    roster = load_source(roster_path)
    history = load_source(history_path)
    summary = load_source(summary_path)

    check_columns(roster, ROSTER, settings.roster_columns,
                  ['person_id', 'role', 'unit', 'zone'], diagnostics)
    check_columns(history, HISTORY, settings.history_columns,
                  ['person_id', 'service_start', 'category'], diagnostics)
    check_columns(summary, SUMMARY, {**settings.summary_columns, **settings.unit_counters},
                  ['unit', settings.capacity_counter], diagnostics)

    logger.info("Preparing service-start dates...")
    service_dates = load_or_rebuild(
        cache_path, history_path, history,
        force_rebuild=force_rebuild, settings=settings, diagnostics=diagnostics,
    )

    persons = reconcile(roster, history, service_dates, settings, today, diagnostics)
    units = build_units(summary, settings, diagnostics)

    logger.info("Building demographics...")
    demographics = aggregate(persons.values(), settings)
    staffing = derive_staffing(units, persons.values(), settings=settings)
    rankings = ranked_summary(persons.values(), settings)
    headline = headline_totals(units, persons)

    for source, counts in sorted(diagnostics.skipped.items()):
        for reason, count in sorted(counts.items()):
            logger.info(f"  {source}: skipped {count:,} rows ({reason})")
    logger.info(
        f"Counts -> employees: {headline['total_persons']:,}, schools: {headline['total_units']:,}, "
        f"zones: {headline['total_zones']:,}, designations: {headline['total_roles']:,}"
    )

    return ReconciliationResult(
        persons=persons,
        units=units,
        demographics=demographics,
        staffing=staffing,
        rankings=rankings,
        headline=headline,
        diagnostics=diagnostics,
    )
