"""
Service-start date cache

Scanning the service-history extract for dates of joining is the slowest
part of a pass, so the id -> service-start mapping is kept as a flat JSON
file next to the outputs and reused until the extract changes.
"""

import json
import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ..config import DashboardSettings
from ..exceptions import CacheCorruptError
from .date_parser import try_parse_date
from .diagnostics import (
    ACCEPTED, MISSING_SERVICE_START, UNRESOLVED_PERSON_ID,
    PassDiagnostics, RowOutcome, skipped,
)
from .identity import resolve_person_id
from .source_reader import SourceTable, source_mtime

logger = logging.getLogger(__name__)

# Diagnostics source for the service-history scan
SERVICE_DATES = 'service_dates'


def is_cache_stale(source_mtime: Optional[float], cache_mtime: Optional[float],
                   force_rebuild: bool = False) -> bool:
    """
    Decide whether the cache must be rebuilt

    Args:
        source_mtime: Modification time of the service-history extract
        cache_mtime: Modification time of the cache file (None if absent/unreadable)
        force_rebuild: Always rebuild when True

    Returns:
        True if the cache is missing, older than the source, or forced
    """
    if force_rebuild or cache_mtime is None or source_mtime is None:
        return True
    return source_mtime > cache_mtime


def _precedence(raw: str) -> Tuple[bool, date, str]:
    parsed = try_parse_date(raw)
    return (parsed is not None, parsed or date.min, raw)


def classify_history_row(row: List[str], history: SourceTable,
                         settings: DashboardSettings) -> Tuple[RowOutcome, str, str]:
    """Outcome, person id and service-start text for one history row."""
    columns = settings.history_columns
    person_id = resolve_person_id(history.get(row, *columns['person_id']))
    if not person_id:
        return skipped(UNRESOLVED_PERSON_ID), '', ''
    service_start = history.get(row, *columns['service_start'])
    if not service_start:
        return skipped(MISSING_SERVICE_START), person_id, ''
    return ACCEPTED, person_id, service_start


def record_history_outcomes(history: SourceTable, settings: Optional[DashboardSettings] = None,
                            diagnostics: Optional[PassDiagnostics] = None) -> PassDiagnostics:
    """Count accepted and skipped history rows without building the mapping."""
    settings = settings or DashboardSettings()
    diagnostics = diagnostics if diagnostics is not None else PassDiagnostics()
    for row in history.rows:
        outcome, _, _ = classify_history_row(row, history, settings)
        diagnostics.record(SERVICE_DATES, outcome)
    return diagnostics


def build_service_dates(history: SourceTable, settings: Optional[DashboardSettings] = None,
                        diagnostics: Optional[PassDiagnostics] = None) -> Dict[str, str]:
    """
    Map person id -> service-start date text from the history rows

    Rows without a resolvable id or without a date are skipped. When one id
    has several rows, the latest parseable date wins; a parseable date beats
    an unparseable one, and among unparseable values the greatest text wins,
    so the result does not depend on row order.
    """
    settings = settings or DashboardSettings()
    diagnostics = diagnostics if diagnostics is not None else PassDiagnostics()

    service_dates: Dict[str, str] = {}
    for row in history.rows:
        outcome, person_id, service_start = classify_history_row(row, history, settings)
        diagnostics.record(SERVICE_DATES, outcome)
        if not outcome.accepted:
            continue
        current = service_dates.get(person_id)
        if current is None or _precedence(service_start) > _precedence(current):
            service_dates[person_id] = service_start

    return dict(sorted(service_dates.items()))


def write_cache(mapping: Dict[str, str], cache_path: Union[str, Path]):
    """Write the mapping as sorted JSON, replacing the file atomically."""
    path = Path(cache_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(mapping, sort_keys=True, indent=2, ensure_ascii=False) + '\n'

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def read_cache(cache_path: Union[str, Path]) -> Dict[str, str]:
    """
    Read a cache file written by write_cache

    Raises:
        CacheCorruptError: If the file cannot be read or is not a flat string map
    """
    path = Path(cache_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CacheCorruptError(f"Error reading service-date cache {path}: {e}") from e

    if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
        raise CacheCorruptError(f"Service-date cache {path} is not a flat id -> date map")
    return data


def load_or_rebuild(cache_path: Union[str, Path], source_path: Union[str, Path],
                    history: SourceTable, force_rebuild: bool = False,
                    settings: Optional[DashboardSettings] = None,
                    diagnostics: Optional[PassDiagnostics] = None) -> Dict[str, str]:
    """
    Service-start dates, from the cache when fresh, rebuilt otherwise

    Args:
        cache_path: JSON cache location
        source_path: Service-history extract the cache derives from
        history: Loaded service-history rows
        force_rebuild: Ignore any existing cache
        settings: Column aliases
        diagnostics: Collector for skipped history rows (counted whether or
            not the cache is reused)

    Returns:
        Dict mapping person id to service-start date text

    Raises:
        CacheCorruptError: If a fresh cache cannot be read back
    """
    if is_cache_stale(source_mtime(source_path), source_mtime(cache_path), force_rebuild):
        service_dates = build_service_dates(history, settings, diagnostics)
        write_cache(service_dates, cache_path)
        logger.info(f"Cached service-start dates for {len(service_dates):,} people -> {cache_path}")
        return service_dates

    service_dates = read_cache(cache_path)
    if diagnostics is not None:
        record_history_outcomes(history, settings, diagnostics)
    logger.info(f"Loaded service-start date cache ({len(service_dates):,} entries)")
    return service_dates
