"""
Dashboard export

Turns a ReconciliationResult into plain nested dicts/lists (the only thing
the rendering layer sees) and writes JSON and CSV files.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from ..calculators.celebrations import find_birthdays, find_service_anniversaries
from ..calculators.rankings import as_chart_series
from ..reconciliation import ReconciliationResult

logger = logging.getLogger(__name__)


def build_payload(result: ReconciliationResult, today: Optional[date] = None) -> dict:
    """
    Plain, JSON-serializable view of a pass

    Returns:
        Dict with persons, units, demographics, staffing, rankings,
        chart series, headline totals, celebrations and diagnostics
    """
    persons = list(result.persons.values())
    return {
        'generated': (today or date.today()).isoformat(),
        'headline': dict(result.headline),
        'persons': {pid: p.to_dict() for pid, p in sorted(result.persons.items())},
        'units': {uid: u.to_dict() for uid, u in sorted(result.units.items())},
        'demographics': result.demographics.to_dict(),
        'staffing': [s.to_dict() for s in result.staffing],
        'rankings': {
            name: [[label, count] for label, count in pairs]
            for name, pairs in result.rankings.items()
        },
        'charts': {name: as_chart_series(pairs) for name, pairs in result.rankings.items()},
        'celebrations': {
            'birthdays': find_birthdays(persons, today).to_dict(),
            'service_anniversaries': find_service_anniversaries(persons, today).to_dict(),
        },
        'diagnostics': result.diagnostics.to_dict(),
    }


def write_json(payload: dict, output_path: Union[str, Path]) -> Path:
    """Write a payload as indented JSON, creating parent directories."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    logger.info(f"Dashboard data saved: {path}")
    return path


def staffing_frame(result: ReconciliationResult) -> pd.DataFrame:
    """Staffing records as a DataFrame, ratio rounded to 2 decimals."""
    columns = ['unit_id', 'name', 'zone', 'needed_teachers', 'actual_teachers',
               'surplus_vacancy', 'has_principal', 'has_special_educator',
               'total_staff', 'ratio']
    df = pd.DataFrame([s.to_dict() for s in result.staffing], columns=columns)
    df['ratio'] = df['ratio'].astype(float).round(2)
    return df


def persons_frame(result: ReconciliationResult) -> pd.DataFrame:
    """Person records as a DataFrame; pass-through fields become columns."""
    rows = []
    for person in result.persons.values():
        row = person.to_dict()
        extra = row.pop('extra')
        row.update(extra)
        rows.append(row)
    return pd.DataFrame(rows)


def write_staffing_csv(result: ReconciliationResult, output_path: Union[str, Path]) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    staffing_frame(result).to_csv(path, index=False)
    logger.info(f"Staffing table saved: {path} ({len(result.staffing):,} schools)")
    return path


def write_persons_csv(result: ReconciliationResult, output_path: Union[str, Path]) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    persons_frame(result).to_csv(path, index=False)
    logger.info(f"Employee table saved: {path} ({len(result.persons):,} employees)")
    return path
