"""
Tabular source reader

Loads a delimited extract into normalized rows plus a case-insensitive
column index. Rows may be ragged; missing trailing fields read as absent.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..exceptions import SourceReadError
from .text_normalizer import normalize_text

logger = logging.getLogger(__name__)


def column_key(name: str) -> str:
    """Lookup key for a column name: normalized and lower-cased."""
    return normalize_text(name).lower()


def build_column_index(header: Sequence[str]) -> Dict[str, int]:
    """
    Map normalized column names to positions; the first duplicate wins

    Examples:
        >>> build_column_index(['Emp ID', ' emp\\u00a0id ', 'Zone'])
        {'emp id': 0, 'zone': 2}
    """
    index: Dict[str, int] = {}
    for position, name in enumerate(header):
        key = column_key(name)
        if key not in index:
            index[key] = position
    return index


@dataclass
class SourceTable:
    """Rows of one extract, every field already normalized."""
    path: Path
    header: List[str]
    rows: List[List[str]]
    column_index: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if not self.column_index:
            self.column_index = build_column_index(self.header)

    def __len__(self) -> int:
        return len(self.rows)

    def has_column(self, *names: str) -> bool:
        return any(column_key(n) in self.column_index for n in names)

    def get(self, row: Sequence[str], name: str, *aliases: str) -> str:
        return get_field(row, self.column_index, name, *aliases)


def get_field(row: Sequence[str], column_index: Dict[str, int], name: str, *aliases: str) -> str:
    """
    Value of the first listed column present in the index and in range

    Args:
        row: One data row
        column_index: Index from build_column_index
        name: Primary column name
        *aliases: Alternative names, tried in order

    Returns:
        Normalized field text, or '' when no listed column applies
    """
    for candidate in (name,) + aliases:
        position = column_index.get(column_key(candidate))
        if position is not None and position < len(row):
            return normalize_text(row[position])
    return ''


def load_source(path: Union[str, Path], delimiter: str = ',',
                encoding: str = 'utf-8-sig') -> SourceTable:
    """
    Load a delimited extract

    Args:
        path: Path to the extract
        delimiter: Field delimiter
        encoding: File encoding (utf-8-sig also strips a leading BOM)

    Returns:
        SourceTable with normalized header and rows

    Raises:
        SourceReadError: If the file cannot be opened or decoded, or has no header row
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding=encoding, newline='') as f:
            reader = csv.reader(f, delimiter=delimiter)
            header = next(reader, None)
            if header is None:
                raise SourceReadError(f"No header row in {path}")
            header = [normalize_text(h) for h in header]

            rows = []
            for record in reader:
                if not any(cell.strip() for cell in record):
                    continue
                rows.append([normalize_text(cell) for cell in record])
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise SourceReadError(f"Cannot read {path}: {e}") from e

    logger.info(f"Loaded {len(rows):,} rows from {path.name} ({len(header)} columns)")
    return SourceTable(path=path, header=header, rows=rows)


def source_mtime(path: Union[str, Path]) -> Optional[float]:
    """Modification time of a file, or None if it cannot be stat'ed."""
    try:
        return Path(path).stat().st_mtime
    except OSError:
        return None
