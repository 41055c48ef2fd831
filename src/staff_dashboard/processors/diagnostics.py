"""
Per-row outcomes for a reconciliation pass

Rows that cannot contribute (no resolvable id, unparsable date, ...) are
skipped rather than aborting the pass. Each skip is classified here so the
counts can be inspected after the pass.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class RowStatus(Enum):
    ACCEPTED = 'accepted'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class RowOutcome:
    status: RowStatus
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status is RowStatus.ACCEPTED


ACCEPTED = RowOutcome(RowStatus.ACCEPTED)


def skipped(reason: str) -> RowOutcome:
    return RowOutcome(RowStatus.SKIPPED, reason)


# Skip / note reasons
UNRESOLVED_PERSON_ID = 'unresolved_person_id'
UNRESOLVED_UNIT_ID = 'unresolved_unit_id'
DUPLICATE_PERSON_ID = 'duplicate_person_id'
DUPLICATE_UNIT_ID = 'duplicate_unit_id'
NOT_IN_ROSTER = 'not_in_roster'
UNPARSABLE_DOB = 'unparsable_dob'
UNPARSABLE_SERVICE_START = 'unparsable_service_start'
MISSING_SERVICE_START = 'missing_service_start'
DEFAULT_CATEGORY = 'default_category'
MISSING_COLUMN = 'missing_column'


@dataclass
class PassDiagnostics:
    """Accepted/skipped row counts per source, plus field-level notes."""
    accepted: Counter = field(default_factory=Counter)
    skipped: Dict[str, Counter] = field(default_factory=dict)
    notes: Dict[str, Counter] = field(default_factory=dict)

    def record(self, source: str, outcome: RowOutcome) -> RowOutcome:
        if outcome.accepted:
            self.accepted[source] += 1
        else:
            self.skipped.setdefault(source, Counter())[outcome.reason] += 1
        return outcome

    def note(self, source: str, reason: str, count: int = 1):
        """Count a field-level condition that does not skip the row."""
        self.notes.setdefault(source, Counter())[reason] += count

    def skipped_count(self, source: str, reason: Optional[str] = None) -> int:
        counts = self.skipped.get(source, Counter())
        return counts[reason] if reason else sum(counts.values())

    def note_count(self, source: str, reason: str) -> int:
        return self.notes.get(source, Counter())[reason]

    def to_dict(self) -> dict:
        return {
            'accepted': dict(sorted(self.accepted.items())),
            'skipped': {
                source: dict(sorted(counts.items()))
                for source, counts in sorted(self.skipped.items())
            },
            'notes': {
                source: dict(sorted(counts.items()))
                for source, counts in sorted(self.notes.items())
            },
        }
