"""
Dashboard settings

Column aliases, category policy, staffing ratio and role keywords used by a
reconciliation pass. Defaults mirror config/dashboard.yaml; a YAML file only
needs to list the values it overrides.
"""

import copy
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)


# Column names are matched case-insensitively after whitespace normalization.
# The first name in each list is the primary column, the rest are aliases.
DEFAULT_ROSTER_COLUMNS = {
    'person_id': ['Employee ID', 'Emp ID'],
    'email': ['Employees_Email_ID', 'Email ID', 'Email'],
    'name': ['Name of the Employee', 'Employee Name', 'Name'],
    'sex': ['Gender', 'Sex'],
    'marital_status': ['Marital Status', 'Marital'],
    'role': ['Designation'],
    'dob': ['Date of Birth', 'DOB', 'Birth Date', 'D.O.B', 'Date-of-Birth'],
    'unit': ['School Name & ID', 'School Name and ID', 'School Name'],
    'zone': ['Zone ID', 'Zone Name', 'Zone'],
    'status': ['Status'],
    'mobile': ['Mobile No.', 'Mobile'],
    'attribute': ['Religion'],
}

DEFAULT_HISTORY_COLUMNS = {
    'person_id': ['Employee ID', 'Emp ID'],
    'service_start': ['Date of Joining', 'DOJ'],
    'category': ['Selection Category', 'SelectionCategory', 'Applied Category'],
    'marital_status': ['Marital Status', 'Marital'],
    'attribute': ['Religion'],
}

DEFAULT_SUMMARY_COLUMNS = {
    'unit': ['School Name & ID', 'School Name'],
    'zone': ['Zone ID', 'Zone Name', 'Zone'],
    'inspector': ["School Inspector's Name", 'SI Name'],
}

# Unit counter name -> summary columns
DEFAULT_UNIT_COUNTERS = {
    'max_total_students': ['Max Enrolment', 'Total Enrolment (Last)', 'Total Students'],
    'max_present_students': ['Max Present', 'Present Enrolment'],
    'with_account': ['With Account'],
    'without_account': ['Without Account'],
    'with_aadhaar': ['With Aadhaar'],
    'without_aadhaar': ['Without Aadhaar'],
    'aadhaar_linked_account': ['Aadhaar Linked Account'],
    'new_admission_this_month': ['New Admission (This month)'],
    'new_admission_this_session': ['New Admission (This session)'],
    'dbt_received_student': ['DBT Received (Student)'],
    'dbt_received_parent': ['DBT Received (Parent)'],
    'received_by_student_parent': ['Received By (Student + Parent)'],
}


@dataclass
class DashboardSettings:
    """Tunables for one reconciliation pass."""
    roster_columns: Dict[str, List[str]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_ROSTER_COLUMNS))
    history_columns: Dict[str, List[str]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_HISTORY_COLUMNS))
    summary_columns: Dict[str, List[str]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_SUMMARY_COLUMNS))
    unit_counters: Dict[str, List[str]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_UNIT_COUNTERS))
    passthrough_columns: List[str] = field(default_factory=list)

    default_category: str = 'GENERAL'
    category_aliases: Dict[str, str] = field(
        default_factory=lambda: {'UR': 'GENERAL', 'GEN': 'GENERAL'})
    default_attribute: str = 'UNKNOWN'
    unknown_zone: str = 'UNKNOWN'
    unknown_role: str = 'UNKNOWN'

    male_tokens: List[str] = field(default_factory=lambda: ['M', 'MALE'])
    female_tokens: List[str] = field(default_factory=lambda: ['F', 'FEMALE'])

    persons_per_teacher: float = 40
    capacity_counter: str = 'max_present_students'
    teacher_keywords: List[str] = field(default_factory=lambda: ['teacher'])
    principal_keywords: List[str] = field(default_factory=lambda: ['principal'])
    special_educator_keywords: List[str] = field(default_factory=lambda: ['special educator'])

    ranking_size: int = 10

    def __post_init__(self):
        if self.persons_per_teacher <= 0:
            raise ValueError(
                f"persons_per_teacher must be positive, got {self.persons_per_teacher}"
            )
        if self.ranking_size <= 0:
            raise ValueError(f"ranking_size must be positive, got {self.ranking_size}")

    def canonical_category(self, raw: str) -> str:
        """Upper-case and trim a category, folding configured aliases."""
        token = (raw or '').strip().upper()
        if not token:
            return ''
        return self.category_aliases.get(token, token)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'DashboardSettings':
        """
        Build settings from a (possibly partial) mapping

        Column tables are merged per logical field, so a config file can
        override the aliases of one field without restating the others.
        Unknown keys are logged and ignored.

        Raises:
            ValueError: If data (or a column table in it) is not a mapping,
                or a value is out of range
        """
        settings = cls()
        if not data:
            return settings
        if not isinstance(data, dict):
            raise ValueError(f"Settings must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        overrides = {}
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown setting: {key}")
                continue
            current = getattr(settings, key)
            if isinstance(current, dict) and key.endswith(('_columns', '_counters')):
                if value is not None and not isinstance(value, dict):
                    raise ValueError(f"Setting {key} must be a mapping, got {type(value).__name__}")
                merged = dict(current)
                merged.update(value or {})
                overrides[key] = merged
            else:
                overrides[key] = value

        return cls(**{**{f.name: getattr(settings, f.name) for f in fields(cls)}, **overrides})


def load_settings(config_path: Optional[Union[str, Path]] = None) -> DashboardSettings:
    """
    Load dashboard settings from a YAML file

    Args:
        config_path: Path to YAML file, or None for built-in defaults

    Returns:
        DashboardSettings

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If file is not valid YAML
        ValueError: If the file does not hold a settings mapping
    """
    if config_path is None:
        return DashboardSettings()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing {path}: {e}")

    logger.info(f"Loaded settings from {path}")
    return DashboardSettings.from_dict(data)
