"""
Shared fixtures for reconciliation tests

Writes small roster / service-history / school-summary extracts into a
temporary directory, laid out the way the monthly exports arrive (BOM on
the first header, NBSP in a header name, ragged rows, ".0" ids).

Usage:
    pytest tests/ -v
"""

import csv
import pytest
from datetime import date
from pathlib import Path

from staff_dashboard.config import DashboardSettings


# --- Configuration ---

REFERENCE_DATE = date(2025, 9, 15)


def write_csv(path: Path, header, rows, encoding='utf-8-sig') -> Path:
    """Write an extract; utf-8-sig puts a BOM before the first header."""
    with open(path, 'w', encoding=encoding, newline='') as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    return path


# --- Sample Extract Fixtures ---

ROSTER_HEADER = [
    'Employee ID', 'Name of the Employee', 'Designation', 'Date of Birth',
    'Gender', 'Zone\u00a0Name', 'School Name & ID', 'Status',
    'Marital Status', 'Mobile No.', 'Employees_Email_ID', 'Religion',
]

ROSTER_ROWS = [
    ['100001.0', 'Asha  Verma', 'Assistant Teacher', '15/MAR/1980', 'F', 'north',
     'North Public School - 1234567', 'Active', 'Married', '9876543210.0',
     'asha@example.org', 'Hindu'],
    ['100002', 'Ravi Kumar', 'Assistant Teacher', '15/09/1990', 'Male', 'North',
     'North Public School - 1234567', 'Active', '', '9876500000',
     'ravi@example.org', ''],
    ['100003', 'Meena Das', 'Principal', '01-Jan-1970', 'FEMALE', 'South',
     'South Model School 7654321', 'Active', '', '', '', 'Sikh'],
    ['100004', 'Kiran', 'Special Educator', 'bad-date', 'X', 'South',
     'South Model School 7654321', 'Active', 'Single', '', '', ''],
    ['N/A', 'Ghost Entry', 'Teacher', '', 'M', 'North',
     'North Public School - 1234567', 'Active', '', '', '', ''],
    ['100005', 'Sunil', '', '', 'M', '', 'Annex', 'Active'],
    ['100001', 'Asha Verma', 'Principal', '', '', 'East',
     'East School 12 Annex - 5555555', 'Active', '', '', '', ''],
]

HISTORY_HEADER = [
    'Employee ID', 'Date of Joining', 'Selection Category', 'Applied Category',
    'Marital Status',
]

HISTORY_ROWS = [
    ['100001', '01/Apr/2010', 'sc', '', 'Single'],
    ['100002.0', '15/09/2015', '', 'OBC', 'Married'],
    ['100003', '', 'UR', '', ''],
    ['100004', '20/Jun/2018', '', '', ''],
    ['999999', '01/01/2000', 'SC', '', ''],
    ['', '01/01/2001', 'ST', '', ''],
]

SUMMARY_HEADER = [
    'Zone\u00a0Name', 'School Name & ID', "School Inspector's Name",
    'Max Enrolment', 'Max Present', 'With Account',
]

SUMMARY_ROWS = [
    ['North', 'North Public School - 1234567', 'R. Singh', '120', '81.0', '1,050'],
    ['South', 'South Model School 7654321', 'P. Rao', '60', '0', '5'],
    ['East', 'East School 12 Annex - 5555555', '', '200', '200'],
    ['West', 'Unnamed', '', '10', '10', '1'],
]


@pytest.fixture
def reference_date():
    """Fixed evaluation date so ages and anniversaries are stable."""
    return REFERENCE_DATE


@pytest.fixture
def settings():
    """Built-in default settings."""
    return DashboardSettings()


@pytest.fixture
def roster_csv(tmp_path):
    return write_csv(tmp_path / 'Basic.csv', ROSTER_HEADER, ROSTER_ROWS)


@pytest.fixture
def history_csv(tmp_path):
    return write_csv(tmp_path / 'Services.csv', HISTORY_HEADER, HISTORY_ROWS)


@pytest.fixture
def summary_csv(tmp_path):
    return write_csv(tmp_path / 'Dashboard_Summary_202509.csv', SUMMARY_HEADER, SUMMARY_ROWS)


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / 'out' / 'doj_cache.json'


@pytest.fixture
def extracts(roster_csv, history_csv, summary_csv, cache_path):
    """All three extracts plus a (not yet existing) cache path."""
    return {
        'roster': roster_csv,
        'history': history_csv,
        'summary': summary_csv,
        'cache': cache_path,
    }
