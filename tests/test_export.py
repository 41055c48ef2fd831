"""
Tests for dashboard export.

Run: pytest tests/test_export.py -v
"""

import json

import pandas as pd
import pytest

from staff_dashboard import DashboardSettings, run_reconciliation
from staff_dashboard.exporters.dashboard_export import (
    build_payload, persons_frame, staffing_frame,
    write_json, write_persons_csv, write_staffing_csv,
)


@pytest.fixture
def result(extracts, reference_date):
    settings = DashboardSettings(passthrough_columns=['Status'])
    return run_reconciliation(
        extracts['roster'], extracts['history'], extracts['summary'], extracts['cache'],
        settings=settings, today=reference_date,
    )


class TestPayload:
    def test_json_serializable(self, result, reference_date):
        payload = build_payload(result, reference_date)
        restored = json.loads(json.dumps(payload))
        assert restored['generated'] == '2025-09-15'
        assert restored['headline']['total_persons'] == 5

    def test_sections(self, result, reference_date):
        payload = build_payload(result, reference_date)
        assert set(payload) == {
            'generated', 'headline', 'persons', 'units', 'demographics', 'staffing',
            'rankings', 'charts', 'celebrations', 'diagnostics',
        }
        assert payload['units']['1234567']['max_present_students'] == 81
        assert payload['units']['1234567']['with_account'] == 1050
        assert payload['rankings']['zones'][0] == ['NORTH', 2]
        assert payload['charts']['zones']['labels'] == ['NORTH', 'SOUTH', 'UNKNOWN']

    def test_celebrations(self, result, reference_date):
        celebrations = build_payload(result, reference_date)['celebrations']
        birthdays = celebrations['birthdays']
        assert [m['person_id'] for m in birthdays['matches']] == ['100002']
        assert birthdays['matches'][0]['years'] == 35
        assert birthdays['valid_dates'] == 2

        anniversaries = celebrations['service_anniversaries']
        assert [m['person_id'] for m in anniversaries['matches']] == ['100002']
        assert anniversaries['matches'][0]['years'] == 10
        assert anniversaries['valid_dates'] == 2

    def test_write_json(self, result, reference_date, tmp_path):
        path = write_json(build_payload(result, reference_date), tmp_path / 'nested' / 'dash.json')
        with open(path, encoding='utf-8') as f:
            assert json.load(f)['headline']['total_units'] == 3


class TestFrames:
    def test_staffing_frame(self, result):
        df = staffing_frame(result)
        assert list(df.columns) == [
            'unit_id', 'name', 'zone', 'needed_teachers', 'actual_teachers',
            'surplus_vacancy', 'has_principal', 'has_special_educator', 'total_staff', 'ratio',
        ]
        assert len(df) == 3
        assert df.loc[df['unit_id'] == '1234567', 'ratio'].iloc[0] == 40.5

    def test_persons_frame_flattens_passthrough(self, result):
        df = persons_frame(result)
        assert 'extra' not in df.columns
        assert (df['Status'] == 'Active').all()

    def test_csv_round_trip(self, result, tmp_path):
        staffing_path = write_staffing_csv(result, tmp_path / 'staffing.csv')
        persons_path = write_persons_csv(result, tmp_path / 'employees.csv')

        staffing = pd.read_csv(staffing_path, dtype={'unit_id': str})
        assert staffing['unit_id'].tolist() == ['5555555', '1234567', '7654321']
        assert staffing['surplus_vacancy'].tolist() == [-5, -1, 0]

        persons = pd.read_csv(persons_path, dtype=str)
        assert persons['person_id'].tolist() == ['100001', '100002', '100003', '100004', '100005']
