"""
End-to-end tests for a reconciliation pass over the sample extracts.

Run: pytest tests/test_reconciliation.py -v
"""

import json
import logging
import os
import time

import pytest

from staff_dashboard import run_reconciliation
from staff_dashboard.exceptions import CacheCorruptError, SourceReadError
from staff_dashboard.processors.diagnostics import PassDiagnostics
from staff_dashboard.processors.source_reader import load_source
from staff_dashboard.reconciliation import check_columns, headline_totals

from conftest import SUMMARY_HEADER, SUMMARY_ROWS, write_csv


@pytest.fixture
def result(extracts, reference_date):
    return run_reconciliation(
        extracts['roster'], extracts['history'], extracts['summary'], extracts['cache'],
        today=reference_date,
    )


def make_fresh(path):
    """Push a file's mtime past every extract written by the fixtures."""
    future = time.time() + 3600
    os.utime(path, (future, future))


class TestPersonsAndUnits:
    def test_roster_ids(self, result):
        assert list(result.persons) == ['100001', '100002', '100003', '100004', '100005']

    def test_units(self, result):
        assert set(result.units) == {'1234567', '7654321', '5555555'}

    def test_joined_fields(self, result):
        asha = result.persons['100001']
        assert asha.category == 'SC'
        assert asha.service_start == '01/Apr/2010'
        assert asha.unit_id == '1234567'
        assert asha.zone == 'NORTH'
        assert asha.age == 45

    def test_headline(self, result):
        assert result.headline == {
            'total_persons': 5,
            'total_units': 3,
            'total_zones': 4,
            'total_roles': 3,
        }
        assert headline_totals(result.units, result.persons) == result.headline


class TestAggregates:
    def test_demographics(self, result):
        north = result.demographics.zones['NORTH']['Assistant Teacher']
        assert north['categories'] == {
            'OBC': {'male': 1, 'female': 0},
            'SC': {'male': 0, 'female': 1},
        }
        assert north['attributes'] == {
            'HINDU': {'male': 0, 'female': 1},
            'UNKNOWN': {'male': 1, 'female': 0},
        }
        assert north['total'] == 2

        south = result.demographics.zones['SOUTH']
        assert south['Principal']['categories'] == {'GENERAL': {'male': 0, 'female': 1}}
        assert south['Principal']['attributes'] == {'SIKH': {'male': 0, 'female': 1}}
        assert south['Special Educator']['total_unclassified'] == 1
        assert south['Special Educator']['total'] == 1

        assert result.demographics.category_totals == {'GENERAL': 2, 'OBC': 1, 'SC': 1}
        assert result.demographics.sex_totals == {'male': 1, 'female': 2}

    def test_staffing(self, result):
        assert [s.unit_id for s in result.staffing] == ['5555555', '1234567', '7654321']
        east, north, south = result.staffing

        assert (north.actual_teachers, north.needed_teachers, north.surplus_vacancy) == (2, 3, -1)
        assert north.ratio == 40.5
        assert not north.has_principal

        assert (south.actual_teachers, south.needed_teachers, south.surplus_vacancy) == (0, 0, 0)
        assert south.ratio == 0.0
        assert south.has_principal and south.has_special_educator
        assert south.total_staff == 2

        assert (east.needed_teachers, east.surplus_vacancy, east.total_staff) == (5, -5, 0)

    def test_rankings(self, result):
        assert result.rankings['zones'] == [('NORTH', 2), ('SOUTH', 2), ('UNKNOWN', 1)]
        assert result.rankings['roles'] == [
            ('Assistant Teacher', 2), ('Principal', 1), ('Special Educator', 1), ('UNKNOWN', 1),
        ]


class TestDiagnostics:
    def test_skipped_rows(self, result):
        d = result.diagnostics
        assert d.accepted['roster'] == 5
        assert d.skipped_count('roster', 'unresolved_person_id') == 1
        assert d.skipped_count('roster', 'duplicate_person_id') == 1
        assert d.accepted['history'] == 4
        assert d.skipped_count('history', 'not_in_roster') == 1
        assert d.skipped_count('history', 'unresolved_person_id') == 1
        assert d.skipped_count('summary', 'unresolved_unit_id') == 1

    def test_notes(self, result):
        d = result.diagnostics
        assert d.note_count('roster', 'unparsable_dob') == 1
        assert d.note_count('roster', 'unresolved_unit_id') == 1
        assert d.note_count('roster', 'default_category') == 2


class TestServiceCache:
    def test_cache_written(self, result, extracts):
        with open(extracts['cache'], encoding='utf-8') as f:
            cached = json.load(f)
        assert sorted(cached) == ['100001', '100002', '100004', '999999']

    def test_fresh_cache_reused(self, extracts, reference_date):
        cache = extracts['cache']
        cache.parent.mkdir(parents=True, exist_ok=True)
        cache.write_text(json.dumps({'100001': '02/02/2002'}), encoding='utf-8')
        make_fresh(cache)

        result = run_reconciliation(extracts['roster'], extracts['history'],
                                    extracts['summary'], cache, today=reference_date)
        assert result.persons['100001'].service_start == '02/02/2002'
        assert result.persons['100002'].service_start == ''

    def test_rebuild_ignores_fresh_cache(self, extracts, reference_date):
        cache = extracts['cache']
        cache.parent.mkdir(parents=True, exist_ok=True)
        cache.write_text(json.dumps({'100001': '02/02/2002'}), encoding='utf-8')
        make_fresh(cache)

        result = run_reconciliation(extracts['roster'], extracts['history'],
                                    extracts['summary'], cache, force_rebuild=True,
                                    today=reference_date)
        assert result.persons['100001'].service_start == '01/Apr/2010'

    def test_diagnostics_same_with_reused_cache(self, extracts, reference_date):
        first = run_reconciliation(extracts['roster'], extracts['history'],
                                   extracts['summary'], extracts['cache'], today=reference_date)
        make_fresh(extracts['cache'])
        second = run_reconciliation(extracts['roster'], extracts['history'],
                                    extracts['summary'], extracts['cache'], today=reference_date)
        assert second.diagnostics.to_dict() == first.diagnostics.to_dict()

    def test_corrupt_fresh_cache(self, extracts, reference_date):
        cache = extracts['cache']
        cache.parent.mkdir(parents=True, exist_ok=True)
        cache.write_text('{not json', encoding='utf-8')
        make_fresh(cache)

        with pytest.raises(CacheCorruptError):
            run_reconciliation(extracts['roster'], extracts['history'],
                               extracts['summary'], cache, today=reference_date)


class TestColumnChecks:
    def test_missing_capacity_column_warns(self, extracts, reference_date, tmp_path, caplog):
        """A summary without a present-students column still reconciles"""
        header = [h for h in SUMMARY_HEADER if h != 'Max Present']
        rows = [[v for h, v in zip(SUMMARY_HEADER, row) if h != 'Max Present']
                for row in SUMMARY_ROWS]
        summary = write_csv(tmp_path / 'NoPresent_Summary.csv', header, rows)

        with caplog.at_level(logging.WARNING):
            result = run_reconciliation(extracts['roster'], extracts['history'], summary,
                                        extracts['cache'], today=reference_date)

        assert 'max_present_students' in caplog.text
        assert result.diagnostics.note_count('summary', 'missing_column') == 1
        assert all(s.needed_teachers == 0 for s in result.staffing)

    def test_complete_extracts_have_no_missing_columns(self, result):
        for source in ('roster', 'history', 'summary'):
            assert result.diagnostics.note_count(source, 'missing_column') == 0

    def test_check_columns_reports_missing_fields(self, extracts):
        diagnostics = PassDiagnostics()
        table = load_source(extracts['history'])
        columns = {'person_id': ['Employee ID'], 'religion': ['Religion', 'Faith']}
        missing = check_columns(table, 'history', columns, ['person_id', 'religion'], diagnostics)
        assert missing == ['religion']
        assert diagnostics.note_count('history', 'missing_column') == 1


class TestErrors:
    def test_missing_extract(self, extracts, tmp_path):
        with pytest.raises(SourceReadError):
            run_reconciliation(tmp_path / 'missing.csv', extracts['history'],
                               extracts['summary'], extracts['cache'])

    def test_empty_extract(self, extracts, tmp_path):
        empty = tmp_path / 'empty.csv'
        empty.write_text('')
        with pytest.raises(SourceReadError):
            run_reconciliation(extracts['roster'], extracts['history'],
                               empty, extracts['cache'])
