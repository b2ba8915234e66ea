"""
Tests for dataset loading and ranked lookups.
"""

from __future__ import annotations

import json

import pytest

from backend.app.engine.dataset_store import DatasetStore, load_records
from backend.app.schema.dataset_schema import SchoolRecord


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


class TestLoadRecords:
    """Best-effort parsing of one export file."""

    def test_missing_file_is_empty(self, tmp_path):
        assert load_records(tmp_path / "schools.json", SchoolRecord) == []

    def test_invalid_json_is_empty(self, tmp_path):
        path = tmp_path / "schools.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_records(path, SchoolRecord) == []

    def test_undecodable_bytes_are_empty(self, tmp_path):
        path = tmp_path / "schools.json"
        path.write_bytes(b'[{"School Name": "\xff\xfe bad"}]')
        assert load_records(path, SchoolRecord) == []

    def test_store_survives_undecodable_file(self, tmp_path):
        (tmp_path / "schools.json").write_bytes(b'[{"School Name": "\xff"}]')
        store = DatasetStore(tmp_path).run()
        assert store.schools == ()

    def test_non_array_is_empty(self, tmp_path):
        path = tmp_path / "schools.json"
        _write(path, {"School Name": "Lincoln Elementary"})
        assert load_records(path, SchoolRecord) == []

    def test_invalid_rows_are_skipped(self, tmp_path):
        path = tmp_path / "schools.json"
        _write(path, [
            {"School Name": "Lincoln Elementary", "Active teachers": 10},
            {"Active teachers": 5},
            {"School Name": "Adams Middle", "Active teachers": "many"},
            {"School Name": "Washington Prep", "Sessions": 40},
        ])
        records = load_records(path, SchoolRecord)
        assert [r.school_name for r in records] == ["Lincoln Elementary", "Washington Prep"]

    def test_aliases_and_blank_numbers(self, tmp_path):
        path = tmp_path / "schools.json"
        _write(path, [{
            "School Name": "Lincoln Elementary",
            "Active teachers": None,
            "Sessions": "",
            "HOT Match Questions": 7,
            "Percent rostered teachers using accommodations": 45.2,
        }])
        (record,) = load_records(path, SchoolRecord)
        assert record.active_teachers == 0
        assert record.sessions == 0
        assert record.hot_match_questions == 7
        assert record.percent_using_accommodations == pytest.approx(45.2)


class TestDatasetStore:
    """Lifecycle and lookups of the in-memory store."""

    def test_summary_before_run_raises(self, tmp_path):
        store = DatasetStore(tmp_path)
        assert store.is_loaded is False
        with pytest.raises(RuntimeError):
            _ = store.summary

    def test_empty_directory_degrades_to_zeros(self, tmp_path):
        store = DatasetStore(tmp_path, organization="Empty ISD").run()
        summary = store.summary
        assert store.is_loaded is True
        assert summary.organization == "Empty ISD"
        assert summary.school_count == 0
        assert summary.total_sessions == 0
        assert summary.accommodation_usage_percent == 0
        assert summary.top_accommodations == []
        assert all(m.sessions == 0 for m in summary.monthly_trends)

    def test_no_directory_is_empty(self):
        store = DatasetStore(None).run()
        assert store.schools == ()
        assert store.summary.school_count == 0

    def test_partial_load(self, tmp_path):
        _write(tmp_path / "schools.json", [
            {"School Name": "Lincoln Elementary", "Active teachers": 10, "Sessions": 100},
        ])
        (tmp_path / "teachers.json").write_text("garbage", encoding="utf-8")
        store = DatasetStore(tmp_path).run()
        assert store.school_names == ["Lincoln Elementary"]
        assert store.teachers == ()
        assert store.summary.total_sessions == 100

    def test_reload_picks_up_changes(self, tmp_path):
        path = tmp_path / "schools.json"
        _write(path, [{"School Name": "Lincoln Elementary", "Sessions": 10}])
        store = DatasetStore(tmp_path).run()
        _write(path, [
            {"School Name": "Lincoln Elementary", "Sessions": 10},
            {"School Name": "Adams Middle", "Sessions": 5},
        ])
        store.reload()
        assert store.summary.school_count == 2
        assert store.summary.total_sessions == 15

    def test_sample_data_loads(self, sample_store):
        assert sample_store.summary.school_count == len(sample_store.schools) > 0
        assert sample_store.get_school("Lincoln Elementary") is not None

    def test_get_school_is_case_insensitive(self, store):
        assert store.get_school("  washington PREP ").school_name == "Washington Prep"
        assert store.get_school("Unknown High") is None

    def test_teachers_at(self, store):
        names = [t.teacher_name for t in store.teachers_at("washington prep")]
        assert names == ["Ana Ruiz", "Cara Diaz"]

    def test_filter_by_category(self, store):
        assert [q.question_type for q in store.question_types_by_category("Math")] == ["Graphing"]
        assert len(store.question_types_by_category()) == 3
        assert [a.accommodation for a in store.accommodations_by_category("Basic")] == ["Extended Time"]


class TestTopSchools:
    """Ranked school lookups."""

    def test_descending_excludes_zero(self, store):
        names = [s.school_name for s in store.top_schools("active_teachers")]
        assert names == ["Washington Prep", "Lincoln Elementary"]

    def test_ascending(self, store):
        names = [s.school_name for s in store.top_schools("sessions", ascending=True)]
        assert names == ["Lincoln Elementary", "Washington Prep"]

    def test_limit(self, store):
        assert len(store.top_schools("sessions", limit=1)) == 1
        assert store.top_schools("sessions", limit=0) == []

    def test_unknown_metric_is_empty(self, store):
        assert store.top_schools("not_a_column") == []

    def test_truncated_to_limit(self):
        schools = [SchoolRecord(school_name=f"School {i}", active_teachers=i) for i in range(1, 15)]
        store = DatasetStore.from_records(schools)
        top = store.top_schools("active_teachers", limit=10)
        assert len(top) == 10
        assert top[0].active_teachers == 14
        assert [s.active_teachers for s in top] == sorted((s.active_teachers for s in top), reverse=True)

    def test_ties_keep_dataset_order(self):
        schools = [
            SchoolRecord(school_name="North", sessions=50),
            SchoolRecord(school_name="South", sessions=80),
            SchoolRecord(school_name="East", sessions=50),
            SchoolRecord(school_name="West", sessions=50),
        ]
        store = DatasetStore.from_records(schools)
        first = [s.school_name for s in store.top_schools("sessions")]
        second = [s.school_name for s in store.top_schools("sessions")]
        assert first == ["South", "North", "East", "West"]
        assert first == second


class TestTopTeachersAndStandards:
    def test_top_teachers(self, store):
        names = [t.teacher_name for t in store.top_teachers("sessions")]
        assert names == ["Ben Cole", "Ana Ruiz", "Cara Diaz"]

    def test_top_teachers_by_responses(self, store):
        top = store.top_teachers("student_responses", limit=1)
        assert top[0].teacher_name == "Cara Diaz"

    def test_top_standards(self, store):
        codes = [s.code for s in store.top_standards(limit=5)]
        assert codes == ["ELAR.7.5G", "MATH.3.4A"]
