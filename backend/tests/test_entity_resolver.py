"""
Tests for school name resolution.
"""

from __future__ import annotations

from backend.app.engine.entity_resolver import partial_hits, resolve_entity, resolve_school
from backend.app.schema.dataset_schema import SchoolRecord


def _schools(*names):
    return [SchoolRecord(school_name=name) for name in names]


class TestResolveSchool:
    def test_exact_name(self):
        schools = _schools("Lincoln Elementary", "Washington Prep")
        assert resolve_school("Washington Prep sessions", schools).school_name == "Washington Prep"

    def test_exact_is_case_insensitive(self):
        schools = _schools("Lincoln Elementary")
        assert resolve_school("LINCOLN ELEMENTARY overview", schools) is not None

    def test_exact_beats_earlier_partial(self):
        # "Lincoln Elementary Annex" partially matches first, but the exact
        # pass covers every school before any partial matching.
        schools = _schools("Lincoln Elementary Annex", "Lincoln Elementary")
        assert resolve_school("Lincoln Elementary sessions", schools).school_name == "Lincoln Elementary"

    def test_partial_needs_two_words(self):
        schools = _schools("Sam Houston STEM Academy")
        assert resolve_school("houston stem sessions", schools) is not None
        assert resolve_school("houston sessions", schools) is None

    def test_single_word_name(self):
        schools = _schools("Jefferson")
        assert resolve_school("how many sessions at jefferson?", schools).school_name == "Jefferson"

    def test_short_words_are_ignored(self):
        assert partial_hits("an example query", "An Example") == 1

    def test_partial_is_greedy(self):
        schools = _schools("Carver Middle", "Carver Middle Magnet")
        found = resolve_school("middle school sessions at carver magnet", schools)
        assert found.school_name == "Carver Middle"

    def test_no_match(self):
        schools = _schools("Lincoln Elementary")
        assert resolve_school("Top schools by sessions", schools) is None
        assert resolve_school("   ", schools) is None


class TestResolveEntity:
    def test_custom_name_function(self):
        teachers = [{"name": "Ana Ruiz"}, {"name": "Ben Cole"}]
        found = resolve_entity("sessions for ben cole", teachers, lambda t: t["name"])
        assert found == {"name": "Ben Cole"}
