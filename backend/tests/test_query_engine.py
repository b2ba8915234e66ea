"""
Tests for the query engine: recognition, responses and direct execution.
"""

from __future__ import annotations

import pytest

from backend.app.engine.dataset_store import DatasetStore
from backend.app.engine.query_engine import FALLBACK_LABEL, FALLBACK_TITLE, QueryEngine
from backend.app.engine.suggestions import FALLBACK_SUGGESTIONS
from backend.app.schema.dataset_schema import SchoolRecord
from backend.app.schema.query_schema import (
    ComparisonData,
    DistributionData,
    ListData,
    SingleStatData,
    TrendData,
    VisualizationType,
)


@pytest.fixture(autouse=True)
def reset_singleton():
    """Reset the QueryEngine singleton between tests."""
    QueryEngine._instance = None
    yield
    QueryEngine._instance = None


class TestScenarios:
    """End-to-end questions against the hand-built dataset."""

    def test_teachers_using_accommodations(self, engine):
        response = engine.process("How many teachers are using accommodations?")
        assert response.type == VisualizationType.SINGLE_STAT
        assert isinstance(response.data, SingleStatData)
        assert response.data.value == 38
        assert response.data.suffix == "%"
        assert response.intent == "teachers_using_accommodations"

    def test_top_schools_by_active_teachers(self, engine):
        response = engine.process("Top schools by active teachers")
        assert response.type == VisualizationType.LIST
        assert isinstance(response.data, ListData)
        items = response.data.items
        assert [i.name for i in items] == ["Washington Prep", "Lincoln Elementary"]
        assert [i.value for i in items] == [30, 10]
        assert [i.rank for i in items] == [1, 2]
        assert response.title == "Top Schools by Active Teachers"

    def test_top_schools_truncated_to_ten(self):
        schools = [SchoolRecord(school_name=f"School {i}", active_teachers=i) for i in range(12)]
        engine = QueryEngine(store=DatasetStore.from_records(schools))
        items = engine.process("Top schools by active teachers").data.items
        assert len(items) == 10
        assert [i.rank for i in items] == list(range(1, 11))
        assert items[0].value == 11
        assert all(i.value > 0 for i in items)

    def test_named_school_sessions(self, engine):
        response = engine.process("Lincoln Elementary sessions")
        assert response.intent == "school_sessions"
        assert response.type == VisualizationType.SINGLE_STAT
        assert response.data.value == 100
        assert response.title.startswith("Lincoln Elementary")

    def test_query_text_is_preserved(self, engine):
        query = "  Lincoln Elementary sessions  "
        assert engine.process(query).query == query


class TestFallback:
    def test_unrecognized_query(self, engine):
        response = engine.process("What is the weather today?")
        assert response.is_fallback
        assert response.title == FALLBACK_TITLE
        assert response.type == VisualizationType.SINGLE_STAT
        assert response.data.value == "?"
        assert response.data.label == FALLBACK_LABEL
        assert "accommodations" in response.data.label
        assert response.follow_up_suggestions == list(FALLBACK_SUGGESTIONS)

    def test_empty_dataset_never_raises(self):
        engine = QueryEngine(store=DatasetStore.from_records())
        assert engine.process("Top schools by sessions").is_fallback
        response = engine.process("How many total sessions?")
        assert response.intent == "total_sessions"
        assert response.data.value == 0

    def test_school_with_no_hot_questions_falls_through(self, engine):
        response = engine.process("Adams Middle HOT questions")
        assert response.intent == "school_overview"
        assert response.type == VisualizationType.LIST


class TestIntents:
    """A sample of the generic rules, checked against hand-computed values."""

    def test_compare_two_content_types(self, engine):
        response = engine.process("Compare assessment vs lesson sessions")
        assert isinstance(response.data, ComparisonData)
        assert response.title == "Assessments vs Lessons"
        assert [(i.name, i.value) for i in response.data.items] == [
            ("Assessments", 210),
            ("Lessons", 140),
        ]

    def test_compare_two_content_types_by_teachers(self, engine):
        response = engine.process("Lessons versus videos by teachers")
        assert [(i.name, i.value) for i in response.data.items] == [
            ("Lessons", 21),
            ("Interactive Videos", 5),
        ]

    def test_distribution_total_is_sum(self, engine):
        response = engine.process("Show session distribution by content type")
        assert isinstance(response.data, DistributionData)
        assert response.data.total == sum(i.value for i in response.data.items) == 400

    def test_accommodation_distribution_by_students(self, engine):
        response = engine.process("Accommodation distribution")
        assert response.intent == "accommodation_distribution"
        assert response.title == "Accommodation Distribution"
        assert [(i.name, i.value) for i in response.data.items] == [
            ("Read Aloud", 70),
            ("Extended Time", 60),
            ("Calculator", 30),
        ]
        assert response.data.total == 160

    def test_accommodation_categories(self, engine):
        response = engine.process("Show accommodation categories breakdown")
        assert response.intent == "accommodation_categories"
        assert isinstance(response.data, DistributionData)
        assert response.data.total == sum(i.value for i in response.data.items)

    def test_accommodation_distribution_without_data_falls_back(self):
        engine = QueryEngine(store=DatasetStore.from_records())
        assert engine.process("Accommodation distribution").is_fallback

    def test_every_chart_item_has_a_color(self, engine):
        response = engine.process("Compare all content types by sessions")
        assert all(item.color for item in response.data.items)

    def test_bottom_schools(self, engine):
        response = engine.process("Bottom 5 schools by sessions")
        assert response.title == "Bottom Schools by Sessions"
        assert [i.name for i in response.data.items] == ["Lincoln Elementary", "Washington Prep"]

    def test_hot_usage_percentages(self, engine):
        response = engine.process("Show me schools with highest HOT question usage")
        assert [(i.name, i.value) for i in response.data.items] == [
            ("Washington Prep", 40),
            ("Lincoln Elementary", 20),
        ]

    def test_total_sessions_trend(self, engine):
        response = engine.process("How many total sessions?")
        assert response.data.value == 400
        assert response.data.trend.direction == "up"
        assert response.data.trend.value == 167

    def test_total_teachers(self, engine):
        response = engine.process("How many teachers?")
        assert response.intent == "total_teachers"
        assert response.data.value == 40
        assert response.subtitle == "56 rostered, 47 logged in"

    def test_teacher_trend(self, engine):
        response = engine.process("Show the teacher trend over time")
        assert isinstance(response.data, TrendData)
        assert [p.value for p in response.data.points] == [26, 32, 36, 38, 34, 40]

    def test_top_teachers_subtext(self, engine):
        response = engine.process("Which teachers have the most sessions?")
        assert response.data.items[0].name == "Ben Cole"
        assert response.data.items[0].subtext == "Lincoln Elementary"

    def test_top_standards(self, engine):
        response = engine.process("Top standards by sessions")
        assert [(i.name, i.subtext) for i in response.data.items] == [
            ("ELAR.7.5G", "1 schools"),
            ("MATH.3.4A", "2 schools"),
        ]

    def test_repeated_queries_are_identical(self, engine):
        first = engine.process("Top schools by sessions")
        second = engine.process("Top schools by sessions")
        assert first.data == second.data
        assert first.id != second.id

    def test_follow_ups_capped(self, engine):
        response = engine.process("Top schools by sessions")
        assert 0 < len(response.follow_up_suggestions) <= 3


class TestRunIntent:
    def test_runs_named_intent(self, engine):
        response = engine.run_intent("total_sessions")
        assert response.intent == "total_sessions"
        assert response.query == "total_sessions"

    def test_uses_query_for_parameters(self, engine):
        response = engine.run_intent("top_schools", query="schools by game players")
        assert response.data.value_label == "game players"

    def test_school_scoped(self, engine):
        response = engine.run_intent("school_sessions", school="washington prep")
        assert response.data.value == 300

    def test_unknown_intent(self, engine):
        with pytest.raises(ValueError):
            engine.run_intent("nope")

    def test_school_scope_requires_school(self, engine):
        with pytest.raises(ValueError):
            engine.run_intent("school_sessions")

    def test_unknown_school(self, engine):
        with pytest.raises(ValueError):
            engine.run_intent("school_sessions", school="Hogwarts")

    def test_no_data(self, engine):
        with pytest.raises(ValueError):
            engine.run_intent("school_hot_questions", school="Adams Middle")


class TestEngineInterface:
    def test_query_returns_json_dict(self, engine):
        result = engine.query("total_sessions", {})
        assert result["type"] == "single_stat"
        assert result["data"]["value"] == 400
        assert isinstance(result["timestamp"], str)

    def test_query_unknown_intent(self, engine):
        result = engine.query("bogus", {"query": "x"})
        assert "error" in result
        assert result["supported_intents"] == engine.capabilities

    def test_capabilities_in_order(self, engine):
        assert engine.capabilities == engine.registry.names
        assert engine.capabilities[-1] == "game_players"

    def test_recognize(self, engine):
        assert engine.recognize("Top schools by sessions") == "top_schools"
        assert engine.recognize("What is the weather today?") is None

    def test_singleton(self, store):
        a = QueryEngine.get_instance(store=store)
        b = QueryEngine.get_instance()
        assert a is b
        assert a.store is store

    def test_run_loads_store(self, tmp_path):
        store = DatasetStore(tmp_path)
        QueryEngine(store=store).run()
        assert store.is_loaded
