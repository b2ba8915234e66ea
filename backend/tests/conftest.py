"""
Shared fixtures: a tiny hand-computed dataset and the bundled sample export.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from backend.app.engine.dataset_store import DatasetStore
from backend.app.engine.query_engine import QueryEngine
from backend.app.schema.dataset_schema import (
    AccommodationRecord,
    QuestionTypeRecord,
    SchoolRecord,
    StandardRecord,
    TeacherRecord,
)

SAMPLE_DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data" / "usage"


def make_school(name: str, **fields) -> SchoolRecord:
    return SchoolRecord(school_name=name, **fields)


def make_teacher(name: str, school: str, **fields) -> TeacherRecord:
    return TeacherRecord(teacher_name=name, school_name=school, **fields)


@pytest.fixture
def schools() -> list[SchoolRecord]:
    """Three schools; weighted accommodation usage is (50*10 + 34*30) / 40 = 38."""
    return [
        make_school(
            "Lincoln Elementary",
            rostered_teachers=12, logged_in_teachers=11, active_teachers=10,
            assessment_teachers=8, lesson_teachers=6,
            sessions=100, assessment_sessions=60, lesson_sessions=40,
            student_responses=2000, game_players=80,
            students_benefited=25, total_accommodations=30,
            basic_accommodations=10, reading_support_accommodations=20,
            ai_powered_resources=5, resources_used=20, questions_hosted=200,
            hot_match_questions=12, hot_graphing_questions=8,
            percent_using_accommodations=50.0,
            percent_using_curriculum_aligned=60.0,
            percent_using_hot_questions=20.0,
        ),
        make_school(
            "Washington Prep",
            rostered_teachers=35, logged_in_teachers=32, active_teachers=30,
            assessment_teachers=20, lesson_teachers=15, video_teachers=5,
            sessions=300, assessment_sessions=150, lesson_sessions=100, video_sessions=50,
            student_responses=9000, game_players=150,
            students_benefited=75, total_accommodations=90,
            basic_accommodations=40, math_tools_accommodations=50,
            ai_powered_resources=15, resources_used=80, questions_hosted=800,
            hot_match_questions=40, hot_reorder_questions=20, hot_math_response_questions=20,
            percent_using_accommodations=34.0,
            percent_using_curriculum_aligned=80.0,
            percent_using_hot_questions=40.0,
        ),
        make_school(
            "Adams Middle",
            rostered_teachers=9, logged_in_teachers=4, active_teachers=0,
            percent_using_accommodations=90.0,
        ),
    ]


@pytest.fixture
def teachers() -> list[TeacherRecord]:
    return [
        make_teacher("Ana Ruiz", "Washington Prep", sessions=40, student_responses=900, hot_questions=12),
        make_teacher("Ben Cole", "Lincoln Elementary", sessions=55, student_responses=700, hot_questions=3),
        make_teacher("Cara Diaz", "Washington Prep", sessions=40, student_responses=1200),
        make_teacher("Dev Mehta", "Adams Middle", sessions=0),
    ]


@pytest.fixture
def question_types() -> list[QuestionTypeRecord]:
    return [
        QuestionTypeRecord(question_type="Multiple Choice", category="Standard", sessions=500),
        QuestionTypeRecord(question_type="Match", category="Interactive & higher order", sessions=40),
        QuestionTypeRecord(question_type="Graphing", category="Math", sessions=25),
    ]


@pytest.fixture
def accommodations() -> list[AccommodationRecord]:
    return [
        AccommodationRecord(accommodation="Extended Time", category="Basic", students_benefited=60),
        AccommodationRecord(accommodation="Read Aloud", category="Reading Support", students_benefited=70),
        AccommodationRecord(accommodation="Calculator", category="Math Tools", students_benefited=30),
    ]


@pytest.fixture
def standards() -> list[StandardRecord]:
    return [
        StandardRecord(code="MATH.3.4A", schools="Lincoln Elementary, Washington Prep", sessions=90),
        StandardRecord(code="ELAR.7.5G", schools="Washington Prep", sessions=120),
    ]


@pytest.fixture
def store(schools, teachers, question_types, accommodations, standards) -> DatasetStore:
    return DatasetStore.from_records(
        schools,
        teachers,
        question_types,
        accommodations,
        standards,
        organization="Test ISD",
        last_updated="January 1, 2026",
    )


@pytest.fixture
def engine(store) -> QueryEngine:
    return QueryEngine(store=store).run()


@pytest.fixture(scope="session")
def sample_store() -> DatasetStore:
    """The bundled sample export."""
    return DatasetStore(SAMPLE_DATA_DIR, organization="Sample ISD").run()


@pytest.fixture
def sample_engine(sample_store) -> QueryEngine:
    return QueryEngine(store=sample_store).run()
