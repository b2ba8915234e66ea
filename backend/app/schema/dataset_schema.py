"""
Dataset Schema

Pydantic models for the raw usage exports (one JSON array per entity)
and the aggregate summary computed from them at load time.

The raw exports keep the column names of the spreadsheet they were
produced from (``"Active teachers"``, ``"HOT Match Questions"`` ...), so
every record field carries an alias with the original column name.
Both the alias and the snake_case field name are accepted on input.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


# Raw records

class _Record(BaseModel):
    """Common behaviour for every raw export row."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _blank_numbers_are_zero(cls, value: Any, info: ValidationInfo) -> Any:
        """Spreadsheet exports leave empty numeric cells as null or ``""``."""
        field = cls.model_fields.get(info.field_name)
        if field is not None and field.annotation in (int, float):
            if value is None or (isinstance(value, str) and not value.strip()):
                return 0
        return value


class SchoolRecord(_Record):
    """One row of the per-school usage export."""

    school_name: str = Field(..., alias="School Name", min_length=1)

    # Teachers
    rostered_teachers: int = Field(0, alias="Rostered teachers")
    logged_in_teachers: int = Field(0, alias="Logged in teachers")
    active_teachers: int = Field(0, alias="Active teachers")
    assessment_teachers: int = Field(0, alias="Assessment teachers")
    lesson_teachers: int = Field(0, alias="Lesson teachers")
    passage_teachers: int = Field(0, alias="Passage teachers")
    video_teachers: int = Field(0, alias="Interactive video teachers")
    flashcard_teachers: int = Field(0, alias="Flashcard teachers")

    # Sessions
    sessions: int = Field(0, alias="Sessions")
    assessment_sessions: int = Field(0, alias="Assessment Sessions")
    lesson_sessions: int = Field(0, alias="Lesson Sessions")
    video_sessions: int = Field(0, alias="Interactive Video Sessions")
    passage_sessions: int = Field(0, alias="Passage Sessions")
    flashcard_sessions: int = Field(0, alias="Flashcard Sessions")

    # Students
    student_responses: int = Field(0, alias="Student responses")
    game_players: int = Field(0, alias="game_players")

    # Accommodations
    students_benefited: int = Field(0, alias="Students benefited from Accommodations")
    total_accommodations: int = Field(0, alias="Total Accommodations")
    basic_accommodations: int = Field(0, alias="Basic Accommodations")
    question_settings_accommodations: int = Field(0, alias="Question Settings Accommodations")
    math_tools_accommodations: int = Field(0, alias="Math Tools Accommodations")
    reading_support_accommodations: int = Field(0, alias="Reading Support Accommodations")
    learning_environment_accommodations: int = Field(
        0, alias="Learning Environment Accommodations"
    )

    # Resources
    ai_powered_resources: int = Field(0, alias="AI Powered Resources")
    resources_used: int = Field(0, alias="Resources used")

    # Questions
    questions_hosted: int = Field(0, alias="Questions hosted")
    hot_match_questions: int = Field(0, alias="HOT Match Questions")
    hot_reorder_questions: int = Field(0, alias="HOT Reorder Questions")
    hot_math_response_questions: int = Field(0, alias="HOT Math Response Questions")
    hot_dropdown_questions: int = Field(0, alias="HOT Dropdown Questions")
    hot_hotspot_questions: int = Field(0, alias="HOT Hotspot Questions")
    hot_graphing_questions: int = Field(0, alias="Hot graphing questions")

    # Percentages (0-100) of rostered teachers
    percent_using_accommodations: float = Field(
        0.0, alias="Percent rostered teachers using accommodations"
    )
    percent_using_curriculum_aligned: float = Field(
        0.0, alias="Percent rostered teachers using curriculum aligned resources"
    )
    percent_using_hot_questions: float = Field(
        0.0, alias="Percent rostered teachers using hot questions"
    )

    @property
    def hot_questions(self) -> int:
        """Total higher-order-thinking questions across every subtype."""
        return sum(getattr(self, name) for name in HOT_QUESTION_FIELDS.values())


class TeacherRecord(_Record):
    """One row of the per-teacher usage export.

    ``school_name`` is a weak reference: it is matched against
    :attr:`SchoolRecord.school_name` by string equality only.
    """

    teacher_name: str = Field(..., alias="Teacher Name", min_length=1)
    email: str = Field("", alias="Email")
    school_name: str = Field("", alias="School Name")

    sessions: int = Field(0, alias="Sessions")
    assessment_sessions: int = Field(0, alias="Assessment Sessions")
    lesson_sessions: int = Field(0, alias="Lesson Sessions")
    video_sessions: int = Field(0, alias="Interactive Video Sessions")
    passage_sessions: int = Field(0, alias="Passage Sessions")
    flashcard_sessions: int = Field(0, alias="Flashcard Sessions")
    student_responses: int = Field(0, alias="Student responses")
    students_benefited: int = Field(0, alias="Students benefited from Accommodations")
    total_accommodations: int = Field(0, alias="Total Accommodations")
    ai_powered_resources: int = Field(0, alias="AI Powered Resources")
    questions_hosted: int = Field(0, alias="Questions hosted")
    hot_questions: int = Field(0, alias="HOT Questions")


class QuestionTypeRecord(_Record):
    """Usage of one question type across the district."""

    question_type: str = Field(..., alias="Question Type", min_length=1)
    category: str = Field("", alias="Question Category")
    schools: str = Field("", alias="Schools")
    sessions: int = Field(0, alias="Number of sessions")


class AccommodationRecord(_Record):
    """Usage of one accommodation feature across the district."""

    accommodation: str = Field(..., alias="Accommodation", min_length=1)
    category: str = Field("", alias="Accommodation Category")
    schools: str = Field("", alias="Schools")
    students_benefited: int = Field(0, alias="Students benefited")


class StandardRecord(_Record):
    """Usage of one curriculum standard across the district."""

    code: str = Field(..., alias="Standard Code", min_length=1)
    schools: str = Field("", alias="Schools")
    sessions: int = Field(0, alias="Number of sessions")


def split_schools(schools: str) -> list[str]:
    """Split a comma-separated school list, dropping blanks."""
    return [name.strip() for name in schools.split(",") if name.strip()]


# Content-type and HOT subtype column maps

# content type -> (sessions field, teachers field) on SchoolRecord
CONTENT_TYPE_FIELDS: dict[str, tuple[str, str]] = {
    "assessments": ("assessment_sessions", "assessment_teachers"),
    "lessons": ("lesson_sessions", "lesson_teachers"),
    "videos": ("video_sessions", "video_teachers"),
    "passages": ("passage_sessions", "passage_teachers"),
    "flashcards": ("flashcard_sessions", "flashcard_teachers"),
}

CONTENT_TYPE_LABELS: dict[str, str] = {
    "assessments": "Assessments",
    "lessons": "Lessons",
    "videos": "Interactive Videos",
    "passages": "Passages",
    "flashcards": "Flashcards",
}

ACCOMMODATION_CATEGORY_FIELDS: dict[str, str] = {
    "Basic": "basic_accommodations",
    "Question Settings": "question_settings_accommodations",
    "Math Tools": "math_tools_accommodations",
    "Reading Support": "reading_support_accommodations",
    "Learning Environment": "learning_environment_accommodations",
}

HOT_QUESTION_FIELDS: dict[str, str] = {
    "Match": "hot_match_questions",
    "Reorder": "hot_reorder_questions",
    "Math Response": "hot_math_response_questions",
    "Dropdown": "hot_dropdown_questions",
    "Hotspot": "hot_hotspot_questions",
    "Graphing": "hot_graphing_questions",
}


# Aggregate summary

class _Summary(BaseModel):
    model_config = ConfigDict(frozen=True)


class ContentTypeStats(_Summary):
    sessions: int = 0
    teachers: int = 0


class RankedAccommodation(_Summary):
    name: str
    students: int


class RankedStandard(_Summary):
    code: str
    sessions: int
    used_by: str = Field(..., description="Human-readable usage, e.g. '3 schools'.")


class RankedQuestionType(_Summary):
    type: str
    category: str = ""
    count: int


class MonthlyTrend(_Summary):
    month: str
    sessions: int
    teachers: int


class AggregateSummary(_Summary):
    """District-wide values derived once from the raw records."""

    organization: str = ""
    last_updated: str = ""

    school_count: int = 0
    rostered_teachers: int = 0
    logged_in_teachers: int = 0
    active_teachers: int = 0
    total_sessions: int = 0
    student_responses: int = 0
    game_players: int = 0

    content_types: dict[str, ContentTypeStats] = Field(
        default_factory=lambda: {name: ContentTypeStats() for name in CONTENT_TYPE_FIELDS}
    )

    accommodation_usage_percent: int = 0
    students_supported: int = 0
    total_accommodations: int = 0
    accommodation_categories: dict[str, int] = Field(
        default_factory=lambda: {name: 0 for name in ACCOMMODATION_CATEGORY_FIELDS}
    )

    curriculum_alignment_percent: int = 0

    higher_order_questions_percent: int = 0
    teachers_asking_hot_percent: int = 0
    ai_powered_resources_percent: int = 0
    questions_hosted: int = 0
    hot_question_types: dict[str, int] = Field(
        default_factory=lambda: {name: 0 for name in HOT_QUESTION_FIELDS}
    )

    top_accommodations: list[RankedAccommodation] = Field(default_factory=list)
    top_standards: list[RankedStandard] = Field(default_factory=list)
    question_types: list[RankedQuestionType] = Field(default_factory=list)
    top_teacher_names: list[str] = Field(default_factory=list)

    monthly_trends: list[MonthlyTrend] = Field(default_factory=list)
