"""
Aggregate Summary

Derives the district-wide :class:`AggregateSummary` from the raw record
frames.  Computed once per load; every percentage is rounded half-up to
an integer and every division guards against a zero denominator.
"""

from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd

from backend.app.schema.dataset_schema import (
    ACCOMMODATION_CATEGORY_FIELDS,
    CONTENT_TYPE_FIELDS,
    HOT_QUESTION_FIELDS,
    AggregateSummary,
    ContentTypeStats,
    MonthlyTrend,
    RankedAccommodation,
    RankedQuestionType,
    RankedStandard,
    split_schools,
)

logger = logging.getLogger(__name__)

# (month, share of total sessions, share of active teachers)
MONTHLY_FRACTIONS: list[tuple[str, float, float]] = [
    ("Aug", 0.08, 0.65),
    ("Sep", 0.14, 0.80),
    ("Oct", 0.18, 0.90),
    ("Nov", 0.16, 0.95),
    ("Dec", 0.12, 0.85),
    ("Jan", 0.32, 1.00),
]

HOT_QUESTION_CATEGORIES = frozenset({"Interactive & higher order", "Math"})

TOP_ACCOMMODATIONS = 5
TOP_STANDARDS = 5
TOP_QUESTION_TYPES = 6
TOP_TEACHER_NAMES = 50


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 away from zero."""
    if not math.isfinite(value):
        return 0
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def percentage(part: float, whole: float) -> int:
    """``part / whole`` as a rounded percentage, 0 when *whole* is 0."""
    return round_half_up(100.0 * part / whole) if whole else 0


def weighted_percentage(values: pd.Series, weights: pd.Series) -> int:
    """Weighted mean of percentage *values*, rounded.

    Rows with a zero weight do not contribute.  A zero total weight
    yields 0 rather than NaN.
    """
    weights = weights.astype(float)
    total_weight = float(weights.sum())
    if total_weight <= 0:
        return 0
    return round_half_up(float(np.dot(values.astype(float), weights)) / total_weight)


def _sum(frame: pd.DataFrame, column: str) -> int:
    if frame.empty:
        return 0
    return int(frame[column].sum())


def _ranked(frame: pd.DataFrame, column: str, limit: int) -> pd.DataFrame:
    """Rows sorted descending by *column*; ties keep original order."""
    return frame.sort_values(column, ascending=False, kind="stable").head(limit)


def compute_summary(
    schools: pd.DataFrame,
    teachers: pd.DataFrame,
    question_types: pd.DataFrame,
    accommodations: pd.DataFrame,
    standards: pd.DataFrame,
    *,
    organization: str = "",
    last_updated: str = "",
) -> AggregateSummary:
    """Aggregate the raw frames into a single :class:`AggregateSummary`."""

    active_teachers = _sum(schools, "active_teachers")
    total_sessions = _sum(schools, "sessions")

    content_types = {
        name: ContentTypeStats(
            sessions=_sum(schools, sessions_col),
            teachers=_sum(schools, teachers_col),
        )
        for name, (sessions_col, teachers_col) in CONTENT_TYPE_FIELDS.items()
    }

    # Percentages reported per school are weighted by that school's
    # active-teacher count.
    active = schools[schools["active_teachers"] > 0]
    accommodation_usage = weighted_percentage(
        active["percent_using_accommodations"], active["active_teachers"]
    )
    curriculum_alignment = weighted_percentage(
        active["percent_using_curriculum_aligned"], active["active_teachers"]
    )
    teachers_asking_hot = weighted_percentage(
        active["percent_using_hot_questions"], active["active_teachers"]
    )

    hot_question_types = {
        label: _sum(schools, column) for label, column in HOT_QUESTION_FIELDS.items()
    }
    questions_hosted = _sum(schools, "questions_hosted")

    top_accommodations = [
        RankedAccommodation(name=row.accommodation, students=int(row.students_benefited))
        for row in _ranked(accommodations, "students_benefited", TOP_ACCOMMODATIONS).itertuples()
    ]

    top_standards = [
        RankedStandard(
            code=row.code,
            sessions=int(row.sessions),
            used_by=f"{len(split_schools(row.schools))} schools",
        )
        for row in _ranked(standards, "sessions", TOP_STANDARDS).itertuples()
    ]

    hot_types = question_types[question_types["category"].isin(HOT_QUESTION_CATEGORIES)]
    ranked_question_types = [
        RankedQuestionType(type=row.question_type, category=row.category, count=int(row.sessions))
        for row in _ranked(hot_types, "sessions", TOP_QUESTION_TYPES).itertuples()
    ]

    teacher_names = _ranked(
        teachers[teachers["sessions"] > 0], "sessions", TOP_TEACHER_NAMES
    )["teacher_name"].tolist()

    monthly_trends = [
        MonthlyTrend(
            month=month,
            sessions=round_half_up(total_sessions * session_share),
            teachers=round_half_up(active_teachers * teacher_share),
        )
        for month, session_share, teacher_share in MONTHLY_FRACTIONS
    ]

    summary = AggregateSummary(
        organization=organization,
        last_updated=last_updated,
        school_count=int(len(schools)),
        rostered_teachers=_sum(schools, "rostered_teachers"),
        logged_in_teachers=_sum(schools, "logged_in_teachers"),
        active_teachers=active_teachers,
        total_sessions=total_sessions,
        student_responses=_sum(schools, "student_responses"),
        game_players=_sum(schools, "game_players"),
        content_types=content_types,
        accommodation_usage_percent=accommodation_usage,
        students_supported=_sum(schools, "students_benefited"),
        total_accommodations=_sum(schools, "total_accommodations"),
        accommodation_categories={
            label: _sum(schools, column)
            for label, column in ACCOMMODATION_CATEGORY_FIELDS.items()
        },
        curriculum_alignment_percent=curriculum_alignment,
        higher_order_questions_percent=percentage(sum(hot_question_types.values()), questions_hosted),
        teachers_asking_hot_percent=teachers_asking_hot,
        ai_powered_resources_percent=percentage(
            _sum(schools, "ai_powered_resources"), _sum(schools, "resources_used")
        ),
        questions_hosted=questions_hosted,
        hot_question_types=hot_question_types,
        top_accommodations=top_accommodations,
        top_standards=top_standards,
        question_types=ranked_question_types,
        top_teacher_names=teacher_names,
        monthly_trends=monthly_trends,
    )

    logger.info(
        "Summary computed: %d schools, %d active teachers, %d sessions",
        summary.school_count,
        summary.active_teachers,
        summary.total_sessions,
    )
    return summary
