"""
Intent Library

The ordered set of intent rules answered by the query engine, and the
handlers that build their responses.

Registration order matters (first match wins):

* School-scoped rules come first.  They only run when the query names a
  known school, and the last of them (``school_overview``) accepts any
  text so a resolved school is always answered.
* Generic rules follow, most specific first: a two-content-type
  comparison is registered before "all content types", teacher-level
  HOT questions before the district HOT percentage, the teacher trend
  before the generic "show ... trend", and so on.

Every rule lists example phrases.  Each example must be answered by
its own rule; the test-suite checks this against a sample dataset.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from backend.app.engine.intent_registry import IntentRegistry, QueryContext, intent_rule
from backend.app.engine.response_builder import (
    change_trend,
    comparison,
    distribution,
    draft,
    pick_metric,
    ranked_list,
    single_stat,
    trend,
)
from backend.app.engine.summary import round_half_up
from backend.app.schema.dataset_schema import (
    ACCOMMODATION_CATEGORY_FIELDS,
    CONTENT_TYPE_FIELDS,
    CONTENT_TYPE_LABELS,
    HOT_QUESTION_FIELDS,
    split_schools,
)
from backend.app.schema.query_schema import ListItem, ResponseDraft, VisualizationType

logger = logging.getLogger(__name__)

SCHOOL_SCOPE = "school"

MAX_LIST_ITEMS = 10

# Keyword -> (content type, display label).  "presentation" is the older
# name for lessons.
_CONTENT_KEYWORDS: tuple[tuple[str, str, str], ...] = (
    ("assessment", "assessments", "Assessments"),
    ("lesson", "lessons", "Lessons"),
    ("presentation", "lessons", "Presentations"),
    ("video", "videos", "Interactive Videos"),
    ("passage", "passages", "Passages"),
    ("flashcard", "flashcards", "Flashcards"),
)
_CT = r"(assessment|lesson|presentation|video|passage|flashcard)"

# Ordered (keyword, metric); longer keywords first.
_SCHOOL_METRIC_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("active teacher", "active_teachers"),
    ("rostered", "rostered_teachers"),
    ("logged in", "logged_in_teachers"),
    ("logged-in", "logged_in_teachers"),
    ("student response", "student_responses"),
    ("response", "student_responses"),
    ("game", "game_players"),
    ("accommodation", "students_benefited"),
    ("higher order", "percent_using_hot_questions"),
    ("higher-order", "percent_using_hot_questions"),
    ("hot", "percent_using_hot_questions"),
    ("ai", "ai_powered_resources"),
    ("curriculum", "percent_using_curriculum_aligned"),
    ("standard", "percent_using_curriculum_aligned"),
    ("session", "sessions"),
    ("teacher", "active_teachers"),
    ("question", "questions_hosted"),
)

# metric -> (title, value label, is percentage)
_SCHOOL_METRICS: dict[str, tuple[str, str, bool]] = {
    "active_teachers": ("Active Teachers", "active teachers", False),
    "rostered_teachers": ("Rostered Teachers", "rostered teachers", False),
    "logged_in_teachers": ("Logged-in Teachers", "logged-in teachers", False),
    "student_responses": ("Student Responses", "student responses", False),
    "game_players": ("Game Players", "game players", False),
    "students_benefited": ("Students Supported", "students supported", False),
    "percent_using_hot_questions": ("HOT Question Usage", "% of teachers using HOT questions", True),
    "ai_powered_resources": ("AI-Powered Resources", "AI-powered resources", False),
    "percent_using_curriculum_aligned": ("Curriculum Alignment", "% of teachers using aligned resources", True),
    "sessions": ("Sessions", "sessions", False),
    "questions_hosted": ("Questions Hosted", "questions hosted", False),
}

_TEACHER_METRIC_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("student response", "student_responses"),
    ("response", "student_responses"),
    ("accommodation", "students_benefited"),
    ("higher order", "hot_questions"),
    ("higher-order", "hot_questions"),
    ("hot", "hot_questions"),
    ("ai", "ai_powered_resources"),
    ("question", "questions_hosted"),
    ("assessment", "assessment_sessions"),
    ("lesson", "lesson_sessions"),
    ("video", "video_sessions"),
    ("passage", "passage_sessions"),
    ("flashcard", "flashcard_sessions"),
    ("session", "sessions"),
)

_TEACHER_METRICS: dict[str, str] = {
    "student_responses": "student responses",
    "students_benefited": "students supported",
    "hot_questions": "HOT questions",
    "ai_powered_resources": "AI-powered resources",
    "questions_hosted": "questions hosted",
    "assessment_sessions": "assessment sessions",
    "lesson_sessions": "lesson sessions",
    "video_sessions": "interactive video sessions",
    "passage_sessions": "passage sessions",
    "flashcard_sessions": "flashcard sessions",
    "sessions": "sessions",
}

_ASCENDING = re.compile(r"\b(lowest|least|bottom|fewest)\b")
_LIMIT = re.compile(r"\b(?:top|bottom|best|lowest|first)\s+(\d+)\b")


# Query parameter extraction

def mentioned_content_types(query: str) -> list[tuple[str, str]]:
    """Content types named in *query*, in order of appearance, deduplicated."""
    text = query.lower()
    hits = []
    for keyword, content_type, label in _CONTENT_KEYWORDS:
        for match in re.finditer(keyword, text):
            hits.append((match.start(), content_type, label))

    found: list[tuple[str, str]] = []
    for _, content_type, label in sorted(hits):
        if content_type not in [ct for ct, _ in found]:
            found.append((content_type, label))
    return found


def _content_metric(query: str) -> str:
    """``teachers`` when the query mentions teachers, else ``sessions``."""
    return "teachers" if "teacher" in query.lower() else "sessions"


def _limit(query: str, default: int = MAX_LIST_ITEMS, cap: int = MAX_LIST_ITEMS) -> int:
    match = _LIMIT.search(query.lower())
    if match is None:
        return default
    return max(1, min(int(match.group(1)), cap))


def _pick(query: str, options: tuple[tuple[str, str], ...], default: str) -> str:
    """Keyword-driven metric choice; keywords must start on a word boundary."""
    text = query.lower()
    bounded = [(kw, metric) for kw, metric in options if re.search(rf"\b{re.escape(kw)}", text)]
    return pick_metric(text, bounded, default=default)


# School-scoped handlers

def _school_content_mix(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    school = ctx.school
    entries = [
        (CONTENT_TYPE_LABELS[name], getattr(school, sessions_col))
        for name, (sessions_col, _) in CONTENT_TYPE_FIELDS.items()
    ]
    if not any(value for _, value in entries):
        return None
    return draft(
        f"{school.school_name}: Sessions by Content Type",
        distribution(entries),
        subtitle="How this school's sessions are split across content types",
    )


def _school_accommodations(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    school = ctx.school
    entries = [
        (label, getattr(school, column))
        for label, column in ACCOMMODATION_CATEGORY_FIELDS.items()
    ]
    if not any(value for _, value in entries):
        return None
    return draft(
        f"{school.school_name}: Accommodations",
        distribution(entries),
        subtitle=f"{school.students_benefited:,} students benefited from accommodations",
    )


def _school_hot_questions(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    school = ctx.school
    entries = [(label, getattr(school, column)) for label, column in HOT_QUESTION_FIELDS.items()]
    if not any(value for _, value in entries):
        return None
    return draft(
        f"{school.school_name}: Higher-Order Thinking Questions",
        comparison(entries, y_label="Questions"),
        subtitle=(
            f"{round_half_up(school.percent_using_hot_questions)}% of rostered "
            "teachers asked HOT questions"
        ),
    )


def _school_ai_resources(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    school = ctx.school
    share = (
        round_half_up(100.0 * school.ai_powered_resources / school.resources_used)
        if school.resources_used else 0
    )
    return draft(
        f"{school.school_name}: AI-Powered Resources",
        single_stat(school.ai_powered_resources, "AI-powered resources used"),
        subtitle=f"{share}% of {school.resources_used:,} resources used",
    )


def _school_responses(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    school = ctx.school
    return draft(
        f"{school.school_name}: Student Responses",
        single_stat(school.student_responses, "student responses"),
        subtitle=f"{school.game_players:,} game players",
    )


def _school_sessions(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    school = ctx.school
    return draft(
        f"{school.school_name}: Sessions",
        single_stat(school.sessions, "sessions"),
        subtitle=f"Hosted by {school.active_teachers:,} active teachers",
    )


def _school_teachers(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    school = ctx.school
    return draft(
        f"{school.school_name}: Teacher Engagement",
        comparison(
            [
                ("Rostered", school.rostered_teachers),
                ("Logged in", school.logged_in_teachers),
                ("Active", school.active_teachers),
            ],
            y_label="Teachers",
        ),
        subtitle="Rostered, logged-in and active teachers",
    )


def _school_overview(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    school = ctx.school
    items = [
        ListItem(name="Active teachers", value=school.active_teachers,
                 subtext=f"of {school.rostered_teachers:,} rostered"),
        ListItem(name="Sessions", value=school.sessions),
        ListItem(name="Student responses", value=school.student_responses),
        ListItem(name="Students supported by accommodations", value=school.students_benefited),
        ListItem(name="AI-powered resources", value=school.ai_powered_resources),
        ListItem(name="HOT questions", value=school.hot_questions,
                 subtext=f"of {school.questions_hosted:,} questions hosted"),
    ]
    return draft(
        f"{school.school_name} Overview",
        ranked_list(items),
        subtitle="Key usage metrics for this school",
    )


# Content-type handlers

def _compare_two_content_types(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    mentioned = mentioned_content_types(query)
    if len(mentioned) < 2:
        return None
    metric = _content_metric(query)
    first, second = mentioned[0], mentioned[1]
    entries = [
        (label, getattr(ctx.summary.content_types[name], metric))
        for name, label in (first, second)
    ]
    return draft(
        f"{first[1]} vs {second[1]}",
        comparison(entries, y_label=metric.capitalize()),
        subtitle=f"Comparison by {metric}",
    )


def _compare_all_content_types(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    metric = _content_metric(query)
    entries = [
        (CONTENT_TYPE_LABELS[name], getattr(stats, metric))
        for name, stats in ctx.summary.content_types.items()
    ]
    return draft(
        "Content Types Comparison",
        comparison(entries, y_label=metric.capitalize()),
        subtitle=f"By {metric}",
    )


def _content_distribution(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    entries = [
        (CONTENT_TYPE_LABELS[name], stats.sessions)
        for name, stats in ctx.summary.content_types.items()
    ]
    return draft(
        "Session Distribution by Content Type",
        distribution(entries),
        subtitle="How sessions are distributed across content types",
    )


def _content_type_ranking(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    metric = _content_metric(query)
    ranked = sorted(
        ctx.summary.content_types.items(),
        key=lambda pair: getattr(pair[1], metric),
        reverse=True,
    )
    items = [
        ListItem(name=CONTENT_TYPE_LABELS[name], value=getattr(stats, metric))
        for name, stats in ranked
    ]
    return draft(
        "Content Types Ranked",
        ranked_list(items, value_label=metric),
        subtitle=f"Content types ordered by {metric}",
    )


def _content_type_count(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    mentioned = mentioned_content_types(query)
    if not mentioned:
        return None
    name, label = mentioned[0]
    stats = ctx.summary.content_types[name]
    singular = label[:-1] if label.endswith("s") else label
    if _content_metric(query) == "teachers":
        return draft(
            f"Teachers Using {label}",
            single_stat(stats.teachers, f"teachers used {label.lower()}"),
            subtitle=f"Teachers who hosted at least one {singular.lower()} session",
        )
    return draft(
        f"{singular} Sessions",
        single_stat(stats.sessions, f"{singular.lower()} sessions"),
        subtitle=f"Total number of {singular.lower()} sessions",
    )


# District totals and trends

def _total_sessions(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    summary = ctx.summary
    months = summary.monthly_trends
    stat_trend = change_trend(months[-2].sessions, months[-1].sessions) if len(months) >= 2 else None
    return draft(
        "Total Sessions",
        single_stat(summary.total_sessions, "sessions hosted", trend=stat_trend),
        subtitle="All sessions across every content type",
    )


def _total_teachers(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    summary = ctx.summary
    return draft(
        "Total Teachers",
        single_stat(summary.active_teachers, "active teachers"),
        subtitle=(
            f"{summary.rostered_teachers:,} rostered, "
            f"{summary.logged_in_teachers:,} logged in"
        ),
    )


def _teacher_trend(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    points = [(m.month, m.teachers) for m in ctx.summary.monthly_trends]
    return draft(
        "Active Teachers Over Time",
        trend(points, x_label="Month", y_label="Teachers"),
        subtitle="Monthly active teachers",
    )


def _session_trend(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    points = [(m.month, m.sessions) for m in ctx.summary.monthly_trends]
    return draft(
        "Sessions Over Time",
        trend(points, x_label="Month", y_label="Sessions"),
        subtitle="Monthly session trends",
    )


def _student_responses(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    return draft(
        "Student Responses",
        single_stat(ctx.summary.student_responses, "student responses"),
        subtitle="Responses submitted by students across all sessions",
    )


def _game_players(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    return draft(
        "Game Players",
        single_stat(ctx.summary.game_players, "game players"),
        subtitle="Students who joined a game session",
    )


# Accommodations

def _accommodation_categories(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    categories = ctx.summary.accommodation_categories
    return draft(
        "Accommodation Categories",
        distribution(list(categories.items())),
        subtitle="Accommodations enabled by category",
    )


def _accommodation_distribution(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    top = ctx.summary.top_accommodations
    if not top:
        return None
    return draft(
        "Accommodation Distribution",
        distribution([(a.name, a.students) for a in top]),
        subtitle="How students use different accommodations",
    )


def _top_accommodations(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    top = ctx.summary.top_accommodations
    if not top:
        return None
    items = [ListItem(name=a.name, value=a.students, subtext="students") for a in top]
    return draft(
        "Top Accommodations Used",
        ranked_list(items, value_label="students"),
        subtitle="Frequency of the most used Accommodations features",
    )


def _teachers_using_accommodations(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    return draft(
        "Teachers Using Accommodations",
        single_stat(
            ctx.summary.accommodation_usage_percent,
            "of teachers use Accommodations",
            suffix="%",
        ),
        subtitle="Percentage of teachers who enabled accommodations",
    )


def _students_supported(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    return draft(
        "Students Supported",
        single_stat(ctx.summary.students_supported, "students supported through Accommodations"),
        subtitle="Students receiving support through Accommodations features",
    )


# Rankings

def _top_schools(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    metric = _pick(query, _SCHOOL_METRIC_KEYWORDS, default="student_responses")
    title, value_label, is_percent = _SCHOOL_METRICS[metric]
    ascending = bool(_ASCENDING.search(query.lower()))
    schools = ctx.store.top_schools(metric, limit=_limit(query), ascending=ascending)
    if not schools:
        return None

    items = []
    for school in schools:
        value = getattr(school, metric)
        if metric == "active_teachers":
            subtext = f"{school.sessions:,} sessions"
        else:
            subtext = f"{school.active_teachers:,} active teachers"
        items.append(ListItem(
            name=school.school_name,
            value=round_half_up(value) if is_percent else value,
            subtext=subtext,
        ))

    direction = "Bottom" if ascending else "Top"
    return draft(
        f"{direction} Schools by {title}",
        ranked_list(items, value_label=value_label),
        subtitle=f"{len(items)} schools ranked by {value_label}",
    )


def _top_teachers(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    metric = _pick(query, _TEACHER_METRIC_KEYWORDS, default="sessions")
    value_label = _TEACHER_METRICS[metric]
    ascending = bool(_ASCENDING.search(query.lower()))
    teachers = ctx.store.top_teachers(metric, limit=_limit(query), ascending=ascending)
    if not teachers:
        return None
    items = [
        ListItem(name=t.teacher_name, value=getattr(t, metric), subtext=t.school_name or None)
        for t in teachers
    ]
    return draft(
        f"Teachers with the {'Fewest' if ascending else 'Most'} {value_label.title()}",
        ranked_list(items, value_label=value_label),
        subtitle=f"Teachers ranked by {value_label}",
    )


# Standards

def _top_standards(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    limit = _limit(query, default=5)
    standards = ctx.store.top_standards(limit=limit)
    if not standards:
        return None
    items = [
        ListItem(
            name=s.code,
            value=s.sessions,
            subtext=f"{len(split_schools(s.schools))} schools",
        )
        for s in standards
    ]
    return draft(
        "Most Frequently Used Standards",
        ranked_list(items, value_label="sessions"),
        subtitle="Top standards by session count",
    )


def _curriculum_alignment(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    return draft(
        "Curriculum Alignment",
        single_stat(
            ctx.summary.curriculum_alignment_percent,
            "of teachers used standards and curriculum-aligned resources",
            suffix="%",
        ),
        subtitle="Teachers using standards and curriculum-aligned resources",
    )


# Questions and resources

def _teachers_asking_hot(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    return draft(
        "Teachers Using Higher-Order Thinking",
        single_stat(
            ctx.summary.teachers_asking_hot_percent,
            "of teachers asked higher-order thinking questions",
            suffix="%",
        ),
        subtitle="Teachers who asked higher-order thinking questions",
    )


def _hot_breakdown(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    return draft(
        "Higher-Order Questions by Type",
        distribution(list(ctx.summary.hot_question_types.items())),
        subtitle="HOT questions hosted, by question subtype",
    )


def _hot_questions_percent(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    return draft(
        "Higher-Order Thinking Questions",
        single_stat(
            ctx.summary.higher_order_questions_percent,
            "of questions were higher-order thinking",
            suffix="%",
        ),
        subtitle="Percentage of questions that were higher-order thinking",
    )


def _ai_resources(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    return draft(
        "AI-Powered Resources",
        single_stat(
            ctx.summary.ai_powered_resources_percent,
            "of resources were AI-powered",
            suffix="%",
        ),
        subtitle="Resources that were AI-powered, saving teacher time",
    )


def _question_types(query: str, ctx: QueryContext) -> Optional[ResponseDraft]:
    question_types = ctx.summary.question_types
    if not question_types:
        return None
    return draft(
        "Question Types Used",
        comparison([(q.type, q.count) for q in question_types], y_label="Sessions"),
        subtitle="Higher-order thinking question types by usage",
    )


# Registry

def build_intent_registry() -> IntentRegistry:
    """Create the fully-populated, ordered intent registry."""
    registry = IntentRegistry()
    add = registry.register
    stat = VisualizationType.SINGLE_STAT
    compare = VisualizationType.COMPARISON
    dist = VisualizationType.DISTRIBUTION
    over_time = VisualizationType.TREND
    listing = VisualizationType.LIST

    # School-scoped

    add(intent_rule(
        "school_content_mix",
        [r"\bcontent\b", r"\bbreakdown\b", r"\bdistribution\b", r"\bmix\b"],
        dist, _school_content_mix, scope=SCHOOL_SCOPE,
        follow_ups=["Compare all content types by sessions", "Top schools by sessions"],
        examples=["Lincoln Elementary content breakdown"],
    ))
    add(intent_rule(
        "school_accommodations",
        [r"accommodat"],
        dist, _school_accommodations, scope=SCHOOL_SCOPE,
        follow_ups=[
            "Which schools have the most accommodations?",
            "What are the top accommodations used?",
        ],
        examples=["Accommodations at Lincoln Elementary"],
    ))
    add(intent_rule(
        "school_hot_questions",
        [r"\bhot\b", r"higher.?order"],
        compare, _school_hot_questions, scope=SCHOOL_SCOPE,
        follow_ups=["Show me schools with highest HOT question usage", "HOT question breakdown"],
        examples=["Lincoln Elementary HOT questions"],
    ))
    add(intent_rule(
        "school_ai_resources",
        [r"\bai\b"],
        stat, _school_ai_resources, scope=SCHOOL_SCOPE,
        follow_ups=["Which schools use the most AI-powered resources?", "AI powered resources"],
        examples=["Lincoln Elementary AI-powered resources"],
    ))
    add(intent_rule(
        "school_responses",
        [r"responses?\b"],
        stat, _school_responses, scope=SCHOOL_SCOPE,
        follow_ups=["Which schools have the most student responses?", "How many student responses?"],
        examples=["Student responses at Lincoln Elementary"],
    ))
    add(intent_rule(
        "school_sessions",
        [r"sessions?\b"],
        stat, _school_sessions, scope=SCHOOL_SCOPE,
        follow_ups=["Top schools by sessions", "Show the trend of sessions over time"],
        examples=["Lincoln Elementary sessions"],
    ))
    add(intent_rule(
        "school_teachers",
        [r"teachers?\b"],
        compare, _school_teachers, scope=SCHOOL_SCOPE,
        follow_ups=["Top 10 schools by active teachers", "How many total teachers?"],
        examples=["How many teachers at Lincoln Elementary?"],
    ))
    add(intent_rule(
        "school_overview",
        [r"."],
        listing, _school_overview, scope=SCHOOL_SCOPE,
        follow_ups=["Top 10 schools by active teachers", "Compare all content types by sessions"],
        examples=["Lincoln Elementary overview"],
    ))

    # Content types

    add(intent_rule(
        "compare_two_content_types",
        [
            rf"compare.*{_CT}.*{_CT}",
            rf"{_CT}.*\b(vs\.?|versus)\b.*{_CT}",
        ],
        compare, _compare_two_content_types,
        follow_ups=["Compare all content types", "Show sessions trend over time"],
        examples=[
            "Compare presentations vs assessments",
            "Compare assessment vs lesson sessions",
            "Lessons versus videos by teachers",
        ],
    ))
    add(intent_rule(
        "compare_all_content_types",
        [
            r"compare.*content types?",
            r"all content types?",
            r"content types?.*comparison",
            r"breakdown.*content types?",
            r"content types?.*breakdown",
            r"teachers? by content types?",
        ],
        compare, _compare_all_content_types,
        follow_ups=["Which content type has the most teachers?", "Show sessions trend over time"],
        examples=[
            "Compare all content types by sessions",
            "Show me the breakdown of content types by teachers",
            "Show teachers by content type",
        ],
    ))
    add(intent_rule(
        "content_distribution",
        [
            r"distribution.*content",
            r"pie.*chart.*content",
            r"content.*distribution",
            r"breakdown of sessions",
        ],
        dist, _content_distribution,
        follow_ups=["Compare content types by teachers", "Show sessions trend over time"],
        examples=["Show session distribution by content type", "Breakdown of sessions"],
    ))

    # Accommodations

    add(intent_rule(
        "accommodation_categories",
        [r"accommodations? categor"],
        dist, _accommodation_categories,
        follow_ups=[
            "Accommodation distribution",
            "How many teachers use accommodations?",
        ],
        examples=["Show accommodation categories breakdown", "Accommodation category distribution"],
    ))
    add(intent_rule(
        "accommodation_distribution",
        [
            r"accommodations?.*distribution",
            r"distribution.*accommodations?",
            r"pie.*accommodations?",
        ],
        dist, _accommodation_distribution,
        follow_ups=[
            "How many students are supported?",
            "How many teachers use accommodations?",
        ],
        examples=["Accommodation distribution", "Pie chart of accommodations"],
    ))
    add(intent_rule(
        "top_accommodations",
        [
            r"top accommodations?",
            r"most used accommodations?",
            r"popular accommodations?",
            r"accommodations? breakdown",
            r"which accommodations?",
        ],
        listing, _top_accommodations,
        follow_ups=[
            "How many students are supported through accommodations?",
            "Show accommodation categories breakdown",
        ],
        examples=["What are the top accommodations used?", "Most popular accommodations"],
    ))
    add(intent_rule(
        "teachers_using_accommodations",
        [
            r"how many teachers.*accommodations?",
            r"teachers.*using accommodations?",
            r"teachers.*use accommodations?",
            r"accommodations?.*teachers?",
        ],
        stat, _teachers_using_accommodations,
        follow_ups=[
            "How many students are supported through accommodations?",
            "What are the top accommodations used?",
        ],
        examples=[
            "How many teachers are using accommodations?",
            "How many teachers use accommodations?",
        ],
    ))
    add(intent_rule(
        "students_supported",
        [
            r"how many students.*accommodations?",
            r"students.*supported",
            r"accommodations?.*students?",
        ],
        stat, _students_supported,
        follow_ups=[
            "What are the top accommodations used?",
            "How many teachers are using accommodations?",
        ],
        examples=[
            "How many students are supported through accommodations?",
            "How many students are supported?",
        ],
    ))

    # Rankings

    add(intent_rule(
        "top_schools",
        [
            r"\b(top|best|bottom|lowest|highest)\b.*\bschools?\b",
            r"\bschools?\b.*\b(most|highest|lowest|least|fewest|top)\b",
            r"\bwhich schools?\b",
        ],
        listing, _top_schools,
        follow_ups=["Which teachers have the most sessions?", "Compare all content types by sessions"],
        examples=[
            "Top schools by active teachers",
            "Top 10 schools by active teachers",
            "Which schools have the most student responses?",
            "Show me schools with highest HOT question usage",
            "Which schools use the most AI-powered resources?",
            "Bottom 5 schools by sessions",
        ],
    ))
    add(intent_rule(
        "content_type_ranking",
        [
            r"which content types?",
            r"most popular content",
            r"rank.*content types?",
        ],
        listing, _content_type_ranking,
        follow_ups=["Compare all content types by sessions", "Show session distribution by content type"],
        examples=["Which content type has the most teachers?", "Which content type is most popular?"],
    ))
    add(intent_rule(
        "top_teachers",
        [
            r"\btop\s+(\d+\s+)?teachers?\b",
            r"\bwhich teachers?\b",
            r"\bmost active teachers?\b",
            r"\bteachers? with the most\b",
        ],
        listing, _top_teachers,
        follow_ups=["Top 10 schools by active teachers", "How many total teachers?"],
        examples=["Which teachers have the most sessions?", "Top teachers by student responses"],
    ))

    # Content-type counts and totals

    add(intent_rule(
        "content_type_count",
        [
            rf"how many.*{_CT}.*sessions?",
            rf"{_CT}s? sessions?",
            rf"sessions?.*{_CT}",
            rf"teachers?.*\b(use|using|used)\b.*{_CT}",
        ],
        stat, _content_type_count,
        follow_ups=["Compare assessment vs lesson sessions", "Compare all content types by sessions"],
        examples=[
            "How many assessment sessions were there?",
            "Presentation sessions",
            "How many teachers use assessments?",
        ],
    ))
    add(intent_rule(
        "total_sessions",
        [
            r"how many (total )?sessions",
            r"total (number of )?sessions",
            r"number of sessions",
        ],
        stat, _total_sessions,
        follow_ups=["Show the trend of sessions over time", "Compare all content types by sessions"],
        examples=["How many total sessions?", "Total number of sessions"],
    ))
    add(intent_rule(
        "teacher_trend",
        [
            r"teachers?.*\b(trend|over time|monthly|by month)\b",
            r"\btrend\b.*teachers?",
        ],
        over_time, _teacher_trend,
        follow_ups=["How many total teachers?", "Show the trend of sessions over time"],
        examples=["Show the teacher trend over time", "Active teachers by month"],
    ))
    add(intent_rule(
        "total_teachers",
        [
            r"how many teachers?\W*$",
            r"how many active teachers",
            r"total.*teachers?",
            r"teachers?.*total",
            r"number of teachers?",
        ],
        stat, _total_teachers,
        follow_ups=["Show teachers by content type", "How many teachers use accommodations?"],
        examples=["How many total teachers?", "How many teachers?", "Number of teachers"],
    ))
    add(intent_rule(
        "session_trend",
        [
            r"trend.*sessions?",
            r"sessions?.*trend",
            r"sessions?.*over time",
            r"sessions?.*monthly",
            r"monthly sessions?",
            r"show.*trend",
        ],
        over_time, _session_trend,
        follow_ups=["Compare content types by sessions", "How many total sessions?"],
        examples=["Show the trend of sessions over time", "Sessions over time", "Monthly sessions"],
    ))

    # Standards

    add(intent_rule(
        "top_standards",
        [
            r"top.*standards?",
            r"most.*used.*standards?",
            r"popular.*standards?",
            r"frequently.*standards?",
            r"standards? by sessions?",
        ],
        listing, _top_standards,
        follow_ups=[
            "What percentage of teachers use curriculum-aligned resources?",
            "Compare all content types",
        ],
        examples=["Show the top 5 standards used", "Top standards by sessions", "Most frequently used standards"],
    ))
    add(intent_rule(
        "curriculum_alignment",
        [
            r"curriculum.*aligned",
            r"curriculum alignment",
            r"standards.*resources?",
            r"teachers?.*standards?",
            r"percentage.*standards?",
        ],
        stat, _curriculum_alignment,
        follow_ups=["Show the top 5 standards used", "Compare content types"],
        examples=[
            "What percentage of teachers use curriculum-aligned resources?",
            "Curriculum alignment",
        ],
    ))

    # Questions and resources

    add(intent_rule(
        "teachers_asking_hot",
        [r"teachers?.*higher.?order", r"teachers?.*\bhot\b"],
        stat, _teachers_asking_hot,
        follow_ups=["What percent of questions are higher-order thinking?", "Show question types breakdown"],
        examples=[
            "What percentage of teachers asked higher-order thinking questions?",
            "Teachers asking HOT questions",
        ],
    ))
    add(intent_rule(
        "hot_breakdown",
        [r"(\bhot\b|higher.?order).*(breakdown|distribution|subtypes?|by type)"],
        dist, _hot_breakdown,
        follow_ups=["What percent of questions are higher-order thinking?", "What are the most used question types?"],
        examples=["HOT question breakdown", "Higher-order question distribution"],
    ))
    add(intent_rule(
        "hot_questions_percent",
        [
            r"higher.?order.*thinking",
            r"higher.?order questions?",
            r"\bhot\b.*questions?",
            r"critical.*thinking",
        ],
        stat, _hot_questions_percent,
        follow_ups=[
            "What percentage of teachers asked higher-order thinking questions?",
            "Show question types breakdown",
        ],
        examples=["What percent of questions are higher-order thinking?", "HOT questions"],
    ))
    add(intent_rule(
        "ai_resources",
        [r"\bai\b.*powered", r"\bai\b.*resources?"],
        stat, _ai_resources,
        follow_ups=["Which schools use the most AI-powered resources?", "Show question types breakdown"],
        examples=["What percentage of resources are AI-powered?", "AI powered resources"],
    ))
    add(intent_rule(
        "question_types",
        [
            r"question types?",
            r"types? of questions?",
            r"most.*used.*questions?",
        ],
        compare, _question_types,
        follow_ups=["What percent of questions are higher-order thinking?", "Compare content types"],
        examples=["What are the most used question types?", "Show question types breakdown"],
    ))

    # Students

    add(intent_rule(
        "student_responses",
        [r"student responses?", r"how many responses?"],
        stat, _student_responses,
        follow_ups=["Which schools have the most student responses?", "How many game players?"],
        examples=["How many student responses?"],
    ))
    add(intent_rule(
        "game_players",
        [r"game players?", r"how many players?"],
        stat, _game_players,
        follow_ups=["How many student responses?", "Top schools by game players"],
        examples=["How many game players?"],
    ))

    logger.info("Intent registry built with %d rules.", len(registry))
    return registry
