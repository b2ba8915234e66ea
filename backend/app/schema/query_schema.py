"""
Query Schema

Pydantic models for the query -> visualization response cycle.

A :class:`QueryResponse` carries a visualization-type tag plus a payload
whose shape is selected by that tag.  The five payload variants form a
discriminated union on their own ``type`` field, so a response read
back from storage is rebuilt as the same concrete payload class.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VisualizationType(str, Enum):
    """Presentation hint attached to every response."""

    SINGLE_STAT  = "single_stat"
    COMPARISON   = "comparison"
    DISTRIBUTION = "distribution"
    TREND        = "trend"
    LIST         = "list"


TrendDirection = Literal["up", "down", "neutral"]


# Payload variants

class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)


class StatTrend(_Payload):
    direction: TrendDirection
    value: Union[int, float]


class SingleStatData(_Payload):
    type: Literal["single_stat"] = "single_stat"
    value: Union[int, float, str]
    label: str
    suffix: Optional[str] = None
    trend: Optional[StatTrend] = None


class ChartItem(_Payload):
    """A named value used by comparison and distribution payloads."""

    name: str
    value: Union[int, float]
    color: Optional[str] = None


class ComparisonData(_Payload):
    type: Literal["comparison"] = "comparison"
    items: list[ChartItem]
    x_label: Optional[str] = None
    y_label: Optional[str] = None


class DistributionData(_Payload):
    type: Literal["distribution"] = "distribution"
    items: list[ChartItem]
    total: Optional[Union[int, float]] = None

    def share(self, item: ChartItem) -> float:
        """Return *item*'s share of the total as a 0-100 percentage."""
        total = self.total if self.total is not None else sum(i.value for i in self.items)
        return 100.0 * item.value / total if total else 0.0


class TrendPoint(_Payload):
    label: str
    value: Union[int, float]


class TrendData(_Payload):
    type: Literal["trend"] = "trend"
    points: list[TrendPoint]
    x_label: Optional[str] = None
    y_label: Optional[str] = None


class ListItem(_Payload):
    rank: Optional[int] = None
    name: str
    value: Union[int, float, str]
    subtext: Optional[str] = None


class ListData(_Payload):
    type: Literal["list"] = "list"
    items: list[ListItem]
    value_label: Optional[str] = None


Payload = Annotated[
    Union[SingleStatData, ComparisonData, DistributionData, TrendData, ListData],
    Field(discriminator="type"),
]


# Responses

class ResponseDraft(BaseModel):
    """What an intent handler produces: everything except identity."""

    title: str
    subtitle: Optional[str] = None
    data: Payload


def new_response_id() -> str:
    return f"query-{uuid.uuid4()}"


class QueryResponse(BaseModel):
    """A fully built, renderable answer to one query."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_response_id)
    query: str = Field(..., description="The query text as the user typed it.")
    type: VisualizationType
    title: str
    subtitle: Optional[str] = None
    data: Payload
    follow_up_suggestions: list[str] = Field(default_factory=list)
    intent: Optional[str] = Field(
        None, description="Name of the intent rule that produced the response."
    )
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _payload_matches_type(self) -> "QueryResponse":
        if self.data.type != self.type.value:
            raise ValueError(
                f"Payload of type '{self.data.type}' does not match "
                f"visualization type '{self.type.value}'"
            )
        return self

    @property
    def is_fallback(self) -> bool:
        return self.intent is None


# Refinement

class RefinementEntities(BaseModel):
    """Structured hints extracted by the refinement model."""

    metric: Optional[str] = None
    subject: Optional[str] = None
    filter: Optional[str] = None
    school_name: Optional[str] = None
    time_range: Optional[str] = None


class RefinedQuery(BaseModel):
    """Output of the optional query-refinement collaborator."""

    original_query: str
    refined_query: str
    intent: str = "unknown"
    entities: RefinementEntities = Field(default_factory=RefinementEntities)
    confidence: float = Field(0.0, ge=0.0, le=1.0)

    @classmethod
    def passthrough(cls, query: str) -> "RefinedQuery":
        """The "did not refine" result: original text, confidence 0."""
        return cls(original_query=query, refined_query=query, confidence=0.0)

    @property
    def was_refined(self) -> bool:
        return self.confidence > 0 and self.refined_query != self.original_query


# API request / response models

class InsightQueryRequest(BaseModel):
    """A natural-language query from the frontend."""

    query: str = Field(
        ...,
        description="The user's natural-language question.",
        min_length=1,
        examples=["How many teachers are using accommodations?"],
    )
    session_id: Optional[str] = Field(
        default=None,
        description=(
            "Conversation session ID.  Omit for the first message; the "
            "response includes a session_id for follow-ups."
        ),
    )


class InsightQueryResult(BaseModel):
    """Full response returned to the frontend for one submitted query."""

    session_id: str
    response: QueryResponse
    refined_query: Optional[str] = Field(
        None,
        description="Text actually matched, when refinement changed it.",
    )
    confidence: float = 0.0


class IntentRunRequest(BaseModel):
    """Direct intent execution (bypasses pattern matching)."""

    intent: str = Field(..., examples=["top_schools"])
    query: str = Field("", description="Text handed to the handler for keyword extraction.")
    school: Optional[str] = Field(None, description="School name for school-scoped intents.")


class SuggestionResponse(BaseModel):
    query: str
    suggestions: list[str]


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: str
    response: Optional[QueryResponse] = None


class ConversationResponse(BaseModel):
    session_id: str
    turns: list[ConversationTurn]
