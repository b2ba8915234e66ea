"""
Saved Schema

Pydantic models for responses the user keeps around after asking:
pinned queries, dashboard tiles and the export cart.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from backend.app.schema.query_schema import QueryResponse, VisualizationType


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PinnedQuery(BaseModel):
    """A pinned question; only enough to re-ask it and label the pin."""

    id: str
    query: str
    title: str
    type: VisualizationType
    pinned_at: datetime = Field(default_factory=_now)

    @classmethod
    def from_response(cls, response: QueryResponse) -> "PinnedQuery":
        return cls(
            id=response.id,
            query=response.query,
            title=response.title,
            type=response.type,
        )


class SavedResponse(BaseModel):
    """A full response stored on the dashboard or in the export cart."""

    id: str
    response: QueryResponse
    added_at: datetime = Field(default_factory=_now)

    @classmethod
    def from_response(cls, response: QueryResponse) -> "SavedResponse":
        return cls(id=response.id, response=response)


# Request / response

class SaveResponseRequest(BaseModel):
    """Body for pin / dashboard / cart additions."""

    response: QueryResponse


class SaveResult(BaseModel):
    """Outcome of an add: ``added`` is false when it was a duplicate."""

    id: str
    added: bool
    count: int


class CartExport(BaseModel):
    """Plain-text export of the export cart."""

    title: str
    count: int
    generated_at: datetime = Field(default_factory=_now)
    text: str
    organization: Optional[str] = None
