"""
Suggestions

Autocomplete over a fixed catalog of example questions, and follow-up
suggestions attached to every response.
"""

from __future__ import annotations

from typing import Optional

from backend.app.engine.intent_registry import IntentRule

MAX_AUTOCOMPLETE = 5
MAX_FOLLOW_UPS = 3

QUERY_CATALOG: tuple[str, ...] = (
    "How many teachers are using accommodations?",
    "Which schools have the most student responses?",
    "Compare assessment vs lesson sessions",
    "What are the top accommodations used?",
    "Show me schools with highest HOT question usage",
    "How many students are supported through accommodations?",
    "What percentage of teachers use curriculum-aligned resources?",
    "Show the trend of sessions over time",
    "What are the most used question types?",
    "Top 10 schools by active teachers",
    "Which schools use the most AI-powered resources?",
    "Compare all content types by sessions",
    "Top standards by sessions",
    "Which teachers have the most sessions?",
    "Show accommodation categories breakdown",
    "Show me the breakdown of content types by teachers",
    "How many assessment sessions were there?",
    "What percent of questions are higher-order thinking?",
    "Show the top 5 standards used",
    "How many total teachers?",
    "Show session distribution by content type",
    "Show the teacher trend over time",
)

# Offered when no intent matched; also the examples on the fallback card.
FALLBACK_SUGGESTIONS: tuple[str, ...] = (
    "How many teachers are using accommodations?",
    "Top 10 schools by active teachers",
    "Compare assessment vs lesson sessions",
    "Show the trend of sessions over time",
)


class SuggestionEngine:
    """Substring autocomplete plus per-intent follow-ups."""

    def __init__(self, catalog: Optional[tuple[str, ...]] = None) -> None:
        self._catalog = tuple(catalog) if catalog is not None else QUERY_CATALOG

    @property
    def catalog(self) -> list[str]:
        return list(self._catalog)

    def autocomplete(self, partial: str, limit: int = MAX_AUTOCOMPLETE) -> list[str]:
        """Catalog entries containing *partial* (case-insensitive), in catalog order.

        A blank *partial* returns the first entries of the catalog.
        """
        text = partial.strip().lower()
        if not text:
            return list(self._catalog[:limit])
        return [s for s in self._catalog if text in s.lower()][:limit]

    @staticmethod
    def follow_ups(rule: Optional[IntentRule]) -> list[str]:
        if rule is None:
            return list(FALLBACK_SUGGESTIONS)
        return list(rule.follow_ups[:MAX_FOLLOW_UPS])
