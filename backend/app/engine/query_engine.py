"""
Query Engine

Turns one natural-language question into one visualization-ready
:class:`QueryResponse`.

Pipeline for ``process(query)``:

1. Resolve a referenced school (exact name first, then partial words).
2. Walk the intent registry in order.  School-scoped rules are only
   considered when a school was resolved.
3. The first rule whose pattern matches and whose handler returns a
   draft wins.  A handler returning ``None`` or raising passes the turn
   to the next rule.
4. Nothing answered: return the fallback response.

``process`` never raises for a loaded dataset; unknown questions get
the fallback card.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from backend.app.config import Settings, get_settings
from backend.app.engine.base_engine import BaseEngine
from backend.app.engine.dataset_store import DatasetStore
from backend.app.engine.entity_resolver import resolve_school
from backend.app.engine.intent_registry import IntentRegistry, IntentRule, QueryContext
from backend.app.engine.intents import SCHOOL_SCOPE, build_intent_registry
from backend.app.engine.response_builder import draft, single_stat
from backend.app.engine.suggestions import SuggestionEngine
from backend.app.schema.query_schema import QueryResponse, ResponseDraft, VisualizationType

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "I couldn't understand that query"
FALLBACK_SUBTITLE = "Try one of these example questions:"
FALLBACK_LABEL = "Try asking about teachers, sessions, accommodations, or content types"


class QueryEngine(BaseEngine):
    """Rule-based question answering over the usage dataset.

    Typical usage::

        engine = QueryEngine().run()
        response = engine.process("Top schools by active teachers")
        response.type          # VisualizationType.LIST
    """

    # Class-level singleton shared by the API routes.
    _instance: Optional["QueryEngine"] = None

    def __init__(
        self,
        store: Optional[DatasetStore] = None,
        registry: Optional[IntentRegistry] = None,
        suggestions: Optional[SuggestionEngine] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        if store is None:
            settings = settings or get_settings()
            store = DatasetStore(
                settings.data_dir,
                organization=settings.organization,
                last_updated=settings.last_updated,
            )
        self._store = store
        self._registry = registry if registry is not None else build_intent_registry()
        self._suggestions = suggestions or SuggestionEngine()

    @classmethod
    def get_instance(cls, **kwargs) -> "QueryEngine":
        """Return (and on first use, create and load) the shared engine."""
        if cls._instance is None:
            cls._instance = cls(**kwargs).run()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    # BaseEngine interface

    def run(self) -> "QueryEngine":
        """Load the dataset unless it is already loaded."""
        if not self._store.is_loaded:
            self._store.run()
        return self

    def query(self, intent: str, parameters: dict[str, Any]) -> dict[str, Any]:
        """Run *intent* directly and return the serialised response.

        Unknown intents and unanswerable requests return an ``error``
        payload instead of raising, like the other engines.
        """
        try:
            response = self.run_intent(
                intent,
                query=parameters.get("query", ""),
                school=parameters.get("school"),
            )
        except ValueError as exc:
            return {"error": str(exc), "supported_intents": self.capabilities}
        return response.model_dump(mode="json")

    @property
    def capabilities(self) -> list[str]:
        """Intent names in evaluation order."""
        return self._registry.names

    # Accessors

    @property
    def store(self) -> DatasetStore:
        return self._store

    @property
    def registry(self) -> IntentRegistry:
        return self._registry

    @property
    def suggestions(self) -> SuggestionEngine:
        return self._suggestions

    # Query processing

    def process(self, query: str) -> QueryResponse:
        """Answer *query* with the first applicable intent, or the fallback."""
        self.run()
        school = resolve_school(query, self._store.schools)
        context = QueryContext(self._store, school)

        for rule in self._registry.candidates(query, has_school=school is not None):
            result = self._call_handler(rule, query, context)
            if result is not None:
                logger.info("Query '%s' answered by intent '%s'", query, rule.name)
                return self._respond(query, rule, result)

        logger.info("No intent matched query '%s'; returning fallback.", query)
        return self.fallback(query)

    def recognize(self, query: str) -> Optional[str]:
        """Name of the intent that would answer *query*, or ``None``."""
        return self.process(query).intent

    def run_intent(
        self,
        name: str,
        query: str = "",
        school: Optional[str] = None,
    ) -> QueryResponse:
        """Run one named intent without pattern matching.

        Raises
        ------
        ValueError
            If the intent or school is unknown, a school-scoped intent is
            called without a school, or the handler has nothing to show.
        """
        self.run()
        rule = self._registry.get(name)
        if rule is None:
            raise ValueError(f"Unknown intent '{name}'.")

        school_record = None
        if school:
            school_record = self._store.get_school(school)
            if school_record is None:
                raise ValueError(f"Unknown school '{school}'.")
        if rule.scope == SCHOOL_SCOPE and school_record is None:
            raise ValueError(f"Intent '{name}' needs a school.")

        result = self._call_handler(rule, query, QueryContext(self._store, school_record))
        if result is None:
            raise ValueError(f"Intent '{name}' has no data to show for this request.")
        return self._respond(query or name, rule, result)

    def fallback(self, query: str) -> QueryResponse:
        """The response returned when no intent recognizes *query*."""
        card = draft(
            FALLBACK_TITLE,
            single_stat("?", FALLBACK_LABEL),
            subtitle=FALLBACK_SUBTITLE,
        )
        return QueryResponse(
            query=query,
            type=VisualizationType.SINGLE_STAT,
            title=card.title,
            subtitle=card.subtitle,
            data=card.data,
            follow_up_suggestions=self._suggestions.follow_ups(None),
            intent=None,
        )

    # Internal helpers

    @staticmethod
    def _call_handler(
        rule: IntentRule,
        query: str,
        context: QueryContext,
    ) -> Optional[ResponseDraft]:
        try:
            return rule.handler(query, context)
        except Exception as exc:
            logger.warning("Intent '%s' handler failed for '%s': %s", rule.name, query, exc)
            return None

    def _respond(self, query: str, rule: IntentRule, result: ResponseDraft) -> QueryResponse:
        kind = VisualizationType(result.data.type)
        if kind != rule.visualization:
            logger.warning(
                "Intent '%s' declared %s but produced %s.",
                rule.name,
                rule.visualization.value,
                kind.value,
            )
        return QueryResponse(
            query=query,
            type=kind,
            title=result.title,
            subtitle=result.subtitle,
            data=result.data,
            follow_up_suggestions=self._suggestions.follow_ups(rule),
            intent=rule.name,
        )
