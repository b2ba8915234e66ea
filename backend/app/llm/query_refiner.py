"""
Query Refiner

Uses a local Ollama model to rewrite a user's free-text question into a
standardized query the intent library recognizes, with a confidence
score and structured entity hints.

The refiner never raises: any failure (Ollama unreachable, timeout,
unparseable reply) returns the original text with confidence 0, which
tells the orchestrator the query was not refined.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol

from backend.app.config import Settings
from backend.app.llm.ollama_client import OllamaClient
from backend.app.llm.prompts import QUERY_REFINEMENT_SYSTEM, QUERY_REFINEMENT_USER
from backend.app.schema.query_schema import RefinedQuery, RefinementEntities

logger = logging.getLogger(__name__)

# Used when the model omits a confidence value.
DEFAULT_CONFIDENCE = 0.5

_INTENTS = {"list", "single_stat", "comparison", "trend", "distribution", "unknown"}


class Refiner(Protocol):
    """Anything that can refine a query."""

    def refine(self, query: str) -> RefinedQuery:
        ...


def _strip_fences(text: str) -> str:
    """Remove markdown code fences if the model wrapped its JSON."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0].strip()
    return text


def parse_refinement(query: str, raw_text: str) -> RefinedQuery:
    """Build a :class:`RefinedQuery` from the model's JSON reply.

    Raises
    ------
    ValueError
        If the reply is not a JSON object.
    """
    parsed: Any = json.loads(_strip_fences(raw_text))
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")

    refined = str(parsed.get("refined_query") or parsed.get("refinedQuery") or "").strip()
    intent = parsed.get("intent") if parsed.get("intent") in _INTENTS else "unknown"

    entities = parsed.get("entities") or {}
    if isinstance(entities, dict) and "schoolName" in entities:
        entities.setdefault("school_name", entities.pop("schoolName"))
    if isinstance(entities, dict) and "timeRange" in entities:
        entities.setdefault("time_range", entities.pop("timeRange"))

    confidence = parsed.get("confidence")
    if not isinstance(confidence, (int, float)) or isinstance(confidence, bool):
        confidence = DEFAULT_CONFIDENCE

    return RefinedQuery(
        original_query=query,
        refined_query=refined or query,
        intent=intent,
        entities=RefinementEntities.model_validate(entities if isinstance(entities, dict) else {}),
        confidence=min(max(float(confidence), 0.0), 1.0),
    )


class QueryRefiner:
    """Refine user queries via an Ollama-served model."""

    def __init__(self, client: Optional[OllamaClient] = None) -> None:
        self._client = client or OllamaClient.get_instance()

    @property
    def model(self) -> str:
        return self._client.model

    def is_available(self) -> bool:
        return self._client.is_available()

    def refine(self, query: str) -> RefinedQuery:
        """Return the refined query, or the original with confidence 0."""
        raw_text = ""
        try:
            raw_text = self._client.chat(
                QUERY_REFINEMENT_USER.format(query=query),
                system=QUERY_REFINEMENT_SYSTEM,
                temperature=0.0,
                json_mode=True,
            )
            refined = parse_refinement(query, raw_text)
            logger.info(
                "Refined '%s' -> '%s' (confidence %.2f)",
                query,
                refined.refined_query,
                refined.confidence,
            )
            return refined

        except ValueError as exc:
            logger.warning("Query refinement returned unusable output: %s - raw: %s", exc, raw_text)
        except Exception as exc:
            logger.error("Query refinement error: %s", exc)
        return RefinedQuery.passthrough(query)


def shared_client(settings: Settings) -> OllamaClient:
    """The shared Ollama client, configured from *settings* on first use."""
    return OllamaClient.get_instance(
        model=settings.ollama_model,
        host=settings.ollama_host,
        timeout=settings.refine_timeout,
    )


def build_refiner(settings: Settings) -> Optional[QueryRefiner]:
    """The configured refiner, or ``None`` when refinement is disabled."""
    if not settings.refiner_enabled:
        logger.info("Query refinement disabled.")
        return None
    client = shared_client(settings)
    logger.info("Query refinement enabled with model '%s'.", client.model)
    return QueryRefiner(client)
