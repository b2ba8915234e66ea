"""
Insights Query Routes

Natural-language questions over the district usage dataset.

Endpoints
---------
POST   /api/insights/query                       - answer a question
GET    /api/insights/suggestions?q=              - autocomplete
POST   /api/insights/intent                      - run a named intent directly
GET    /api/insights/intents                     - intent names, in evaluation order
GET    /api/insights/summary                     - the aggregate summary
GET    /api/insights/conversation/{session_id}   - conversation turns
DELETE /api/insights/conversation/{session_id}   - forget a conversation
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.app.config import get_settings
from backend.app.engine.query_engine import QueryEngine
from backend.app.llm.orchestrator import QueryOrchestrator
from backend.app.llm.query_refiner import build_refiner
from backend.app.schema.dataset_schema import AggregateSummary
from backend.app.schema.query_schema import (
    ConversationResponse,
    InsightQueryRequest,
    InsightQueryResult,
    IntentRunRequest,
    QueryResponse,
    SuggestionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/insights", tags=["insights"])

# Initialised lazily on first request.
_orchestrator: QueryOrchestrator | None = None


def get_engine() -> QueryEngine:
    """The shared, loaded query engine."""
    return QueryEngine.get_instance()


def get_orchestrator() -> QueryOrchestrator:
    """Lazy-initialise the QueryOrchestrator singleton."""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = QueryOrchestrator.from_settings(
            get_engine(),
            settings,
            refiner=build_refiner(settings),
        )
    return _orchestrator


@router.post("/query", response_model=InsightQueryResult)
async def submit_query(
    request: InsightQueryRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
) -> InsightQueryResult:
    """Answer one natural-language question.

    Unrecognized questions still return 200 with the fallback response
    (``response.intent`` is ``null``).
    """
    try:
        return await orchestrator.submit(request.query, request.session_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.exception("Query failed: %s", exc)
        raise HTTPException(status_code=500, detail=f"Query processing failed: {exc}")


@router.get("/suggestions", response_model=SuggestionResponse)
def suggestions(q: str = "", engine: QueryEngine = Depends(get_engine)) -> SuggestionResponse:
    """Up to five catalog questions containing *q*."""
    return SuggestionResponse(query=q, suggestions=engine.suggestions.autocomplete(q))


@router.post("/intent", response_model=QueryResponse)
def run_intent(
    request: IntentRunRequest,
    engine: QueryEngine = Depends(get_engine),
) -> QueryResponse:
    """Run an intent by name, skipping pattern matching."""
    if engine.registry.get(request.intent) is None:
        raise HTTPException(status_code=404, detail=f"Unknown intent '{request.intent}'.")
    try:
        return engine.run_intent(request.intent, query=request.query, school=request.school)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.exception("Intent '%s' failed: %s", request.intent, exc)
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/intents", response_model=list[str])
def list_intents(engine: QueryEngine = Depends(get_engine)) -> list[str]:
    return engine.capabilities


@router.get("/summary", response_model=AggregateSummary)
def summary(engine: QueryEngine = Depends(get_engine)) -> AggregateSummary:
    return engine.store.summary


@router.get("/conversation/{session_id}", response_model=ConversationResponse)
def get_conversation(
    session_id: str,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
) -> ConversationResponse:
    try:
        return orchestrator.conversation(session_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.delete("/conversation/{session_id}", status_code=204)
def delete_conversation(
    session_id: str,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
) -> None:
    if not orchestrator.clear(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'.")
