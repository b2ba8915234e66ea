"""
Query Orchestrator

Sequences one submitted query through its lifecycle:

    submitted -> refining (optional) -> matching -> responded

1. Append the user turn to the session's conversation.
2. If a refiner is configured, ask it (off the event loop, bounded by a
   timeout) for a standardized rewrite.  With no refiner, or when it
   fails or reports confidence 0, wait a short simulated delay and keep
   the original text.
3. Hand the text to the :class:`QueryEngine`; it always produces a
   response (fallback included).
4. Append the assistant turn and return.

Queries within one session are processed one at a time.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

from backend.app.config import Settings
from backend.app.engine.query_engine import QueryEngine
from backend.app.llm.memory import ConversationMemory
from backend.app.llm.query_refiner import Refiner
from backend.app.schema.query_schema import (
    ConversationResponse,
    ConversationTurn,
    InsightQueryResult,
    RefinedQuery,
)

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class QueryOrchestrator:
    """Async front door for natural-language queries.

    Usage::

        orchestrator = QueryOrchestrator(QueryEngine().run())
        result = await orchestrator.submit("Top schools by sessions")
        result.response.type        # VisualizationType.LIST
    """

    def __init__(
        self,
        engine: QueryEngine,
        refiner: Optional[Refiner] = None,
        memory: Optional[ConversationMemory] = None,
        *,
        refine_timeout: float = 3.0,
        delay_range: tuple[float, float] = (0.8, 1.2),
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._engine = engine
        self._refiner = refiner
        self._memory = memory or ConversationMemory()
        self._refine_timeout = refine_timeout
        self._delay_range = delay_range
        self._sleep = sleep
        self._session_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(
        cls,
        engine: QueryEngine,
        settings: Settings,
        refiner: Optional[Refiner] = None,
    ) -> "QueryOrchestrator":
        return cls(
            engine,
            refiner=refiner,
            memory=ConversationMemory(
                max_messages_per_session=settings.max_messages_per_session,
                max_sessions=settings.max_sessions,
            ),
            refine_timeout=settings.refine_timeout,
            delay_range=(settings.simulated_delay_min, settings.simulated_delay_max),
        )

    @property
    def engine(self) -> QueryEngine:
        return self._engine

    @property
    def memory(self) -> ConversationMemory:
        return self._memory

    @property
    def refiner_enabled(self) -> bool:
        return self._refiner is not None

    # Query lifecycle

    async def submit(self, query: str, session_id: Optional[str] = None) -> InsightQueryResult:
        """Process one query to a terminal response.

        Raises
        ------
        ValueError
            If *query* is blank.
        """
        if not query or not query.strip():
            raise ValueError("Query must not be blank.")

        sid = self._memory.get_or_create_session(session_id)
        async with self._lock_for(sid):
            self._memory.add_user_message(sid, query)

            refined = await self._refine(query)
            text = refined.refined_query if refined.was_refined else query

            response = self._engine.process(text)
            if response.query != query:
                response = response.model_copy(update={"query": query})

            self._memory.add_assistant_message(sid, response.title, response)

        return InsightQueryResult(
            session_id=sid,
            response=response,
            refined_query=text if refined.was_refined else None,
            confidence=refined.confidence,
        )

    def conversation(self, session_id: str) -> ConversationResponse:
        """Turns of a session, oldest first.

        Raises
        ------
        ValueError
            If the session does not exist.
        """
        if not self._memory.session_exists(session_id):
            raise ValueError(f"Unknown session '{session_id}'.")
        turns = [
            ConversationTurn(
                role=m.role,
                content=m.content,
                timestamp=m.timestamp,
                response=m.response,
            )
            for m in self._memory.get_messages(session_id)
        ]
        return ConversationResponse(session_id=session_id, turns=turns)

    def clear(self, session_id: str) -> bool:
        self._session_locks.pop(session_id, None)
        return self._memory.delete_session(session_id)

    # Internal helpers

    async def _refine(self, query: str) -> RefinedQuery:
        refined = RefinedQuery.passthrough(query)
        if self._refiner is not None:
            try:
                refined = await asyncio.wait_for(
                    asyncio.to_thread(self._refiner.refine, query),
                    timeout=self._refine_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Query refinement timed out after %.1fs; using original query.",
                    self._refine_timeout,
                )
            except Exception as exc:
                logger.error("Query refinement failed: %s", exc)

        if refined.confidence == 0:
            await self._simulate_delay()
        return refined

    async def _simulate_delay(self) -> None:
        low, high = self._delay_range
        delay = random.uniform(low, high) if high > 0 else 0.0
        if delay > 0:
            await self._sleep(delay)

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._session_locks.get(session_id)
        if lock is None:
            for stale in [s for s in self._session_locks if not self._memory.session_exists(s)]:
                del self._session_locks[stale]
            lock = self._session_locks[session_id] = asyncio.Lock()
        return lock
