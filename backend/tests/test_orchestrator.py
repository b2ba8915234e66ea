"""
Tests for the async query orchestrator.
"""

from __future__ import annotations

import asyncio
import time

import pytest

from backend.app.config import Settings
from backend.app.llm.memory import ConversationMemory
from backend.app.llm.orchestrator import QueryOrchestrator
from backend.app.schema.query_schema import RefinedQuery


class FakeSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, delay):
        self.calls.append(delay)
        await asyncio.sleep(0)


class FakeRefiner:
    def __init__(self, refined=None, confidence=0.9, error=None, delay=0.0):
        self.refined = refined
        self.confidence = confidence
        self.error = error
        self.delay = delay
        self.seen = []

    def refine(self, query):
        self.seen.append(query)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.refined is None:
            return RefinedQuery.passthrough(query)
        return RefinedQuery(original_query=query, refined_query=self.refined, confidence=self.confidence)


@pytest.fixture
def sleep():
    return FakeSleep()


def _orchestrator(engine, sleep, refiner=None, **kwargs):
    return QueryOrchestrator(engine, refiner=refiner, memory=ConversationMemory(), sleep=sleep, **kwargs)


class TestSubmit:
    def test_without_refiner(self, engine, sleep):
        orchestrator = _orchestrator(engine, sleep)
        result = asyncio.run(orchestrator.submit("Top schools by active teachers"))

        assert result.response.intent == "top_schools"
        assert result.refined_query is None
        assert result.confidence == 0.0
        assert result.session_id
        assert len(sleep.calls) == 1
        assert 0.8 <= sleep.calls[0] <= 1.2
        assert orchestrator.refiner_enabled is False

    def test_zero_delay_skips_sleep(self, engine, sleep):
        orchestrator = _orchestrator(engine, sleep, delay_range=(0.0, 0.0))
        asyncio.run(orchestrator.submit("How many total sessions?"))
        assert sleep.calls == []

    def test_refined_text_is_matched(self, engine, sleep):
        refiner = FakeRefiner(refined="Top schools by active teachers")
        orchestrator = _orchestrator(engine, sleep, refiner=refiner)

        result = asyncio.run(orchestrator.submit("which places have the busiest staff"))

        assert refiner.seen == ["which places have the busiest staff"]
        assert result.response.intent == "top_schools"
        assert result.response.query == "which places have the busiest staff"
        assert result.refined_query == "Top schools by active teachers"
        assert result.confidence == pytest.approx(0.9)
        assert sleep.calls == []

    def test_unchanged_refinement_uses_original(self, engine, sleep):
        refiner = FakeRefiner(refined="How many total sessions?", confidence=0.7)
        orchestrator = _orchestrator(engine, sleep, refiner=refiner)
        result = asyncio.run(orchestrator.submit("How many total sessions?"))
        assert result.refined_query is None
        assert result.response.intent == "total_sessions"

    def test_zero_confidence_waits(self, engine, sleep):
        orchestrator = _orchestrator(engine, sleep, refiner=FakeRefiner())
        result = asyncio.run(orchestrator.submit("How many total sessions?"))
        assert result.refined_query is None
        assert len(sleep.calls) == 1

    def test_refiner_error_falls_back(self, engine, sleep):
        orchestrator = _orchestrator(engine, sleep, refiner=FakeRefiner(error=RuntimeError("boom")))
        result = asyncio.run(orchestrator.submit("How many total sessions?"))
        assert result.response.intent == "total_sessions"
        assert result.confidence == 0.0
        assert len(sleep.calls) == 1

    def test_refiner_timeout_falls_back(self, engine, sleep):
        refiner = FakeRefiner(refined="Top schools by sessions", delay=0.3)
        orchestrator = _orchestrator(engine, sleep, refiner=refiner, refine_timeout=0.01)
        result = asyncio.run(orchestrator.submit("How many total sessions?"))
        assert result.response.intent == "total_sessions"
        assert result.refined_query is None

    def test_unrecognized_query_is_fallback(self, engine, sleep):
        orchestrator = _orchestrator(engine, sleep)
        result = asyncio.run(orchestrator.submit("What is the weather today?"))
        assert result.response.is_fallback
        assert result.response.follow_up_suggestions

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query_rejected(self, engine, sleep, query):
        orchestrator = _orchestrator(engine, sleep)
        with pytest.raises(ValueError):
            asyncio.run(orchestrator.submit(query))


class TestConversation:
    def test_turns_recorded(self, engine, sleep):
        orchestrator = _orchestrator(engine, sleep)
        first = asyncio.run(orchestrator.submit("How many total sessions?"))
        second = asyncio.run(orchestrator.submit("Top schools by sessions", first.session_id))

        assert second.session_id == first.session_id
        turns = orchestrator.conversation(first.session_id).turns
        assert [t.role for t in turns] == ["user", "assistant", "user", "assistant"]
        assert turns[0].content == "How many total sessions?"
        assert turns[1].content == first.response.title
        assert turns[1].response.id == first.response.id
        assert turns[0].response is None

    def test_unknown_session_starts_new(self, engine, sleep):
        orchestrator = _orchestrator(engine, sleep)
        result = asyncio.run(orchestrator.submit("How many total sessions?", "missing-session"))
        assert result.session_id != "missing-session"

    def test_same_session_is_serialized(self, engine, sleep):
        orchestrator = _orchestrator(engine, sleep)

        async def scenario():
            first = await orchestrator.submit("How many total sessions?")
            await asyncio.gather(
                orchestrator.submit("Top schools by sessions", first.session_id),
                orchestrator.submit("How many teachers?", first.session_id),
            )
            return first.session_id

        session_id = asyncio.run(scenario())
        roles = [t.role for t in orchestrator.conversation(session_id).turns]
        assert roles == ["user", "assistant"] * 3

    def test_unknown_conversation(self, engine, sleep):
        with pytest.raises(ValueError):
            _orchestrator(engine, sleep).conversation("nope")

    def test_clear(self, engine, sleep):
        orchestrator = _orchestrator(engine, sleep)
        result = asyncio.run(orchestrator.submit("How many total sessions?"))
        assert orchestrator.clear(result.session_id) is True
        assert orchestrator.clear(result.session_id) is False


class TestFromSettings:
    def test_uses_settings(self, engine, sleep):
        settings = Settings(
            simulated_delay_min=0.0,
            simulated_delay_max=0.0,
            max_messages_per_session=2,
        )
        orchestrator = QueryOrchestrator.from_settings(engine, settings)
        result = asyncio.run(orchestrator.submit("How many total sessions?"))
        asyncio.run(orchestrator.submit("How many teachers?", result.session_id))

        turns = orchestrator.conversation(result.session_id).turns
        assert [t.content for t in turns] == ["How many teachers?", "Total Teachers"]
        assert orchestrator.refiner_enabled is False
