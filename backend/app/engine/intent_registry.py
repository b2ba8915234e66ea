"""
Intent Registry

An ordered list of :class:`IntentRule` entries.  Each rule pairs one or
more regular expressions (OR semantics) with a handler that turns the
query into a :class:`ResponseDraft`.

Order is the contract: rules are evaluated top to bottom and the first
rule whose pattern matches *and* whose handler returns a draft wins.
A handler returning ``None`` (or raising) lets the scan continue with
the next rule.  Register the most specific rules first.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Sequence

from backend.app.schema.query_schema import ResponseDraft, VisualizationType

if TYPE_CHECKING:
    from backend.app.engine.dataset_store import DatasetStore
    from backend.app.schema.dataset_schema import AggregateSummary, SchoolRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryContext:
    """Everything a handler may read while answering one query."""

    store: "DatasetStore"
    school: Optional["SchoolRecord"] = None

    @property
    def summary(self) -> "AggregateSummary":
        return self.store.summary


Handler = Callable[[str, QueryContext], Optional[ResponseDraft]]


def normalize(query: str) -> str:
    """Trim and lower-case a query before pattern matching."""
    return query.strip().lower()


@dataclass(frozen=True)
class IntentRule:
    """A single recognized question category.

    Attributes
    ----------
    name : str
        Unique identifier, also used for direct execution.
    patterns : tuple[re.Pattern, ...]
        Alternatives matched against the normalized query.
    visualization : VisualizationType
        The payload type the handler produces.
    handler : Handler
        ``(query, context) -> ResponseDraft | None``.
    follow_ups : tuple[str, ...]
        Statically authored follow-up questions.
    examples : tuple[str, ...]
        Trigger phrases this rule must answer.
    scope : str | None
        ``"school"`` restricts the rule to queries where a school was
        resolved.  ``None`` means a generic rule.
    """

    name: str
    patterns: tuple[re.Pattern, ...]
    visualization: VisualizationType
    handler: Handler
    follow_ups: tuple[str, ...] = ()
    examples: tuple[str, ...] = ()
    scope: Optional[str] = None

    def matches(self, normalized_query: str) -> bool:
        return any(p.search(normalized_query) for p in self.patterns)


def intent_rule(
    name: str,
    patterns: Sequence[str],
    visualization: VisualizationType,
    handler: Handler,
    *,
    follow_ups: Sequence[str] = (),
    examples: Sequence[str] = (),
    scope: Optional[str] = None,
) -> IntentRule:
    """Build an :class:`IntentRule`, compiling its patterns case-insensitively."""
    if not patterns:
        raise ValueError(f"Intent '{name}' needs at least one pattern.")
    return IntentRule(
        name=name,
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
        visualization=visualization,
        handler=handler,
        follow_ups=tuple(follow_ups),
        examples=tuple(examples),
        scope=scope,
    )


class IntentRegistry:
    """Ordered container of intent rules.

    Usage::

        registry = IntentRegistry()
        registry.register(rule)
        for rule in registry.candidates("top schools by sessions", has_school=False):
            ...
    """

    def __init__(self) -> None:
        self._rules: list[IntentRule] = []

    def register(self, rule: IntentRule) -> IntentRule:
        """Append a rule.  Names must be unique."""
        if any(r.name == rule.name for r in self._rules):
            raise ValueError(f"Intent '{rule.name}' is already registered.")
        self._rules.append(rule)
        logger.debug("Registered intent #%d: %s", len(self._rules), rule.name)
        return rule

    def get(self, name: str) -> Optional[IntentRule]:
        for rule in self._rules:
            if rule.name == name:
                return rule
        return None

    def position(self, name: str) -> int:
        """Zero-based evaluation position of a rule."""
        for index, rule in enumerate(self._rules):
            if rule.name == name:
                return index
        raise ValueError(f"Unknown intent '{name}'.")

    @property
    def names(self) -> list[str]:
        return [r.name for r in self._rules]

    def candidates(self, query: str, has_school: bool) -> Iterator[IntentRule]:
        """Yield, in order, every rule applicable to *query*.

        School-scoped rules are skipped unless *has_school* is true.
        """
        text = normalize(query)
        for rule in self._rules:
            if rule.scope == "school" and not has_school:
                continue
            if rule.matches(text):
                yield rule

    def __iter__(self) -> Iterator[IntentRule]:
        return iter(list(self._rules))

    def __len__(self) -> int:
        return len(self._rules)
