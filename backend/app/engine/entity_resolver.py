"""
Entity Resolver

Finds the single named entity (e.g. a school) that a free-text query
refers to, using two passes over the candidates in dataset order:

1. Exact containment: the full name, case-insensitive, appears in the
   query.  This pass covers every candidate before pass 2 starts.
2. Partial tokens: words of the name longer than two characters are
   looked for as substrings of the query.  A candidate matches with two
   or more hits, or, for a one-word name, with its single word.

Both passes are greedy: the first candidate that qualifies wins, even
if a later one would match more words.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, TypeVar

from backend.app.schema.dataset_schema import SchoolRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_WORD_LENGTH = 3
MIN_PARTIAL_HITS = 2


def _significant_words(name: str) -> list[str]:
    return [w for w in name.lower().split() if len(w) >= MIN_WORD_LENGTH]


def partial_hits(query: str, name: str) -> int:
    """Count the significant words of *name* found inside *query*."""
    text = query.lower()
    return sum(1 for word in _significant_words(name) if word in text)


def resolve_entity(
    query: str,
    candidates: Sequence[T],
    name_of: Callable[[T], str],
) -> Optional[T]:
    """Return the candidate referenced by *query*, or ``None``."""
    text = query.strip().lower()
    if not text:
        return None

    for candidate in candidates:
        name = name_of(candidate).strip().lower()
        if name and name in text:
            logger.debug("Resolved '%s' by exact name", name)
            return candidate

    for candidate in candidates:
        name = name_of(candidate)
        hits = partial_hits(text, name)
        single_word = len(name.split()) == 1
        if hits >= MIN_PARTIAL_HITS or (single_word and hits == 1):
            logger.debug("Resolved '%s' by %d partial word(s)", name, hits)
            return candidate

    return None


def resolve_school(query: str, schools: Sequence[SchoolRecord]) -> Optional[SchoolRecord]:
    return resolve_entity(query, schools, lambda s: s.school_name)
