"""
Base Engine
===========

Abstract base class for the insight engines.

Every engine must be able to:
1. Initialise / load its data             (``run``)
2. Answer a named intent directly         (``query``)
3. List the intents it can answer         (``capabilities``)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseEngine(ABC):
    """Common contract that every insight engine must honour."""

    @abstractmethod
    def run(self) -> "BaseEngine":
        """Initialise the engine (load the usage dataset).

        Returns ``self`` so callers can chain.
        """

    @abstractmethod
    def query(self, intent: str, parameters: dict[str, Any]) -> dict[str, Any]:
        """Run one intent by name and return a JSON-serialisable result.

        Parameters
        ----------
        intent : str
            A registered intent name (e.g. ``"top_schools"``,
            ``"content_distribution"``).
        parameters : dict
            ``query`` (free text the handler reads for metric keywords)
            and optionally ``school`` (a school name for school-scoped
            intents).

        Returns
        -------
        dict
            The serialised :class:`QueryResponse`.
        """

    @property
    @abstractmethod
    def capabilities(self) -> list[str]:
        """Return the intent names this engine can answer, in evaluation order."""
