"""
Ollama Client


A centralised wrapper around the Ollama API for the query-refinement
model.

This gives us a single place to:

* Configure the model name, host and request timeout.
* Check that Ollama is reachable and the model is pulled.
* Swap out the backend later without touching the refiner.
"""

from __future__ import annotations

import logging
from typing import Optional

import ollama

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.2"
DEFAULT_TIMEOUT = 3.0


class OllamaClient:
    """Thin, reusable wrapper over the Ollama chat API.

    Parameters
    ----------
    model : str | None
        Ollama model tag.  Defaults to ``DEFAULT_MODEL``.
    host : str | None
        Ollama server URL; ``None`` uses the library default.
    timeout : float
        Per-request timeout in seconds.
    default_temperature : float
        Temperature used when the caller does not specify one.

    Usage
    -----
    ::

        client = OllamaClient(model="llama3.2")
        answer = client.chat("Refine this query: ...", system=PROMPT, json_mode=True)
    """

    # Class-level singleton so the entire app shares one instance.
    _instance: Optional["OllamaClient"] = None

    def __init__(
        self,
        model: str | None = None,
        host: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        default_temperature: float = 0.0,
    ) -> None:
        self.model = model or DEFAULT_MODEL
        self.host = host
        self.timeout = timeout
        self.default_temperature = default_temperature
        self._client = ollama.Client(host=host, timeout=timeout)

    @classmethod
    def get_instance(cls, **kwargs) -> "OllamaClient":
        """Return (and optionally create) the shared singleton."""
        if cls._instance is None:
            cls._instance = cls(**kwargs)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    # Health checks
    def is_available(self) -> bool:
        """Return ``True`` if Ollama is reachable and the model exists."""
        try:
            self._client.show(self.model)
            return True
        except Exception:
            return False

    def check_ready(self) -> None:
        """Raise ``RuntimeError`` if Ollama / model is not available."""
        try:
            models = self._client.list()
        except Exception as exc:
            raise RuntimeError(
                "Cannot connect to Ollama.  Make sure the Ollama service "
                f"is running.  Error: {exc}"
            ) from exc

        available = [m.model for m in models.models]
        if not any(m.startswith(self.model) for m in available):
            raise RuntimeError(
                f"Model '{self.model}' is not available in Ollama.\n"
                f"  Run:  ollama pull {self.model}\n"
                f"  Available models: {available}"
            )
        logger.info("Refinement model '%s' is available.", self.model)

    # Core chat method
    def chat(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> str:
        """Send a single-turn chat message and return the response text.

        Parameters
        ----------
        prompt : str
            The user message.
        system : str | None
            Optional system prompt.
        temperature : float | None
            Sampling temperature (overrides ``default_temperature``).
        json_mode : bool
            Ask Ollama to constrain the output to JSON.

        Returns
        -------
        str
            The assistant's reply (stripped of leading/trailing whitespace).
        """
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self._client.chat(
            model=self.model,
            messages=messages,
            options={
                "temperature": (
                    self.default_temperature if temperature is None else temperature
                )
            },
            format="json" if json_mode else "",
        )
        return response.message.content.strip()
