"""Configuration management for the usage-insights service."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Bundled sample export, resolved relative to the repository root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data" / "usage"


class Settings(BaseSettings):
    """Application settings, read from ``INSIGHTS_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="INSIGHTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Dataset
    data_dir: Path = Field(_DEFAULT_DATA_DIR, description="Directory holding the JSON exports.")
    organization: str = "Arlington ISD"
    last_updated: str = "January 15, 2026"

    # Saved responses (pins, dashboard, cart).  None keeps them in memory.
    storage_dir: Optional[Path] = None

    # Logging
    log_level: str = "INFO"

    # Optional LLM query refinement
    refiner_enabled: bool = False
    ollama_model: str = "llama3.2"
    ollama_host: Optional[str] = None
    refine_timeout: float = Field(3.0, gt=0)

    # Artificial delay used when no refinement happened
    simulated_delay_min: float = Field(0.8, ge=0)
    simulated_delay_max: float = Field(1.2, ge=0)

    # Conversation memory
    max_messages_per_session: int = Field(50, gt=0)
    max_sessions: int = Field(200, gt=0)

    @model_validator(mode="after")
    def _check_delay_range(self) -> "Settings":
        if self.simulated_delay_max < self.simulated_delay_min:
            raise ValueError("simulated_delay_max must be >= simulated_delay_min")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the environment once per process."""
    return Settings()
