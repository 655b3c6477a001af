from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, PositiveInt, ValidationError

from memory_vector_store.errors import ConfigurationError


def _project_root() -> Path:
    """
    Resolve project root assuming this file lives in: <root>/src/memory_vector_store/config.py
    """
    return Path(__file__).resolve().parents[2]


class Settings(BaseModel):
    # --- Required ---
    openai_api_key: str = Field(..., min_length=10, description="OpenAI API key")

    # --- Optional / defaults ---
    openai_embedding_model: str = Field(default="text-embedding-3-small")
    # None means "native dimension of the embedding model"
    embedding_dimension: Optional[PositiveInt] = None
    embedding_max_attempts: PositiveInt = 1

    snapshot_path: Path = Field(default_factory=lambda: _project_root() / "data" / "store.jsonl")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Loads environment variables (optionally from .env) and validates Settings.

    Raises ConfigurationError if a required variable is missing or a value is invalid.
    """
    if env_file is None:
        env_file = _project_root() / ".env"

    # Environment variables win over .env
    if env_file.exists():
        load_dotenv(env_file, override=False)

    data = {
        "openai_api_key": os.getenv("OPENAI_API_KEY", ""),
        "openai_embedding_model": os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small"),
        "embedding_dimension": os.getenv("EMBEDDING_DIMENSION") or None,
        "embedding_max_attempts": os.getenv("EMBEDDING_MAX_ATTEMPTS", "1"),
        "snapshot_path": os.getenv("SNAPSHOT_PATH", str(_project_root() / "data" / "store.jsonl")),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid configuration. Ensure required environment variables are set.\n"
            "Required: OPENAI_API_KEY\n"
            f"Details:\n{e}"
        ) from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Lazily loaded, process-wide settings.
    """
    return load_settings()
