"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `PAGETREE_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pagetree.errors import ConfigError


class Settings(BaseSettings):
    """pagetree settings.

    All fields are environment-configurable. Prefix is `PAGETREE_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAGETREE_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    log_level: str = Field(default="INFO")

    # Reasoning collaborator (any OpenAI-compatible endpoint)
    openai_api_key: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_timeout_s: float = Field(default=120.0, gt=0.0)
    openai_max_tokens: int = Field(default=4096, ge=1)
    openai_temperature: float = Field(default=0.0, ge=0.0, le=2.0)

    # Embedding collaborator (benchmarks only)
    embedding_model: str = Field(default="text-embedding-3-small")

    # Indexing
    index_max_tokens_per_chunk: int = Field(default=20000, ge=100)
    index_verify_pages: bool = Field(default=False)
    index_max_fix_attempts: int = Field(default=3, ge=0, le=10)
    index_generate_summaries: bool = Field(default=False)
    page_delimiter: str | None = Field(default="\f")

    # Search
    search_top_k: int = Field(default=10, ge=1, le=100)
    search_min_relevance: Literal["high", "medium", "low"] = Field(default="low")

    # Tree cache
    cache_max_entries: int = Field(default=32, ge=1)

    # Paths
    default_index_path: Path = Field(default=Path("data/tree_index.json"))

    def validate_llm(self) -> None:
        """Check that the reasoning collaborator can be reached.

        Raises:
            ConfigError: If the API key or model is missing.
        """

        if not self.openai_api_key:
            raise ConfigError(
                "Missing PAGETREE_OPENAI_API_KEY. "
                "Set it in environment variables or a .env file."
            )
        if not self.openai_model:
            raise ConfigError(
                "Missing PAGETREE_OPENAI_MODEL. "
                "Set it in environment variables or a .env file."
            )


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("PAGETREE_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
