"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `CONTENTPILOT_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ContentPilot settings.

    All fields are environment-configurable. Prefix is `CONTENTPILOT_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTENTPILOT_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    app_env: Literal["dev", "prod"] = Field(default="dev")
    log_level: str = Field(default="INFO")

    # LLM
    openai_api_key: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_timeout_s: float = Field(default=120.0)
    openai_max_tokens: int = Field(default=4096, ge=1, le=200000)
    openai_temperature: float = Field(default=0.7, ge=0.0, le=2.0)

    # Streaming
    stream_done_marker: str = Field(default="[DONE]", min_length=1)

    # Action extraction; 0 disables the cap
    max_actions_per_response: int = Field(default=0, ge=0, le=100)

    # Redis (optional)
    redis_enabled: bool = Field(default=False)
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_key_prefix: str = Field(default="contentpilot")

    # Artifacts
    artifacts_dir: Path = Field(default=Path("artifacts"))


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("CONTENTPILOT_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
