"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `FOODGUARD_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """FoodGuard settings.

    All fields are environment-configurable. Prefix is `FOODGUARD_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="FOODGUARD_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    app_env: Literal["dev", "prod"] = Field(default="dev")
    log_level: str = Field(default="INFO")

    # LLM (any OpenAI-compatible endpoint)
    openai_api_key: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_timeout_s: float = Field(default=60.0, ge=1.0)
    llm_max_retries: int = Field(default=3, ge=0, le=10)
    llm_retry_backoff_s: float = Field(default=1.0, ge=0.0, le=30.0)

    # Reasoning loop
    agent_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    agent_max_tokens: int = Field(default=4096, ge=256)
    agent_max_steps: int = Field(default=24, ge=1, le=100)
    memory_max_threads: int = Field(default=256, ge=1)
    default_date_range: str = Field(default="next 30 days")

    # Chat side-channel
    chat_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    chat_max_tokens: int = Field(default=2048, ge=64)

    # Wall-clock caps
    stream_timeout_s: float = Field(default=60.0, gt=0.0)
    quick_timeout_s: float = Field(default=45.0, gt=0.0)
    chat_timeout_s: float = Field(default=30.0, gt=0.0)

    # Data sources
    openweather_api_key: str | None = Field(default=None)
    openweather_base_url: str = Field(default="https://api.openweathermap.org/data/2.5")
    worldbank_base_url: str = Field(default="https://api.worldbank.org/v2")
    nasa_power_base_url: str = Field(default="https://power.larc.nasa.gov/api")

    # Networking
    http_timeout_s: float = Field(default=20.0)
    http_user_agent: str = Field(default="FoodGuard/0.1 (+food-security-dashboard)")
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("FOODGUARD_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
