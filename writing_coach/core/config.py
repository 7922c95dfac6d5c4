"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


def _build_llm_settings() -> "LLMSettings":
    """Build LLM settings from environment.

    Pydantic Settings (v2) populates values from environment variables, but
    static type checkers treat required fields as constructor arguments.
    """

    return LLMSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()  # type: ignore[call-arg]


class LLMSettings(BaseSettings):
    """Text provider configuration.

    The model itself is chosen per request (see ``core.model_access``); these
    settings only describe how to reach the provider and how hard to try.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (currently: openai)",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (OpenAI-compatible gateways)",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Deadline for a single provider attempt in seconds",
        gt=0,
    )
    max_retries: int = Field(
        2,
        description="Additional attempts after a timeout or transient failure",
        ge=0,
    )
    backoff_base_seconds: float = Field(
        1.0,
        description="First backoff delay; doubles on every further retry",
        ge=0,
    )
    temperature: float = Field(
        0.3,
        description="Sampling temperature for coaching completions",
    )
    max_output_tokens: int = Field(
        2500,
        description="Upper bound on completion tokens",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    min_text_chars: int = Field(
        10,
        description="Minimum length of submitted text in characters",
        ge=1,
    )
    max_text_chars: int = Field(
        5000,
        description="Maximum length of submitted text in characters",
        ge=1,
    )
    principal_header: str = Field(
        "x-ms-client-principal",
        description="Header carrying the base64-encoded client principal",
    )
    persist_anonymous: bool = Field(
        False,
        description="Also record sessions of anonymous callers (development only)",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-caller sliding-window rate limiting",
    )
    rate_limit_anonymous_per_window: int = Field(
        5,
        description="Requests allowed per window for anonymous callers (per IP)",
        ge=1,
    )
    rate_limit_authenticated_per_window: int = Field(
        20,
        description="Requests allowed per window for signed-in callers (per user)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        3600,
        description="Length of the trailing rate limit window in seconds",
        ge=1,
    )
    rate_limit_cleanup_interval_seconds: int = Field(
        600,
        description="Minimum interval between sweeps of idle rate limit keys",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
