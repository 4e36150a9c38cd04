"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
- TESTING=true skips .env loading entirely so tests only see os.environ
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


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
if _env_file and os.getenv("TESTING", "").lower() != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class LLMSettings(BaseSettings):
    """Text generation provider configuration.

    The provider is optional: without an API key the gateway still serves
    credential and report traffic, only the generation proxy is unavailable.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (currently only openai)",
    )
    model: str = Field(
        "gpt-4o-mini",
        description="Model name passed to the provider",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint for OpenAI-compatible servers",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class CredentialSettings(BaseSettings):
    """Access credential generation parameters."""

    case_prefix: str = Field(
        "CI",
        description="Prefix of generated case identifiers (PREFIX-YYYYMMDD-XXXX)",
        min_length=1,
    )
    case_suffix_length: int = Field(
        4,
        description="Length of the random alphanumeric case id suffix",
        ge=1,
        le=16,
    )
    passcode_length: int = Field(
        8,
        description="Length of the generated uppercase alphanumeric passcode",
        ge=7,
        le=64,
    )
    bcrypt_rounds: int = Field(
        10,
        description="bcrypt cost factor used to hash passcodes",
        ge=4,
        le=16,
    )

    model_config = SettingsConfigDict(
        env_prefix="CREDENTIAL_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Document store backend configuration."""

    backend: Literal["memory", "firestore"] = Field(
        "memory",
        description="Persistence backend: in-process memory or Google Firestore",
    )
    credentials_path: str = Field(
        "/etc/secrets/serviceAccountKey.json",
        description="Service account key file for Firestore",
    )
    fallback_credentials_path: str = Field(
        "serviceAccountKey.json",
        description="Service account key file used when credentials_path is absent",
    )
    credentials_collection: str = Field(
        "access_credentials",
        description="Collection holding hashed access credentials",
    )
    reports_collection: str = Field(
        "case_reports",
        description="Collection holding finalized case reports",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field("0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(3001, description="Bind port for the HTTP server", ge=1, le=65535)
    cors_origins: str = Field(
        "*",
        description="Comma-separated list of allowed CORS origins",
    )
    api_key_required: bool = Field(
        True,
        description="Whether staff endpoints require the X-API-Key header",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid staff API keys",
    )
    internal_access_password: SecretStr | None = Field(
        None,
        description="Password accepted by the internal staff login endpoint",
    )
    max_prompt_chars: int = Field(
        20000,
        description="Maximum prompt length accepted by the generation proxy",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-address rate limiting on credential validation",
    )
    rate_limit_requests: int = Field(
        15,
        description="Maximum number of requests admitted per window (per address)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Sliding window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


def _build_llm_settings() -> LLMSettings:
    return LLMSettings()


def _build_app_settings() -> AppSettings:
    return AppSettings()


def _build_credential_settings() -> CredentialSettings:
    return CredentialSettings()


def _build_store_settings() -> StoreSettings:
    return StoreSettings()


def _build_log_settings() -> LogSettings:
    return LogSettings()


class Settings(BaseSettings):
    """Main application settings container.

    Nested groups are created via default_factory so each one reads its own
    env prefix. Raises validation errors on startup if values are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    credential: CredentialSettings = Field(default_factory=_build_credential_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
