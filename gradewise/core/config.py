"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI routes, the OAuth flow and the
maintenance scripts share a consistent configuration surface. Settings objects
are passed explicitly into the signer and flow constructors; nothing here is
read lazily from the process environment at call time.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


_SETTINGS_CONFIG = SettingsConfigDict(populate_by_name=True, extra="ignore")


class SchoologySettings(BaseSettings):
    """Credentials and endpoints for the Schoology OAuth 1.0a provider."""

    model_config = _SETTINGS_CONFIG

    consumer_key: Optional[str] = Field(None, alias="SCHOOLOGY_CONSUMER_KEY")
    consumer_secret: Optional[str] = Field(None, alias="SCHOOLOGY_CONSUMER_SECRET")
    admin_key: Optional[str] = Field(
        None,
        alias="SCHOOLOGY_ADMIN_KEY",
        description="System-level key allowed to send X-Schoology-Run-As.",
    )
    admin_secret: Optional[str] = Field(None, alias="SCHOOLOGY_ADMIN_SECRET")
    callback_url: Optional[AnyHttpUrl] = Field(None, alias="SCHOOLOGY_CALLBACK_URL")
    api_base_url: str = Field("https://api.schoology.com/v1", alias="SCHOOLOGY_API_BASE_URL")
    app_base_url: str = Field("https://app.schoology.com", alias="SCHOOLOGY_APP_BASE_URL")
    request_timeout_seconds: float = Field(10.0, alias="SCHOOLOGY_REQUEST_TIMEOUT")


class VerifierPolicy(str, Enum):
    """How the callback verifier is used in the access-token exchange."""

    FORWARD = "forward"
    PRESENCE = "presence"


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = _SETTINGS_CONFIG

    verifier_policy: VerifierPolicy = Field(
        VerifierPolicy.FORWARD,
        alias="OAUTH_VERIFIER_POLICY",
        description=(
            "'forward' signs oauth_verifier into the access-token request; "
            "'presence' only requires it on the callback."
        ),
    )


class SessionSettings(BaseSettings):
    """Session cookie configuration."""

    model_config = _SETTINGS_CONFIG

    cookie_name: str = Field("schoology_user_id", alias="SESSION_COOKIE_NAME")
    demo_cookie_name: str = Field("demo_session", alias="DEMO_COOKIE_NAME")
    max_age_seconds: int = Field(60 * 60 * 24 * 7, alias="SESSION_MAX_AGE")


class TokenBackend(str, Enum):
    FIRESTORE = "firestore"
    SQLITE = "sqlite"
    MEMORY = "memory"


class StorageSettings(BaseSettings):
    """Where OAuth token records are persisted."""

    model_config = _SETTINGS_CONFIG

    backend: TokenBackend = Field(TokenBackend.FIRESTORE, alias="GRADEWISE_TOKEN_BACKEND")
    firestore_project_id: Optional[str] = Field(None, alias="FIREBASE_PROJECT_ID")
    collection_name: str = Field("oauth_tokens", alias="GRADEWISE_TOKEN_COLLECTION")
    sqlite_path: str = Field("data/gradewise.db", alias="GRADEWISE_SQLITE_PATH")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = _SETTINGS_CONFIG

    token_encryption_secret: Optional[str] = Field(
        None,
        alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        populate_by_name=True,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        alias="FRONTEND_BASE_URL",
        description="Optional URL for redirecting users back to the front-end.",
    )
    offline_mode: bool = Field(
        False,
        alias="GRADEWISE_OFFLINE_MODE",
        description="Serve the demo session instead of contacting Schoology.",
    )
    admin_user_ids: Annotated[tuple[str, ...], NoDecode] = Field(
        (), alias="GRADEWISE_ADMIN_USER_IDS"
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    schoology: SchoologySettings = Field(default_factory=SchoologySettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @field_validator("admin_user_ids", mode="before")
    @classmethod
    def _split_user_ids(
        cls, value: str | tuple[str, ...] | list[str] | None
    ) -> tuple[str, ...]:
        """Support providing admin user ids as a comma-separated string."""
        if value is None:
            return ()
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        return tuple(item.strip() for item in str(value).split(",") if item.strip())

    @property
    def is_local_development(self) -> bool:
        return self.environment.lower() in {"development", "local", "dev"}


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "OAuthSettings",
    "SchoologySettings",
    "SecuritySettings",
    "SessionSettings",
    "StorageSettings",
    "TokenBackend",
    "VerifierPolicy",
    "get_settings",
]
