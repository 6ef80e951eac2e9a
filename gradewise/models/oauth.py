"""
Domain models for OAuth 1.0a credentials and token persistence.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Credential(BaseModel):
    """A key/secret pair: the consumer identity or a per-user token."""

    model_config = ConfigDict(frozen=True)

    key: str
    secret: str = Field(..., repr=False)


class TokenPhase(str, Enum):
    REQUESTED = "requested"
    AUTHORIZED = "authorized"


class StoredTokenRecord(BaseModel):
    """Token pair stored per user id (or per temporary token while REQUESTED)."""

    user_id: str = Field(..., description="Stable Schoology user id, or the request token.")
    token_key: str
    token_secret: str = Field(..., repr=False)
    phase: TokenPhase
    display_name: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def credential(self) -> Credential:
        return Credential(key=self.token_key, secret=self.token_secret)


__all__ = ["Credential", "StoredTokenRecord", "TokenPhase"]
