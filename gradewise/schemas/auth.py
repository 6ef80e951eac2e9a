"""Schemas related to the Schoology OAuth flow and sessions."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OAuthCallbackPayload(BaseModel):
    """Parameters Schoology sends back to the callback URL."""

    oauth_token: Optional[str] = Field(None, description="Request token being authorized.")
    oauth_verifier: Optional[str] = Field(
        None, description="One-time value proving the user completed authorization."
    )


class AuthorizationStartResponse(BaseModel):
    authorization_url: str


class AuthStatusResponse(BaseModel):
    """Who the current session belongs to."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    has_token: bool = Field(False, alias="hasToken")
    source: str


class AuthErrorResponse(BaseModel):
    error: str
    detail: str


__all__ = [
    "AuthErrorResponse",
    "AuthStatusResponse",
    "AuthorizationStartResponse",
    "OAuthCallbackPayload",
]
