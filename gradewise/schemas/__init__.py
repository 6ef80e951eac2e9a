"""Public schema exports."""

from .auth import (
    AuthErrorResponse,
    AuthStatusResponse,
    AuthorizationStartResponse,
    OAuthCallbackPayload,
)

__all__ = [
    "AuthErrorResponse",
    "AuthStatusResponse",
    "AuthorizationStartResponse",
    "OAuthCallbackPayload",
]
