"""
Error taxonomy for the Schoology OAuth 1.0a core.

Every error is terminal for the flow instance that raised it. Messages are
written for humans and must never include tokens, secrets or signatures.
"""

from __future__ import annotations


class SchoologyAuthError(Exception):
    """Base class; ``reason`` is a short machine-readable code."""

    reason = "auth_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)


class ConfigurationError(SchoologyAuthError):
    """Consumer or admin credentials are missing or still placeholders."""

    reason = "configuration_error"


class ProviderError(SchoologyAuthError):
    """The provider answered with a non-2xx status or could not be reached."""

    reason = "provider_error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderTimeoutError(ProviderError):
    reason = "provider_timeout"


class MalformedResponseError(SchoologyAuthError):
    """A 2xx provider response is missing fields the protocol requires."""

    reason = "malformed_response"


class VerifierMissingError(SchoologyAuthError):
    """The authorization callback arrived without ``oauth_verifier``."""

    reason = "verifier_missing"


class TokenNotFoundError(SchoologyAuthError):
    """No stored token matches the callback or the user."""

    reason = "token_not_found"


class AuthorizationError(SchoologyAuthError):
    """A non-administrative credential attempted to impersonate a user."""

    reason = "not_authorized"


class FlowStateError(SchoologyAuthError):
    """An operation was invoked in a state that does not allow it."""

    reason = "invalid_flow_state"


class StaleTokenWriteError(SchoologyAuthError):
    """A request-token record tried to replace an authorized record."""

    reason = "stale_token_write"


__all__ = [
    "AuthorizationError",
    "ConfigurationError",
    "FlowStateError",
    "MalformedResponseError",
    "ProviderError",
    "ProviderTimeoutError",
    "SchoologyAuthError",
    "StaleTokenWriteError",
    "TokenNotFoundError",
    "VerifierMissingError",
]
