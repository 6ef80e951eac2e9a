"""
Three-legged Schoology OAuth 1.0a flow.

One ``SchoologyAuthFlow`` instance drives one login. The first HTTP request
runs :meth:`SchoologyAuthFlow.start`; the provider callback arrives as a
separate HTTP request, which rebuilds the flow with
:meth:`SchoologyAuthFlow.resume` and runs :meth:`SchoologyAuthFlow.complete`.
The temporary ``oauth_token`` is the correlation key between the two.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gradewise.clients.oauth1_signer import OAuth1Signer
from gradewise.clients.schoology import SchoologyClient, extract_identity
from gradewise.core.config import VerifierPolicy
from gradewise.core.errors import (
    FlowStateError,
    SchoologyAuthError,
    TokenNotFoundError,
    VerifierMissingError,
)
from gradewise.core.logging import mask
from gradewise.models.oauth import StoredTokenRecord, TokenPhase
from gradewise.services.impersonation import ActingCredential, ImpersonationGate
from gradewise.services.session_binder import SessionBinder, SessionCookie
from gradewise.services.token_store import OAuthTokenStore

logger = logging.getLogger(__name__)


class FlowState(str, Enum):
    START = "start"
    REQUEST_TOKEN_PENDING = "request_token_pending"
    AWAITING_USER_AUTHORIZATION = "awaiting_user_authorization"
    ACCESS_TOKEN_PENDING = "access_token_pending"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


_TRANSITIONS = {
    FlowState.START: {FlowState.REQUEST_TOKEN_PENDING},
    FlowState.REQUEST_TOKEN_PENDING: {FlowState.AWAITING_USER_AUTHORIZATION},
    FlowState.AWAITING_USER_AUTHORIZATION: {FlowState.ACCESS_TOKEN_PENDING},
    FlowState.ACCESS_TOKEN_PENDING: {FlowState.AUTHENTICATED},
    FlowState.AUTHENTICATED: set(),
    FlowState.FAILED: set(),
}


@dataclass(frozen=True)
class AuthResult:
    user_id: str
    display_name: Optional[str]
    session_cookie: SessionCookie


class SchoologyAuthFlow:
    """State machine for a single login attempt. Nothing is retried."""

    def __init__(
        self,
        *,
        signer: OAuth1Signer,
        client: SchoologyClient,
        token_store: OAuthTokenStore,
        session_binder: SessionBinder,
        gate: Optional[ImpersonationGate] = None,
        verifier_policy: VerifierPolicy = VerifierPolicy.FORWARD,
        state: FlowState = FlowState.START,
    ) -> None:
        self._signer = signer
        self._client = client
        self._tokens = token_store
        self._binder = session_binder
        self._gate = gate or ImpersonationGate()
        self._verifier_policy = verifier_policy
        self.state = state
        self.failure_reason: Optional[str] = None

    @classmethod
    def resume(cls, **kwargs) -> "SchoologyAuthFlow":
        """Rebuild a flow whose user has been sent to the authorize page."""
        kwargs["state"] = FlowState.AWAITING_USER_AUTHORIZATION
        return cls(**kwargs)

    def _advance(self, target: FlowState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise FlowStateError(f"Cannot move from {self.state.value} to {target.value}.")
        self.state = target

    def _fail(self, error: SchoologyAuthError) -> None:
        self.state = FlowState.FAILED
        self.failure_reason = error.reason
        logger.warning("Schoology login failed: %s (%s)", error.reason, error)

    async def start(self, callback_url: str) -> str:
        """Obtain a request token and return the provider authorize URL."""
        self._advance(FlowState.REQUEST_TOKEN_PENDING)
        logger.info(
            "Requesting Schoology request token for consumer %s", mask(self._signer.consumer_key)
        )
        try:
            request_token = await self._client.fetch_request_token(self._signer, callback_url)
            self._tokens.save_request_token(request_token)
        except SchoologyAuthError as exc:
            self._fail(exc)
            raise

        self._advance(FlowState.AWAITING_USER_AUTHORIZATION)
        return self._client.build_authorization_url(request_token.key, callback_url)

    async def complete(self, oauth_token: Optional[str], oauth_verifier: Optional[str]) -> AuthResult:
        """Exchange the authorized request token and bind a session."""
        if self.state is not FlowState.AWAITING_USER_AUTHORIZATION:
            raise FlowStateError(f"Cannot complete a flow in state {self.state.value}.")

        try:
            if not oauth_verifier:
                raise VerifierMissingError("The authorization callback did not include oauth_verifier.")
            if not oauth_token:
                raise TokenNotFoundError("The authorization callback did not include oauth_token.")

            stored = self._tokens.get_request_token(oauth_token)
            if stored is None:
                raise TokenNotFoundError("No pending authorization matches this callback.")

            self._advance(FlowState.ACCESS_TOKEN_PENDING)
            verifier = oauth_verifier if self._verifier_policy is VerifierPolicy.FORWARD else None
            access_token = await self._client.fetch_access_token(
                self._signer, stored.credential, verifier
            )

            acting = ActingCredential.for_user(self._signer, access_token)
            identity = await self._client.get_json(
                self._client.resource_url("users/me?format=json"),
                self._gate.header_factory(acting),
            )
            user_id, display_name = extract_identity(identity)

            self._tokens.put(
                user_id,
                StoredTokenRecord(
                    user_id=user_id,
                    token_key=access_token.key,
                    token_secret=access_token.secret,
                    phase=TokenPhase.AUTHORIZED,
                    display_name=display_name,
                ),
            )
            self._tokens.consume_request_token(oauth_token)
        except SchoologyAuthError as exc:
            self._fail(exc)
            raise

        cookie = self._binder.bind(user_id)
        self._advance(FlowState.AUTHENTICATED)
        logger.info("Schoology login completed for user %s", user_id)
        return AuthResult(user_id=user_id, display_name=display_name, session_cookie=cookie)


__all__ = ["AuthResult", "FlowState", "SchoologyAuthFlow"]
