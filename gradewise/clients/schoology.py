"""
Schoology REST transport for the OAuth 1.0a legs and signed resource reads.

Each call opens its own ``httpx.AsyncClient`` bounded by the configured
timeout. Requests are never retried.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qsl, urlencode

import httpx

from gradewise.clients.oauth1_signer import OAuth1Signer
from gradewise.core.config import SchoologySettings
from gradewise.core.errors import MalformedResponseError
from gradewise.models.oauth import Credential
from gradewise.utils.http import ensure_success, send_once

logger = logging.getLogger(__name__)

HeaderFactory = Callable[[str], Dict[str, str]]

_REDIRECT_STATUSES = {301, 302, 303, 307, 308}


def parse_token_response(body: str) -> Credential:
    """Read ``oauth_token``/``oauth_token_secret`` from a form-encoded body."""
    fields = dict(parse_qsl(body.strip(), keep_blank_values=True))
    token = fields.get("oauth_token")
    secret = fields.get("oauth_token_secret")
    if not token or not secret:
        raise MalformedResponseError(
            "Schoology token response is missing oauth_token or oauth_token_secret."
        )
    return Credential(key=token, secret=secret)


class SchoologyClient:
    """Signed calls against the Schoology API."""

    def __init__(
        self,
        settings: SchoologySettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def api_base_url(self) -> str:
        return self._settings.api_base_url.rstrip("/")

    @property
    def request_token_url(self) -> str:
        return f"{self.api_base_url}/oauth/request_token"

    @property
    def access_token_url(self) -> str:
        return f"{self.api_base_url}/oauth/access_token"

    def resource_url(self, path: str) -> str:
        return f"{self.api_base_url}/{path.lstrip('/')}"

    def build_authorization_url(self, oauth_token: str, callback_url: str) -> str:
        """Construct the page the browser is sent to for user consent."""
        query = urlencode({"oauth_token": oauth_token, "oauth_callback": callback_url})
        return f"{self._settings.app_base_url.rstrip('/')}/oauth/authorize?{query}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.request_timeout_seconds,
            transport=self._transport,
        )

    async def fetch_request_token(self, signer: OAuth1Signer, callback_url: str) -> Credential:
        """First leg: obtain a temporary token pair."""
        headers = signer.sign(
            self.request_token_url,
            "GET",
            oauth_params={"oauth_callback": callback_url},
        )
        headers["Accept"] = "application/x-www-form-urlencoded"

        async with self._client() as client:
            response = await send_once(client.get, self.request_token_url, headers=headers)

        ensure_success(response, action="request token")
        return parse_token_response(response.text)

    async def fetch_access_token(
        self,
        signer: OAuth1Signer,
        request_token: Credential,
        verifier: Optional[str] = None,
    ) -> Credential:
        """Third leg: trade the authorized request token for an access token."""
        oauth_params = {"oauth_verifier": verifier} if verifier else None
        headers = signer.sign(
            self.access_token_url, "GET", request_token, oauth_params=oauth_params
        )
        headers["Accept"] = "application/x-www-form-urlencoded"

        async with self._client() as client:
            response = await send_once(client.get, self.access_token_url, headers=headers)

        ensure_success(response, action="access token")
        return parse_token_response(response.text)

    async def get_json(self, url: str, sign: HeaderFactory) -> Dict[str, Any]:
        """GET a JSON resource, re-signing once if Schoology redirects.

        Some endpoints (``/users/me`` in particular) redirect to a
        user-specific URL; the redirect target needs a fresh nonce and
        timestamp, so it cannot be followed automatically.
        """
        async with self._client() as client:
            response = await send_once(client.get, url, headers=self._json_headers(sign(url)))
            if response.status_code in _REDIRECT_STATUSES and "location" in response.headers:
                location = str(response.url.join(response.headers["location"]))
                logger.debug("Following Schoology redirect to %s", location)
                response = await send_once(
                    client.get, location, headers=self._json_headers(sign(location))
                )

        ensure_success(response, action="resource request")
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError("Schoology returned a non-JSON body.") from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError("Schoology returned an unexpected JSON payload.")
        return payload

    @staticmethod
    def _json_headers(auth_headers: Dict[str, str]) -> Dict[str, str]:
        headers = dict(auth_headers)
        headers["Accept"] = "application/json"
        return headers


def extract_identity(payload: Dict[str, Any]) -> tuple[str, Optional[str]]:
    """Return ``(user_id, display_name)`` from a ``/users/...`` payload."""
    user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
    raw_id = user.get("id", user.get("uid", user.get("user_id")))
    if raw_id is None or str(raw_id) == "":
        raise MalformedResponseError("Schoology identity response has no user id.")
    name = user.get("name_display") or user.get("name")
    return str(raw_id), name


__all__ = [
    "HeaderFactory",
    "SchoologyClient",
    "extract_identity",
    "parse_token_response",
]
