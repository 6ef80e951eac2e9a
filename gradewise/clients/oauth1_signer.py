"""
OAuth 1.0a HMAC-SHA1 request signing.

The signer is built from an explicit consumer credential; there is no
process-wide instance. Percent-encoding and parameter normalization
come from ``oauthlib``'s RFC 5849 primitives so the base string matches what
Schoology computes on its side.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from oauthlib.common import generate_nonce, generate_timestamp
from oauthlib.oauth1.rfc5849 import parameters, signature, utils

from gradewise.core.errors import ConfigurationError
from gradewise.models.oauth import Credential

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"

_PLACEHOLDER_VALUES = frozenset(
    {
        "your_real_consumer_key_here",
        "your_real_consumer_secret_here",
        "your_consumer_key_here",
        "your_consumer_secret_here",
        "changeme",
    }
)


def is_placeholder(value: Optional[str]) -> bool:
    """True when a credential value is empty or a template placeholder."""
    if value is None or not value.strip():
        return True
    return value.strip().lower() in _PLACEHOLDER_VALUES


def require_credential(key: Optional[str], secret: Optional[str], *, label: str) -> Credential:
    """Build a credential or fail fast with ``ConfigurationError``."""
    if is_placeholder(key) or is_placeholder(secret):
        raise ConfigurationError(f"Schoology {label} key/secret are not configured.")
    return Credential(key=key.strip(), secret=secret.strip())  # type: ignore[union-attr]


def signing_key(consumer_secret: str, token_secret: Optional[str] = None) -> str:
    """Derive the HMAC key: ``escape(consumer_secret)&escape(token_secret)``."""
    return f"{utils.escape(consumer_secret)}&{utils.escape(token_secret or '')}"


class OAuth1Signer:
    """Produce ``Authorization`` headers for arbitrary HTTP requests."""

    def __init__(self, consumer: Credential) -> None:
        if is_placeholder(consumer.key) or is_placeholder(consumer.secret):
            raise ConfigurationError("Schoology consumer key/secret are not configured.")
        self._consumer = consumer

    @property
    def consumer_key(self) -> str:
        return self._consumer.key

    def oauth_parameters(
        self,
        token: Optional[Credential] = None,
        *,
        oauth_params: Optional[Mapping[str, str]] = None,
        nonce: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> list[Tuple[str, str]]:
        """Protocol parameters for one request, without ``oauth_signature``."""
        params = [
            ("oauth_consumer_key", self._consumer.key),
            ("oauth_nonce", nonce or generate_nonce()),
            ("oauth_signature_method", SIGNATURE_METHOD),
            ("oauth_timestamp", timestamp or generate_timestamp()),
            ("oauth_version", OAUTH_VERSION),
        ]
        if token is not None:
            params.append(("oauth_token", token.key))
        for name, value in (oauth_params or {}).items():
            if not name.startswith("oauth_"):
                raise ValueError(f"{name} is not an OAuth protocol parameter.")
            params.append((name, value))
        return params

    def base_string(
        self,
        url: str,
        http_method: str,
        oauth_params: Iterable[Tuple[str, str]],
    ) -> str:
        """Signature base string for ``url`` including its query parameters."""
        query = urlsplit(url).query
        collected = signature.collect_parameters(uri_query=query, body=[])
        collected.extend(oauth_params)
        normalized = signature.normalize_parameters(collected)
        return signature.signature_base_string(
            http_method.upper(), signature.base_string_uri(url), normalized
        )

    def sign(
        self,
        url: str,
        http_method: str = "GET",
        token: Optional[Credential] = None,
        *,
        oauth_params: Optional[Mapping[str, str]] = None,
        nonce: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> Dict[str, str]:
        """Return ``{"Authorization": "OAuth ..."}`` for the given request."""
        params = self.oauth_parameters(
            token, oauth_params=oauth_params, nonce=nonce, timestamp=timestamp
        )
        base = self.base_string(url, http_method, params)
        key = signing_key(self._consumer.secret, token.secret if token is not None else None)
        digest = base64.b64encode(
            hmac.new(key.encode("utf-8"), base.encode("utf-8"), hashlib.sha1).digest()
        ).decode("ascii")
        params.append(("oauth_signature", digest))
        return parameters.prepare_headers(params)


__all__ = [
    "OAuth1Signer",
    "OAUTH_VERSION",
    "SIGNATURE_METHOD",
    "is_placeholder",
    "require_credential",
    "signing_key",
]
