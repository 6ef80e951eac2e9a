"""
Impersonation-aware request signing.

Schoology lets a system-level (admin) consumer execute a request as another
user by sending ``X-Schoology-Run-As``. Ordinary users sign with their own
access token and may never send the header.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from gradewise.clients.oauth1_signer import OAuth1Signer
from gradewise.core.errors import AuthorizationError
from gradewise.models.oauth import Credential

logger = logging.getLogger(__name__)

RUN_AS_HEADER = "X-Schoology-Run-As"


@dataclass(frozen=True)
class ActingCredential:
    """Who a request is signed as.

    ``signer`` carries the consumer pair; ``token`` is the user's access token
    for ordinary users and ``None`` for the two-legged admin consumer.
    """

    signer: OAuth1Signer
    token: Optional[Credential] = None
    elevated: bool = False

    @classmethod
    def administrator(cls, admin_signer: OAuth1Signer) -> "ActingCredential":
        return cls(signer=admin_signer, token=None, elevated=True)

    @classmethod
    def for_user(cls, consumer_signer: OAuth1Signer, access_token: Credential) -> "ActingCredential":
        return cls(signer=consumer_signer, token=access_token, elevated=False)


class ImpersonationGate:
    """Sign requests and attach the run-as header only for elevated credentials."""

    def sign_as(
        self,
        url: str,
        acting: ActingCredential,
        target_user_id: Optional[str] = None,
        http_method: str = "GET",
    ) -> Dict[str, str]:
        if target_user_id and not acting.elevated:
            # Checked before signing so no request for the target is ever built.
            logger.warning("Rejected run-as attempt by a non-administrative credential")
            raise AuthorizationError("Only administrative credentials may act as another user.")

        headers = acting.signer.sign(url, http_method, acting.token)
        if target_user_id:
            headers[RUN_AS_HEADER] = str(target_user_id)
        return headers

    def header_factory(
        self,
        acting: ActingCredential,
        target_user_id: Optional[str] = None,
        http_method: str = "GET",
    ):
        """Return a ``url -> headers`` callable for :meth:`SchoologyClient.get_json`.

        The permission check happens here, before any URL is signed.
        """
        if target_user_id and not acting.elevated:
            logger.warning("Rejected run-as attempt by a non-administrative credential")
            raise AuthorizationError("Only administrative credentials may act as another user.")
        return lambda url: self.sign_as(url, acting, target_user_id, http_method)


__all__ = ["ActingCredential", "ImpersonationGate", "RUN_AS_HEADER"]
