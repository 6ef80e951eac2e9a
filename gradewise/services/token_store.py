"""
Persistence of Schoology OAuth token pairs.

Request tokens (phase REQUESTED) are keyed by the temporary ``oauth_token``
the provider issued, which doubles as the correlation id between the
request-token step and the authorization callback. Access tokens (phase
AUTHORIZED) are keyed by the Schoology user id. Token secrets are encrypted
before they reach the backend.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from gradewise.core.errors import StaleTokenWriteError
from gradewise.models.oauth import Credential, StoredTokenRecord, TokenPhase
from gradewise.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

SORT_KEY = "oauth#schoology"


class RecordStore(Protocol):
    def put_item(self, item: Dict[str, Any]) -> None: ...

    def get_item(
        self, *, partition_key: str, sort_key: str
    ) -> Optional[Dict[str, Any]]: ...

    def delete_item(self, *, partition_key: str, sort_key: str) -> bool: ...


def _user_key(user_id: str) -> str:
    return f"user#{user_id}"


def _request_key(oauth_token: str) -> str:
    return f"request#{oauth_token}"


class OAuthTokenStore:
    """Upsert and fetch token records; last write wins."""

    def __init__(self, store: RecordStore, token_cipher: TokenCipherService) -> None:
        self._store = store
        self._cipher = token_cipher

    @property
    def durable(self) -> bool:
        return getattr(self._store, "durable", True)

    def get(self, user_id: str) -> Optional[StoredTokenRecord]:
        """Return the access-token record for ``user_id`` if one exists."""
        return self._load(_user_key(user_id))

    def put(self, user_id: str, record: StoredTokenRecord) -> None:
        """Persist ``record`` for ``user_id``.

        A REQUESTED record may never replace an AUTHORIZED one; that would
        strand the user with a temporary secret from an unrelated flow.
        """
        existing = self.get(user_id)
        if existing is not None:
            if record.phase is TokenPhase.REQUESTED and existing.phase is TokenPhase.AUTHORIZED:
                raise StaleTokenWriteError(
                    "Refusing to replace an authorized token with a request token."
                )
            record = record.model_copy(update={"created_at": existing.created_at})
        self._save(_user_key(user_id), record)

    def save_request_token(self, credential: Credential) -> StoredTokenRecord:
        """Store the temporary secret under its own token key."""
        record = StoredTokenRecord(
            user_id=credential.key,
            token_key=credential.key,
            token_secret=credential.secret,
            phase=TokenPhase.REQUESTED,
        )
        self._save(_request_key(credential.key), record)
        return record

    def get_request_token(self, oauth_token: str) -> Optional[StoredTokenRecord]:
        record = self._load(_request_key(oauth_token))
        if record is None or record.phase is not TokenPhase.REQUESTED:
            return None
        return record

    def consume_request_token(self, oauth_token: str) -> None:
        """Drop a request token once it has been exchanged."""
        self._store.delete_item(partition_key=_request_key(oauth_token), sort_key=SORT_KEY)

    def invalidate(self, user_id: str) -> bool:
        """Administrative cleanup of a user's stored access token."""
        removed = self._store.delete_item(partition_key=_user_key(user_id), sort_key=SORT_KEY)
        if removed:
            logger.info("Invalidated stored Schoology token for user %s", user_id)
        return removed

    def _save(self, partition_key: str, record: StoredTokenRecord) -> None:
        now = datetime.now(timezone.utc)
        item = {
            "pk": partition_key,
            "sk": SORT_KEY,
            "user_id": record.user_id,
            "token_key": record.token_key,
            "token_secret_encrypted": self._cipher.encrypt(record.token_secret),
            "phase": record.phase.value,
            "display_name": record.display_name,
            "created_at": record.created_at.isoformat(),
            "updated_at": now.isoformat(),
        }
        self._store.put_item(item)

    def _load(self, partition_key: str) -> Optional[StoredTokenRecord]:
        item = self._store.get_item(partition_key=partition_key, sort_key=SORT_KEY)
        if not item:
            return None

        encrypted_secret = item.get("token_secret_encrypted")
        if not encrypted_secret or not item.get("token_key"):
            logger.warning("Ignoring incomplete token record %s", partition_key)
            return None

        try:
            token_secret = self._cipher.decrypt(encrypted_secret)
        except ValueError:
            # Written under a different encryption secret; unusable.
            logger.warning("Ignoring undecryptable token record %s", partition_key)
            return None

        return StoredTokenRecord(
            user_id=item["user_id"],
            token_key=item["token_key"],
            token_secret=token_secret,
            phase=TokenPhase(item["phase"]),
            display_name=item.get("display_name"),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )


__all__ = ["OAuthTokenStore", "RecordStore", "SORT_KEY"]
