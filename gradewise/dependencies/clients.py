"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

import logging
from functools import lru_cache

from google.auth.exceptions import GoogleAuthError

from gradewise.clients import (
    FirestoreStore,
    MemoryStore,
    OAuth1Signer,
    SchoologyClient,
    SQLiteStore,
)
from gradewise.clients.oauth1_signer import require_credential
from gradewise.core.config import TokenBackend
from gradewise.core.errors import ConfigurationError
from gradewise.dependencies.config import get_app_settings
from gradewise.services import (
    ImpersonationGate,
    OAuthTokenStore,
    SessionBinder,
    TokenCipherService,
)

logger = logging.getLogger(__name__)


@lru_cache()
def get_schoology_client() -> SchoologyClient:
    """Create a singleton Schoology transport."""
    return SchoologyClient(get_app_settings().schoology)


def get_consumer_signer() -> OAuth1Signer:
    """Signer for the application's own consumer credential."""
    schoology = get_app_settings().schoology
    return OAuth1Signer(
        require_credential(schoology.consumer_key, schoology.consumer_secret, label="consumer")
    )


def get_admin_signer() -> OAuth1Signer:
    """Signer for the system-level credential allowed to use run-as."""
    schoology = get_app_settings().schoology
    return OAuth1Signer(
        require_credential(schoology.admin_key, schoology.admin_secret, label="admin")
    )


@lru_cache()
def get_record_store():
    """Provide the configured key-value backend for token records."""
    storage = get_app_settings().storage
    if storage.backend is TokenBackend.MEMORY:
        return MemoryStore()
    if storage.backend is TokenBackend.SQLITE:
        return SQLiteStore(storage.sqlite_path)
    try:
        return FirestoreStore(
            collection_name=storage.collection_name,
            project_id=storage.firestore_project_id,
        )
    except (GoogleAuthError, OSError) as exc:
        logger.warning(
            "Firestore unavailable (%s); falling back to a non-durable in-memory token store.",
            exc,
        )
        return MemoryStore()


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = get_app_settings()
    secret = settings.security.token_encryption_secret or settings.schoology.consumer_secret
    if not secret:
        raise ConfigurationError("TOKEN_ENCRYPTION_SECRET is not configured.")
    return TokenCipherService(secret=secret)


def get_token_store() -> OAuthTokenStore:
    """Build the token store over the configured backend."""
    return OAuthTokenStore(get_record_store(), get_token_cipher_service())


@lru_cache()
def get_session_binder() -> SessionBinder:
    """Provide the session cookie binder."""
    settings = get_app_settings()
    return SessionBinder(settings.session, secure=not settings.is_local_development)


@lru_cache()
def get_impersonation_gate() -> ImpersonationGate:
    return ImpersonationGate()


__all__ = [
    "get_admin_signer",
    "get_consumer_signer",
    "get_impersonation_gate",
    "get_record_store",
    "get_schoology_client",
    "get_session_binder",
    "get_token_cipher_service",
    "get_token_store",
]
