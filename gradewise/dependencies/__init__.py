"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_admin_signer,
    get_consumer_signer,
    get_impersonation_gate,
    get_record_store,
    get_schoology_client,
    get_session_binder,
    get_token_cipher_service,
    get_token_store,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_admin_signer",
    "get_app_settings",
    "get_consumer_signer",
    "get_impersonation_gate",
    "get_record_store",
    "get_schoology_client",
    "get_session_binder",
    "get_token_cipher_service",
    "get_token_store",
]
