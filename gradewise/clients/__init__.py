"""Expose constructed client wrappers."""

from .firestore_store import FirestoreStore
from .memory_store import MemoryStore
from .oauth1_signer import OAuth1Signer
from .schoology import SchoologyClient
from .sqlite_store import SQLiteStore

__all__ = [
    "FirestoreStore",
    "MemoryStore",
    "OAuth1Signer",
    "SchoologyClient",
    "SQLiteStore",
]
