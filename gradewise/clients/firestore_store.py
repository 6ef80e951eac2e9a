"""
Firestore wrapper exposing the (pk, sk) record interface used for token storage.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from google.cloud import firestore


class FirestoreStore:
    """Store each record as one document in a single collection."""

    durable = True

    def __init__(
        self,
        *,
        collection_name: str,
        project_id: Optional[str] = None,
        client: Optional[firestore.Client] = None,
    ) -> None:
        self._client = client or firestore.Client(project=project_id)
        self._collection = self._client.collection(collection_name)

    @staticmethod
    def _document_id(partition_key: str, sort_key: str) -> str:
        # Firestore ids may not contain "/".
        return f"{partition_key}|{sort_key}".replace("/", "%2F")

    def put_item(self, item: Dict[str, Any]) -> None:
        """Create or replace the document for the item's key."""
        pk = item.get("pk")
        sk = item.get("sk")
        if not pk or not sk:
            raise ValueError("Item must include 'pk' and 'sk' keys")
        self._collection.document(self._document_id(pk, sk)).set(item)

    def get_item(
        self, *, partition_key: str, sort_key: str
    ) -> Optional[Dict[str, Any]]:
        snapshot = self._collection.document(
            self._document_id(partition_key, sort_key)
        ).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def delete_item(self, *, partition_key: str, sort_key: str) -> bool:
        reference = self._collection.document(self._document_id(partition_key, sort_key))
        if not reference.get().exists:
            return False
        reference.delete()
        return True


__all__ = ["FirestoreStore"]
