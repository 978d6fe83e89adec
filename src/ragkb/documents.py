"""Owner-scoped document management: listing, deletion, reconciliation."""

from __future__ import annotations

import logging
from uuid import UUID

from ragkb.errors import DocumentNotFoundError, ValidationError
from ragkb.retrieval.base import VectorStoreBase
from ragkb.retrieval.models import Document, DocumentSummary

logger = logging.getLogger(__name__)


def parse_document_id(document_id: str) -> str:
    """Return *document_id* in canonical UUID form or raise ``ValidationError``."""
    try:
        return str(UUID(str(document_id)))
    except ValueError as exc:
        raise ValidationError(f"Invalid document_id: {document_id!r}") from exc


class DocumentService:
    """Tenant-isolated access to stored documents.

    Every operation takes the caller's ``owner_id`` explicitly; a document
    owned by someone else behaves exactly like a missing one.
    """

    def __init__(self, store: VectorStoreBase) -> None:
        self._store = store

    def list_documents(self, owner_id: str) -> list[DocumentSummary]:
        """Return *owner_id*'s documents, newest first."""
        if not owner_id or not owner_id.strip():
            raise ValidationError("owner_id is required")
        return self._store.list_documents(owner_id)

    def get_document(self, owner_id: str, document_id: str) -> Document:
        if not owner_id or not owner_id.strip():
            raise ValidationError("owner_id is required")
        document_id = parse_document_id(document_id)
        doc = self._store.get_document(document_id)
        if doc is None or doc.owner_id != owner_id:
            raise DocumentNotFoundError(document_id)
        return doc

    def delete_document(self, owner_id: str, document_id: str) -> None:
        """Delete one of *owner_id*'s documents.

        Ownership is verified first.  Chunks are removed by the store's
        cascade; they are never deleted individually here.
        """
        doc = self.get_document(owner_id, document_id)
        self._store.delete_document(doc.id)
        logger.info("Deleted document %s (%r) for owner=%s", doc.id, doc.filename, owner_id)

    def find_orphaned_documents(self, owner_id: str) -> list[DocumentSummary]:
        """Return *owner_id*'s documents that have no chunks.

        These are left behind when chunk insertion fails after the
        document row was created; they can never appear in search results.
        """
        orphans = [d for d in self.list_documents(owner_id) if self._store.count_chunks(d.id) == 0]
        if orphans:
            logger.warning("Found %d orphaned documents for owner=%s", len(orphans), owner_id)
        return orphans
