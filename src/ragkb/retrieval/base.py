"""Abstract base class for vector-store backends.

The store owns durable storage of documents and their chunks.  The
coordinators depend only on the contract below; adding a backend
(pgvector, Qdrant, …) only requires subclassing :class:`VectorStoreBase`.

Backends **must** guarantee:

* ``insert_chunks`` is all-or-nothing and rejects chunks whose document
  does not exist (foreign key).
* ``delete_document`` removes every chunk of the document (cascade).
* ``match`` returns only hits with ``similarity >= similarity_threshold``,
  scoped to ``owner_id`` when given, ordered by descending similarity and
  truncated to ``top_k``.
* all embeddings share one dimension.

Failures are raised as :class:`ragkb.errors.StoreError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ragkb.retrieval.models import ChunkMatch, ChunkRecord, Document, DocumentSummary, Metadata


class VectorStoreBase(ABC):
    """Backend-agnostic document / chunk store.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def insert_document(
        self,
        owner_id: str,
        filename: str,
        content: str,
        metadata: Metadata,
    ) -> Document:
        """Create a document row with a freshly generated id and return it."""
        ...

    @abstractmethod
    def insert_chunks(self, document_id: str, chunks: list[ChunkRecord]) -> None:
        """Persist *chunks* for *document_id* in one all-or-nothing batch."""
        ...

    @abstractmethod
    def match(
        self,
        query_embedding: list[float],
        *,
        top_k: int,
        similarity_threshold: float,
        owner_id: str | None = None,
    ) -> list[ChunkMatch]:
        """Return up to *top_k* chunks most similar to *query_embedding*.

        Parameters
        ----------
        query_embedding:
            Dense vector for the query.
        top_k:
            Maximum number of hits.
        similarity_threshold:
            Minimum similarity; hits below it are never returned.
        owner_id:
            When given, only chunks of documents owned by this tenant.
        """
        ...

    @abstractmethod
    def list_documents(self, owner_id: str | None = None) -> list[DocumentSummary]:
        """Return document summaries, newest first."""
        ...

    @abstractmethod
    def get_document(self, document_id: str) -> Document | None:
        """Return the document, or ``None`` when it does not exist."""
        ...

    @abstractmethod
    def delete_document(self, document_id: str) -> None:
        """Delete the document and, by cascade, all of its chunks."""
        ...

    @abstractmethod
    def count_chunks(self, document_id: str) -> int:
        """Return how many chunks reference *document_id*."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
