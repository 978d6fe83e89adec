"""In-process implementation of the vector-store abstraction.

Enforces the same integrity rules a relational store would (foreign key
from chunk to document, unique ``(document_id, chunk_index)``, cascade on
delete, one embedding dimension) so that development and tests exercise
the real contract.  Similarity is cosine, computed by brute force.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass

from ragkb.errors import StoreError
from ragkb.retrieval.base import VectorStoreBase
from ragkb.retrieval.models import (
    ChunkMatch,
    ChunkRecord,
    Document,
    DocumentSummary,
    Metadata,
    new_id,
)

logger = logging.getLogger(__name__)


@dataclass
class _StoredChunk:
    id: str
    document_id: str
    chunk_index: int
    content: str
    embedding: list[float]
    norm: float


def cosine_similarity(a: list[float], b: list[float], *, norm_b: float | None = None) -> float:
    """Cosine similarity of *a* and *b*; ``0.0`` when either is the zero vector."""
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    if norm_b is None:
        norm_b = math.sqrt(math.fsum(x * x for x in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return math.fsum(x * y for x, y in zip(a, b)) / (norm_a * norm_b)


class InMemoryVectorStore(VectorStoreBase):
    """Dictionary-backed store guarded by a single lock.

    Parameters
    ----------
    collection_name:
        Informational only.
    dimension:
        Fixed embedding dimension.  When ``None`` it is taken from the
        first chunk batch ever inserted.
    """

    def __init__(self, collection_name: str = "ragkb", *, dimension: int | None = None) -> None:
        super().__init__(collection_name)
        self.dimension = dimension
        self._lock = threading.Lock()
        self._documents: dict[str, Document] = {}
        self._sequence: dict[str, int] = {}
        self._chunks: dict[str, list[_StoredChunk]] = {}
        self._next_seq = 0

    # -- VectorStoreBase overrides --------------------------------------------

    def insert_document(
        self,
        owner_id: str,
        filename: str,
        content: str,
        metadata: Metadata,
    ) -> Document:
        doc = Document(owner_id=owner_id, filename=filename, content=content, metadata=dict(metadata))
        with self._lock:
            self._documents[doc.id] = doc
            self._sequence[doc.id] = self._next_seq
            self._next_seq += 1
            self._chunks[doc.id] = []
        return doc.model_copy(deep=True)

    def insert_chunks(self, document_id: str, chunks: list[ChunkRecord]) -> None:
        with self._lock:
            if document_id not in self._documents:
                raise StoreError(
                    f"Failed to insert chunks: document {document_id} does not exist "
                    "(violates foreign key constraint)"
                )

            # Validate the whole batch before writing anything.
            dimension = self.dimension
            taken = {c.chunk_index for c in self._chunks[document_id]}
            for chunk in chunks:
                if dimension is None:
                    dimension = len(chunk.embedding)
                if len(chunk.embedding) != dimension:
                    raise StoreError(
                        f"Failed to insert chunks: expected {dimension} dimensions, "
                        f"not {len(chunk.embedding)}"
                    )
                if chunk.chunk_index in taken:
                    raise StoreError(
                        f"Failed to insert chunks: duplicate chunk_index {chunk.chunk_index} "
                        f"for document {document_id}"
                    )
                taken.add(chunk.chunk_index)

            self.dimension = dimension
            self._chunks[document_id].extend(
                _StoredChunk(
                    id=new_id(),
                    document_id=document_id,
                    chunk_index=c.chunk_index,
                    content=c.content,
                    embedding=list(c.embedding),
                    norm=math.sqrt(math.fsum(x * x for x in c.embedding)),
                )
                for c in chunks
            )

    def match(
        self,
        query_embedding: list[float],
        *,
        top_k: int,
        similarity_threshold: float,
        owner_id: str | None = None,
    ) -> list[ChunkMatch]:
        with self._lock:
            if self.dimension is not None and len(query_embedding) != self.dimension:
                raise StoreError(
                    f"Search failed: expected {self.dimension} dimensions, not {len(query_embedding)}"
                )
            hits: list[ChunkMatch] = []
            for doc_id, stored in self._chunks.items():
                doc = self._documents[doc_id]
                if owner_id is not None and doc.owner_id != owner_id:
                    continue
                for chunk in stored:
                    similarity = cosine_similarity(query_embedding, chunk.embedding, norm_b=chunk.norm)
                    if similarity < similarity_threshold:
                        continue
                    hits.append(
                        ChunkMatch(
                            chunk_id=chunk.id,
                            document_id=doc_id,
                            filename=doc.filename,
                            chunk_index=chunk.chunk_index,
                            content=chunk.content,
                            similarity=similarity,
                        )
                    )
        hits.sort(key=lambda h: h.similarity, reverse=True)
        return hits[:top_k]

    def list_documents(self, owner_id: str | None = None) -> list[DocumentSummary]:
        with self._lock:
            docs = [d for d in self._documents.values() if owner_id is None or d.owner_id == owner_id]
            docs.sort(key=lambda d: (d.created_at, self._sequence[d.id]), reverse=True)
            return [d.summary() for d in docs]

    def get_document(self, document_id: str) -> Document | None:
        with self._lock:
            doc = self._documents.get(document_id)
            return doc.model_copy(deep=True) if doc is not None else None

    def delete_document(self, document_id: str) -> None:
        with self._lock:
            self._documents.pop(document_id, None)
            self._sequence.pop(document_id, None)
            removed = self._chunks.pop(document_id, [])
        logger.debug("Deleted document %s (%d chunks cascaded)", document_id, len(removed))

    def count_chunks(self, document_id: str) -> int:
        with self._lock:
            return len(self._chunks.get(document_id, []))

    def health_check(self) -> bool:
        return True
