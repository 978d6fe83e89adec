"""Ingestion — chunk, embed, then persist the document and its chunks."""

from __future__ import annotations

import logging

from ragkb.errors import PartialIngestError, ProviderError, StoreError, ValidationError
from ragkb.ingestion.chunker import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, chunk_text
from ragkb.ingestion.embedder import EmbedderBase
from ragkb.retrieval.base import VectorStoreBase
from ragkb.retrieval.models import ChunkRecord, IngestResult, Metadata

logger = logging.getLogger(__name__)


class IngestionCoordinator:
    """Sequence Chunker → Embedder → store for one document.

    The document row is written before any chunk, and the chunks of a
    document are written in a single batch.  There is no transaction
    spanning both writes: if the chunk batch fails, the document row
    stays behind without chunks and :class:`PartialIngestError` is raised
    with its id.

    Parameters
    ----------
    store:
        Destination vector store.
    embedder:
        Embedder called once per ingest with every chunk of the document.
    chunk_size:
        Default maximum chunk size in characters.
    chunk_overlap:
        Overlap budget in characters between consecutive chunks.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbedderBase,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def ingest(
        self,
        owner_id: str,
        filename: str,
        content: str,
        metadata: Metadata | None = None,
        max_chunk_size: int | None = None,
    ) -> IngestResult:
        """Chunk, embed and store *content* as a new document.

        Raises
        ------
        ValidationError
            Blank owner, filename or content, or a non-positive chunk size.
        ProviderError
            Embedding failed; nothing has been written.
        StoreError
            The document row could not be created.
        PartialIngestError
            The document row exists but its chunks could not be written.
        """
        if not owner_id or not owner_id.strip():
            raise ValidationError("owner_id is required")
        if not filename or not filename.strip():
            raise ValidationError("filename is required")
        if not content or not content.strip():
            raise ValidationError("content is required")
        chunk_size = self.chunk_size if max_chunk_size is None else max_chunk_size
        if chunk_size <= 0:
            raise ValidationError(f"chunk_size must be positive, got {chunk_size}")

        chunks = chunk_text(content, chunk_size, self.chunk_overlap)
        logger.info(
            "Ingesting %r for owner=%s: %d chars → %d chunks (chunk_size=%d)",
            filename, owner_id, len(content), len(chunks), chunk_size,
        )

        embeddings = self._embedder.embed_batch(chunks)
        if len(embeddings) != len(chunks):
            raise ProviderError(
                f"Embedder returned {len(embeddings)} vectors for {len(chunks)} chunks"
            )

        doc = self._store.insert_document(owner_id, filename, content, dict(metadata or {}))

        records = [
            ChunkRecord(content=text, embedding=vector, chunk_index=index)
            for index, (text, vector) in enumerate(zip(chunks, embeddings))
        ]
        try:
            self._store.insert_chunks(doc.id, records)
        except StoreError as exc:
            logger.error(
                "Chunk insert failed for document %s; document persists without chunks: %s",
                doc.id, exc,
            )
            raise PartialIngestError(
                f"Document {doc.id} was created but its chunks were not stored: {exc}",
                document_id=doc.id,
            ) from exc

        logger.info("Ingested document %s (%d chunks)", doc.id, len(records))
        return IngestResult(
            document_id=doc.id,
            filename=doc.filename,
            chunk_count=len(records),
            character_count=len(content),
        )
