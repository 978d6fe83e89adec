"""Chroma implementation of the vector-store abstraction.

Documents and chunks live in two collections, ``<name>_documents`` and
``<name>_chunks``.  Chroma has no foreign keys, so the store checks the
parent document before inserting chunks and deletes chunks itself when a
document is deleted.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import chromadb

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

# Chroma requires a vector for every record; document rows are never
# queried by similarity, so they all carry this placeholder.
_DOCUMENT_PLACEHOLDER_VECTOR = [1.0]


def _build_chroma_where(**equals: Any) -> dict[str, Any] | None:
    """Convert keyword equality filters to Chroma ``where`` syntax.

    ``None`` values are skipped.
    """
    clauses = [{key: {"$eq": value}} for key, value in equals.items() if value is not None]
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Re-raise any chromadb failure as :class:`StoreError`."""
    try:
        yield
    except StoreError:
        raise
    except Exception as exc:
        raise StoreError(f"Failed to {action}: {exc}") from exc


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    collection_name:
        Prefix of the two Chroma collections.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client; when given, *host* and *port* are ignored.
    """

    def __init__(
        self,
        collection_name: str = "ragkb",
        *,
        host: str = "localhost",
        port: int = 8000,
        client: Any | None = None,
    ) -> None:
        super().__init__(collection_name)
        self._host = host
        self._port = port
        with _store_errors("connect to Chroma"):
            self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
            self._documents = self._client.get_or_create_collection(f"{collection_name}_documents")
            self._chunks = self._client.get_or_create_collection(
                f"{collection_name}_chunks",
                metadata={"hnsw:space": "cosine"},
            )

    # -- VectorStoreBase overrides --------------------------------------------

    def insert_document(
        self,
        owner_id: str,
        filename: str,
        content: str,
        metadata: Metadata,
    ) -> Document:
        created_at = datetime.now(timezone.utc)
        doc = Document(
            id=new_id(),
            owner_id=owner_id,
            filename=filename,
            content=content,
            metadata=dict(metadata),
            created_at=created_at,
        )
        with _store_errors("insert document"):
            self._documents.add(
                ids=[doc.id],
                embeddings=[_DOCUMENT_PLACEHOLDER_VECTOR],
                documents=[content],
                metadatas=[
                    {
                        "owner_id": owner_id,
                        "filename": filename,
                        # Chroma metadata values must be flat str/int/float/bool
                        "metadata_json": json.dumps(doc.metadata),
                        "created_at": created_at.isoformat(),
                        "created_ts": created_at.timestamp(),
                    }
                ],
            )
        return doc

    def insert_chunks(self, document_id: str, chunks: list[ChunkRecord]) -> None:
        if not chunks:
            return
        with _store_errors("insert chunks"):
            parent = self._documents.get(ids=[document_id], include=["metadatas"])
            if not parent.get("ids"):
                raise StoreError(
                    f"Failed to insert chunks: document {document_id} does not exist"
                )
            parent_meta = parent["metadatas"][0] or {}
            self._chunks.add(
                ids=[new_id() for _ in chunks],
                embeddings=[c.embedding for c in chunks],
                documents=[c.content for c in chunks],
                metadatas=[
                    {
                        "document_id": document_id,
                        "owner_id": parent_meta.get("owner_id", ""),
                        "filename": parent_meta.get("filename", ""),
                        "chunk_index": c.chunk_index,
                    }
                    for c in chunks
                ],
            )

    def match(
        self,
        query_embedding: list[float],
        *,
        top_k: int,
        similarity_threshold: float,
        owner_id: str | None = None,
    ) -> list[ChunkMatch]:
        with _store_errors("search chunks"):
            results = self._chunks.query(
                query_embeddings=[query_embedding],
                n_results=top_k,
                where=_build_chroma_where(owner_id=owner_id),
                include=["documents", "metadatas", "distances"],
            )

        hits: list[ChunkMatch] = []
        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for chunk_id, content, meta, dist in zip(ids, docs, metas, distances):
            # Cosine space: distance = 1 - cosine similarity.
            similarity = 1.0 - dist
            if similarity < similarity_threshold:
                continue
            meta = meta or {}
            hits.append(
                ChunkMatch(
                    chunk_id=chunk_id,
                    document_id=meta.get("document_id", ""),
                    filename=meta.get("filename", ""),
                    chunk_index=int(meta.get("chunk_index", 0)),
                    content=content or "",
                    similarity=similarity,
                )
            )
        return hits

    def list_documents(self, owner_id: str | None = None) -> list[DocumentSummary]:
        with _store_errors("list documents"):
            results = self._documents.get(
                where=_build_chroma_where(owner_id=owner_id),
                include=["metadatas", "documents"],
            )
        docs = [
            self._to_document(doc_id, content, meta)
            for doc_id, content, meta in zip(
                results.get("ids") or [],
                results.get("documents") or [],
                results.get("metadatas") or [],
            )
        ]
        docs.sort(key=lambda d: d.created_at, reverse=True)
        return [d.summary() for d in docs]

    def get_document(self, document_id: str) -> Document | None:
        with _store_errors("get document"):
            results = self._documents.get(ids=[document_id], include=["metadatas", "documents"])
        if not results.get("ids"):
            return None
        return self._to_document(
            results["ids"][0],
            (results.get("documents") or [""])[0],
            (results.get("metadatas") or [{}])[0],
        )

    def delete_document(self, document_id: str) -> None:
        with _store_errors("delete document"):
            # Chunks first so a failure never leaves chunks without a parent.
            self._chunks.delete(where={"document_id": document_id})
            self._documents.delete(ids=[document_id])
        logger.debug("Deleted document %s from collection %s", document_id, self.collection_name)

    def count_chunks(self, document_id: str) -> int:
        with _store_errors("count chunks"):
            results = self._chunks.get(where={"document_id": document_id}, include=[])
        return len(results.get("ids") or [])

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _to_document(doc_id: str, content: str | None, meta: dict[str, Any] | None) -> Document:
        meta = meta or {}
        created_at = meta.get("created_at")
        return Document(
            id=doc_id,
            owner_id=meta.get("owner_id", ""),
            filename=meta.get("filename", ""),
            content=content or "",
            metadata=json.loads(meta.get("metadata_json") or "{}"),
            created_at=(
                datetime.fromisoformat(created_at)
                if created_at
                else datetime.fromtimestamp(meta.get("created_ts", 0.0), tz=timezone.utc)
            ),
        )
