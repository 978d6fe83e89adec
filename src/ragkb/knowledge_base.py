"""Composition root — wires settings, store, embedder and coordinators.

Usage::

    from ragkb.config import Settings
    from ragkb.knowledge_base import build_knowledge_base

    kb = build_knowledge_base(Settings())
    kb.ingest("alice", "notes.md", text)
    kb.search("alice", "what did I write about overlap?")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ragkb.config import Settings
from ragkb.documents import DocumentService
from ragkb.errors import ConfigurationError
from ragkb.ingestion.coordinator import IngestionCoordinator
from ragkb.ingestion.embedder import EmbedderBase, VoyageEmbedder
from ragkb.retrieval.base import VectorStoreBase
from ragkb.retrieval.memory_store import InMemoryVectorStore
from ragkb.retrieval.models import DocumentSummary, IngestResult, Metadata, RankedResult
from ragkb.retrieval.search import SearchCoordinator

logger = logging.getLogger(__name__)


@dataclass
class KnowledgeBase:
    """Facade over the ingestion, search and document services.

    All handles are explicit; two knowledge bases built from different
    stores share nothing.
    """

    store: VectorStoreBase
    embedder: EmbedderBase
    ingestion: IngestionCoordinator
    searcher: SearchCoordinator
    documents: DocumentService

    @classmethod
    def create(
        cls,
        store: VectorStoreBase,
        embedder: EmbedderBase,
        *,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        default_top_k: int = 5,
        default_similarity_threshold: float = 0.3,
    ) -> KnowledgeBase:
        return cls(
            store=store,
            embedder=embedder,
            ingestion=IngestionCoordinator(
                store, embedder, chunk_size=chunk_size, chunk_overlap=chunk_overlap
            ),
            searcher=SearchCoordinator(
                store,
                embedder,
                default_top_k=default_top_k,
                default_similarity_threshold=default_similarity_threshold,
            ),
            documents=DocumentService(store),
        )

    def ingest(
        self,
        owner_id: str,
        filename: str,
        content: str,
        metadata: Metadata | None = None,
        max_chunk_size: int | None = None,
    ) -> IngestResult:
        return self.ingestion.ingest(owner_id, filename, content, metadata, max_chunk_size)

    def search(
        self,
        owner_id: str,
        query: str,
        top_k: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[RankedResult]:
        return self.searcher.search(owner_id, query, top_k, similarity_threshold)

    def list_documents(self, owner_id: str) -> list[DocumentSummary]:
        return self.documents.list_documents(owner_id)

    def delete_document(self, owner_id: str, document_id: str) -> None:
        self.documents.delete_document(owner_id, document_id)


def build_store(settings: Settings) -> VectorStoreBase:
    """Instantiate the backend named by ``settings.store_backend``."""
    backend = settings.store_backend.lower()
    if backend == "memory":
        return InMemoryVectorStore(settings.chroma_collection, dimension=settings.embedding_dimension)
    if backend == "chroma":
        # Deferred so the memory backend works without chromadb installed.
        from ragkb.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore(
            settings.chroma_collection,
            host=settings.chroma_host,
            port=settings.chroma_port,
        )
    raise ConfigurationError(f"Unsupported store_backend={settings.store_backend!r}")


def build_knowledge_base(
    settings: Settings,
    *,
    store: VectorStoreBase | None = None,
    embedder: EmbedderBase | None = None,
) -> KnowledgeBase:
    """Build a :class:`KnowledgeBase` from *settings*.

    *store* and *embedder* override the configured backends (tests,
    notebooks).
    """
    store = store if store is not None else build_store(settings)
    embedder = embedder if embedder is not None else VoyageEmbedder.from_settings(settings)
    logger.info(
        "Knowledge base ready: store=%s embedder=%s",
        type(store).__name__, type(embedder).__name__,
    )
    return KnowledgeBase.create(
        store,
        embedder,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        default_top_k=settings.default_top_k,
        default_similarity_threshold=settings.default_similarity_threshold,
    )
