"""
Retrieval — vector-store contract, backends, and semantic search.

Public surface
--------------
- :class:`SearchCoordinator` — embed a query and return ranked chunks.
- :class:`VectorStoreBase` — abstract backend (subclass for pgvector, etc.).
- :class:`InMemoryVectorStore` — in-process backend enforcing the full contract.
- :class:`ChromaVectorStore` — Chroma backend (imported lazily).
- :class:`Document`, :class:`DocumentSummary`, :class:`ChunkRecord`,
  :class:`ChunkMatch`, :class:`RankedResult`, :class:`IngestResult` — data models.
"""

from ragkb.retrieval.base import VectorStoreBase
from ragkb.retrieval.memory_store import InMemoryVectorStore
from ragkb.retrieval.models import (
    ChunkMatch,
    ChunkRecord,
    Document,
    DocumentSummary,
    IngestResult,
    RankedResult,
)
from ragkb.retrieval.search import SearchCoordinator

__all__ = [
    "ChromaVectorStore",
    "ChunkMatch",
    "ChunkRecord",
    "Document",
    "DocumentSummary",
    "InMemoryVectorStore",
    "IngestResult",
    "RankedResult",
    "SearchCoordinator",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from ragkb.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
