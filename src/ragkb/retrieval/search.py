"""Semantic search — query embedding, store match, ranked results.

This module is the **primary public interface** for retrieval.  It does
not depend on LangChain retriever abstractions so that non-agent callers
(the HTTP layer, scripts, tests) can use it directly.

Usage::

    from ragkb.retrieval.search import SearchCoordinator

    searcher = SearchCoordinator(store, embedder)
    for r in searcher.search("alice", "How does chunk overlap work?", top_k=3):
        print(r.rank, r.short_ref(), r.similarity)
"""

from __future__ import annotations

import logging
from typing import Any

from ragkb.errors import ValidationError
from ragkb.ingestion.embedder import EmbedderBase
from ragkb.retrieval.base import VectorStoreBase
from ragkb.retrieval.models import ChunkMatch, RankedResult

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
DEFAULT_SIMILARITY_THRESHOLD = 0.3


class SearchCoordinator:
    """Embed a query and rank the store's nearest chunks.

    The store owns filtering and ordering; this class only numbers the
    hits it returns and rounds their similarity for presentation.

    Parameters
    ----------
    store:
        A concrete vector-store backend.
    embedder:
        Embedder used for the query text; must be the one used at ingest.
    default_top_k:
        ``top_k`` used when the caller passes ``None``.
    default_similarity_threshold:
        Threshold used when the caller passes ``None``.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbedderBase,
        *,
        default_top_k: int = DEFAULT_TOP_K,
        default_similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self.default_top_k = default_top_k
        self.default_similarity_threshold = default_similarity_threshold

    # -- public API -----------------------------------------------------------

    def search(
        self,
        owner_id: str,
        query: str,
        top_k: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[RankedResult]:
        """Run a semantic search over *owner_id*'s documents.

        Parameters
        ----------
        owner_id:
            Tenant whose chunks are searched.
        query:
            Natural-language query string.
        top_k:
            Maximum number of results (defaults to ``self.default_top_k``).
        similarity_threshold:
            Minimum similarity in ``[0, 1]``.  ``0`` is honoured, only
            ``None`` falls back to the default.

        Returns
        -------
        list[RankedResult]
            Results ranked ``1..n`` in the store's order; empty when
            nothing clears the threshold.
        """
        if not owner_id or not owner_id.strip():
            raise ValidationError("owner_id is required")
        if not query or not query.strip():
            raise ValidationError("query is required")
        top_k = self.default_top_k if top_k is None else top_k
        if top_k < 1:
            raise ValidationError(f"top_k must be at least 1, got {top_k}")
        if similarity_threshold is None:
            similarity_threshold = self.default_similarity_threshold
        if not 0.0 <= similarity_threshold <= 1.0:
            raise ValidationError(
                f"similarity_threshold must be between 0 and 1, got {similarity_threshold}"
            )

        query_embedding = self._embedder.embed_query(query)
        matches = self._store.match(
            query_embedding,
            top_k=top_k,
            similarity_threshold=similarity_threshold,
            owner_id=owner_id,
        )
        logger.info("Search for owner=%s returned %d matches", owner_id, len(matches))
        results = self._to_results(matches)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Ranked: %s", ", ".join(f"{r.short_ref()}={r.similarity}" for r in results)
            )
        return results

    # -- LangChain compat -----------------------------------------------------

    def as_langchain_retriever(
        self,
        owner_id: str,
        k: int = DEFAULT_TOP_K,
        similarity_threshold: float | None = None,
    ) -> Any:
        """Return a LangChain-compatible retriever bound to *owner_id*.

        LangChain is imported only here so that the rest of the retrieval
        package has no retriever-framework dependency.
        """
        from langchain_core.documents import Document
        from langchain_core.retrievers import BaseRetriever

        outer = self

        class _LCRetriever(BaseRetriever):
            """Adapter that satisfies LangChain's retriever protocol."""

            def _get_relevant_documents(self_inner, query: str, **kwargs: Any) -> list[Document]:  # type: ignore[override]  # noqa: N805
                results = outer.search(owner_id, query, top_k=k, similarity_threshold=similarity_threshold)
                return [
                    Document(
                        page_content=r.content,
                        metadata={
                            "rank": r.rank,
                            "document_id": r.document_id,
                            "source": r.filename,
                            "chunk_index": r.chunk_index,
                            "similarity": r.similarity,
                        },
                    )
                    for r in results
                ]

        return _LCRetriever()

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _to_results(matches: list[ChunkMatch]) -> list[RankedResult]:
        return [
            RankedResult(
                rank=rank,
                document_id=m.document_id,
                filename=m.filename,
                chunk_index=m.chunk_index,
                similarity=round(m.similarity, 3),
                content=m.content,
            )
            for rank, m in enumerate(matches, start=1)
        ]
