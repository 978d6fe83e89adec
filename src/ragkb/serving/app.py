"""FastAPI application exposing the knowledge base as a REST API.

The owner of every request is taken from the ``X-Owner-Id`` header;
authenticating that header is the job of whatever sits in front of this
service.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, JsonValue

from ragkb.config import Settings
from ragkb.errors import (
    ConfigurationError,
    DocumentNotFoundError,
    KnowledgeBaseError,
    ProviderError,
    ValidationError,
)
from ragkb.knowledge_base import KnowledgeBase, build_knowledge_base
from ragkb.retrieval.models import DocumentSummary, RankedResult

logger = logging.getLogger(__name__)


# ── Request / Response schemas ────────────────────────────────────────
class IngestRequest(BaseModel):
    """Document to chunk, embed and store."""

    filename: str
    content: str
    chunk_size: int | None = Field(default=None, description="Maximum chunk size in characters")
    metadata: dict[str, JsonValue] | None = None


class IngestResponse(BaseModel):
    success: bool = True
    document_id: str
    filename: str
    chunks_created: int
    total_characters: int


class SearchRequest(BaseModel):
    """Natural-language query."""

    query: str
    top_k: int | None = None
    similarity_threshold: float | None = Field(default=None, description="Minimum similarity 0-1")


class SearchResponse(BaseModel):
    results: list[RankedResult] = []
    total: int = 0


class DocumentListResponse(BaseModel):
    documents: list[DocumentSummary] = []
    total: int = 0


class DeleteResponse(BaseModel):
    success: bool
    message: str


_STATUS_BY_ERROR: list[tuple[type[KnowledgeBaseError], int]] = [
    (ValidationError, 400),
    (DocumentNotFoundError, 404),
    (ProviderError, 502),
    (ConfigurationError, 500),
]


def _status_for(exc: KnowledgeBaseError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def create_app(kb: KnowledgeBase | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI app around *kb* (built from *settings* when omitted)."""
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level)
    kb = kb if kb is not None else build_knowledge_base(settings)

    app = FastAPI(
        title="RAG Knowledge Base API",
        version="0.1.0",
        description="Ingest documents and search them by semantic similarity.",
    )
    app.state.knowledge_base = kb

    @app.exception_handler(KnowledgeBaseError)
    async def _handle_kb_error(request: Request, exc: KnowledgeBaseError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status, content={"error": str(exc), "kind": type(exc).__name__})

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/health")
    def health() -> dict[str, Any]:
        """Liveness check."""
        return {"status": "ok", "store": kb.store.health_check()}

    @app.post("/ingest", response_model=IngestResponse)
    def ingest(request: IngestRequest, x_owner_id: str = Header(...)) -> IngestResponse:
        """Chunk, embed and store a document."""
        result = kb.ingest(
            x_owner_id,
            request.filename,
            request.content,
            metadata=request.metadata,
            max_chunk_size=request.chunk_size,
        )
        return IngestResponse(**result.as_response())

    @app.post("/search", response_model=SearchResponse)
    def search(request: SearchRequest, x_owner_id: str = Header(...)) -> SearchResponse:
        """Return the owner's chunks most similar to the query."""
        results = kb.search(
            x_owner_id,
            request.query,
            top_k=request.top_k,
            similarity_threshold=request.similarity_threshold,
        )
        return SearchResponse(results=results, total=len(results))

    @app.get("/documents", response_model=DocumentListResponse)
    def list_documents(x_owner_id: str = Header(...)) -> DocumentListResponse:
        """List the owner's documents, newest first."""
        docs = kb.list_documents(x_owner_id)
        return DocumentListResponse(documents=docs, total=len(docs))

    @app.delete("/documents/{document_id}", response_model=DeleteResponse)
    def delete_document(document_id: str, x_owner_id: str = Header(...)) -> DeleteResponse:
        """Delete one of the owner's documents and all its chunks."""
        kb.delete_document(x_owner_id, document_id)
        return DeleteResponse(
            success=True,
            message=f"Document {document_id} and all its chunks have been deleted.",
        )

    return app
