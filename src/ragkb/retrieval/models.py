"""Domain models for documents, chunks and search results."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, JsonValue, field_validator

#: Open-ended document metadata: string keys, arbitrary JSON values
#: (string, number, boolean, null, nested object or array).
Metadata = dict[str, JsonValue]


def new_id() -> str:
    """Return a fresh opaque identifier (UUID4, canonical form)."""
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(BaseModel):
    """A stored unit of ingested content.

    Attributes
    ----------
    id:
        Identifier generated by the store at creation time.
    owner_id:
        Tenant key every read and delete is scoped by.
    filename:
        Display name; not necessarily unique.
    content:
        The original text, stored verbatim.
    metadata:
        Caller-supplied JSON metadata.
    created_at:
        UTC creation timestamp.
    """

    id: str = Field(default_factory=new_id)
    owner_id: str
    filename: str
    content: str
    metadata: Metadata = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)

    def summary(self) -> DocumentSummary:
        return DocumentSummary(
            id=self.id,
            filename=self.filename,
            metadata=self.metadata,
            created_at=self.created_at,
            char_count=len(self.content),
        )


class DocumentSummary(BaseModel):
    """Listing view of a :class:`Document` (no content)."""

    id: str
    filename: str
    metadata: Metadata = Field(default_factory=dict)
    created_at: datetime
    char_count: int = 0


class ChunkRecord(BaseModel):
    """One chunk as handed to :meth:`VectorStoreBase.insert_chunks`."""

    content: str
    embedding: list[float]
    chunk_index: int = Field(ge=0)

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk content must not be blank")
        return value


class ChunkMatch(BaseModel):
    """A chunk returned by the store's similarity match."""

    chunk_id: str
    document_id: str
    filename: str
    chunk_index: int
    content: str
    similarity: float


class RankedResult(BaseModel):
    """A search hit as presented to callers.

    ``rank`` starts at 1 and follows the store's ordering; ``similarity``
    is rounded to three decimal places.
    """

    rank: int
    document_id: str
    filename: str
    chunk_index: int
    similarity: float
    content: str

    def short_ref(self) -> str:
        """Return a compact ``[filename§chunk]`` reference string."""
        return f"[{self.filename}§{self.chunk_index}]"


class IngestResult(BaseModel):
    """Outcome of a successful ingest."""

    document_id: str
    filename: str
    chunk_count: int
    character_count: int

    def as_response(self) -> dict[str, Any]:
        """Render using the field names of the public ingest response."""
        return {
            "success": True,
            "document_id": self.document_id,
            "filename": self.filename,
            "chunks_created": self.chunk_count,
            "total_characters": self.character_count,
        }
