"""Exception hierarchy for the knowledge base.

Every failure surfaced by the ingestion and retrieval layers is one of the
kinds below.  None of them is retried or recovered internally; callers
(the HTTP layer, scripts, tests) decide what to do with them.
"""

from __future__ import annotations


class KnowledgeBaseError(Exception):
    """Base exception for all knowledge-base errors."""


class ConfigurationError(KnowledgeBaseError):
    """A required credential, endpoint or backend setting is missing or invalid.

    Raised before any network activity takes place.
    """


class ProviderError(KnowledgeBaseError):
    """The embedding provider failed.

    Raised when:
    - the provider returns a non-success response
    - the request fails at the transport level (timeout, connection error)
    - the response does not carry one vector per input, or vectors of the
      requested dimension
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StoreError(KnowledgeBaseError):
    """An insert, query or delete against the vector store failed."""


class PartialIngestError(StoreError):
    """Chunk insertion failed after the document row was committed.

    The document identified by :attr:`document_id` exists but has no
    chunks, so it is not searchable.  See
    :meth:`ragkb.documents.DocumentService.find_orphaned_documents`.
    """

    def __init__(self, message: str, document_id: str) -> None:
        super().__init__(message)
        self.document_id = document_id


class ValidationError(KnowledgeBaseError):
    """The caller supplied a missing, blank or unparseable argument."""


class DocumentNotFoundError(KnowledgeBaseError):
    """The document does not exist or is not owned by the caller."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id
