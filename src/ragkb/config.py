"""Shared configuration loaded from environment / ``.env`` file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file.

    Construct once at the composition root (see
    :func:`ragkb.knowledge_base.build_knowledge_base`) and pass the
    resulting handles down; nothing in the package reads settings lazily.
    """

    # Embedding provider
    voyage_api_key: str = Field(default="", description="Voyage AI API key (required for embedding)")
    voyage_api_url: str = "https://api.voyageai.com/v1/embeddings"
    voyage_model: str = "voyage-4-lite"
    embedding_dimension: int = Field(default=512, gt=0, description="Requested output dimension")
    embedding_timeout: float | None = Field(
        default=None,
        description="Per-request timeout in seconds. None leaves the HTTP client's default in place.",
    )

    # Chunking
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)

    # Search
    default_top_k: int = Field(default=5, gt=0)
    default_similarity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)

    # Vector store
    store_backend: str = Field(default="memory", description="Either 'memory' or 'chroma'")
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "ragkb"

    # Logging
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
