"""Batch embedding against the Voyage AI HTTP API."""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any

import requests
from langchain_core.embeddings import Embeddings

from ragkb.config import Settings
from ragkb.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)


class EmbedderBase(Embeddings):
    """Order-preserving text → vector conversion.

    Subclasses implement :meth:`embed_batch`; the LangChain
    ``Embeddings`` methods delegate to it so an embedder can be handed to
    LangChain components unchanged.
    """

    #: Length of every vector this embedder returns.
    dimension: int

    @abstractmethod
    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per entry of *texts*, in the same order.

        Implementations issue a single request per call; there is no
        partial success.
        """
        ...

    def embed_query(self, text: str) -> list[float]:
        """Embed a single query string."""
        return self.embed_batch([text])[0]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return self.embed_batch(texts)


class VoyageEmbedder(EmbedderBase):
    """Voyage AI embedding client.

    Parameters
    ----------
    api_key:
        Voyage API key.  An empty key is accepted at construction time and
        rejected with :class:`ConfigurationError` on first use, before any
        request is sent.
    model:
        Voyage model identifier.
    dimension:
        Requested ``output_dimension``; every returned vector is checked
        against it.
    api_url:
        Embeddings endpoint.
    timeout:
        Request timeout in seconds, or ``None`` for the ``requests``
        default.
    session:
        Optional ``requests.Session`` (connection pooling, tests).
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "voyage-4-lite",
        dimension: int = 512,
        api_url: str = "https://api.voyageai.com/v1/embeddings",
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.dimension = dimension
        self.api_url = api_url
        self._timeout = timeout
        self._session = session

    @classmethod
    def from_settings(cls, settings: Settings) -> VoyageEmbedder:
        return cls(
            settings.voyage_api_key,
            model=settings.voyage_model,
            dimension=settings.embedding_dimension,
            api_url=settings.voyage_api_url,
            timeout=settings.embedding_timeout,
        )

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not self._api_key:
            raise ConfigurationError("VOYAGE_API_KEY environment variable is required")
        if not self.api_url:
            raise ConfigurationError("VOYAGE_API_URL must not be empty")
        if not texts:
            return []

        logger.info("Embedding %d texts with model=%s (dim=%d)", len(texts), self.model, self.dimension)
        payload = {
            "input": list(texts),
            "model": self.model,
            "output_dimension": self.dimension,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        post = self._session.post if self._session is not None else requests.post
        try:
            resp = post(self.api_url, json=payload, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning("Embedding request failed: %s", exc)
            raise ProviderError(f"Voyage AI request failed: {exc}") from exc

        if not resp.ok:
            body = resp.text
            logger.warning("Voyage AI returned %d", resp.status_code)
            raise ProviderError(
                f"Voyage AI API error ({resp.status_code}): {body}",
                status_code=resp.status_code,
                body=body,
            )

        return self._parse_vectors(resp, expected=len(texts))

    # -- internals ------------------------------------------------------------

    def _parse_vectors(self, resp: requests.Response, *, expected: int) -> list[list[float]]:
        try:
            data: list[dict[str, Any]] = resp.json()["data"]
            # Voyage tags each item with its input position; honour it when present.
            if all("index" in item for item in data):
                data = sorted(data, key=lambda item: item["index"])
            vectors = [[float(x) for x in item["embedding"]] for item in data]
        except (ValueError, KeyError, TypeError) as exc:
            raise ProviderError(
                f"Malformed Voyage AI response: {exc!r}",
                status_code=resp.status_code,
                body=resp.text,
            ) from exc

        if len(vectors) != expected:
            raise ProviderError(
                f"Voyage AI returned {len(vectors)} embeddings for {expected} inputs",
                status_code=resp.status_code,
            )
        for vec in vectors:
            if len(vec) != self.dimension:
                raise ProviderError(
                    f"Voyage AI returned a {len(vec)}-dimensional embedding, expected {self.dimension}",
                    status_code=resp.status_code,
                )
        return vectors
