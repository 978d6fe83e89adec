"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import math
import re

import pytest

from ragkb.ingestion.embedder import EmbedderBase
from ragkb.knowledge_base import KnowledgeBase
from ragkb.retrieval.memory_store import InMemoryVectorStore

FAKE_DIMENSION = 64


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class HashingEmbedder(EmbedderBase):
    """Deterministic bag-of-words embedder.

    Identical texts map to identical unit vectors (similarity 1.0); texts
    sharing no words are orthogonal.  Records every batch it receives.
    """

    def __init__(self, dimension: int = FAKE_DIMENSION) -> None:
        self.dimension = dimension
        self.calls: list[list[str]] = []

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._embed(t) for t in texts]

    def _embed(self, text: str) -> list[float]:
        vec = [0.0] * self.dimension
        for token in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(token.encode()).hexdigest(), 16) % self.dimension
            vec[bucket] += 1.0
        norm = math.sqrt(sum(x * x for x in vec))
        return [x / norm for x in vec] if norm else vec


@pytest.fixture()
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore("test-collection")


@pytest.fixture()
def kb(store: InMemoryVectorStore, embedder: HashingEmbedder) -> KnowledgeBase:
    return KnowledgeBase.create(store, embedder)
