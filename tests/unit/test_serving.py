"""Unit tests for the serving layer."""

from __future__ import annotations

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from ragkb.config import Settings
from ragkb.errors import ProviderError
from ragkb.knowledge_base import KnowledgeBase
from ragkb.serving.app import create_app

ALICE = {"X-Owner-Id": "alice"}


@pytest.fixture()
def client(kb: KnowledgeBase) -> TestClient:
    return TestClient(create_app(kb, settings=Settings(_env_file=None)))


def _ingest(client: TestClient, filename: str = "notes.md", content: str = "Lighthouses guide ships.") -> dict:
    response = client.post("/ingest", json={"filename": filename, "content": content}, headers=ALICE)
    assert response.status_code == 200, response.text
    return response.json()


def test_health_endpoint(client: TestClient) -> None:
    """GET /health should return 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "store": True}


def test_ingest(client: TestClient) -> None:
    body = _ingest(client, content="One paragraph.\n\nAnother paragraph.")
    assert body["success"] is True
    assert body["filename"] == "notes.md"
    assert body["chunks_created"] == 1
    assert body["total_characters"] == len("One paragraph.\n\nAnother paragraph.")


def test_ingest_with_metadata_and_chunk_size(client: TestClient) -> None:
    response = client.post(
        "/ingest",
        json={
            "filename": "meta.md",
            "content": "First part here.\n\nSecond part here.",
            "chunk_size": 20,
            "metadata": {"tags": ["a", "b"], "source": {"kind": "upload", "pages": 2}},
        },
        headers=ALICE,
    )
    assert response.status_code == 200
    assert response.json()["chunks_created"] >= 2
    listed = client.get("/documents", headers=ALICE).json()
    assert listed["documents"][0]["metadata"]["source"] == {"kind": "upload", "pages": 2}


def test_ingest_requires_owner_header(client: TestClient) -> None:
    response = client.post("/ingest", json={"filename": "a.md", "content": "text"})
    assert response.status_code == 422


def test_ingest_blank_content_is_400(client: TestClient) -> None:
    response = client.post("/ingest", json={"filename": "a.md", "content": "   "}, headers=ALICE)
    assert response.status_code == 400
    assert response.json()["kind"] == "ValidationError"


def test_search(client: TestClient) -> None:
    _ingest(client)
    response = client.post(
        "/search",
        json={"query": "Lighthouses guide ships.", "similarity_threshold": 0},
        headers=ALICE,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["results"][0]["rank"] == 1
    assert body["results"][0]["filename"] == "notes.md"
    assert body["results"][0]["similarity"] == pytest.approx(1.0)


def test_search_other_owner_sees_nothing(client: TestClient) -> None:
    _ingest(client)
    response = client.post(
        "/search",
        json={"query": "Lighthouses guide ships.", "similarity_threshold": 0},
        headers={"X-Owner-Id": "bob"},
    )
    assert response.json() == {"results": [], "total": 0}


def test_list_and_delete(client: TestClient) -> None:
    first = _ingest(client, "a.md")
    second = _ingest(client, "b.md")

    listed = client.get("/documents", headers=ALICE).json()
    assert listed["total"] == 2
    assert [d["id"] for d in listed["documents"]] == [second["document_id"], first["document_id"]]

    response = client.delete(f"/documents/{first['document_id']}", headers=ALICE)
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get("/documents", headers=ALICE).json()["total"] == 1


def test_delete_not_owned_is_404(client: TestClient) -> None:
    doc = _ingest(client)
    response = client.delete(f"/documents/{doc['document_id']}", headers={"X-Owner-Id": "bob"})
    assert response.status_code == 404
    assert response.json()["kind"] == "DocumentNotFoundError"


def test_delete_invalid_id_is_400(client: TestClient) -> None:
    response = client.delete("/documents/not-a-uuid", headers=ALICE)
    assert response.status_code == 400


def test_delete_missing_is_404(client: TestClient) -> None:
    response = client.delete(f"/documents/{uuid4()}", headers=ALICE)
    assert response.status_code == 404


def test_provider_error_is_502(kb: KnowledgeBase) -> None:
    failing = MagicMock()
    failing.embed_batch.side_effect = ProviderError("Voyage AI API error (503): unavailable", status_code=503)
    broken = KnowledgeBase.create(kb.store, failing)
    client = TestClient(create_app(broken, settings=Settings(_env_file=None)))

    response = client.post("/ingest", json={"filename": "a.md", "content": "text"}, headers=ALICE)
    assert response.status_code == 502
    assert "(503): unavailable" in response.json()["error"]
