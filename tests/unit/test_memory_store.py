"""Unit tests for the in-memory vector store."""

from __future__ import annotations

import pytest

from ragkb.errors import StoreError
from ragkb.retrieval.memory_store import InMemoryVectorStore, cosine_similarity
from ragkb.retrieval.models import ChunkRecord


def _chunk(index: int, embedding: list[float], content: str | None = None) -> ChunkRecord:
    return ChunkRecord(content=content or f"chunk {index}", embedding=embedding, chunk_index=index)


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore("test-collection")


class TestCosineSimilarity:
    def test_identical(self) -> None:
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0]) == pytest.approx(1.0)

    def test_orthogonal(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_zero_vector(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


class TestInMemoryVectorStore:
    def test_insert_document_assigns_id(self, store: InMemoryVectorStore) -> None:
        doc = store.insert_document("alice", "a.md", "text", {"tags": ["x"], "nested": {"n": 1}})
        assert doc.id
        assert doc.owner_id == "alice"
        assert store.get_document(doc.id).metadata == {"tags": ["x"], "nested": {"n": 1}}

    def test_chunks_require_existing_document(self, store: InMemoryVectorStore) -> None:
        with pytest.raises(StoreError, match="foreign key"):
            store.insert_chunks("missing", [_chunk(0, [1.0, 0.0])])

    def test_batch_is_all_or_nothing(self, store: InMemoryVectorStore) -> None:
        doc = store.insert_document("alice", "a.md", "text", {})
        with pytest.raises(StoreError, match="duplicate chunk_index"):
            store.insert_chunks(doc.id, [_chunk(0, [1.0, 0.0]), _chunk(0, [0.0, 1.0])])
        assert store.count_chunks(doc.id) == 0

    def test_fixed_dimension(self, store: InMemoryVectorStore) -> None:
        doc = store.insert_document("alice", "a.md", "text", {})
        store.insert_chunks(doc.id, [_chunk(0, [1.0, 0.0])])
        other = store.insert_document("alice", "b.md", "text", {})
        with pytest.raises(StoreError, match="expected 2 dimensions"):
            store.insert_chunks(other.id, [_chunk(0, [1.0, 0.0, 0.0])])
        with pytest.raises(StoreError, match="expected 2 dimensions"):
            store.match([1.0], top_k=1, similarity_threshold=0.0)

    def test_match_filters_sorts_and_truncates(self, store: InMemoryVectorStore) -> None:
        doc = store.insert_document("alice", "a.md", "text", {})
        store.insert_chunks(
            doc.id,
            [_chunk(0, [1.0, 0.0]), _chunk(1, [0.6, 0.8]), _chunk(2, [0.0, 1.0])],
        )
        hits = store.match([1.0, 0.0], top_k=5, similarity_threshold=0.5, owner_id="alice")
        assert [h.chunk_index for h in hits] == [0, 1]
        assert hits[0].similarity == pytest.approx(1.0)
        assert hits[1].similarity == pytest.approx(0.6)
        assert hits[0].filename == "a.md"

        assert len(store.match([1.0, 0.0], top_k=1, similarity_threshold=0.0)) == 1

    def test_match_is_owner_scoped(self, store: InMemoryVectorStore) -> None:
        mine = store.insert_document("alice", "a.md", "text", {})
        theirs = store.insert_document("bob", "b.md", "text", {})
        store.insert_chunks(mine.id, [_chunk(0, [1.0, 0.0])])
        store.insert_chunks(theirs.id, [_chunk(0, [1.0, 0.0])])

        hits = store.match([1.0, 0.0], top_k=5, similarity_threshold=0.0, owner_id="alice")
        assert {h.document_id for h in hits} == {mine.id}
        assert len(store.match([1.0, 0.0], top_k=5, similarity_threshold=0.0)) == 2

    def test_list_newest_first(self, store: InMemoryVectorStore) -> None:
        ids = [store.insert_document("alice", f"{i}.md", "x" * i, {}).id for i in range(3)]
        store.insert_document("bob", "other.md", "text", {})

        listed = store.list_documents("alice")
        assert [d.id for d in listed] == list(reversed(ids))
        assert [d.char_count for d in listed] == [2, 1, 0]
        assert len(store.list_documents()) == 4

    def test_delete_cascades(self, store: InMemoryVectorStore) -> None:
        doc = store.insert_document("alice", "a.md", "text", {})
        store.insert_chunks(doc.id, [_chunk(0, [1.0, 0.0]), _chunk(1, [0.0, 1.0])])
        store.delete_document(doc.id)

        assert store.get_document(doc.id) is None
        assert store.count_chunks(doc.id) == 0
        assert store.match([1.0, 0.0], top_k=5, similarity_threshold=0.0) == []
        with pytest.raises(StoreError):
            store.insert_chunks(doc.id, [_chunk(2, [1.0, 0.0])])

    def test_returned_documents_are_copies(self, store: InMemoryVectorStore) -> None:
        doc = store.insert_document("alice", "a.md", "text", {"k": "v"})
        doc.metadata["k"] = "changed"
        assert store.get_document(doc.id).metadata == {"k": "v"}

    def test_health_check(self, store: InMemoryVectorStore) -> None:
        assert store.health_check() is True
