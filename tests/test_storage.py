"""Tests for the in-memory vector store."""

from __future__ import annotations

import pytest

from notefinder.errors import DimensionMismatchError, MissingIdError, VectorNotFoundError
from notefinder.index.storage import MemoryVectorStore, VectorEntry


def entry(vector_id: str, vector: list[float], **metadata: object) -> VectorEntry:
    return VectorEntry(vector=vector, metadata={"id": vector_id, **metadata})


@pytest.fixture
def store() -> MemoryVectorStore:
    store = MemoryVectorStore()
    store.add_batch(
        [
            entry("a", [1.0, 0.0], document_path="/a.md"),
            entry("b", [0.0, 1.0], document_path="/b.md"),
            entry("c", [0.7, 0.7], document_path="/a.md"),
        ]
    )
    return store


class TestVectorEntry:
    def test_round_trip_dict(self) -> None:
        """Should serialize to plain JSON types and back."""
        original = entry("x", [1, 2], title="T")
        data = original.to_dict()

        assert data == {"vector": [1.0, 2.0], "metadata": {"id": "x", "title": "T"}}
        assert VectorEntry.from_dict(data) == original
        assert original.id == "x"


class TestMutations:
    """Test add/update/remove semantics."""

    def test_add_requires_id(self) -> None:
        with pytest.raises(MissingIdError):
            MemoryVectorStore().add(VectorEntry(vector=[1.0], metadata={}))

    def test_add_overwrites_same_id(self, store: MemoryVectorStore) -> None:
        store.add(entry("a", [0.5, 0.5]))
        assert store.size() == 3
        assert store.get("a").vector == [0.5, 0.5]

    def test_update(self, store: MemoryVectorStore) -> None:
        """Update replaces the entry and keeps its position."""
        store.update("a", entry("a", [0.0, 1.0], document_path="/a.md"))
        assert store.get("a").vector == [0.0, 1.0]
        assert store.all_ids() == ["a", "b", "c"]

    def test_update_missing(self, store: MemoryVectorStore) -> None:
        with pytest.raises(VectorNotFoundError, match="zzz"):
            store.update("zzz", entry("zzz", [1.0, 0.0]))

    def test_remove(self, store: MemoryVectorStore) -> None:
        store.remove("b")
        assert not store.has("b")
        assert len(store) == 2

    def test_remove_missing(self, store: MemoryVectorStore) -> None:
        with pytest.raises(VectorNotFoundError):
            store.remove("zzz")

    def test_remove_batch_is_not_transactional(self) -> None:
        """Entries removed before a missing id stay removed."""
        store = MemoryVectorStore()
        store.add(entry("A", [1.0]))

        with pytest.raises(VectorNotFoundError):
            store.remove_batch(["A", "B"])

        assert not store.has("A")
        assert store.size() == 0

    def test_clear(self, store: MemoryVectorStore) -> None:
        store.clear()
        assert store.size() == 0
        assert store.all_entries() == []


class TestSearch:
    """Test cosine search."""

    def test_top_k_ordering(self, store: MemoryVectorStore) -> None:
        """Should return the best matches first, capped at top_k."""
        hits = store.search([1.0, 0.0], top_k=2)

        assert [hit.entry.id for hit in hits] == ["a", "c"]
        assert hits[0].score == pytest.approx(1.0)
        assert hits[0].score >= hits[1].score

    def test_min_score(self, store: MemoryVectorStore) -> None:
        hits = store.search([1.0, 0.0], top_k=10, min_score=0.5)
        assert {hit.entry.id for hit in hits} == {"a", "c"}

    def test_filter(self, store: MemoryVectorStore) -> None:
        """Should only score entries accepted by the metadata filter."""
        hits = store.search([1.0, 0.0], top_k=10, filter=lambda meta: meta["document_path"] == "/b.md")
        assert [hit.entry.id for hit in hits] == ["b"]

    def test_ties_keep_insertion_order(self) -> None:
        store = MemoryVectorStore()
        for vector_id in ("first", "second", "third"):
            store.add(entry(vector_id, [1.0, 1.0]))

        hits = store.search([1.0, 1.0], top_k=3)

        assert [hit.entry.id for hit in hits] == ["first", "second", "third"]

    def test_empty_store(self) -> None:
        assert MemoryVectorStore().search([1.0, 0.0], top_k=5) == []

    def test_zero_top_k(self, store: MemoryVectorStore) -> None:
        assert store.search([1.0, 0.0], top_k=0) == []

    def test_dimension_mismatch(self, store: MemoryVectorStore) -> None:
        with pytest.raises(DimensionMismatchError):
            store.search([1.0, 0.0, 0.0], top_k=1)
