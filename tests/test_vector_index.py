"""
Tests for the in-memory vector index.
"""

from datetime import datetime

import numpy as np
import pytest

from recall.core.errors import DimensionMismatch, ItemNotFound
from recall.vector.embeddings import EmbeddingGenerator
from recall.vector.index import IVectorIndex, InMemoryVectorIndex, item_from_record
from recall.vector.types import VectorRecord


def test_vector_index_interface():
    assert isinstance(InMemoryVectorIndex(EmbeddingGenerator(dimension=8)), IVectorIndex)


def test_store_overwrites_single_record(index):
    index.store("item-1", "react component")
    index.store("item-1", "vue component")

    assert len(index) == 1
    assert index.get("item-1").metadata["content"] == "vue component"


def test_store_snapshot_truncates_content(index):
    text = "react " * 200
    record = index.store("long", text)

    assert len(record.metadata["content"]) == 500
    assert record.metadata["content_length"] == len(text)


def test_store_item_round_trip(index, make_item):
    item = make_item("item-1", "react component with hooks", title="Hooks", language="typescript")
    index.store_item(item)

    restored = index.get_item("item-1")
    assert restored.title == "Hooks"
    assert restored.type == "code"
    assert restored.timestamp == item.timestamp
    assert restored.metadata == {"language": "typescript"}
    assert restored.preview == "react component with hooks"


def test_item_from_record_defaults():
    record = VectorRecord(id="bare", vector=np.zeros(2), metadata={}, stored_at=datetime(2024, 1, 1))
    item = item_from_record(record)

    assert item.type == "text"
    assert item.title == "Untitled"
    assert item.content == ""
    assert item.timestamp == datetime(2024, 1, 1)


def test_find_similar_orders_and_thresholds(index):
    index.store("react", "react component jsx")
    index.store("mixed", "react database")
    index.store("python", "python sql")

    results = index.find_similar("react component jsx", threshold=0.3)

    assert [result.item.id for result in results] == ["react", "mixed"]
    assert results[0].similarity == pytest.approx(1.0)
    assert results[0].similarity >= results[1].similarity


def test_find_similar_limit(index):
    for i in range(5):
        index.store(f"item-{i}", "react component")

    results = index.find_similar("react", threshold=0.1, limit=3)

    # ties keep insertion order
    assert [result.item.id for result in results] == ["item-0", "item-1", "item-2"]


def test_find_similar_on_empty_index(index):
    assert index.find_similar("anything", threshold=-1.0) == []


def test_find_similar_by_id_excludes_self(index):
    index.store("a", "react component")
    index.store("b", "react component jsx")
    index.store("c", "docker deploy")

    results = index.find_similar_by_id("a", threshold=0.5)

    assert [result.item.id for result in results] == ["b"]


def test_find_similar_by_id_unknown_raises(index):
    with pytest.raises(ItemNotFound):
        index.find_similar_by_id("missing")


def test_get_item_unknown_raises(index):
    with pytest.raises(KeyError):
        index.get_item("missing")


def test_add_record_dimension_mismatch(index):
    with pytest.raises(DimensionMismatch):
        index.add_record(VectorRecord(id="bad", vector=np.ones(3), metadata={}))
    assert "bad" not in index


def test_store_batch(index, make_item):
    items = [make_item(f"item-{i}", f"react component {i}") for i in range(12)]
    records = index.store_batch(items)

    assert len(records) == 12
    assert index.list_ids() == [f"item-{i}" for i in range(12)]


def test_delete(index):
    index.store("a", "react")

    assert index.delete("a") is True
    assert index.delete("a") is False
    assert index.get("a") is None


def test_similarity_to(index):
    index.store("a", "react")
    assert index.similarity_to(index.generator.embed("react"), "a") == pytest.approx(1.0)


def test_stats(index):
    empty = index.stats()
    assert empty.total_vectors == 0
    assert empty.oldest_vector is None

    index.store("a", "react")
    index.store("b", "vue")
    stats = index.stats()

    assert stats.total_vectors == 2
    assert stats.cache_size == 2
    assert stats.oldest_vector <= stats.newest_vector
    assert stats.memory_usage == 2 * (index.dimension * 8 + 1024) + 2 * index.dimension * 8


def test_clear_cache_keeps_records(index):
    index.store("a", "react")
    index.clear_cache()

    assert len(index) == 1
    assert index.stats().cache_size == 0


def test_clear(index):
    index.store("a", "react")
    index.clear()

    assert len(index) == 0
    assert index.stats().cache_size == 0
