"""
In-memory vector index: one VectorRecord per item id, linear-scan cosine
similarity search and k-means clustering over every stored vector.
"""

from abc import ABC, abstractmethod
from datetime import datetime
import threading
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from recall.core.config import SNAPSHOT_CONTENT_CHARS, STORE_BATCH_SIZE
from recall.core.errors import DimensionMismatch, ItemNotFound
from recall.core.items import Item, ItemType
from recall.util.logging import logger

from .clustering import kmeans
from .embeddings import EmbeddingGenerator
from .similarity import as_vector, cosine_similarity
from .types import Cluster, IndexStats, SimilarityResult, VectorRecord

DEFAULT_SIMILARITY_THRESHOLD = 0.7
DEFAULT_LIMIT = 10

# Keys the index writes into every metadata snapshot
SNAPSHOT_KEYS = frozenset({"type", "title", "content", "content_length", "timestamp", "preview"})


class IVectorIndex(ABC):
    """Abstract interface for vector index operations."""

    @abstractmethod
    def store(self, item_id: str, text: str, metadata: Optional[Dict[str, Any]] = None) -> VectorRecord:
        """Embed text and store or overwrite the record for item_id."""
        pass

    @abstractmethod
    def find_similar(self, query_text: str, threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
                     limit: int = DEFAULT_LIMIT) -> List[SimilarityResult]:
        """Search for stored vectors similar to the query text."""
        pass

    @abstractmethod
    def find_similar_by_id(self, item_id: str, threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
                           limit: int = DEFAULT_LIMIT) -> List[SimilarityResult]:
        """Search for stored vectors similar to a stored one, excluding itself."""
        pass

    @abstractmethod
    def delete(self, item_id: str) -> bool:
        """Delete a vector record by ID."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all records and cached embeddings."""
        pass


class InMemoryVectorIndex(IVectorIndex):
    """Dictionary-backed vector index.

    A single coarse lock guards the record map. Records are replaced as whole
    values, so concurrent writers to the same id resolve as last write wins.
    """

    def __init__(self, generator: Optional[EmbeddingGenerator] = None):
        self.generator = generator or EmbeddingGenerator()
        self._records: Dict[str, VectorRecord] = {}
        self._lock = threading.RLock()

    @property
    def dimension(self) -> int:
        return self.generator.dimension

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._records

    # Writes

    def store(self, item_id: str, text: str, metadata: Optional[Dict[str, Any]] = None) -> VectorRecord:
        vector = self.generator.embed(text)
        snapshot = dict(metadata or {})
        snapshot["content"] = text[:SNAPSHOT_CONTENT_CHARS]
        snapshot["content_length"] = len(text)

        record = VectorRecord(id=item_id, vector=vector, metadata=snapshot)
        self.add_record(record)
        return record

    def update(self, item_id: str, text: str, metadata: Optional[Dict[str, Any]] = None) -> VectorRecord:
        return self.store(item_id, text, metadata)

    def add_record(self, record: VectorRecord) -> None:
        """Store a record with a precomputed vector."""
        vector = as_vector(record.vector)
        if vector.shape[0] != self.dimension:
            raise DimensionMismatch(self.dimension, vector.shape[0], f"record {record.id}")
        record.vector = vector

        with self._lock:
            self._records[record.id] = record
        logger.log_vector_operation("store", record.id, {"dimension": vector.shape[0]})

    def store_item(self, item: Item) -> VectorRecord:
        metadata = dict(item.metadata)
        metadata.update({
            "type": item.type,
            "title": item.title,
            "timestamp": item.timestamp,
        })
        if item.preview:
            metadata["preview"] = item.preview
        return self.store(item.id, item.content, metadata)

    def store_batch(self, items: Iterable[Item]) -> List[VectorRecord]:
        """Store items in groups of STORE_BATCH_SIZE, finishing each group before the next."""
        items = list(items)
        records = []
        for start in range(0, len(items), STORE_BATCH_SIZE):
            batch = items[start:start + STORE_BATCH_SIZE]
            records.extend(self.store_item(item) for item in batch)
        logger.log_operation("vector.store_batch", "success", {"count": len(records)})
        return records

    def delete(self, item_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(item_id, None) is not None
        if removed:
            logger.log_vector_operation("delete", item_id)
        return removed

    def clear_cache(self) -> None:
        self.generator.clear_cache()

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
        self.generator.clear_cache()

    # Reads

    def get(self, item_id: str) -> Optional[VectorRecord]:
        with self._lock:
            return self._records.get(item_id)

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._records.keys())

    def get_item(self, item_id: str) -> Item:
        """Reconstruct an item from its stored snapshot."""
        record = self.get(item_id)
        if record is None:
            raise ItemNotFound(item_id)
        return item_from_record(record)

    def find_similar(self, query_text: str, threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
                     limit: int = DEFAULT_LIMIT) -> List[SimilarityResult]:
        query_vector = self.generator.embed(query_text)
        return self._scan(query_vector, threshold, limit)

    def find_similar_by_id(self, item_id: str, threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
                           limit: int = DEFAULT_LIMIT) -> List[SimilarityResult]:
        record = self.get(item_id)
        if record is None:
            raise ItemNotFound(item_id)
        return self._scan(record.vector, threshold, limit, exclude=item_id)

    def similarity_to(self, query_vector, item_id: str) -> float:
        """Cosine similarity between a vector and one stored record."""
        record = self.get(item_id)
        if record is None:
            raise ItemNotFound(item_id)
        return cosine_similarity(query_vector, record.vector)

    def _scan(self, query_vector: np.ndarray, threshold: float, limit: int,
              exclude: Optional[str] = None) -> List[SimilarityResult]:
        with self._lock:
            records = list(self._records.values())

        matches = []
        for record in records:
            if record.id == exclude:
                continue
            similarity = cosine_similarity(query_vector, record.vector)
            if similarity >= threshold:
                matches.append((similarity, record))

        # sorted() is stable, so equal scores keep insertion order
        matches = sorted(matches, key=lambda match: match[0], reverse=True)[:limit]
        return [
            SimilarityResult(item=item_from_record(record), similarity=similarity, vector=record.vector)
            for similarity, record in matches
        ]

    def cluster(self, k: int = 5, rng: Optional[np.random.Generator] = None) -> List[Cluster]:
        """
        Group stored vectors with k-means.

        With no more vectors than k every vector becomes its own cluster with
        coherence 1.0.
        """
        with self._lock:
            records = list(self._records.values())

        if len(records) <= k:
            return [
                Cluster(
                    cluster_id=f"cluster-{index}",
                    centroid=record.vector.copy(),
                    items=[item_from_record(record)],
                    coherence=1.0,
                )
                for index, record in enumerate(records)
            ]

        result = kmeans([record.vector for record in records], k, rng=rng)
        logger.log_clustering(k, len(records), result.iterations, result.converged)

        return [
            Cluster(
                cluster_id=f"cluster-{index}",
                centroid=result.centroids[index],
                items=[item_from_record(records[member]) for member in members],
                coherence=result.coherences[index],
            )
            for index, members in enumerate(result.assignments)
        ]

    def stats(self) -> IndexStats:
        with self._lock:
            stored = [record.stored_at for record in self._records.values()]
            count = len(self._records)
        cache_size = self.generator.cache_size()

        vector_bytes = self.dimension * 8
        metadata_bytes = 1024
        memory_usage = count * (vector_bytes + metadata_bytes) + cache_size * vector_bytes

        return IndexStats(
            total_vectors=count,
            cache_size=cache_size,
            memory_usage=memory_usage,
            oldest_vector=min(stored) if stored else None,
            newest_vector=max(stored) if stored else None,
        )


def _parse_timestamp(value: Any, default: datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return default
    return default


def item_from_record(record: VectorRecord) -> Item:
    """Rebuild an Item from the metadata snapshot held by a record."""
    snapshot = record.metadata
    content = snapshot.get("content", "")
    item_type = snapshot.get("type", ItemType.TEXT.value)
    if isinstance(item_type, ItemType):
        item_type = item_type.value

    return Item(
        id=record.id,
        type=item_type,
        title=snapshot.get("title") or "Untitled",
        content=content,
        preview=snapshot.get("preview") or content[:100],
        timestamp=_parse_timestamp(snapshot.get("timestamp"), record.stored_at),
        metadata={key: value for key, value in snapshot.items() if key not in SNAPSHOT_KEYS},
    )
