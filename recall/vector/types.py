"""
Vector index records. The index owns VectorRecords; items themselves are owned
by the external item store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np

from recall.core.items import Item


@dataclass
class VectorRecord:
    """Represents a vector record with metadata."""

    id: str
    """Item identifier the vector belongs to"""

    vector: np.ndarray
    """Fixed-dimension embedding"""

    metadata: Dict[str, Any]
    """Snapshot captured at storage time (type, title, truncated content, timestamp, item metadata)"""

    stored_at: datetime = field(default_factory=datetime.now)


@dataclass
class SimilarityResult:
    """Represents a search result from the vector index."""

    item: Item
    """Item reconstructed from the record snapshot"""

    similarity: float
    """Cosine similarity in [-1, 1]"""

    vector: np.ndarray


@dataclass
class Cluster:
    """A k-means cluster over stored vectors."""

    cluster_id: str
    centroid: np.ndarray
    items: List[Item]
    coherence: float
    """1.0 when every member sits on the centroid"""


@dataclass
class IndexStats:
    total_vectors: int
    cache_size: int
    memory_usage: int
    """Estimated bytes"""

    oldest_vector: Optional[datetime]
    newest_vector: Optional[datetime]
