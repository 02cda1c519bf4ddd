"""
Tests for k-means clustering, directly and through the vector index.
"""

import numpy as np
import pytest

from recall.vector.clustering import cluster_coherence, kmeans
from recall.vector.embeddings import EmbeddingGenerator
from recall.vector.index import InMemoryVectorIndex
from recall.vector.types import VectorRecord


def test_fixed_centroids_one_dimension():
    result = kmeans([[0.0], [10.0]], 2, initial_centroids=[[0.0], [10.0]])

    assert result.assignments == [[0], [1]]
    assert np.allclose(result.centroids[0], [0.0])
    assert np.allclose(result.centroids[1], [10.0])
    assert result.coherences == [1.0, 1.0]
    assert result.converged


def test_two_groups_separate():
    vectors = [[0.0, 0.0], [0.2, 0.0], [5.0, 5.0], [5.2, 5.0]]
    result = kmeans(vectors, 2, initial_centroids=[[0.0, 0.0], [5.0, 5.0]])

    assert result.assignments == [[0, 1], [2, 3]]
    assert np.allclose(result.centroids[0], [0.1, 0.0])
    assert result.coherences[0] == pytest.approx(0.9)


def test_empty_cluster_keeps_centroid():
    result = kmeans([[0.0], [0.1], [0.2]], 2, initial_centroids=[[0.1], [100.0]])

    assert result.assignments[1] == []
    assert np.allclose(result.centroids[1], [100.0])
    assert result.coherences[1] == 0.0


def test_seeded_rng_is_reproducible():
    vectors = np.random.default_rng(7).normal(size=(20, 3))

    first = kmeans(list(vectors), 3, rng=np.random.default_rng(42))
    second = kmeans(list(vectors), 3, rng=np.random.default_rng(42))

    assert first.assignments == second.assignments


def test_invalid_k():
    with pytest.raises(ValueError):
        kmeans([[0.0]], 0)
    with pytest.raises(ValueError):
        kmeans([[0.0], [1.0]], 3)


def test_cluster_coherence_floor():
    points = np.array([[0.0], [4.0]])
    assert cluster_coherence(points, np.array([2.0])) == 0.0
    assert cluster_coherence(np.empty((0, 1)), np.array([0.0])) == 0.0


class TestIndexClustering:
    """Clustering over an index populated with fixed vectors."""

    @pytest.fixture
    def vector_index(self):
        index = InMemoryVectorIndex(EmbeddingGenerator(dimension=2))
        points = {
            "a1": [1.0, 0.0], "a2": [1.1, 0.0], "a3": [0.9, 0.05],
            "b1": [0.0, 1.0], "b2": [0.0, 1.1], "b3": [0.05, 0.9],
        }
        for item_id, vector in points.items():
            index.add_record(VectorRecord(id=item_id, vector=np.array(vector), metadata={"title": item_id}))
        return index

    def test_few_vectors_become_singletons(self, vector_index):
        clusters = vector_index.cluster(k=10)

        assert len(clusters) == 6
        assert all(cluster.coherence == 1.0 for cluster in clusters)
        assert all(len(cluster.items) == 1 for cluster in clusters)

    def test_every_vector_assigned_once(self, vector_index):
        clusters = vector_index.cluster(k=2, rng=np.random.default_rng(0))

        assert [cluster.cluster_id for cluster in clusters] == ["cluster-0", "cluster-1"]
        members = sorted(item.id for cluster in clusters for item in cluster.items)
        assert members == ["a1", "a2", "a3", "b1", "b2", "b3"]
        for cluster in clusters:
            assert 0.0 <= cluster.coherence <= 1.0

    def test_empty_index_has_no_clusters(self):
        assert InMemoryVectorIndex(EmbeddingGenerator(dimension=2)).cluster(k=3) == []
