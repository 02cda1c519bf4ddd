"""
k-means over stored vectors, Euclidean distance, with early stop once no
centroid moves more than CONVERGENCE_EPSILON.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from recall.core.errors import DimensionMismatch

MAX_ITERATIONS = 100
CONVERGENCE_EPSILON = 0.001


@dataclass
class KMeansResult:
    centroids: List[np.ndarray]
    assignments: List[List[int]]
    """Member indices into the input sequence, one list per centroid"""

    iterations: int
    converged: bool
    coherences: List[float] = field(default_factory=list)


def cluster_coherence(points: np.ndarray, center: np.ndarray) -> float:
    """max(0, 1 - mean distance of members to the centroid). Empty clusters score 0."""
    if len(points) == 0:
        return 0.0
    distances = np.linalg.norm(points - center, axis=1)
    return max(0.0, 1.0 - float(distances.mean()))


def kmeans(
    vectors: Sequence[np.ndarray],
    k: int,
    initial_centroids: Optional[Sequence[np.ndarray]] = None,
    rng: Optional[np.random.Generator] = None,
    max_iterations: int = MAX_ITERATIONS,
    epsilon: float = CONVERGENCE_EPSILON,
) -> KMeansResult:
    """
    Cluster vectors into k groups.

    Initial centroids default to k distinct input vectors chosen at random.
    Once centroids are fixed the procedure is deterministic: ties in the
    assignment step go to the lowest centroid index, and a centroid with no
    members keeps its previous position.
    """
    if k <= 0:
        raise ValueError("k must be positive")
    if len(vectors) < k:
        raise ValueError(f"k-means needs at least k={k} vectors, got {len(vectors)}")

    data = np.vstack([np.asarray(v, dtype=np.float64).reshape(-1) for v in vectors])

    if initial_centroids is None:
        rng = rng or np.random.default_rng()
        chosen = rng.choice(len(data), size=k, replace=False)
        centroids = data[chosen].copy()
    else:
        if len(initial_centroids) != k:
            raise ValueError(f"expected {k} initial centroids, got {len(initial_centroids)}")
        centroids = np.vstack([np.asarray(c, dtype=np.float64).reshape(-1) for c in initial_centroids])
        if centroids.shape[1] != data.shape[1]:
            raise DimensionMismatch(data.shape[1], centroids.shape[1], "initial centroids")

    labels = np.zeros(len(data), dtype=int)
    converged = False
    iterations = 0

    while not converged and iterations < max_iterations:
        # (n, k) distance matrix; argmin picks the first centroid on ties
        distances = np.linalg.norm(data[:, None, :] - centroids[None, :, :], axis=2)
        labels = np.argmin(distances, axis=1)

        converged = True
        for index in range(k):
            members = data[labels == index]
            if len(members) == 0:
                continue
            new_centroid = members.mean(axis=0)
            if np.linalg.norm(centroids[index] - new_centroid) > epsilon:
                converged = False
            centroids[index] = new_centroid

        iterations += 1

    assignments = [np.flatnonzero(labels == index).tolist() for index in range(k)]
    coherences = [
        cluster_coherence(data[members], centroids[index])
        for index, members in enumerate(assignments)
    ]

    return KMeansResult(
        centroids=[centroids[index].copy() for index in range(k)],
        assignments=assignments,
        iterations=iterations,
        converged=converged,
        coherences=coherences,
    )
