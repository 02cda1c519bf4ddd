"""
Vector math used by the index and clustering: cosine similarity, Euclidean
distance, centroids and L2 normalisation.
"""

from typing import Sequence

import numpy as np

from recall.core.errors import DimensionMismatch


def as_vector(values) -> np.ndarray:
    """Coerce a sequence of numbers to a 1-D float64 array."""
    return np.asarray(values, dtype=np.float64).reshape(-1)


def check_dimensions(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatch(a.shape[0], b.shape[0])


def normalize(vec: np.ndarray) -> np.ndarray:
    """L2-normalize a vector (safe for zero-length)."""
    vec = as_vector(vec)
    norm = np.linalg.norm(vec)
    return vec / norm if norm > 0 else vec


def cosine_similarity(a, b) -> float:
    """
    Dot product over the product of magnitudes.

    Returns 0.0 when either vector has zero magnitude. Raises DimensionMismatch
    when the vectors differ in length.
    """
    a = as_vector(a)
    b = as_vector(b)
    check_dimensions(a, b)

    magnitude_a = np.linalg.norm(a)
    magnitude_b = np.linalg.norm(b)
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return float(np.dot(a, b) / (magnitude_a * magnitude_b))


def euclidean_distance(a, b) -> float:
    a = as_vector(a)
    b = as_vector(b)
    check_dimensions(a, b)
    return float(np.linalg.norm(a - b))


def centroid(vectors: Sequence[np.ndarray]) -> np.ndarray:
    """Mean of the given vectors."""
    if len(vectors) == 0:
        raise ValueError("centroid of an empty set is undefined")
    return np.mean(np.vstack([as_vector(v) for v in vectors]), axis=0)
