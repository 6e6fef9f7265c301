"""Vector math behind event matching: cosine similarity and centroids.

Pure functions, no I/O. Vectors are accepted as any float sequence (lists as
stored in MongoDB, or numpy arrays) and returned as plain ``list[float]`` so
they can be written back to the database unchanged.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import numpy as np

from ..models import Embedding


class DimensionMismatchError(ValueError):
    """Two vectors that must be compared have different lengths."""


def _as_array(vector: Sequence[float]) -> np.ndarray:
    return np.asarray(vector, dtype=np.float64)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine of the angle between *a* and *b*, in ``[-1, 1]``.

    Returns ``0.0`` when either vector has zero norm.

    Raises
    ------
    DimensionMismatchError
        If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Embeddings must have same dimensions ({len(a)} != {len(b)})"
        )

    va = _as_array(a)
    vb = _as_array(b)
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = float(np.dot(va, vb)) / (norm_a * norm_b)
    # Rounding can push parallel vectors a hair outside the valid range
    return max(-1.0, min(1.0, similarity))


def centroid(vectors: Iterable[Sequence[float]]) -> Embedding:
    """Element-wise arithmetic mean of a non-empty set of same-length vectors."""
    rows: List[Sequence[float]] = list(vectors)
    if not rows:
        raise ValueError("Cannot calculate centroid of empty array")

    dimensions = len(rows[0])
    for row in rows[1:]:
        if len(row) != dimensions:
            raise DimensionMismatchError(
                f"Embeddings must have same dimensions ({len(row)} != {dimensions})"
            )

    return np.mean(np.asarray(rows, dtype=np.float64), axis=0).tolist()


def update_centroid(
    current: Sequence[float],
    new_vector: Sequence[float],
    current_count: int,
) -> Embedding:
    """Fold *new_vector* into a running mean over ``current_count`` members.

    ``updated = current + (new_vector - current) / (current_count + 1)``, which
    equals the mean over all ``current_count + 1`` members in O(D).
    """
    if len(current) != len(new_vector):
        raise DimensionMismatchError(
            f"Embeddings must have same dimensions ({len(current)} != {len(new_vector)})"
        )
    if current_count < 0:
        raise ValueError(f"current_count must be non-negative, got {current_count}")

    vc = _as_array(current)
    vn = _as_array(new_vector)
    return (vc + (vn - vc) / (current_count + 1)).tolist()

__all__ = ["DimensionMismatchError", "cosine_similarity", "centroid", "update_centroid"]
