"""Vector helpers used for embedding similarity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Sequence

import numpy as np

from notefinder.errors import DimensionMismatchError, ValidationError

VectorLike = Sequence[float] | np.ndarray

Metric = Literal["cosine", "euclidean"]


def _as_array(vector: VectorLike) -> np.ndarray:
    return np.asarray(vector, dtype="float64")


def _pair(a: VectorLike, b: VectorLike) -> tuple[np.ndarray, np.ndarray]:
    left = _as_array(a)
    right = _as_array(b)
    if left.shape[0] != right.shape[0]:
        raise DimensionMismatchError(left.shape[0], right.shape[0])
    return left, right


def dot_product(a: VectorLike, b: VectorLike) -> float:
    left, right = _pair(a, b)
    return float(np.dot(left, right))


def magnitude(vector: VectorLike) -> float:
    """Return the L2 norm of ``vector``."""
    return float(np.linalg.norm(_as_array(vector)))


def normalize(vector: VectorLike) -> np.ndarray:
    """Scale ``vector`` to unit length; a zero vector comes back as a zero copy."""
    values = _as_array(vector)
    norm = np.linalg.norm(values)
    if norm == 0:
        return values.copy()
    return values / norm


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine of the angle between ``a`` and ``b``, in [-1, 1].

    Returns 0.0 instead of NaN when either vector has zero magnitude.
    """
    left, right = _pair(a, b)
    norm_left = np.linalg.norm(left)
    norm_right = np.linalg.norm(right)
    if norm_left == 0 or norm_right == 0:
        return 0.0
    return float(np.dot(left, right) / (norm_left * norm_right))


def euclidean_distance(a: VectorLike, b: VectorLike) -> float:
    left, right = _pair(a, b)
    return float(np.linalg.norm(left - right))


def add(a: VectorLike, b: VectorLike) -> np.ndarray:
    left, right = _pair(a, b)
    return left + right


def subtract(a: VectorLike, b: VectorLike) -> np.ndarray:
    left, right = _pair(a, b)
    return left - right


def scale(vector: VectorLike, scalar: float) -> np.ndarray:
    return _as_array(vector) * scalar


def average(vectors: Sequence[VectorLike]) -> np.ndarray:
    """Component-wise mean of ``vectors``."""
    if len(vectors) == 0:
        raise ValidationError("Cannot average an empty list of vectors")

    dimension = len(vectors[0])
    for vector in vectors:
        if len(vector) != dimension:
            raise DimensionMismatchError(dimension, len(vector))
    return np.vstack([_as_array(vector) for vector in vectors]).mean(axis=0)


def cosine_scores(query: VectorLike, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of ``query`` against every row of ``matrix``.

    Rows (or a query) with zero magnitude score 0.
    """
    query_vec = _as_array(query)
    rows = np.asarray(matrix, dtype="float64")
    if rows.size == 0:
        return np.zeros(0, dtype="float64")
    if rows.shape[1] != query_vec.shape[0]:
        raise DimensionMismatchError(query_vec.shape[0], rows.shape[1])

    query_norm = np.linalg.norm(query_vec)
    row_norms = np.linalg.norm(rows, axis=1)
    denominators = row_norms * query_norm
    dots = rows @ query_vec
    scores = np.zeros(rows.shape[0], dtype="float64")
    nonzero = denominators > 0
    scores[nonzero] = dots[nonzero] / denominators[nonzero]
    return scores


@dataclass(slots=True, frozen=True)
class NearestNeighbor:
    index: int
    distance: float


def find_nearest_neighbors(
    query: VectorLike,
    vectors: Sequence[VectorLike],
    k: int,
    metric: Metric = "cosine",
) -> List[NearestNeighbor]:
    """Return the ``k`` candidates closest to ``query``, nearest first.

    Cosine distance is ``1 - cosine_similarity``. Ties keep candidate order.
    """
    if metric == "cosine":
        measure = lambda vector: 1.0 - cosine_similarity(query, vector)  # noqa: E731
    elif metric == "euclidean":
        measure = lambda vector: euclidean_distance(query, vector)  # noqa: E731
    else:
        raise ValidationError(f"Unknown distance metric: {metric}")

    neighbors = [
        NearestNeighbor(index=index, distance=measure(vector))
        for index, vector in enumerate(vectors)
    ]
    neighbors.sort(key=lambda neighbor: neighbor.distance)
    return neighbors[: max(k, 0)]
