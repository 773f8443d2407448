"""
Vector normalization and similarity primitives.

Stored vectors and query vectors are both scaled to unit L2 norm, so the
cosine similarity of two vectors is simply their dot product.
"""

from typing import Sequence, Union

import numpy as np

from nano_vectordb.engine.interfaces import DomainError

FLOAT_DTYPE = np.dtype("<f4")

# Smallest sum of squares that can still be normalized
NORM_EPSILON = float(np.finfo(np.float32).eps)

VectorLike = Union[Sequence[float], np.ndarray]


def as_vector(vector: VectorLike) -> np.ndarray:
    """Convert a vector-like value into a 1-D float32 array."""
    array = np.asarray(vector, dtype=FLOAT_DTYPE)
    if array.ndim != 1:
        raise ValueError(f"Expected a 1-D vector, got shape {array.shape}")
    return array


def normalize(vector: VectorLike) -> np.ndarray:
    """
    Scale a vector to unit L2 norm.

    The sum of squares is accumulated in float64.

    Args:
        vector: Vector to normalize

    Returns:
        New float32 array with norm 1

    Raises:
        DomainError: If the vector has (near) zero magnitude or is not finite
    """
    array = as_vector(vector)
    wide = array.astype(np.float64)
    norm_sq = float(np.dot(wide, wide))

    if not np.isfinite(norm_sq) or norm_sq <= NORM_EPSILON:
        raise DomainError(
            f"Cannot normalize vector with squared norm {norm_sq!r} (zero-length or non-finite)"
        )

    inv_norm = 1.0 / np.sqrt(norm_sq)
    return (wide * inv_norm).astype(FLOAT_DTYPE)


def dot(a: VectorLike, b: VectorLike) -> float:
    """Dot product of two vectors of equal length."""
    left = as_vector(a)
    right = as_vector(b)
    if left.shape != right.shape:
        raise ValueError(f"Mismatched vector lengths: {left.shape[0]} != {right.shape[0]}")
    return float(np.dot(left, right))
