from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray


def l2_normalize(vector: ArrayLike) -> NDArray[np.float64]:
    """Return the L2-normalized version of ``vector``."""
    vec = np.asarray(vector, dtype=np.float64).reshape(-1)
    norm = np.linalg.norm(vec)
    if norm == 0:
        raise ValueError("Cannot normalize zero vector")
    return vec / norm


def cosine_similarity(u: ArrayLike, v: ArrayLike) -> float:
    """Cosine of the angle between ``u`` and ``v``, clipped to [-1, 1]."""
    a = l2_normalize(u)
    b = l2_normalize(v)
    if a.shape != b.shape:
        raise ValueError(f"Vectors differ in dimension: {a.shape[0]} != {b.shape[0]}")
    return float(np.clip(np.dot(a, b), -1.0, 1.0))


def angular_distance(u: ArrayLike, v: ArrayLike) -> float:
    """Angle between ``u`` and ``v`` in radians, in [0, pi]."""
    return math.acos(cosine_similarity(u, v))
