"""
Single-bit locality sensitive hashes.

A bit hasher maps a vector to 0 or 1 using some random parameter fixed at
construction. ``HyperplaneBitHasher`` is the cosine variant: for two vectors
with angle ``theta`` between them, a random hyperplane separates them with
probability ``theta / pi``.
"""

from __future__ import annotations

import abc
from typing import Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from cosinelsh.errors import ConfigurationError
from cosinelsh.hash.random import RandomStream


class BitHasher(abc.ABC):
    """Anything that turns a ``dim``-dimensional vector into a single bit."""

    @property
    @abc.abstractmethod
    def dim(self) -> int:
        """Dimensionality of the vectors this hasher accepts."""

    @abc.abstractmethod
    def bit(self, vector: NDArray[np.float64]) -> int:
        """Return 0 or 1 for a validated 1-D vector of length ``dim``."""


# Builds one bit hasher for a given dimension from the shared stream.
BitHasherFactory = Callable[[RandomStream, int], BitHasher]


class HyperplaneBitHasher(BitHasher):
    """
    Sign of the dot product with a random hyperplane.

    ``bit`` returns 1 when the dot product is strictly positive and 0
    otherwise. An exact zero (including ``-0.0``) always resolves to 0, so a
    zero vector hashes to 0 on every hyperplane.

    Example:
        >>> hasher = HyperplaneBitHasher(np.array([1.0, -2.0]))
        >>> hasher.bit(np.array([3.0, 1.0]))
        1
        >>> hasher.bit(np.array([2.0, 1.0]))
        0
    """

    def __init__(self, hyperplane: ArrayLike) -> None:
        plane = np.array(hyperplane, dtype=np.float64).reshape(-1)
        if plane.shape[0] == 0:
            raise ConfigurationError("hyperplane must have at least one component")
        plane.flags.writeable = False
        self._hyperplane = plane

    @classmethod
    def from_stream(cls, stream: RandomStream, dim: int) -> "HyperplaneBitHasher":
        return cls(stream.next_hyperplane(dim))

    @property
    def dim(self) -> int:
        return self._hyperplane.shape[0]

    @property
    def hyperplane(self) -> NDArray[np.float64]:
        return self._hyperplane

    def bit(self, vector: NDArray[np.float64]) -> int:
        return 1 if float(np.dot(self._hyperplane, vector)) > 0.0 else 0

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"HyperplaneBitHasher(dim={self.dim})"
