"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from cosinelsh import CosineDistanceHash


@pytest.fixture
def make_lsh():
    """Factory for creating CosineDistanceHash with sensible test defaults."""

    def _make(
        dim: int = 32,
        repeat: int = 8,
        num_hashes: int = 4,
        seed=42,
        lazy: bool = True,
    ) -> CosineDistanceHash:
        return CosineDistanceHash(
            dim=dim,
            repeat=repeat,
            num_hashes=num_hashes,
            seed=seed,
            lazy=lazy,
        )

    return _make


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator for deterministic tests."""
    return np.random.default_rng(12345)


def unit_pair_at_angle(rng: np.random.Generator, dim: int, theta: float):
    """Return two unit vectors of dimension ``dim`` with angle ``theta`` between them."""
    u = rng.standard_normal(dim)
    u /= np.linalg.norm(u)
    w = rng.standard_normal(dim)
    w -= np.dot(w, u) * u
    w /= np.linalg.norm(w)
    v = np.cos(theta) * u + np.sin(theta) * w
    return u, v


@pytest.fixture
def pair_at_angle(rng):
    """Sampler for unit vector pairs at a fixed angle."""

    def _sample(dim: int, theta: float):
        return unit_pair_at_angle(rng, dim, theta)

    return _sample
