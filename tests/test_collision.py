"""Tests for collision probabilities, similarity helpers and angle estimation."""

from __future__ import annotations

import math

import numpy as np
import pytest

from cosinelsh import CosineDistanceHash, HashResult
from cosinelsh.similarity import angular_distance, cosine_similarity, l2_normalize
from cosinelsh.utils.collision import (
    bit_collision_probability,
    estimate_angle,
    family_collision_probability,
    hamming_distance,
    packed_collision_probability,
)


class TestProbabilities:
    def test_bit_probability_endpoints(self):
        assert bit_collision_probability(0.0) == 1.0
        assert bit_collision_probability(math.pi) == 0.0
        assert bit_collision_probability(math.pi / 2) == pytest.approx(0.5)

    def test_packed_probability(self):
        assert packed_collision_probability(math.pi / 4, 3) == pytest.approx(0.75**3)

    def test_family_probability(self):
        p = 0.5**2
        assert family_collision_probability(math.pi / 2, 2, 3) == pytest.approx(1 - (1 - p) ** 3)

    def test_more_repeats_sharpen(self):
        near = math.pi / 12
        far = math.pi / 2
        ratio_1 = packed_collision_probability(near, 1) / packed_collision_probability(far, 1)
        ratio_8 = packed_collision_probability(near, 8) / packed_collision_probability(far, 8)
        assert ratio_8 > ratio_1

    @pytest.mark.parametrize("theta", [-0.1, math.pi + 0.1])
    def test_angle_out_of_range(self, theta):
        with pytest.raises(ValueError, match="theta"):
            bit_collision_probability(theta)

    def test_repeat_bounds(self):
        with pytest.raises(ValueError):
            packed_collision_probability(0.5, 65)
        with pytest.raises(ValueError):
            family_collision_probability(0.5, 4, 0)


class TestHamming:
    def test_signed_values(self):
        assert hamming_distance(-1, 0) == 64
        assert hamming_distance(0b1010, 0b0101) == 4
        assert hamming_distance(7, 7) == 0


class TestSimilarity:
    def test_normalize(self):
        np.testing.assert_allclose(l2_normalize([3.0, 4.0]), [0.6, 0.8])

    def test_normalize_zero(self):
        with pytest.raises(ValueError, match="zero vector"):
            l2_normalize([0.0, 0.0])

    def test_angular_distance(self):
        assert angular_distance([1.0, 0.0], [0.0, 2.0]) == pytest.approx(math.pi / 2)
        assert angular_distance([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(math.pi)
        assert cosine_similarity([1.0, 1.0], [2.0, 2.0]) == pytest.approx(1.0)

    def test_dimension_mismatch(self):
        with pytest.raises(ValueError, match="differ in dimension"):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestEstimateAngle:
    def test_identical_evaluations(self):
        results = [HashResult(0, 5), HashResult(1, -3)]
        assert estimate_angle(results, results, repeat=8) == 0.0

    def test_recovers_angle(self, pair_at_angle):
        theta = math.pi / 3
        lsh = CosineDistanceHash(dim=24, repeat=64, num_hashes=64, seed=5)
        u, v = pair_at_angle(24, theta)
        estimate = estimate_angle(lsh.evaluate(u), lsh.evaluate(v), repeat=64)
        assert estimate == pytest.approx(theta, abs=0.15)

    def test_misaligned(self):
        with pytest.raises(ValueError, match="not aligned"):
            estimate_angle([HashResult(0, 1)], [HashResult(1, 1)], repeat=4)

    def test_empty(self):
        with pytest.raises(ValueError):
            estimate_angle([], [], repeat=4)
