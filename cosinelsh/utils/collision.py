"""
Collision probabilities for the cosine hash family.

With ``p = 1 - theta / pi`` the chance that one hyperplane bit agrees for two
vectors at angle ``theta``:

    - a packed hash of ``r`` bits collides with probability ``p ** r``
    - at least one of ``L`` family members collides with probability
      ``1 - (1 - p ** r) ** L``

These helpers are for choosing ``repeat`` and ``num_hashes`` and for reading
an angle back off two evaluations.
"""

import math
from typing import Sequence

from cosinelsh._config.config import MAX_REPEAT, HashResult


def _check_angle(theta: float) -> None:
    if not 0.0 <= theta <= math.pi:
        raise ValueError(f"theta must lie in [0, pi], received {theta}")


def bit_collision_probability(theta: float) -> float:
    """Probability that a random hyperplane puts both vectors on the same side."""
    _check_angle(theta)
    return 1.0 - theta / math.pi


def packed_collision_probability(theta: float, repeat: int) -> float:
    """Probability that all ``repeat`` bits agree."""
    if not 0 < repeat <= MAX_REPEAT:
        raise ValueError(f"repeat must lie in [1, {MAX_REPEAT}], received {repeat}")
    return bit_collision_probability(theta) ** repeat


def family_collision_probability(theta: float, repeat: int, num_hashes: int) -> float:
    """Probability that at least one of ``num_hashes`` members collides."""
    if num_hashes <= 0:
        raise ValueError("num_hashes must be greater than zero")
    p = packed_collision_probability(theta, repeat)
    return 1.0 - (1.0 - p) ** num_hashes


def hamming_distance(a: int, b: int) -> int:
    """Number of differing bits between two signed 64-bit hashes."""
    mask = (1 << 64) - 1
    return bin((a ^ b) & mask).count("1")


def estimate_angle(
    results_a: Sequence[HashResult],
    results_b: Sequence[HashResult],
    repeat: int,
) -> float:
    """
    Estimate the angle between two vectors from their evaluations.

    Every packed bit is an independent hyperplane test, so the fraction of
    differing bits across the whole family estimates ``theta / pi``.

    Args:
        results_a: Evaluation of the first vector.
        results_b: Evaluation of the second vector by the same family.
        repeat: Bits packed into each hash.

    Returns:
        Estimated angle in radians.
    """
    if len(results_a) != len(results_b) or not results_a:
        raise ValueError("Evaluations must be non-empty and of equal length")
    if not 0 < repeat <= MAX_REPEAT:
        raise ValueError(f"repeat must lie in [1, {MAX_REPEAT}], received {repeat}")

    differing = 0
    for a, b in zip(results_a, results_b):
        if a.lsh_id != b.lsh_id:
            raise ValueError(
                f"Evaluations are not aligned: lsh_id {a.lsh_id} != {b.lsh_id}"
            )
        differing += hamming_distance(a.hash, b.hash)
    return math.pi * differing / (repeat * len(results_a))
