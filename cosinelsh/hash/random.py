"""
Seeded random stream and hyperplane generation.

Every hyperplane in a hash family is drawn from a single ``RandomStream`` in a
fixed order, so the seed alone determines the whole family.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import NDArray

from cosinelsh._config.config import INT64_MAX, INT64_MIN, _is_int
from cosinelsh.errors import ConfigurationError

_UINT64_MASK = (1 << 64) - 1


class RandomStream:
    """
    Reproducible source of standard-normal draws.

    With a seed, two streams built in different processes or on different
    machines produce identical values, provided they run the same numpy
    version. numpy does not promise that ``Generator.standard_normal`` yields
    the same stream across releases, so every worker hashing into shared
    buckets must pin one numpy version.

    Without a seed the stream is seeded from OS entropy; that mode is meant
    for standalone use and its output cannot be reproduced.

    Parameters
    ----------
    seed : int, optional
        Signed 64-bit seed. Negative seeds are mapped onto their unsigned
        two's-complement value, so ``-1`` and ``2**64 - 1`` name the same
        stream while every value in the signed range stays distinct.

    Raises
    ------
    ConfigurationError
        If the seed is not an integer, does not fit in 64 bits, or entropy
        cannot be gathered for an unseeded stream.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            if not _is_int(seed):
                raise ConfigurationError(
                    f"seed must be an integer or None, received {seed!r}"
                )
            if not INT64_MIN <= seed <= INT64_MAX:
                raise ConfigurationError(
                    f"seed must fit in a signed 64-bit integer (received {seed})"
                )
            seed = int(seed) & _UINT64_MASK

        try:
            self._rng = np.random.default_rng(seed)
        except OSError as exc:
            raise ConfigurationError(
                "Unable to seed random stream from system entropy"
            ) from exc

        self.seed = seed
        self.draws = 0

    @property
    def reproducible(self) -> bool:
        return self.seed is not None

    def next_gaussian(self) -> float:
        """Draw a single standard-normal value."""
        self.draws += 1
        return float(self._rng.standard_normal())

    def next_hyperplane(self, dim: int) -> NDArray[np.float64]:
        """
        Draw a hyperplane normal of ``dim`` independent standard-normal values.

        The result is not normalised; only the sign of a dot product with it
        is ever used.
        """
        if not _is_int(dim) or dim <= 0:
            raise ConfigurationError(f"dim must be a positive integer, received {dim!r}")
        plane = self._rng.standard_normal(int(dim))
        self.draws += int(dim)
        plane.flags.writeable = False
        return plane
