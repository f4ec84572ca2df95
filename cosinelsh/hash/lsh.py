"""
Locality-Sensitive Hashing (LSH) family for cosine distance

This module packs single-bit hyperplane hashes into 64-bit values and groups
many such packed hashes into an indexed family. Vectors that are close under
cosine similarity collide in the same ``(lsh_id, hash)`` bucket with high
probability.

For two vectors with angle ``theta`` between them:
    - one hyperplane bit agrees with probability ``1 - theta / pi``
    - a packed hash of ``repeat`` bits agrees with probability
      ``(1 - theta / pi) ** repeat``

Repetition sharpens the separation between near and far vectors, while the
family size controls how many independent chances a near pair gets to
collide.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Sequence

import numpy as np
from numpy.typing import NDArray

from cosinelsh._config.config import MAX_REPEAT, HashFamilyConfig, HashResult
from cosinelsh.errors import ConfigurationError
from cosinelsh.hash.bit import BitHasher, BitHasherFactory, HyperplaneBitHasher
from cosinelsh.hash.random import RandomStream

logger = logging.getLogger(__name__)


def to_int64(value: int) -> int:
    """Reinterpret an unsigned 64-bit pattern as a signed 64-bit integer."""
    if value >= 1 << 63:
        return value - (1 << 64)
    return value


def pack_bits(bits: NDArray[np.bool_]) -> int:
    """
    Pack up to 64 booleans, least significant first, into a signed 64-bit integer.
    """
    packed = np.packbits(bits.astype(np.uint8), bitorder="little").tobytes()
    return int.from_bytes(packed.ljust(8, b"\x00"), "little", signed=True)


class PackedHash:
    """
    Several independent bit hashers folded into one 64-bit integer.

    Bit ``i`` of the result (least significant first) is the bit produced by
    ``hashers[i]``. The value is returned as a signed 64-bit integer, so a
    hash with bit 63 set is negative.

    Attributes:
        hashers: The bit hashers, in bit order.
        dim: Expected dimensionality of input vectors.
        repeat: Number of packed bits.
    """

    def __init__(self, hashers: Sequence[BitHasher]) -> None:
        hashers = tuple(hashers)
        if not hashers:
            raise ConfigurationError("repeat must be greater than zero")
        if len(hashers) > MAX_REPEAT:
            raise ConfigurationError(
                f"repeat must be at most {MAX_REPEAT} to fit a 64-bit hash "
                f"(received {len(hashers)})"
            )
        dims = {hasher.dim for hasher in hashers}
        if len(dims) != 1:
            raise ConfigurationError(
                f"All bit hashers must share one dimension, received {sorted(dims)}"
            )

        self.hashers = hashers
        self.dim = dims.pop()
        self.repeat = len(hashers)
        # Hyperplane-only members are evaluated with one matrix product
        self._planes = None
        if all(isinstance(hasher, HyperplaneBitHasher) for hasher in hashers):
            self._planes = np.stack([hasher.hyperplane for hasher in hashers])
            self._planes.flags.writeable = False

    @classmethod
    def from_stream(
        cls,
        stream: RandomStream,
        dim: int,
        repeat: int,
        factory: BitHasherFactory = HyperplaneBitHasher.from_stream,
    ) -> "PackedHash":
        """Draw ``repeat`` bit hashers from ``stream`` in bit order."""
        if repeat <= 0:
            raise ConfigurationError("repeat must be greater than zero")
        if repeat > MAX_REPEAT:
            raise ConfigurationError(
                f"repeat must be at most {MAX_REPEAT} to fit a 64-bit hash "
                f"(received {repeat})"
            )
        return cls([factory(stream, dim) for _ in range(repeat)])

    @property
    def hyperplanes(self) -> NDArray[np.float64]:
        """
        Stacked ``(repeat, dim)`` hyperplane matrix.

        Raises:
            TypeError: If any bit hasher is not hyperplane based.
        """
        if self._planes is None:
            offender = next(
                hasher for hasher in self.hashers
                if not isinstance(hasher, HyperplaneBitHasher)
            )
            raise TypeError(
                f"{type(offender).__name__} does not expose a hyperplane"
            )
        return self._planes

    def evaluate(self, vector: NDArray[np.float64]) -> int:
        """
        Hash a validated vector into a signed 64-bit integer.

        Args:
            vector: 1-D float64 array of length ``dim``.

        Returns:
            Packed hash with bit ``i`` taken from ``hashers[i]``.
        """
        if self._planes is not None:
            return pack_bits(np.dot(self._planes, vector) > 0)

        value = 0
        for position, hasher in enumerate(self.hashers):
            if hasher.bit(vector):
                value |= 1 << position
        return to_int64(value)

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"PackedHash(dim={self.dim}, repeat={self.repeat})"


class HashFamily:
    """
    Ordered, immutable collection of packed hashes derived from one seed.

    The position of a member in the family is its ``lsh_id``. Members are
    built in id order from a single random stream, member 0 consuming its
    hyperplanes before member 1 and so on, so the same configuration always
    rebuilds bit-identical hyperplanes.

    Typical usage:
        >>> config = HashFamilyConfig(dim=3, repeat=4, num_hashes=2, seed=42)
        >>> family = HashFamily.build(config)
        >>> [result.lsh_id for result in family.evaluate(np.array([1.0, 0.0, 0.0]))]
        [0, 1]

    Attributes:
        config: Configuration the family was built from.
        members: Packed hashes in ``lsh_id`` order.
    """

    def __init__(self, config: HashFamilyConfig, members: Sequence[PackedHash]) -> None:
        members = tuple(members)
        if len(members) != config.num_hashes:
            raise ConfigurationError(
                f"Expected {config.num_hashes} family members, received {len(members)}"
            )
        for member in members:
            if member.dim != config.dim or member.repeat != config.repeat:
                raise ConfigurationError(
                    "Family member shape does not match configuration "
                    f"(dim={member.dim}, repeat={member.repeat})"
                )
        self.config = config
        self.members = members

        # (num_hashes, repeat, dim) stack for hyperplane-only families
        self._projection_stack = None
        if all(member._planes is not None for member in members):
            self._projection_stack = np.stack([member._planes for member in members])
            self._projection_stack.flags.writeable = False

    @classmethod
    def build(
        cls,
        config: HashFamilyConfig,
        factory: BitHasherFactory = HyperplaneBitHasher.from_stream,
    ) -> "HashFamily":
        """
        Construct ``config.num_hashes`` packed hashes from a stream seeded
        with ``config.seed``.

        Args:
            config: Validated family configuration.
            factory: Builds one bit hasher from the stream. Defaults to random
                hyperplanes (cosine distance).

        Returns:
            The built family.

        Raises:
            ConfigurationError: If the stream cannot be seeded.
        """
        stream = RandomStream(config.seed)
        logger.debug(
            "Building hash family dim=%d repeat=%d num_hashes=%d seeded=%s",
            config.dim,
            config.repeat,
            config.num_hashes,
            config.reproducible,
        )
        members = [
            PackedHash.from_stream(stream, config.dim, config.repeat, factory)
            for _ in range(config.num_hashes)
        ]
        logger.debug("Hash family built from %d random draws", stream.draws)
        return cls(config, members)

    @property
    def dim(self) -> int:
        return self.config.dim

    @property
    def projection_stack(self) -> NDArray[np.float64]:
        """
        All hyperplanes as a ``(num_hashes, repeat, dim)`` array.

        Raises:
            TypeError: If any member uses a bit hasher that is not hyperplane based.
        """
        if self._projection_stack is None:
            # Surfaces the offending hasher type
            for member in self.members:
                member.hyperplanes
        return self._projection_stack

    def evaluate(self, vector: NDArray[np.float64]) -> List[HashResult]:
        """Hash a validated vector with every member, in ``lsh_id`` order."""
        if self._projection_stack is not None:
            # (num_hashes, repeat, dim) @ (dim,) → (num_hashes, repeat)
            binary = np.dot(self._projection_stack, vector) > 0
            return [
                HashResult(lsh_id=lsh_id, hash=pack_bits(bits))
                for lsh_id, bits in enumerate(binary)
            ]
        return [
            HashResult(lsh_id=lsh_id, hash=member.evaluate(vector))
            for lsh_id, member in enumerate(self.members)
        ]

    def __len__(self) -> int:
        return len(self.members)

    def __getitem__(self, lsh_id: int) -> PackedHash:
        return self.members[lsh_id]

    def __iter__(self) -> Iterator[PackedHash]:
        return iter(self.members)

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return (
            f"HashFamily(dim={self.config.dim}, repeat={self.config.repeat}, "
            f"num_hashes={self.config.num_hashes})"
        )
