"""
Cosine distance hash evaluator

This module provides ``CosineDistanceHash``, the public entry point of the
package. It ties the configuration, the lazily built hash family and vector
validation together:

    1. Configuration → validated once at construction
    2. First evaluation → HashFamily built from the seed (exactly once)
    3. Vector → one ``(lsh_id, hash)`` pair per family member

Grouping rows by ``(lsh_id, hash)`` and ranking candidates inside a bucket is
left to the caller.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from cosinelsh._config.config import HashFamilyConfig, HashResult
from cosinelsh.errors import DimensionMismatchError
from cosinelsh.hash.bit import BitHasherFactory, HyperplaneBitHasher
from cosinelsh.hash.lsh import HashFamily

logger = logging.getLogger(__name__)

# One flattened output row: (record id, lsh_id, hash)
HashRow = Tuple[Hashable, int, int]


class CosineDistanceHash:
    """
    Locality sensitive hash family for cosine similarity.

    Each family member projects a vector onto ``repeat`` random hyperplanes and
    packs the resulting sign bits into one 64-bit integer. Vectors that are
    close under cosine similarity share a hash for a given member with high
    probability; evaluating all ``num_hashes`` members gives a vector that many
    independent chances to meet its neighbours.

    Parameters
    ----------
    dim : int
        Dimensionality of the vectors. Every evaluated vector must have
        exactly this many components.

    repeat : int
        Number of hyperplanes packed into each hash (1..64). More repetitions
        mean fewer, tighter buckets.

    num_hashes : int
        Size of the hash family. If you are looking for k near neighbours,
        this is the k.

    seed : int, optional
        Signed 64-bit seed. Evaluators built with the same configuration and
        seed, in any process, produce identical hashes. Without a seed the
        family is drawn from OS entropy and cannot be reproduced elsewhere.

    lazy : bool, default=True
        Build the family on first use instead of at construction. The
        configuration is validated immediately either way.

    factory : callable, optional
        Builds one bit hasher from the random stream. Defaults to random
        hyperplanes.

    Examples
    --------
    >>> lsh = CosineDistanceHash(dim=3, repeat=4, num_hashes=2, seed=42)
    >>> [lsh_id for lsh_id, _ in lsh.evaluate([1.0, 0.0, 0.0])]
    [0, 1]

    Hashing a corpus and a query with independently built evaluators:

    >>> corpus_hasher = CosineDistanceHash(dim=128, repeat=16, num_hashes=5, seed=0)
    >>> query_hasher = CosineDistanceHash(dim=128, repeat=16, num_hashes=5, seed=0)
    >>> rows = list(corpus_hasher.flatten(ids, vectors))
    >>> query_buckets = query_hasher.evaluate(query)   # same hyperplanes
    """

    def __init__(
        self,
        dim: int,
        repeat: int,
        num_hashes: int,
        seed: Optional[int] = None,
        *,
        lazy: bool = True,
        factory: BitHasherFactory = HyperplaneBitHasher.from_stream,
    ) -> None:
        self._config = HashFamilyConfig(
            dim=dim, repeat=repeat, num_hashes=num_hashes, seed=seed
        )
        self._factory = factory
        self._family: Optional[HashFamily] = None
        self._family_lock = Lock()

        if not self._config.reproducible:
            logger.warning(
                "CosineDistanceHash created without a seed; hashes will not be "
                "reproducible across processes"
            )

        if not lazy:
            self._ensure_family()

    @classmethod
    def from_strings(
        cls,
        dim: str,
        repeat: str,
        num_hashes: str,
        seed: Optional[str] = None,
        **kwargs: Any,
    ) -> "CosineDistanceHash":
        """
        Create an evaluator from textual arguments, as a host passes them.

        >>> lsh = CosineDistanceHash.from_strings("3", "16", "5", "0")
        """
        config = HashFamilyConfig.from_strings(dim, repeat, num_hashes, seed)
        return cls.from_config(config, **kwargs)

    @classmethod
    def from_config(
        cls, config: HashFamilyConfig, **kwargs: Any
    ) -> "CosineDistanceHash":
        return cls(
            dim=config.dim,
            repeat=config.repeat,
            num_hashes=config.num_hashes,
            seed=config.seed,
            **kwargs,
        )

    # ---------------------------------------------------------------------
    # Public hashing API
    # ---------------------------------------------------------------------

    def evaluate(self, vector: ArrayLike) -> List[HashResult]:
        """
        Hash one vector with every family member.

        Parameters:
            vector: Sequence of ``dim`` real numbers.

        Returns:
            ``num_hashes`` results ordered by ascending ``lsh_id``.

        Raises:
            DimensionMismatchError: If the vector length differs from ``dim``.
            ValueError: If the vector contains non-finite values.
        """
        vec = self._prepare_vector(vector)
        return self._ensure_family().evaluate(vec)

    __call__ = evaluate

    def evaluate_batch(self, vectors: ArrayLike) -> List[List[HashResult]]:
        """
        Hash every row of an ``(n, dim)`` array.

        Results match calling ``evaluate`` on each row in order.

        Raises:
            ValueError: If the input is not 2-D or contains non-finite values.
            DimensionMismatchError: If the rows do not have ``dim`` columns.
        """
        arr = np.asarray(vectors, dtype=np.float64)
        if arr.ndim != 2:
            raise ValueError(
                f"Batch input must be a 2D array; received shape {arr.shape}"
            )
        if arr.shape[1] != self._config.dim:
            raise DimensionMismatchError(self._config.dim, arr.shape[1])
        if not np.all(np.isfinite(arr)):
            raise ValueError("Vectors must contain only finite values")

        family = self._ensure_family()
        return [family.evaluate(_scale_to_unit_max(row)) for row in arr]

    def flatten(
        self, ids: Iterable[Hashable], vectors: Iterable[ArrayLike]
    ) -> Iterator[HashRow]:
        """
        Yield ``(id, lsh_id, hash)`` rows, one per record and family member.

        Rows are produced lazily, record by record. Grouping them by
        ``(lsh_id, hash)`` puts candidate neighbours into the same bucket.

        Raises:
            ValueError: If ``ids`` and ``vectors`` have different lengths.
        """
        id_iter = iter(ids)
        vector_iter = iter(vectors)
        sentinel = object()
        while True:
            record_id = next(id_iter, sentinel)
            vector = next(vector_iter, sentinel)
            if record_id is sentinel and vector is sentinel:
                return
            if record_id is sentinel or vector is sentinel:
                raise ValueError("Number of ids does not match number of vectors")
            for lsh_id, value in self.evaluate(vector):
                yield record_id, lsh_id, value

    # ---------------------------------------------------------------------
    # Introspection
    # ---------------------------------------------------------------------

    @property
    def config(self) -> HashFamilyConfig:
        return self._config

    @property
    def dim(self) -> int:
        return self._config.dim

    @property
    def family(self) -> HashFamily:
        """The hash family, built on first access."""
        return self._ensure_family()

    @property
    def is_built(self) -> bool:
        return self._family is not None

    def stats(self) -> Dict[str, Any]:
        """
        Return a configuration snapshot for logging and debugging.

        Returns
        -------
        Dict[str, Any]
            ``dimension``, ``repeat``, ``num_hashes``, ``seeded``,
            ``family_built`` and ``numpy_version``. Workers sharing buckets
            must report the same ``numpy_version`` to draw identical
            hyperplanes.
        """
        return {
            "dimension": self._config.dim,
            "repeat": self._config.repeat,
            "num_hashes": self._config.num_hashes,
            "seeded": self._config.reproducible,
            "family_built": self.is_built,
            "numpy_version": np.__version__,
        }

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return (
            "CosineDistanceHash("
            f"dim={self._config.dim}, "
            f"repeat={self._config.repeat}, "
            f"num_hashes={self._config.num_hashes}, "
            f"seed={self._config.seed}"
            ")"
        )

    # ---------------------------------------------------------------------
    # Pickling
    # ---------------------------------------------------------------------

    def __getstate__(self) -> Dict[str, Any]:
        """
        Prepare state for pickling.

        A seeded evaluator ships only its configuration; the receiving side
        rebuilds the identical family. An unseeded evaluator cannot be rebuilt
        identically, so its family is built (if needed) and shipped along.
        The lock is never pickled.
        """
        state = self.__dict__.copy()
        del state["_family_lock"]
        if self._config.reproducible:
            state["_family"] = None
        else:
            state["_family"] = self._ensure_family()
        return state

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self.__dict__.update(state)
        self._family_lock = Lock()

    # ---------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------

    def _ensure_family(self) -> HashFamily:
        family = self._family
        if family is not None:
            return family
        with self._family_lock:
            if self._family is None:
                self._family = HashFamily.build(self._config, self._factory)
            return self._family

    def _prepare_vector(self, vector: Union[ArrayLike, NDArray[np.float64]]) -> NDArray[np.float64]:
        """
        Convert ``vector`` to a 1-D float64 array and check it.

        Raises:
            DimensionMismatchError: If the length differs from ``dim``.
            ValueError: If any component is ``nan`` or infinite.
        """
        arr = np.asarray(vector, dtype=np.float64).reshape(-1)
        if arr.shape[0] != self._config.dim:
            raise DimensionMismatchError(self._config.dim, arr.shape[0])
        if not np.all(np.isfinite(arr)):
            raise ValueError("Vector must contain only finite values")
        return _scale_to_unit_max(arr)


def _scale_to_unit_max(vector: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Divide a nonzero vector by its largest absolute component.

    A positive scale leaves every dot-product sign unchanged, and keeps the
    products of huge finite components from overflowing to ``inf``/``nan``.
    """
    peak = np.max(np.abs(vector)) if vector.size else 0.0
    if peak == 0.0:
        return vector
    return vector / peak
