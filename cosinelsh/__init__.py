"""Seeded locality sensitive hash family for cosine similarity."""

from __future__ import annotations

from cosinelsh._config.config import (
    MAX_REPEAT,
    OUTPUT_SCHEMA,
    HashFamilyConfig,
    HashResult,
)
from cosinelsh.core.main import CosineDistanceHash
from cosinelsh.errors import ConfigurationError, DimensionMismatchError
from cosinelsh.hash.bit import BitHasher, HyperplaneBitHasher
from cosinelsh.hash.lsh import HashFamily, PackedHash
from cosinelsh.hash.random import RandomStream

__version__ = "0.1.0"

__all__ = [
    "BitHasher",
    "ConfigurationError",
    "CosineDistanceHash",
    "DimensionMismatchError",
    "HashFamily",
    "HashFamilyConfig",
    "HashResult",
    "HyperplaneBitHasher",
    "MAX_REPEAT",
    "OUTPUT_SCHEMA",
    "PackedHash",
    "RandomStream",
]
