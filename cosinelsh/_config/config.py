"""
The config module holds the hash family configuration and the result
container, and provides a uniform API for working with them.
"""

from __future__ import annotations

import numbers
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from cosinelsh.errors import ConfigurationError

# Bits available in a packed hash value (signed 64-bit integer).
MAX_REPEAT = 64

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

# Row layout handed back to a host for every family member.
OUTPUT_SCHEMA = (("lsh_id", "int"), ("hash", "long"))


@dataclass(frozen=True)
class HashResult:
    """
    One family member's hash for a single vector.

    Attributes:
        lsh_id: Position of the member inside the family (0..num_hashes-1).
        hash: Packed hash value, a signed 64-bit integer.

    Example:
        >>> result = HashResult(lsh_id=0, hash=7)
        >>> lsh_id, value = result
        >>> result.as_tuple()
        (0, 7)
    """

    lsh_id: int
    hash: int

    def __iter__(self) -> Iterator[int]:
        """Unpack as ``(lsh_id, hash)``."""
        return iter((self.lsh_id, self.hash))

    def as_tuple(self) -> tuple:
        return (self.lsh_id, self.hash)


@dataclass(frozen=True)
class HashFamilyConfig:
    """
    Parameters a hash family is derived from.

    Two families built from equal configurations with a seed set hold
    bit-identical hyperplanes, which is what lets independent workers hash
    their share of a dataset without coordinating.

    Attributes:
        dim: Dimensionality of the vectors being hashed.
        repeat: Number of hyperplanes packed into each hash value (1..64).
        num_hashes: Number of independent family members. In a k-near
            neighbours style search this is the k.
        seed: Optional signed 64-bit seed. ``None`` seeds from OS entropy and
            gives hashes that are not reproducible across processes.
    """

    dim: int
    repeat: int
    num_hashes: int
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self.validate()
        # numpy integers pass validation; store plain ints
        for name in ("dim", "repeat", "num_hashes", "seed"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, int(value))

    def validate(self) -> None:
        """
        Check every field, raising ``ConfigurationError`` on the first problem.
        """
        for name in ("dim", "repeat", "num_hashes"):
            value = getattr(self, name)
            if not _is_int(value):
                raise ConfigurationError(
                    f"{name} must be an integer, received {value!r}"
                )
            if value <= 0:
                raise ConfigurationError(f"{name} must be greater than zero")

        if self.repeat > MAX_REPEAT:
            raise ConfigurationError(
                f"repeat must be at most {MAX_REPEAT} to fit a 64-bit hash "
                f"(received {self.repeat})"
            )

        if self.seed is not None:
            if not _is_int(self.seed):
                raise ConfigurationError(
                    f"seed must be an integer or None, received {self.seed!r}"
                )
            if not INT64_MIN <= self.seed <= INT64_MAX:
                raise ConfigurationError(
                    f"seed must fit in a signed 64-bit integer (received {self.seed})"
                )

    @property
    def reproducible(self) -> bool:
        return self.seed is not None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_strings(
        cls,
        dim: Union[str, int],
        repeat: Union[str, int],
        num_hashes: Union[str, int],
        seed: Union[str, int, None] = None,
    ) -> "HashFamilyConfig":
        """
        Build a configuration from textual arguments.

        Hosts commonly pass constructor arguments as strings; each one is
        parsed as a base-10 integer. An empty or ``None`` seed means unseeded.

        Example:
            >>> HashFamilyConfig.from_strings("3", "16", "5", "0")
            HashFamilyConfig(dim=3, repeat=16, num_hashes=5, seed=0)
        """
        parsed_seed = None
        if seed is not None and str(seed).strip() != "":
            parsed_seed = _parse_int("seed", seed)
        return cls(
            dim=_parse_int("dim", dim),
            repeat=_parse_int("repeat", repeat),
            num_hashes=_parse_int("num_hashes", num_hashes),
            seed=parsed_seed,
        )

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "HashFamilyConfig":
        """Build a configuration from a mapping such as a parsed JSON object."""
        missing = [key for key in ("dim", "repeat", "num_hashes") if key not in values]
        if missing:
            raise ConfigurationError(
                f"Missing configuration keys: {', '.join(missing)}"
            )
        unknown = set(values) - {"dim", "repeat", "num_hashes", "seed"}
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )
        return cls.from_strings(
            values["dim"],
            values["repeat"],
            values["num_hashes"],
            values.get("seed"),
        )


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a sensible size or seed
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _parse_int(name: str, value: Union[str, int]) -> int:
    if _is_int(value):
        return value
    try:
        return int(str(value).strip(), 10)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, received {value!r}"
        ) from None
