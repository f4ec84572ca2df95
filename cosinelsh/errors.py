"""Exceptions raised by cosinelsh."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid hash family configuration (dimension, repeat, family size or seed)."""


class DimensionMismatchError(ValueError):
    """A vector does not have the dimensionality the family was built for."""

    def __init__(self, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(
            f"Expected vector of dimension {expected}, received {received}"
        )
