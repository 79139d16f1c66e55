"""
Core data types: reduction kinds and labeled arrays.
"""

from enum import Enum
from typing import Any

import numpy as np


class ReductionKind(str, Enum):
    """Supported axis reductions"""

    SUM = "sum"
    MEAN = "mean"
    MIN = "min"
    MAX = "max"

    @property
    def label(self) -> str:
        """Human-readable name used in messages and output variable names."""
        return _LABELS[self]

    @classmethod
    def parse(cls, value: "str | ReductionKind") -> "ReductionKind":
        """
        Parse a reduction kind from user input.

        Accepts the enum values plus the ``minimum``/``maximum``/``average``
        aliases, case-insensitively.

        Raises:
            ValueError: If the value names no known reduction.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(kind.value for kind in cls)
            raise ValueError(
                f"Unknown reduction '{value}'. Expected one of: {valid}"
            ) from None


_LABELS = {
    ReductionKind.SUM: "sum",
    ReductionKind.MEAN: "mean",
    ReductionKind.MIN: "minimum",
    ReductionKind.MAX: "maximum",
}

_ALIASES = {
    "minimum": "min",
    "maximum": "max",
    "average": "mean",
    "avg": "mean",
}


class LabeledArray:
    """
    A float64 array with a variable name, dimension names and attributes.

    This is what the I/O layer hands to the reduction engine: the data plus
    the name -> axis mapping needed to resolve ``variable:dimension``
    requests.

    Examples:
        >>> arr = LabeledArray(np.zeros((2, 3)), dims=("lat", "lon"), name="t2m")
        >>> arr.axis_of("lon")
        1
        >>> arr.shape
        (2, 3)
    """

    def __init__(
        self,
        data: Any,
        dims: tuple[str, ...] | list[str] | None = None,
        name: str | None = None,
        attrs: dict[str, Any] | None = None,
    ):
        """
        Initialize a labeled array.

        Args:
            data: Array-like numeric data, converted to float64
            dims: One name per axis (defaults to ``dim_0``, ``dim_1``, ...)
            name: Variable name
            attrs: Variable attributes carried through to the output

        Raises:
            ValueError: If the number of dimension names does not match the rank.
        """
        self.data = np.asarray(data, dtype=np.float64)
        if dims is None:
            dims = tuple(f"dim_{i}" for i in range(self.data.ndim))
        self.dims = tuple(dims)
        if len(self.dims) != self.data.ndim:
            raise ValueError(
                f"Got {len(self.dims)} dimension names for an array of rank "
                f"{self.data.ndim}"
            )
        self.name = name
        self.attrs = dict(attrs or {})

    @property
    def shape(self) -> tuple[int, ...]:
        return self.data.shape

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def dim_index(self) -> dict[str, int]:
        """Mapping of dimension name to axis index."""
        return {dim: i for i, dim in enumerate(self.dims)}

    def axis_of(self, dimension: str) -> int:
        """Axis index of a named dimension (see ``resolve_axis`` for errors)."""
        from axisfold.parallel.axis import resolve_axis

        return resolve_axis(self.shape, dimension, dims=self.dims, variable=self.name)

    def __repr__(self) -> str:
        dims = ", ".join(f"{d}: {n}" for d, n in zip(self.dims, self.shape))
        return f"LabeledArray(name={self.name!r}, dims=({dims}))"
