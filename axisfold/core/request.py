"""
Reduction and slice requests as given on the command line.
"""

from collections.abc import Sequence
from pathlib import Path

from axisfold.core.array import ReductionKind
from axisfold.core.errors import InvalidSlice, UnknownDimension


def parse_target(value: str) -> tuple[str, str]:
    """
    Parse a ``<variable>:<dimension>`` target.

    Raises:
        ValueError: If the value is not exactly two non-empty parts.

    Examples:
        >>> parse_target("temperature:time")
        ('temperature', 'time')
    """
    parts = value.split(":")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise ValueError(
            f"Invalid format '{value}': expected '<variable>:<dimension>'"
        )
    return parts[0].strip(), parts[1].strip()


class ReductionRequest:
    """
    A single reduction to run: which variable, over which dimension, how.

    Args:
        kind: Reduction kind (or its name)
        variable: Variable to reduce
        dimension: Dimension to reduce over
        num_threads: Optional worker count override
        output: Optional output file path
    """

    def __init__(
        self,
        kind: ReductionKind | str,
        variable: str,
        dimension: str,
        num_threads: int | None = None,
        output: str | Path | None = None,
    ):
        self.kind = ReductionKind.parse(kind)
        self.variable = variable
        self.dimension = dimension
        self.num_threads = num_threads
        self.output = Path(output) if output is not None else None

    @classmethod
    def from_options(
        cls,
        options: dict[str, str | None],
        num_threads: int | None = None,
        output: str | Path | None = None,
    ) -> "ReductionRequest":
        """
        Build a request from ``{kind_name: "var:dim" or None}`` CLI options.

        Raises:
            ValueError: If zero or several reductions are given, or a target
                is malformed.
        """
        given = {kind: target for kind, target in options.items() if target}
        if len(given) != 1:
            names = ", ".join(f"--{kind}" for kind in options)
            raise ValueError(f"Specify exactly one of {names}")
        (kind, target), = given.items()
        variable, dimension = parse_target(target)
        return cls(kind, variable, dimension, num_threads=num_threads, output=output)

    def __repr__(self) -> str:
        return (
            f"ReductionRequest(kind={self.kind.value!r}, variable={self.variable!r}, "
            f"dimension={self.dimension!r}, num_threads={self.num_threads})"
        )


def _parse_range(part: str, what: str) -> tuple[str, int, int]:
    pieces = part.split(":")
    if len(pieces) != 3:
        raise ValueError(
            f"Invalid slice format '{part}': expected '{what}:start:end'"
        )
    name, start, end = (piece.strip() for piece in pieces)
    if not name:
        raise ValueError(f"Invalid slice format '{part}': missing {what} name")
    try:
        return name, int(start), int(end)
    except ValueError:
        raise ValueError(
            f"Invalid start or end index in '{part}': expected integers"
        ) from None


class SliceRequest:
    """
    A hyperslab of one variable, as given by ``--slice``.

    The first range applies to the variable's first dimension; further
    ranges name their dimension. Dimensions without a range are read whole.

    Args:
        variable: Variable to slice
        first: ``(start, end)`` for the first dimension
        ranges: Dimension name -> ``(start, end)``
    """

    def __init__(
        self,
        variable: str,
        first: tuple[int, int],
        ranges: dict[str, tuple[int, int]] | None = None,
    ):
        self.variable = variable
        self.first = first
        self.ranges = dict(ranges or {})

    @classmethod
    def parse(cls, value: str) -> "SliceRequest":
        """
        Parse ``var:start:end[,dim:start:end...]``.

        Raises:
            ValueError: If the value is malformed

        Examples:
            >>> request = SliceRequest.parse("temperature:0:10,lat:2:5")
            >>> request.first, request.ranges
            ((0, 10), {'lat': (2, 5)})
        """
        parts = value.split(",")
        variable, start, end = _parse_range(parts[0], "variable")
        ranges = {}
        for part in parts[1:]:
            dimension, dim_start, dim_end = _parse_range(part, "dimension")
            ranges[dimension] = (dim_start, dim_end)
        return cls(variable, (start, end), ranges)

    def selection(
        self, dims: Sequence[str], shape: Sequence[int]
    ) -> tuple[slice, ...]:
        """
        Validate the ranges against a variable and build its selector.

        End indices are exclusive.

        Raises:
            UnknownDimension: If a named range matches no dimension
            InvalidSlice: If a range is empty or out of bounds, or the
                variable is a scalar
        """
        if not shape:
            raise InvalidSlice("Cannot slice a scalar variable", variable=self.variable)
        for dimension in self.ranges:
            if dimension not in dims:
                raise UnknownDimension(
                    f"Dimension not found (available: {', '.join(dims)})",
                    variable=self.variable,
                    dimension=dimension,
                )

        selector = []
        for i, (dimension, size) in enumerate(zip(dims, shape)):
            if dimension in self.ranges:
                start, end = self.ranges[dimension]
            elif i == 0:
                start, end = self.first
            else:
                start, end = 0, size
            if start < 0 or start >= size or end > size or start >= end:
                raise InvalidSlice(
                    f"Invalid slice range {start}:{end} (dimension size: {size})",
                    variable=self.variable,
                    dimension=dimension,
                )
            selector.append(slice(start, end))
        return tuple(selector)

    def __repr__(self) -> str:
        return (
            f"SliceRequest(variable={self.variable!r}, first={self.first}, "
            f"ranges={self.ranges})"
        )
