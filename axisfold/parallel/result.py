"""
Result assembly for parallel reductions.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from axisfold.core.array import ReductionKind


@dataclass
class ReductionResult:
    """
    Output of a reduction: the reduced array with the axis removed.

    Attributes:
        data: Reduced values, rank ``ndim - 1`` (0-d for a rank-1 input)
        counts: Per-cell number of non-NaN elements that contributed
        kind: Reduction that produced ``data``
        axis: Axis index that was reduced
        dims: Names of the remaining dimensions
        variable: Source variable name, if known
        dimension: Name of the reduced dimension, if known
    """

    data: np.ndarray
    counts: np.ndarray
    kind: ReductionKind
    axis: int
    dims: tuple[str, ...] = field(default_factory=tuple)
    variable: str | None = None
    dimension: str | None = None

    @property
    def shape(self) -> tuple[int, ...]:
        return self.data.shape

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def total_count(self) -> int:
        """Total number of valid elements folded across all cells."""
        return int(self.counts.sum())

    @property
    def empty_cells(self) -> int:
        """Number of output cells with no valid contribution."""
        return int(np.count_nonzero(self.counts == 0))

    @property
    def variable_name(self) -> str:
        """Name for the result variable, e.g. ``temp_mean_over_time``."""
        return result_variable_name(
            self.variable or "data",
            self.kind,
            self.dimension if self.dimension is not None else f"axis{self.axis}",
        )


def result_variable_name(variable: str, kind: ReductionKind, dimension: str) -> str:
    return f"{variable}_{kind.label}_over_{dimension}"


def assemble(
    kind: ReductionKind,
    values: np.ndarray,
    counts: np.ndarray,
    axis: int,
    dims: Sequence[str] | None = None,
    variable: str | None = None,
) -> ReductionResult:
    """
    Package merged buffers into a ``ReductionResult``.

    Args:
        kind: Reduction that was applied
        values: Finalized output values
        counts: Per-cell contribution counts
        axis: Reduced axis index
        dims: Dimension names of the *input* array (the reduced one is dropped)
        variable: Source variable name

    Returns:
        The assembled ReductionResult
    """
    dimension = None
    remaining: tuple[str, ...] = ()
    if dims is not None:
        dims = tuple(dims)
        dimension = dims[axis]
        remaining = dims[:axis] + dims[axis + 1 :]

    return ReductionResult(
        data=np.asarray(values, dtype=np.float64),
        counts=np.asarray(counts, dtype=np.int64),
        kind=kind,
        axis=axis,
        dims=remaining,
        variable=variable,
        dimension=dimension,
    )
