"""
Reduction kernels and their associative merges.

Each kernel folds one chunk along the reduced axis and returns a
``PartialResult`` holding, per output cell:

- ``values``: the running aggregate (sum for sum/mean, extreme for min/max)
- ``counts``: number of non-NaN elements folded into the cell
- ``folded``: number of elements folded into the cell, NaN included

NaN policy: sum and mean propagate NaN (IEEE arithmetic), min and max skip
NaN and return NaN with a count of 0 when every element is NaN. Infinities
are ordinary values for all four kinds.
"""

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from axisfold.core.array import ReductionKind
from axisfold.core.errors import EmptyReductionAxis
from axisfold.parallel.partition import Chunk


@dataclass
class PartialResult:
    """Aggregates produced by folding one chunk (``chunk`` is None for merged buffers)."""

    chunk: Chunk | None
    values: np.ndarray
    counts: np.ndarray
    folded: np.ndarray


def compensated_sum(block: np.ndarray, axis: int) -> np.ndarray:
    """
    Neumaier-compensated sum of ``block`` along ``axis``.

    The loop runs over the reduced axis and is vectorized over every other
    cell, so each cell is summed in the same order whatever chunk it sits in.
    The running total follows IEEE rules (NaN and infinities propagate); a
    non-zero compensation term is only added back where that total is finite.
    """
    rows = np.moveaxis(block, axis, 0)
    # -0.0 is the exact additive identity: -0.0 + x == x for every x
    total = np.full(rows.shape[1:], -0.0)
    compensation = np.zeros(rows.shape[1:])

    with np.errstate(invalid="ignore", over="ignore"):
        for row in rows:
            running = total + row
            larger = np.abs(total) >= np.abs(row)
            compensation += np.where(
                larger, (total - running) + row, (row - running) + total
            )
            total = running
        corrected = np.isfinite(total) & (compensation != 0)
        return np.where(corrected, total + compensation, total)


def _valid_counts(block: np.ndarray, axis: int) -> np.ndarray:
    return np.count_nonzero(~np.isnan(block), axis=axis).astype(np.int64)


def _folded_counts(block: np.ndarray, axis: int) -> np.ndarray:
    shape = block.shape[:axis] + block.shape[axis + 1 :]
    return np.full(shape, block.shape[axis], dtype=np.int64)


def fold_sum(block: np.ndarray, axis: int) -> tuple[np.ndarray, ...]:
    return (
        compensated_sum(block, axis),
        _valid_counts(block, axis),
        _folded_counts(block, axis),
    )


def fold_mean(block: np.ndarray, axis: int) -> tuple[np.ndarray, ...]:
    # Mean partials carry the unnormalized sum; ``finalize`` divides.
    if block.shape[axis] == 0:
        raise EmptyReductionAxis(f"Cannot compute mean over axis {axis} of length 0")
    return fold_sum(block, axis)


def fold_min(block: np.ndarray, axis: int) -> tuple[np.ndarray, ...]:
    return (
        np.fmin.reduce(block, axis=axis),
        _valid_counts(block, axis),
        _folded_counts(block, axis),
    )


def fold_max(block: np.ndarray, axis: int) -> tuple[np.ndarray, ...]:
    return (
        np.fmax.reduce(block, axis=axis),
        _valid_counts(block, axis),
        _folded_counts(block, axis),
    )


KERNELS: dict[ReductionKind, Callable[[np.ndarray, int], tuple[np.ndarray, ...]]] = {
    ReductionKind.SUM: fold_sum,
    ReductionKind.MEAN: fold_mean,
    ReductionKind.MIN: fold_min,
    ReductionKind.MAX: fold_max,
}

# Elementwise combine of two partial aggregates over the same cells.
MERGES: dict[ReductionKind, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
    ReductionKind.SUM: np.add,
    ReductionKind.MEAN: np.add,
    ReductionKind.MIN: np.fmin,
    ReductionKind.MAX: np.fmax,
}

_IDENTITIES = {
    ReductionKind.SUM: -0.0,
    ReductionKind.MEAN: -0.0,
    ReductionKind.MIN: np.nan,
    ReductionKind.MAX: np.nan,
}


def fold_chunk(
    kind: ReductionKind, data: np.ndarray, chunk: Chunk, axis: int
) -> PartialResult:
    """
    Fold the part of ``data`` covered by ``chunk`` along ``axis``.

    Args:
        kind: Reduction to apply
        data: Full (read-only) input array
        chunk: Chunk describing which cells to fold
        axis: Reduced axis

    Returns:
        PartialResult for the chunk's cells
    """
    block = chunk.view(data, axis)
    values, counts, folded = KERNELS[kind](block, axis)
    return PartialResult(chunk=chunk, values=values, counts=counts, folded=folded)


def identity(kind: ReductionKind, shape: tuple[int, ...]) -> PartialResult:
    """Merge identity for ``kind``: merging it with any partial returns that partial."""
    return PartialResult(
        chunk=None,
        values=np.full(shape, _IDENTITIES[kind], dtype=np.float64),
        counts=np.zeros(shape, dtype=np.int64),
        folded=np.zeros(shape, dtype=np.int64),
    )


def merge(kind: ReductionKind, left: PartialResult, right: PartialResult) -> PartialResult:
    """
    Combine two partial aggregates covering the same cells.

    The merge is associative; for min/max it skips NaN the same way the
    kernels do.
    """
    with np.errstate(invalid="ignore", over="ignore"):
        values = MERGES[kind](left.values, right.values)
    return PartialResult(
        chunk=None,
        values=values,
        counts=left.counts + right.counts,
        folded=left.folded + right.folded,
    )


def finalize(kind: ReductionKind, partial: PartialResult) -> np.ndarray:
    """
    Turn merged aggregates into output values.

    Raises:
        EmptyReductionAxis: If a mean cell had no elements folded into it.
    """
    if kind is not ReductionKind.MEAN:
        return np.asarray(partial.values, dtype=np.float64)

    folded = np.asarray(partial.folded)
    if folded.size and np.any(folded == 0):
        raise EmptyReductionAxis("Cannot compute mean of an empty axis")
    with np.errstate(invalid="ignore", divide="ignore"):
        return np.asarray(partial.values / folded, dtype=np.float64)
