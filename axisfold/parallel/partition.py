"""
Chunk partitioning of the non-reduced index space.

Chunks always keep the full extent of the reduced axis, so every output cell
is folded inside exactly one chunk. The outermost non-reduced dimension is
split first; when it is too short to give every worker a chunk, each of its
rows is split further along the next non-reduced dimension, and so on.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from axisfold.core.errors import ConfigurationError


@dataclass(frozen=True)
class Chunk:
    """
    A contiguous range ``[start, stop)`` over dimension ``dim``.

    ``prefix`` fixes one index for each non-reduced dimension before ``dim``
    (outermost first). ``dim`` is ``None`` when the array has no non-reduced
    dimension, in which case the chunk covers the whole array.
    """

    index: int
    dim: int | None
    start: int
    stop: int
    prefix: tuple[int, ...] = ()

    @property
    def size(self) -> int:
        """Number of output cells along ``dim`` covered by this chunk."""
        return self.stop - self.start

    def _fixed(self, axis: int) -> list[slice]:
        # Length-1 slices keep the rank, so the reduced axis index is unchanged
        fixed = []
        positions = iter(self.prefix)
        for d in range(self.dim):
            if d == axis:
                fixed.append(slice(None))
            else:
                i = next(positions)
                fixed.append(slice(i, i + 1))
        return fixed

    def selector(self, ndim: int, axis: int) -> tuple[slice, ...]:
        """Basic-indexing selector for this chunk in an array of rank ``ndim``."""
        if self.dim is None:
            return (slice(None),) * ndim
        return tuple(self._fixed(axis)) + (slice(self.start, self.stop),)

    def view(self, data: np.ndarray, axis: int) -> np.ndarray:
        """Read-only view of ``data`` covered by this chunk (never a copy)."""
        return data[self.selector(data.ndim, axis)]

    def output_selector(self, axis: int) -> tuple[slice, ...]:
        """Selector for this chunk's cells in the output (``axis`` removed)."""
        if self.dim is None:
            return ()
        fixed = [s for d, s in enumerate(self._fixed(axis)) if d != axis]
        return tuple(fixed) + (slice(self.start, self.stop),)


def non_reduced_dimensions(shape: Sequence[int], axis: int) -> list[int]:
    """Dimensions other than the reduced axis, outermost first."""
    return [dim for dim in range(len(shape)) if dim != axis]


def total_cells(shape: Sequence[int], axis: int) -> int:
    """Number of output cells, i.e. the size of the non-reduced index space."""
    return math.prod(shape[dim] for dim in non_reduced_dimensions(shape, axis))


def partition(shape: Sequence[int], axis: int, worker_count: int) -> list[Chunk]:
    """
    Split the non-reduced index space into at most ``worker_count`` chunks.

    The split dimension is the outermost non-reduced dimension at which the
    non-reduced dimensions up to and including it hold at least
    ``worker_count`` cells (the innermost one if none does). Every index
    combination of the dimensions before it gets a near-equal share of the
    chunks, and within one combination the split dimension is divided into
    near-equal contiguous ranges, the first ``extent % n`` ranges getting one
    extra row. A space with fewer cells than ``worker_count`` gets one chunk
    per cell.

    Chunks are disjoint, ordered by index, never empty, and cover the space
    exactly once.

    Args:
        shape: Shape of the array being reduced
        axis: Validated reduced axis
        worker_count: Number of workers to spread the chunks over

    Returns:
        List of chunks ordered by ``index``

    Raises:
        ConfigurationError: If ``worker_count`` is not positive

    Examples:
        >>> [(c.start, c.stop) for c in partition((10, 4), axis=1, worker_count=3)]
        [(0, 4), (4, 7), (7, 10)]
        >>> [(c.prefix, c.start, c.stop) for c in partition((2, 4, 3), axis=2, worker_count=4)]
        [((0,), 0, 2), ((0,), 2, 4), ((1,), 0, 2), ((1,), 2, 4)]
    """
    if worker_count <= 0:
        raise ConfigurationError(f"Worker count must be positive, got {worker_count}")

    dims = non_reduced_dimensions(shape, axis)
    if not dims:
        return [Chunk(index=0, dim=None, start=0, stop=1)]
    if total_cells(shape, axis) == 0:
        return []

    # Outermost level whose cumulative cell count reaches worker_count;
    # outer_cells is the number of cells before that level.
    level, outer_cells = 0, 1
    while level < len(dims) - 1 and outer_cells * shape[dims[level]] < worker_count:
        outer_cells *= shape[dims[level]]
        level += 1

    split_dim = dims[level]
    extent = shape[split_dim]
    n_chunks = min(worker_count, outer_cells * extent)
    per_prefix, extra = divmod(n_chunks, outer_cells)

    chunks = []
    prefixes = np.ndindex(*(shape[dim] for dim in dims[:level]))
    for p, prefix in enumerate(prefixes):
        n_ranges = per_prefix + (1 if p < extra else 0)
        base, remainder = divmod(extent, n_ranges)
        start = 0
        for r in range(n_ranges):
            size = base + (1 if r < remainder else 0)
            chunks.append(
                Chunk(
                    index=len(chunks),
                    dim=split_dim,
                    start=start,
                    stop=start + size,
                    prefix=tuple(int(i) for i in prefix),
                )
            )
            start += size

    return chunks
