"""
Parallel reduction engine.

The engine moves through ``idle -> partitioned -> dispatched -> merging ->
complete`` (or ``failed``). Validation and partitioning happen before any
work reaches the pool, so bad requests never dispatch a chunk. Chunks are
folded concurrently on the shared pool; the caller blocks on a join barrier
and partial results are merged in chunk-index order, which makes the output
bit-reproducible regardless of which worker finished first.
"""

from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future, wait
from enum import Enum
from typing import Any

import numpy as np
from loguru import logger

from axisfold.core.array import LabeledArray, ReductionKind
from axisfold.core.errors import AxisfoldError, WorkerFailure
from axisfold.parallel.axis import resolve_axis
from axisfold.parallel.kernels import (
    PartialResult,
    finalize,
    fold_chunk,
    identity,
    merge,
)
from axisfold.parallel.partition import Chunk, partition, total_cells
from axisfold.parallel.pool import ParallelConfig, get_pool
from axisfold.parallel.result import ReductionResult, assemble

ChunkObserver = Callable[[int, int], Any]


class EngineState(str, Enum):
    """Lifecycle states of a reduction."""

    IDLE = "idle"
    PARTITIONED = "partitioned"
    DISPATCHED = "dispatched"
    MERGING = "merging"
    COMPLETE = "complete"
    FAILED = "failed"


class ReductionEngine:
    """
    Reduce one axis of an array in parallel.

    Args:
        kind: Reduction to apply (``ReductionKind`` or its name)
        config: Parallel configuration; also sets how many chunks are made
        on_chunk_complete: Optional observer called as
            ``on_chunk_complete(chunk_index, n_chunks)`` from the worker thread
            each time a chunk finishes

    Examples:
        >>> engine = ReductionEngine("sum", ParallelConfig(2))
        >>> result = engine.run(np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]), axis=1)
        >>> result.data.tolist()
        [6.0, 15.0]
        >>> engine.state
        <EngineState.COMPLETE: 'complete'>
    """

    def __init__(
        self,
        kind: ReductionKind | str,
        config: ParallelConfig | None = None,
        on_chunk_complete: ChunkObserver | None = None,
    ):
        self.kind = ReductionKind.parse(kind)
        self.config = config or ParallelConfig()
        self.on_chunk_complete = on_chunk_complete
        self.state = EngineState.IDLE
        self.chunks: list[Chunk] = []
        self.dispatched_chunks = 0

    def run(
        self,
        array: LabeledArray | np.ndarray | Any,
        axis: str | int,
        dims: Sequence[str] | Mapping[str, int] | None = None,
        variable: str | None = None,
    ) -> ReductionResult:
        """
        Reduce ``array`` along ``axis``.

        Args:
            array: LabeledArray or array-like of numbers (converted to float64)
            axis: Dimension name or axis index
            dims: Dimension names in axis order or a ``{name: index}`` mapping
                (taken from ``array`` when it is a LabeledArray)
            variable: Variable name for messages and output naming

        Returns:
            ReductionResult with the axis removed

        Raises:
            UnknownDimension, AxisOutOfRange, EmptyReductionAxis: Before dispatch
            WorkerFailure: If any chunk's kernel raised
        """
        if isinstance(array, LabeledArray):
            data = array.data
            dims = dims if dims is not None else array.dims
            variable = variable if variable is not None else array.name
        else:
            data = np.asarray(array, dtype=np.float64)
        names = _ordered_names(dims, data.ndim)

        self.state = EngineState.IDLE
        self.chunks = []
        self.dispatched_chunks = 0

        try:
            # Workers share one read-only view of the input.
            view = data.view()
            view.flags.writeable = False

            axis_index = resolve_axis(view.shape, axis, dims=dims, variable=variable)
            self.chunks = partition(view.shape, axis_index, self.config.worker_count)
            self.state = EngineState.PARTITIONED

            n_cells = total_cells(view.shape, axis_index)
            logger.info(
                f"⚡ Computing {self.kind.label} over axis {axis_index} "
                f"({n_cells:,} cells, {len(self.chunks)} chunks)"
            )

            partials = self._dispatch(view, axis_index)

            self.state = EngineState.MERGING
            out_shape = view.shape[:axis_index] + view.shape[axis_index + 1 :]
            merged = self._merge(partials, out_shape, axis_index)
            values = finalize(self.kind, merged)

            result = assemble(
                self.kind,
                values,
                merged.counts,
                axis_index,
                dims=names,
                variable=variable,
            )
        except AxisfoldError as err:
            self.state = EngineState.FAILED
            raise err.with_context(
                variable=variable, dimension=_dimension_label(axis, names)
            )
        except Exception:
            self.state = EngineState.FAILED
            raise

        self.state = EngineState.COMPLETE
        logger.debug(f"✅ Reduction complete: output shape {result.shape}")
        return result

    def _dispatch(self, data: np.ndarray, axis: int) -> list[PartialResult]:
        """Submit one task per chunk, wait for all, and return partials in chunk order."""
        pool = get_pool(self.config)
        n_chunks = len(self.chunks)
        futures: dict[int, Future] = {}

        self.state = EngineState.DISPATCHED
        for chunk in self.chunks:
            futures[chunk.index] = pool.submit(self._fold, data, chunk, axis, n_chunks)
            self.dispatched_chunks += 1

        # Join barrier: every chunk runs to completion or failure.
        wait(futures.values())

        failed = [index for index, f in futures.items() if f.exception() is not None]
        if failed:
            index = min(failed)
            error = futures[index].exception()
            logger.error(f"Chunk {index} failed: {error!r}")
            if isinstance(error, AxisfoldError):
                raise error
            raise WorkerFailure(
                f"Reduction kernel failed: {error!r}", chunk_index=index
            ) from error

        return [futures[chunk.index].result() for chunk in self.chunks]

    def _merge(
        self, partials: list[PartialResult], out_shape: tuple[int, ...], axis: int
    ) -> PartialResult:
        merged = identity(self.kind, out_shape)
        for partial in sorted(partials, key=lambda p: p.chunk.index):
            selector = partial.chunk.output_selector(axis)
            region = PartialResult(
                chunk=None,
                values=merged.values[selector],
                counts=merged.counts[selector],
                folded=merged.folded[selector],
            )
            combined = merge(self.kind, region, partial)
            merged.values[selector] = combined.values
            merged.counts[selector] = combined.counts
            merged.folded[selector] = combined.folded
        return merged

    def _fold(
        self, data: np.ndarray, chunk: Chunk, axis: int, n_chunks: int
    ) -> PartialResult:
        partial = fold_chunk(self.kind, data, chunk, axis)
        logger.debug(f"Folded chunk {chunk.index} (rows {chunk.start}:{chunk.stop})")
        if self.on_chunk_complete is not None:
            self._notify(chunk.index, n_chunks)
        return partial

    def _notify(self, chunk_index: int, n_chunks: int) -> None:
        try:
            self.on_chunk_complete(chunk_index, n_chunks)
        except Exception as e:
            logger.warning(f"Chunk observer raised for chunk {chunk_index}: {e}")


def _ordered_names(
    dims: Sequence[str] | Mapping[str, int] | None, ndim: int
) -> tuple[str, ...] | None:
    """Dimension names in axis order; unnamed axes of a mapping get ``dim_<i>``."""
    if dims is None:
        return None
    if isinstance(dims, Mapping):
        names = [f"dim_{i}" for i in range(ndim)]
        for name, index in dims.items():
            if 0 <= index < ndim:
                names[index] = name
        return tuple(names)
    return tuple(dims)


def _dimension_label(axis: str | int, dims: Sequence[str] | None) -> str | int:
    if isinstance(axis, str) or dims is None:
        return axis
    if 0 <= axis < len(dims):
        return dims[axis]
    return axis


def reduce_array(
    array: LabeledArray | np.ndarray | Any,
    axis: str | int,
    kind: ReductionKind | str,
    num_threads: int | None = None,
    dims: Sequence[str] | Mapping[str, int] | None = None,
    variable: str | None = None,
    on_chunk_complete: ChunkObserver | None = None,
) -> ReductionResult:
    """
    Reduce ``array`` along ``axis`` with a one-off engine.

    Args:
        array: LabeledArray or array-like of numbers
        axis: Dimension name or axis index
        kind: ``sum``, ``mean``, ``min`` or ``max``
        num_threads: Worker count; defaults to the logical core count
        dims: Dimension names (or a name -> index mapping) for name-based axes
        variable: Variable name for messages
        on_chunk_complete: Optional per-chunk observer

    Returns:
        ReductionResult

    Examples:
        >>> reduce_array([[1, 2, 3], [4, 5, 6]], axis=1, kind="mean").data.tolist()
        [2.0, 5.0]
    """
    engine = ReductionEngine(
        kind, ParallelConfig(num_threads), on_chunk_complete=on_chunk_complete
    )
    return engine.run(array, axis, dims=dims, variable=variable)
