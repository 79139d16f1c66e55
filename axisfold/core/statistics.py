"""
Dimension-level statistics over variables loaded from a data source.

These functions glue the I/O layer to the reduction engine: they load a
variable, resolve the dimension by name, run the parallel reduction and
make sure any error names the variable and dimension involved.
"""

from dataclasses import dataclass
from typing import Protocol

import numpy as np
from loguru import logger

from axisfold.core.array import LabeledArray, ReductionKind
from axisfold.core.errors import AxisfoldError
from axisfold.parallel.engine import ChunkObserver, ReductionEngine
from axisfold.parallel.pool import ParallelConfig
from axisfold.parallel.result import ReductionResult


class VariableSource(Protocol):
    """Anything that can load a named variable as a LabeledArray."""

    def read_variable(self, name: str) -> LabeledArray: ...


def reduce_over_dimension(
    source: VariableSource,
    variable: str,
    dimension: str,
    kind: ReductionKind | str,
    config: ParallelConfig | None = None,
    on_chunk_complete: ChunkObserver | None = None,
) -> ReductionResult:
    """
    Reduce ``variable`` over the named ``dimension``.

    Args:
        source: Data source holding the variable (e.g. an open HDF5Source)
        variable: Variable name
        dimension: Name of the dimension to reduce over
        kind: ``sum``, ``mean``, ``min`` or ``max``
        config: Parallel configuration
        on_chunk_complete: Optional per-chunk observer

    Returns:
        ReductionResult whose ``dims`` are the remaining dimension names

    Raises:
        VariableNotFound: If the variable does not exist
        UnknownDimension: If the variable has no such dimension
        EmptyReductionAxis: If the dimension has length 0
        WorkerFailure: If a chunk failed during the reduction

    Examples:
        >>> with HDF5Source("climate.nc") as source:
        ...     result = reduce_over_dimension(source, "temperature", "time", "mean")
        >>> result.variable_name
        'temperature_mean_over_time'
    """
    kind = ReductionKind.parse(kind)
    try:
        array = source.read_variable(variable)
        logger.info(f"📐 Reducing '{variable}' over '{dimension}' ({kind.label})")
        engine = ReductionEngine(kind, config, on_chunk_complete=on_chunk_complete)
        return engine.run(array, dimension, variable=variable)
    except AxisfoldError as err:
        raise err.with_context(variable=variable, dimension=dimension)


def mean_over_dimension(
    source: VariableSource,
    variable: str,
    dimension: str,
    config: ParallelConfig | None = None,
) -> ReductionResult:
    return reduce_over_dimension(source, variable, dimension, ReductionKind.MEAN, config)


def sum_over_dimension(
    source: VariableSource,
    variable: str,
    dimension: str,
    config: ParallelConfig | None = None,
) -> ReductionResult:
    return reduce_over_dimension(source, variable, dimension, ReductionKind.SUM, config)


def min_over_dimension(
    source: VariableSource,
    variable: str,
    dimension: str,
    config: ParallelConfig | None = None,
) -> ReductionResult:
    return reduce_over_dimension(source, variable, dimension, ReductionKind.MIN, config)


def max_over_dimension(
    source: VariableSource,
    variable: str,
    dimension: str,
    config: ParallelConfig | None = None,
) -> ReductionResult:
    return reduce_over_dimension(source, variable, dimension, ReductionKind.MAX, config)


@dataclass
class VariableSummary:
    """Whole-variable statistics."""

    name: str
    shape: tuple[int, ...]
    size: int
    valid_count: int
    minimum: float
    maximum: float
    mean: float

    @property
    def missing_count(self) -> int:
        return self.size - self.valid_count


def reduce_all(
    data: np.ndarray, kind: ReductionKind, config: ParallelConfig | None = None
) -> tuple[float, int]:
    """
    Reduce every axis of ``data`` down to a scalar.

    Axis 0 is reduced repeatedly, so each pass is parallel over the
    remaining axes.

    Returns:
        Tuple of (value, number of valid elements in ``data``)
    """
    current = np.asarray(data, dtype=np.float64)
    valid_count = None
    while current.ndim > 0:
        result = ReductionEngine(kind, config).run(current, 0)
        if valid_count is None:
            valid_count = result.total_count
        current = result.data
    if valid_count is None:
        # 0-d input: a single element
        valid_count = 0 if np.isnan(current) else 1
    return float(current), valid_count


def summarize_array(
    array: LabeledArray, config: ParallelConfig | None = None
) -> VariableSummary:
    """
    Minimum, maximum and mean of an already loaded array.

    Minimum and maximum skip NaN; the mean propagates it, like the
    per-dimension reductions. The mean is the sum over all elements divided
    by the element count.
    """
    minimum, valid_count = reduce_all(array.data, ReductionKind.MIN, config)
    maximum, _ = reduce_all(array.data, ReductionKind.MAX, config)
    total, _ = reduce_all(array.data, ReductionKind.SUM, config)

    size = int(array.data.size)
    return VariableSummary(
        name=array.name or "array",
        shape=array.shape,
        size=size,
        valid_count=valid_count,
        minimum=minimum,
        maximum=maximum,
        mean=total / size if size else float("nan"),
    )


def summarize_variable(
    source: VariableSource, variable: str, config: ParallelConfig | None = None
) -> VariableSummary:
    """Minimum, maximum and mean of a whole variable (see ``summarize_array``)."""
    try:
        array = source.read_variable(variable)
        summary = summarize_array(array, config)
    except AxisfoldError as err:
        raise err.with_context(variable=variable)
    summary.name = variable
    return summary
