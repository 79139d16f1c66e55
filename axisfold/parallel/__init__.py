"""
Parallel axis reductions.

The engine partitions the non-reduced index space into chunks, folds each
chunk on a shared thread pool and merges the partial results in a fixed
order.
"""

from axisfold.parallel.axis import resolve_axis
from axisfold.parallel.engine import EngineState, ReductionEngine, reduce_array
from axisfold.parallel.kernels import PartialResult, compensated_sum
from axisfold.parallel.partition import Chunk, partition
from axisfold.parallel.pool import (
    ParallelConfig,
    ParallelInfo,
    get_parallel_info,
    get_pool,
    shutdown_pool,
)
from axisfold.parallel.result import ReductionResult

__all__ = [
    "ReductionEngine",
    "EngineState",
    "reduce_array",
    "ReductionResult",
    "ParallelConfig",
    "ParallelInfo",
    "get_parallel_info",
    "get_pool",
    "shutdown_pool",
    "Chunk",
    "partition",
    "PartialResult",
    "compensated_sum",
    "resolve_axis",
]
