try:
    from importlib.metadata import version

    __version__ = version("axisfold")
except ImportError:
    __version__ = "unknown"

# Core imports - always available
from axisfold.core import (
    AxisfoldError,
    AxisOutOfRange,
    ConfigurationError,
    EmptyReductionAxis,
    InvalidSlice,
    LabeledArray,
    ReductionKind,
    UnknownDimension,
    VariableNotFound,
    WorkerFailure,
)
from axisfold.core.statistics import (
    max_over_dimension,
    mean_over_dimension,
    min_over_dimension,
    reduce_over_dimension,
    sum_over_dimension,
    summarize_array,
    summarize_variable,
)
from axisfold.parallel import (
    ParallelConfig,
    ReductionEngine,
    ReductionResult,
    get_parallel_info,
    reduce_array,
)


# Lazy import for the h5py-backed I/O layer
def _import_io():
    """Lazy import for HDF5Source and write_result"""
    from axisfold.data import HDF5Source, write_result

    return HDF5Source, write_result


def get_io():
    """Get HDF5Source and write_result (lazy import)"""
    return _import_io()


__all__ = [
    # Data types
    "ReductionKind",
    "LabeledArray",
    # Errors
    "AxisfoldError",
    "UnknownDimension",
    "AxisOutOfRange",
    "EmptyReductionAxis",
    "ConfigurationError",
    "WorkerFailure",
    "VariableNotFound",
    "InvalidSlice",
    # Engine
    "ReductionEngine",
    "ReductionResult",
    "ParallelConfig",
    "reduce_array",
    "get_parallel_info",
    # Dimension statistics
    "reduce_over_dimension",
    "mean_over_dimension",
    "sum_over_dimension",
    "min_over_dimension",
    "max_over_dimension",
    "summarize_array",
    "summarize_variable",
    # Lazy import functions
    "get_io",
]
