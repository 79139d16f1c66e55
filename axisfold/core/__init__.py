from .array import LabeledArray, ReductionKind
from .errors import (
    AxisfoldError,
    AxisOutOfRange,
    ConfigurationError,
    EmptyReductionAxis,
    InvalidSlice,
    UnknownDimension,
    VariableNotFound,
    WorkerFailure,
)
from .request import ReductionRequest, SliceRequest, parse_target

__all__ = [
    "ReductionKind",
    "LabeledArray",
    "ReductionRequest",
    "parse_target",
    "SliceRequest",
    "AxisfoldError",
    "UnknownDimension",
    "AxisOutOfRange",
    "EmptyReductionAxis",
    "ConfigurationError",
    "WorkerFailure",
    "VariableNotFound",
    "InvalidSlice",
]
