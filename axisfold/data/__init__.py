from .hdf import HDF5Source, VariableMetadata, write_result
from .metadata import (
    describe_variable,
    list_variables_and_dimensions,
    print_metadata,
    print_result,
    print_slice,
    print_summary,
)

__all__ = [
    "HDF5Source",
    "VariableMetadata",
    "write_result",
    "list_variables_and_dimensions",
    "describe_variable",
    "print_summary",
    "print_result",
    "print_metadata",
    "print_slice",
]
