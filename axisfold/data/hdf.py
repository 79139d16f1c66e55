"""
HDF5 / netCDF-4 input and output for reductions.

netCDF-4 files are HDF5 files whose dimensions are stored as HDF5 dimension
scales, so a single h5py-based reader covers both. Dimension names are taken
from attached dimension scales, then from dimension labels, then default to
``dim_<i>``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import h5py
import numpy as np
from loguru import logger

from axisfold.core.array import LabeledArray
from axisfold.core.errors import VariableNotFound
from axisfold.parallel.result import ReductionResult

# HDF5/netCDF bookkeeping attributes that must not be copied between files
RESERVED_ATTRIBUTES = {
    "CLASS",
    "NAME",
    "DIMENSION_LIST",
    "REFERENCE_LIST",
    "DIMENSION_LABELS",
    "_FillValue",
    "_Netcdf4Dimid",
    "_Netcdf4Coordinates",
    "_nc3_strict",
    "_NCProperties",
}

# netCDF-4 marks dimensions without a coordinate variable with this NAME prefix
_PURE_DIMENSION_MARKER = "This is a netCDF dimension but not a netCDF variable"


@dataclass
class VariableMetadata:
    """Shape, type and attribute information for one variable."""

    name: str
    shape: tuple[int, ...]
    dtype: str
    dims: tuple[str, ...]
    attrs: dict[str, Any] = field(default_factory=dict)
    is_coordinate: bool = False

    @property
    def size(self) -> int:
        return int(np.prod(self.shape)) if self.shape else 1


def clean_attribute(value: Any) -> Any:
    """Convert an h5py attribute value to a plain Python value."""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        if value.dtype.kind in ("S", "O"):
            return [clean_attribute(v) for v in value.tolist()]
        return value.tolist()
    return value


def _is_dimension_scale(dset: h5py.Dataset) -> bool:
    return clean_attribute(dset.attrs.get("CLASS", b"")) == "DIMENSION_SCALE"


def _is_pure_dimension(dset: h5py.Dataset) -> bool:
    name = clean_attribute(dset.attrs.get("NAME", b""))
    return isinstance(name, str) and name.startswith(_PURE_DIMENSION_MARKER)


class HDF5Source:
    """
    Read variables from an HDF5 or netCDF-4 file.

    Use as a context manager:

    Examples:
        >>> with HDF5Source("climate.nc") as source:
        ...     temp = source.read_variable("temperature")
        >>> temp.dims
        ('time', 'lat', 'lon')
    """

    def __init__(self, path: str | Path):
        """
        Initialize the source.

        Args:
            path: Path to an HDF5 or netCDF-4 file

        Raises:
            FileNotFoundError: If the file does not exist
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Input file not found: {self.path}")
        self._file: h5py.File | None = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def open(self) -> None:
        if self._file is None:
            self._file = h5py.File(self.path, "r")
            logger.debug(f"Opened {self.path}")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    @property
    def file(self) -> h5py.File:
        if self._file is None:
            raise RuntimeError("File not opened")
        return self._file

    @property
    def attrs(self) -> dict[str, Any]:
        """Global (file-level) attributes."""
        return {
            key: clean_attribute(value)
            for key, value in self.file.attrs.items()
            if key not in RESERVED_ATTRIBUTES
        }

    def list_variables(self) -> list[str]:
        """Names (HDF5 paths without the leading slash) of all data variables."""
        names: list[str] = []

        def visit(name: str, obj: Any) -> None:
            if isinstance(obj, h5py.Dataset) and not _is_pure_dimension(obj):
                names.append(name)

        self.file.visititems(visit)
        return names

    def list_dimensions(self) -> dict[str, int]:
        """Dimension name -> length, gathered from every variable."""
        dimensions: dict[str, int] = {}
        for name in self.list_variables():
            metadata = self.get_metadata(name)
            for dim, size in zip(metadata.dims, metadata.shape):
                dimensions.setdefault(dim, size)
        return dimensions

    def _dataset(self, name: str) -> h5py.Dataset:
        obj = self.file.get(name)
        if not isinstance(obj, h5py.Dataset) or _is_pure_dimension(obj):
            raise VariableNotFound("Variable not found in file", variable=name)
        return obj

    def _dimension_names(self, dset: h5py.Dataset) -> tuple[str, ...]:
        if _is_dimension_scale(dset) and dset.ndim == 1:
            # A coordinate variable is its own dimension
            return (dset.name.rsplit("/", 1)[-1],)
        names = []
        for i, dim in enumerate(dset.dims):
            if len(dim) > 0:
                names.append(dim[0].name.rsplit("/", 1)[-1])
            elif dim.label:
                names.append(dim.label)
            else:
                names.append(f"dim_{i}")
        return tuple(names)

    def get_metadata(self, name: str) -> VariableMetadata:
        """
        Metadata for a variable.

        Raises:
            VariableNotFound: If the variable does not exist
        """
        dset = self._dataset(name)
        attrs = {
            key: clean_attribute(value)
            for key, value in dset.attrs.items()
            if key not in RESERVED_ATTRIBUTES or key == "_FillValue"
        }
        return VariableMetadata(
            name=name,
            shape=tuple(dset.shape),
            dtype=str(dset.dtype),
            dims=self._dimension_names(dset),
            attrs=attrs,
            is_coordinate=_is_dimension_scale(dset),
        )

    def read_variable(self, name: str, mask_fill: bool = True) -> LabeledArray:
        """
        Load a whole variable as float64.

        Args:
            name: Variable name
            mask_fill: Replace ``_FillValue`` entries with NaN

        Returns:
            LabeledArray with the variable's dimensions and attributes

        Raises:
            VariableNotFound: If the variable does not exist
            TypeError: If the variable is not numeric
        """
        return self._read(name, (), mask_fill)

    def read_slice(
        self, name: str, selection: tuple[slice, ...], mask_fill: bool = True
    ) -> LabeledArray:
        """
        Load a hyperslab of a variable as float64.

        Only the selected block is read from disk. The result keeps every
        dimension, including those of length one.

        Args:
            name: Variable name
            selection: One slice per dimension, e.g. from ``SliceRequest.selection``
            mask_fill: Replace ``_FillValue`` entries with NaN

        Raises:
            VariableNotFound: If the variable does not exist
            TypeError: If the variable is not numeric
        """
        return self._read(name, selection, mask_fill)

    def _read(
        self, name: str, selection: tuple[slice, ...], mask_fill: bool
    ) -> LabeledArray:
        dset = self._dataset(name)
        if dset.dtype.kind not in "iufb":
            raise TypeError(f"Variable '{name}' has non-numeric dtype {dset.dtype}")

        metadata = self.get_metadata(name)
        if selection:
            ranges = ", ".join(f"{s.start}:{s.stop}" for s in selection)
            logger.info(f"🚀 Loading slice [{ranges}] of '{name}'")
        else:
            logger.info(f"🚀 Loading '{name}' with shape {metadata.shape}")
        data = np.asarray(dset[selection], dtype=np.float64)

        fill_value = metadata.attrs.get("_FillValue")
        if isinstance(fill_value, list) and len(fill_value) == 1:
            fill_value = fill_value[0]
        if mask_fill and isinstance(fill_value, int | float) and not np.isnan(fill_value):
            data[data == fill_value] = np.nan

        return LabeledArray(
            data, dims=metadata.dims, name=name, attrs=metadata.attrs
        )

    def coordinates(self, dims: tuple[str, ...] | list[str]) -> dict[str, np.ndarray]:
        """Coordinate values for the given dimensions, where the file has them."""
        coords = {}
        for dim in dims:
            obj = self.file.get(dim)
            if (
                isinstance(obj, h5py.Dataset)
                and obj.ndim == 1
                and not _is_pure_dimension(obj)
            ):
                coords[dim] = obj[()]
        return coords


def write_result(
    result: ReductionResult,
    output_path: str | Path,
    attrs: dict[str, Any] | None = None,
    coordinates: dict[str, np.ndarray] | None = None,
) -> Path:
    """
    Write a reduction result to a new HDF5 / netCDF-4 style file.

    The file holds the reduced variable (named ``<var>_<op>_over_<dim>``), a
    ``<name>_count`` variable with per-cell contribution counts, and one
    dimension scale per remaining dimension. An existing file is replaced.

    Args:
        result: Reduction result to write
        output_path: Destination file
        attrs: Attributes of the source variable, copied onto the result
        coordinates: Coordinate values for remaining dimensions

    Returns:
        Path of the written file
    """
    output_path = Path(output_path)
    if output_path.exists():
        output_path.unlink()

    attrs = attrs or {}
    coordinates = coordinates or {}
    name = result.variable_name

    with h5py.File(output_path, "w") as f:
        scales = []
        for dim, size in zip(result.dims, result.shape):
            values = coordinates.get(dim)
            if values is None or len(values) != size:
                values = np.arange(size)
            scale = f.create_dataset(dim, data=values)
            scale.make_scale(dim)
            scales.append(scale)

        values_dset = f.create_dataset(name, data=result.data)
        counts_dset = f.create_dataset(f"{name}_count", data=result.counts)
        for dset in (values_dset, counts_dset):
            for i, scale in enumerate(scales):
                dset.dims[i].attach_scale(scale)

        for key, value in attrs.items():
            if key in RESERVED_ATTRIBUTES:
                continue
            try:
                values_dset.attrs[key] = value
            except (TypeError, ValueError):
                logger.warning(f"⚠ Skipped unsupported attribute type for '{key}'")

        values_dset.attrs["reduction"] = result.kind.label
        if result.dimension is not None:
            values_dset.attrs["reduced_dimension"] = result.dimension
        if result.variable is not None:
            values_dset.attrs["source_variable"] = result.variable
        counts_dset.attrs["long_name"] = f"number of valid values in {name}"

        f.attrs["history"] = (
            f"Created by axisfold on {datetime.now(timezone.utc).isoformat()}"
        )

    logger.info(f"✅ Result saved to {output_path}")
    return output_path
