"""Tests for the HDF5 / netCDF-4 I/O adapter."""

import h5py
import numpy as np
import pytest

from axisfold.core.errors import VariableNotFound
from axisfold.core.statistics import mean_over_dimension
from axisfold.data.hdf import HDF5Source, clean_attribute, write_result
from axisfold.parallel.engine import reduce_array

FILL_VALUE = -999.0


class TestHDF5Source:
    """Test reading variables and metadata."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Input file not found"):
            HDF5Source(tmp_path / "missing.h5")

    def test_requires_open(self, sample_h5):
        source = HDF5Source(sample_h5)
        with pytest.raises(RuntimeError, match="File not opened"):
            source.list_variables()

    def test_context_manager_closes(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            assert source.file.id.valid
        with pytest.raises(RuntimeError):
            source.file

    def test_list_variables(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            variables = set(source.list_variables())
        assert variables == {"time", "lat", "lon", "temperature", "pressure", "station"}

    def test_list_dimensions(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            dimensions = source.list_dimensions()

        assert dimensions["time"] == 4
        assert dimensions["lat"] == 3
        assert dimensions["lon"] == 2
        assert dimensions["x"] == 2
        assert dimensions["y"] == 5

    def test_global_attributes(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            assert source.attrs == {"title": "axisfold test file"}

    def test_metadata_from_dimension_scales(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            metadata = source.get_metadata("temperature")

        assert metadata.dims == ("time", "lat", "lon")
        assert metadata.shape == (4, 3, 2)
        assert metadata.size == 24
        assert metadata.dtype == "float64"
        assert metadata.attrs["units"] == "K"
        assert metadata.attrs["_FillValue"] == FILL_VALUE
        assert "DIMENSION_LIST" not in metadata.attrs
        assert not metadata.is_coordinate

    def test_metadata_from_labels(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            assert source.get_metadata("pressure").dims == ("x", "y")
            assert source.get_metadata("station").dims == ("dim_0",)

    def test_coordinate_variable(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            metadata = source.get_metadata("time")

        assert metadata.is_coordinate
        assert metadata.dims == ("time",)
        assert metadata.attrs == {"units": "hours"}

    def test_read_masks_fill_value(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            masked = source.read_variable("temperature")
            raw = source.read_variable("temperature", mask_fill=False)

        assert masked.name == "temperature"
        assert masked.dims == ("time", "lat", "lon")
        assert np.isnan(masked.data[0, 0, 0])
        assert raw.data[0, 0, 0] == FILL_VALUE
        assert masked.data[3, 2, 1] == 23.0

    def test_read_converts_to_float64(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            pressure = source.read_variable("pressure")
        assert pressure.data.dtype == np.float64

    def test_missing_variable(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            with pytest.raises(VariableNotFound) as exc_info:
                source.read_variable("humidity")
        assert exc_info.value.variable == "humidity"

    def test_non_numeric_variable(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            with pytest.raises(TypeError, match="non-numeric"):
                source.read_variable("station")

    def test_read_slice(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            block = source.read_slice("temperature", (slice(0, 2), slice(1, 3), slice(0, 1)))

        assert block.dims == ("time", "lat", "lon")
        assert block.shape == (2, 2, 1)
        assert block.data.dtype == np.float64
        assert block.data[:, :, 0].tolist() == [[2.0, 4.0], [8.0, 10.0]]

    def test_read_slice_masks_fill_value(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            block = source.read_slice("temperature", (slice(0, 1), slice(0, 1), slice(0, 2)))
        assert np.isnan(block.data[0, 0, 0])
        assert block.data[0, 0, 1] == 1.0

    def test_read_slice_missing_variable(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            with pytest.raises(VariableNotFound):
                source.read_slice("humidity", (slice(0, 1),))

    def test_coordinates(self, sample_h5):
        with HDF5Source(sample_h5) as source:
            coords = source.coordinates(("lat", "lon", "x"))

        assert set(coords) == {"lat", "lon"}
        assert coords["lat"].tolist() == [-10.0, 0.0, 10.0]


class TestWriteResult:
    """Test writing reduction results back to HDF5."""

    def test_roundtrip(self, sample_h5, tmp_path):
        output = tmp_path / "mean.h5"
        with HDF5Source(sample_h5) as source:
            result = mean_over_dimension(source, "temperature", "time")
            written = write_result(
                result,
                output,
                attrs=source.get_metadata("temperature").attrs,
                coordinates=source.coordinates(result.dims),
            )

        assert written == output
        with HDF5Source(output) as reread:
            assert set(reread.list_variables()) == {
                "lat",
                "lon",
                "temperature_mean_over_time",
                "temperature_mean_over_time_count",
            }
            metadata = reread.get_metadata("temperature_mean_over_time")
            assert metadata.dims == ("lat", "lon")
            assert metadata.attrs["units"] == "K"
            assert metadata.attrs["reduction"] == "mean"
            assert metadata.attrs["reduced_dimension"] == "time"
            assert metadata.attrs["source_variable"] == "temperature"
            assert "_FillValue" not in metadata.attrs

            values = reread.read_variable("temperature_mean_over_time").data
            np.testing.assert_array_equal(values, result.data)
            counts = reread.read_variable("temperature_mean_over_time_count").data
            assert counts.tolist() == result.counts.tolist()
            assert reread.coordinates(("lat",))["lat"].tolist() == [-10.0, 0.0, 10.0]
            assert reread.attrs["history"].startswith("Created by axisfold on ")

    def test_replaces_existing_file(self, tmp_path):
        output = tmp_path / "out.h5"
        output.write_bytes(b"not an hdf5 file")

        result = reduce_array(
            np.ones((3, 4)), axis="y", kind="sum", dims=("x", "y"), variable="ones"
        )
        write_result(result, output)

        with h5py.File(output, "r") as f:
            assert f["ones_sum_over_y"][()].tolist() == [4.0, 4.0, 4.0]
            # No coordinates given: the scale is an index
            assert f["x"][()].tolist() == [0, 1, 2]

    def test_skips_unsupported_attributes(self, tmp_path):
        result = reduce_array(np.ones((2, 2)), axis=0, kind="max")
        output = write_result(
            result, tmp_path / "out.h5", attrs={"units": "m", "bad": {"nested": 1}}
        )

        with h5py.File(output, "r") as f:
            attrs = f["data_maximum_over_axis0"].attrs
            assert attrs["units"] == "m"
            assert "bad" not in attrs


def test_clean_attribute():
    assert clean_attribute(b"K") == "K"
    assert clean_attribute(np.float32(1.5)) == 1.5
    assert clean_attribute(np.array([1, 2])) == [1, 2]
    assert clean_attribute(np.array([b"a", b"b"])) == ["a", "b"]
