"""Tests for axis resolution."""

import pytest

from axisfold.core.errors import AxisOutOfRange, EmptyReductionAxis, UnknownDimension
from axisfold.parallel.axis import resolve_axis


class TestResolveAxis:
    """Test mapping names and indices onto validated axes."""

    def test_name_from_sequence(self):
        assert resolve_axis((4, 3, 2), "lat", dims=("time", "lat", "lon")) == 1

    def test_name_from_mapping(self):
        assert resolve_axis((4, 3), "y", dims={"x": 0, "y": 1}) == 1

    def test_integer_axis(self):
        assert resolve_axis((4, 3), 0) == 0
        assert resolve_axis((4, 3), 1) == 1

    def test_unknown_name(self):
        with pytest.raises(UnknownDimension) as exc_info:
            resolve_axis((2, 3), "depth", dims=("lat", "lon"), variable="t2m")

        error = exc_info.value
        assert error.dimension == "depth"
        assert error.variable == "t2m"
        assert "available: lat, lon" in str(error)

    def test_name_without_dims(self):
        with pytest.raises(UnknownDimension, match="available: none"):
            resolve_axis((2, 3), "lat")

    @pytest.mark.parametrize("axis", [2, 5, -1])
    def test_out_of_range(self, axis):
        with pytest.raises(AxisOutOfRange, match="out of bounds"):
            resolve_axis((2, 3), axis)

    def test_bool_is_not_an_axis(self):
        with pytest.raises(AxisOutOfRange):
            resolve_axis((2, 3), True)

    def test_zero_dimensional_input(self):
        with pytest.raises(AxisOutOfRange):
            resolve_axis((), 0)

    def test_empty_axis(self):
        with pytest.raises(EmptyReductionAxis) as exc_info:
            resolve_axis((3, 0), "lon", dims=("lat", "lon"))
        assert exc_info.value.dimension == "lon"

    def test_empty_other_axis_is_allowed(self):
        assert resolve_axis((0, 3), 1) == 1
