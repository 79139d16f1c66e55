import h5py
import numpy as np
import pytest

from axisfold.core.array import LabeledArray
from axisfold.parallel.pool import shutdown_pool

FILL_VALUE = -999.0


@pytest.fixture(autouse=True)
def reset_pool():
    """Give every test a fresh process-wide thread pool."""
    shutdown_pool()
    yield
    shutdown_pool()


@pytest.fixture
def small_matrix():
    """The 2 x 3 matrix used by the end-to-end scenarios."""
    return np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])


@pytest.fixture
def sample_cube():
    """A reproducible (time, lat, lon) cube with a few NaN holes."""
    rng = np.random.default_rng(42)
    data = rng.normal(loc=280.0, scale=15.0, size=(12, 7, 5))
    data[3, 2, 1] = np.nan
    data[:, 4, 4] = np.nan
    return data


@pytest.fixture
def labeled_cube(sample_cube):
    """sample_cube with dimension names attached."""
    return LabeledArray(
        sample_cube,
        dims=("time", "lat", "lon"),
        name="temperature",
        attrs={"units": "K"},
    )


@pytest.fixture
def sample_h5(tmp_path):
    """
    A small netCDF-4 style HDF5 file.

    Contents:
        time, lat, lon: coordinate variables (dimension scales)
        temperature (time, lat, lon): ``6 * t + 2 * i + j`` with the
            element [0, 0, 0] replaced by the fill value
        pressure (x, y): dimensions named by label only
        station: a string variable
    """
    path = tmp_path / "climate.h5"
    temperature = np.arange(24, dtype=np.float64).reshape(4, 3, 2)
    temperature[0, 0, 0] = FILL_VALUE

    with h5py.File(path, "w") as f:
        f.attrs["title"] = "axisfold test file"

        scales = []
        for name, values in (
            ("time", np.arange(4, dtype=np.float64) * 24.0),
            ("lat", np.array([-10.0, 0.0, 10.0])),
            ("lon", np.array([100.0, 110.0])),
        ):
            scale = f.create_dataset(name, data=values)
            scale.make_scale(name)
            scale.attrs["units"] = "degrees" if name != "time" else "hours"
            scales.append(scale)

        temp = f.create_dataset("temperature", data=temperature)
        for i, scale in enumerate(scales):
            temp.dims[i].attach_scale(scale)
        temp.attrs["units"] = "K"
        temp.attrs["long_name"] = "air temperature"
        temp.attrs["_FillValue"] = FILL_VALUE

        pressure = f.create_dataset(
            "pressure", data=np.arange(10, dtype=np.float32).reshape(2, 5)
        )
        pressure.dims[0].label = "x"
        pressure.dims[1].label = "y"

        f.create_dataset("station", data=np.array([b"alpha", b"beta"]))

    return path
