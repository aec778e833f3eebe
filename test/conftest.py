import copy

import matplotlib
import numpy as np
import pytest
import xarray as xr

matplotlib.use('Agg')

from lst_ndvi.config import CONFIG
from src.data.memory import InMemorySource
from src.data.synthetic import synthetic_scenes
from src.region import Region

TEST_COORDINATES = [[88.0, 23.0], [88.1, 23.0], [88.1, 23.1], [88.0, 23.1]]


@pytest.fixture
def cfg():
    cfg = copy.deepcopy(CONFIG)
    cfg.seed = 7
    return cfg


@pytest.fixture
def region():
    return Region.from_coordinates("Test AOI", TEST_COORDINATES)


@pytest.fixture
def scenes(region):
    return synthetic_scenes(region, size=(24, 24))


@pytest.fixture
def source(scenes):
    return InMemorySource(scenes)


def make_image(region, rows=2, cols=2, **bands):
    """Small (rows, cols) Dataset over the region bounds, one variable per keyword."""
    west, south, east, north = region.bounds
    xs = west + (np.arange(cols) + 0.5) * (east - west) / cols
    ys = north - (np.arange(rows) + 0.5) * (north - south) / rows
    return xr.Dataset(
        {name: (("y", "x"), np.broadcast_to(np.asarray(value, dtype=np.float64), (rows, cols)).copy())
         for name, value in bands.items()},
        coords={"x": xs, "y": ys},
    )
