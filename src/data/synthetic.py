"""
Deterministic Landsat-8 like scenes over a region, for demo mode and tests.
"""
from typing import List, Sequence, Tuple

import numpy as np
import xarray as xr

from src.region import Region

# (date, cloud cover %) per generated scene
DEFAULT_ACQUISITIONS = (
    ("2024-04-09", 2.1),
    ("2024-05-11", 6.4),
    ("2024-05-27", 43.0),
    ("2024-06-12", 8.8),
    ("2024-08-15", 1.5),
)


def vegetation_field(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Smooth vegetation fraction in [0, 1] over the grid, shape (len(ys), len(xs))."""
    u = (xs - xs.min()) / max(np.ptp(xs), 1e-12)
    v = (ys - ys.min()) / max(np.ptp(ys), 1e-12)
    uu, vv = np.meshgrid(u, v)
    field = 0.5 + 0.3 * np.sin(2 * np.pi * uu) * np.cos(np.pi * vv) + 0.2 * (uu - vv)
    return np.clip(field, 0.0, 1.0)


def synthetic_scenes(region: Region, size: Tuple[int, int] = (48, 48),
                     acquisitions: Sequence[Tuple[str, float]] = DEFAULT_ACQUISITIONS,
                     bands: Tuple[str, str, str] = ('B4', 'B5', 'B10'),
                     cloud_property: str = 'CLOUD_COVER', seed: int = 0) -> List[xr.Dataset]:
    """
    Builds one scene per acquisition on a (rows, cols) grid covering the region bounds.

    Digital numbers follow raw Level-1 magnitudes: red and NIR DNs scale with a shared
    vegetation field, the thermal DN falls as vegetation rises.
    """
    red_band, nir_band, thermal_band = bands
    rows, cols = size
    west, south, east, north = region.bounds
    dx, dy = (east - west) / cols, (north - south) / rows
    xs = west + (np.arange(cols) + 0.5) * dx
    ys = north - (np.arange(rows) + 0.5) * dy

    veg = vegetation_field(xs, ys)
    rng = np.random.default_rng(seed)

    scenes = []
    for i, (date, cloud_cover) in enumerate(acquisitions):
        noise = rng.normal(0.0, 1.0, size=(3, rows, cols))
        red = 12000.0 - 5000.0 * veg + 150.0 * noise[0]
        nir = 11000.0 + 14000.0 * veg + 200.0 * noise[1]
        thermal = 29000.0 - 7000.0 * veg + 400.0 * i + 250.0 * noise[2]
        scenes.append(xr.Dataset(
            {
                red_band: (("y", "x"), red),
                nir_band: (("y", "x"), nir),
                thermal_band: (("y", "x"), thermal),
            },
            coords={"x": xs, "y": ys},
            attrs={"date": date, cloud_property: float(cloud_cover)},
        ))
    return scenes
