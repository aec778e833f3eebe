"""
Local raster source: evaluates the same requests as the Earth Engine source on
xarray Datasets held in memory, so the pipeline runs without network access.

A scene is an xarray.Dataset with one data variable per band over dims (y, x),
coordinates x (lon) and y (lat) at pixel centers, and attrs 'date' (YYYY-MM-DD)
and the cloud cover property.
"""
import os
from typing import Any, Dict, List, Optional, Sequence, Union

import folium
import matplotlib.colors as mcolors
import numpy as np
import pandas as pd
import rasterio
import xarray as xr
from loguru import logger
from rasterio.transform import from_bounds

from src.data.expression import evaluate
from src.data.sources import (BandExistsError, EmptyCollectionError,
                              RasterDataSource, TooManyPixelsError)
from src.region import Region


def load_scene(path: str, date: str, cloud_cover: float, band_names: Sequence[str],
               cloud_property: str = 'CLOUD_COVER') -> xr.Dataset:
    """
    Reads a multi-band GeoTIFF in EPSG:4326 into a scene Dataset.

    Args:
        path (str): GeoTIFF path.
        date (str): acquisition date, YYYY-MM-DD.
        cloud_cover (float): scene cloud cover in percent.
        band_names (list): one name per raster band, in file order.
    """
    with rasterio.open(path) as src:
        if len(band_names) != src.count:
            raise ValueError(f"{path} has {src.count} bands but {len(band_names)} names were given")
        if src.crs is not None and src.crs.to_epsg() != 4326:
            raise ValueError(f"{path} must be in EPSG:4326, found {src.crs}")
        data = src.read().astype(np.float64)
        if src.nodata is not None:
            data[data == src.nodata] = np.nan
        transform = src.transform
        xs = transform.c + (np.arange(src.width) + 0.5) * transform.a
        ys = transform.f + (np.arange(src.height) + 0.5) * transform.e

    logger.debug(f"Loaded scene {path} ({date}, {cloud_property}={cloud_cover})")
    return xr.Dataset(
        {name: (("y", "x"), data[i]) for i, name in enumerate(band_names)},
        coords={"x": xs, "y": ys},
        attrs={"date": date, cloud_property: float(cloud_cover)},
    )


def grid_bounds(xs: np.ndarray, ys: np.ndarray, region: Optional[Region] = None):
    """
    Outer pixel edges (west, south, east, north) of a grid given its pixel-center coordinates.

    A single row or column has no spacing of its own: its pixel spans the region extent
    along that axis, or matches the other axis (square pixels) when no region is given.
    """
    def half_step(centers, other, extent):
        if len(centers) > 1:
            return abs(centers[1] - centers[0]) / 2
        if extent is not None:
            return extent / 2
        if len(other) > 1:
            return abs(other[1] - other[0]) / 2
        return 0.0

    extent_x = extent_y = None
    if region is not None:
        west, south, east, north = region.bounds
        extent_x, extent_y = east - west, north - south
    half_x = half_step(xs, ys, extent_x)
    half_y = half_step(ys, xs, extent_y)
    return (float(xs.min() - half_x), float(ys.min() - half_y),
            float(xs.max() + half_x), float(ys.max() + half_y))


class InMemorySource(RasterDataSource):

    def __init__(self, scenes: Sequence[xr.Dataset], cloud_property: str = 'CLOUD_COVER'):
        self.scenes = list(scenes)
        self.cloud_property = cloud_property

    def load_composite(self, region: Region, start_date: str, end_date: str, max_cloud_cover: float) -> xr.Dataset:
        start, end = pd.Timestamp(start_date), pd.Timestamp(end_date)
        selected = [
            scene for scene in self.scenes
            if start <= pd.Timestamp(scene.attrs["date"]) < end
            and scene.attrs[self.cloud_property] < max_cloud_cover
        ]
        if not selected:
            raise EmptyCollectionError(
                f"No scenes over {region.name} between {start_date} and {end_date} "
                f"with {self.cloud_property} < {max_cloud_cover}"
            )
        logger.info(f"Compositing {len(selected)}/{len(self.scenes)} local scenes ({start_date} to {end_date})")

        composite = xr.concat(selected, dim="scene", combine_attrs="drop").median(dim="scene", skipna=True)
        inside = region.mask(composite["x"].values, composite["y"].values)
        return composite.where(xr.DataArray(inside, dims=("y", "x"), coords={"y": composite["y"], "x": composite["x"]}))

    def add_band(self, image: xr.Dataset, name: str, expression: str, variables: Dict[str, Union[str, float]]) -> xr.Dataset:
        if name in image.data_vars:
            raise BandExistsError(f"Band '{name}' already exists; bands are append-only")
        bound = {key: image[value].values if isinstance(value, str) else value for key, value in variables.items()}
        result = np.broadcast_to(evaluate(expression, bound), (image.sizes["y"], image.sizes["x"]))
        return image.assign({name: (("y", "x"), np.array(result, dtype=np.float64))})

    def band_names(self, image: xr.Dataset) -> List[str]:
        return list(image.data_vars)

    def _region_values(self, image: xr.Dataset, band: str, region: Region) -> np.ndarray:
        inside = region.mask(image["x"].values, image["y"].values)
        return image[band].values[inside]

    def reduce_region(self, image: xr.Dataset, band: str, region: Region, reducers: Sequence[str],
                      scale: float, max_pixels: float) -> Dict[str, Optional[float]]:
        # Local rasters are reduced at their native resolution; `scale` is not resampled.
        values = self._region_values(image, band, region)
        if values.size > max_pixels:
            raise TooManyPixelsError(f"Region {region.name} has {values.size} pixels, more than maxPixels={max_pixels:g}")
        values = values[np.isfinite(values)]

        functions = {"min": np.min, "max": np.max, "mean": np.mean}
        stats = {}
        for name in reducers:
            if name not in functions:
                raise ValueError(f"Unsupported reducer '{name}'; expected some of {list(functions)}")
            stats[f"{band}_{name}"] = float(functions[name](values)) if values.size else None
        logger.debug(f"{band} statistics over {values.size} pixels: {stats}")
        return stats

    def sample(self, image: xr.Dataset, bands: Sequence[str], region: Region, scale: float,
               num_pixels: int, seed: Optional[int] = None) -> pd.DataFrame:
        inside = region.mask(image["x"].values, image["y"].values)
        stacked = np.stack([image[band].values for band in bands], axis=-1)
        valid = inside & np.all(np.isfinite(stacked), axis=-1)

        candidates = stacked[valid]
        rng = np.random.default_rng(seed)
        n = min(num_pixels, len(candidates))
        picked = rng.choice(len(candidates), size=n, replace=False) if n else np.array([], dtype=int)
        logger.debug(f"Sampled {n} of {len(candidates)} valid pixels")
        return pd.DataFrame(candidates[picked], columns=list(bands))

    def add_map_layer(self, m, image: xr.Dataset, band: str, vis_params: Dict[str, Any], name: str) -> None:
        data = image[band]
        if data["y"].values[0] < data["y"].values[-1]:
            data = data.isel(y=slice(None, None, -1))
        colormap = mcolors.LinearSegmentedColormap.from_list(
            name, ["#" + color for color in vis_params["palette"]]
        )
        norm = mcolors.Normalize(vmin=vis_params["min"], vmax=vis_params["max"], clip=True)
        values = data.values
        rgba = colormap(norm(np.nan_to_num(values, nan=vis_params["min"])))
        rgba[..., 3] = np.where(np.isfinite(values), 1.0, 0.0)

        west, south, east, north = grid_bounds(data["x"].values, data["y"].values)
        folium.raster_layers.ImageOverlay(
            image=(rgba * 255).astype(np.uint8),
            bounds=[[south, west], [north, east]],
            name=name,
            origin="upper",
        ).add_to(m)

    def export_geotiff(self, image: xr.Dataset, bands: Sequence[str], region: Region, path: str, scale: float) -> str:
        subset = image[list(bands)]
        if subset["y"].values[0] < subset["y"].values[-1]:
            subset = subset.isel(y=slice(None, None, -1))
        xs, ys = subset["x"].values, subset["y"].values
        width, height = len(xs), len(ys)
        transform = from_bounds(*grid_bounds(xs, ys, region), width, height)

        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        profile = {
            "driver": "GTiff",
            "height": height,
            "width": width,
            "count": len(bands),
            "dtype": "float64",
            "crs": "EPSG:4326",
            "transform": transform,
            "nodata": np.nan,
        }
        with rasterio.open(path, 'w', **profile) as dst:
            for i, band in enumerate(bands, start=1):
                dst.write(subset[band].values, i)
                dst.set_band_description(i, band)
        logger.info(f"Exported {list(bands)} to {path}")
        return path
