"""
Raster data source interface used by the analysis pipeline.

A source owns the raster handles it returns (ee.Image for Earth Engine,
xarray.Dataset for local rasters); the pipeline only passes them back.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from src.region import Region


class RasterSourceError(RuntimeError):
    pass


class EmptyCollectionError(RasterSourceError):
    pass


class TooManyPixelsError(RasterSourceError):
    pass


class BandExistsError(RasterSourceError):
    pass


class RasterDataSource(ABC):

    @abstractmethod
    def load_composite(self, region: Region, start_date: str, end_date: str, max_cloud_cover: float) -> Any:
        """
        Median composite of all scenes in [start_date, end_date) with
        cloud cover strictly below `max_cloud_cover`, clipped to `region`.

        Raises:
            EmptyCollectionError: if no scene passes the filters.
        """

    @abstractmethod
    def add_band(self, image: Any, name: str, expression: str, variables: Dict[str, Union[str, float]]) -> Any:
        """
        Returns a new image with `expression` evaluated per pixel and appended as band `name`.
        String values in `variables` name bands of `image`, numbers are constants.
        """

    @abstractmethod
    def band_names(self, image: Any) -> List[str]:
        pass

    @abstractmethod
    def reduce_region(self, image: Any, band: str, region: Region, reducers: Sequence[str],
                      scale: float, max_pixels: float) -> Dict[str, Optional[float]]:
        """
        Applies the combined `reducers` (any of min, max, mean) to `band` within `region`.
        Keys are '<band>_<reducer>'; a value is None when no valid pixel exists.
        """

    @abstractmethod
    def sample(self, image: Any, bands: Sequence[str], region: Region, scale: float,
               num_pixels: int, seed: Optional[int] = None) -> pd.DataFrame:
        """
        Draws up to `num_pixels` random pixels of `region` where every band in `bands` is valid.
        """

    @abstractmethod
    def add_map_layer(self, m, image: Any, band: str, vis_params: Dict[str, Any], name: str) -> None:
        """Draws `band` of `image` on folium-based map `m`."""

    @abstractmethod
    def export_geotiff(self, image: Any, bands: Sequence[str], region: Region, path: str, scale: float) -> str:
        pass
