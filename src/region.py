"""
Area of interest handling.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Tuple

import ee
import geopandas as gpd
import numpy as np
import pandas as pd
import shapely
from shapely.geometry import Polygon, mapping
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union
from loguru import logger


@dataclass(frozen=True)
class Region:
    """Immutable area of interest in EPSG:4326 (lon, lat)."""
    name: str
    geometry: BaseGeometry

    @classmethod
    def from_coordinates(cls, name: str, coordinates: Sequence[Sequence[float]]) -> "Region":
        ring = [(float(lon), float(lat)) for lon, lat in coordinates]
        if len(ring) < 3:
            raise ValueError(f"Region '{name}' needs at least 3 vertices, got {len(ring)}")
        polygon = Polygon(ring)
        if not polygon.is_valid or polygon.is_empty:
            raise ValueError(f"Region '{name}' is not a valid polygon")
        return cls(name=name, geometry=polygon)

    @classmethod
    def from_file(cls, path: str, name: str = None) -> "Region":
        """
        Reads an AOI from any vector file geopandas understands (GeoJSON, shapefile, ...).
        All features are merged into a single geometry and reprojected to EPSG:4326.
        """
        gdf = gpd.read_file(path)
        if gdf.empty:
            raise ValueError(f"No features found in {path}")
        if gdf.crs is not None and gdf.crs.to_epsg() != 4326:
            gdf = gdf.to_crs(epsg=4326)
        geometry = unary_union([geom for geom in gdf.geometry if geom is not None])
        if geometry.is_empty:
            raise ValueError(f"Features in {path} contain no geometry")
        if name is None:
            name = gdf.iloc[0].get("name", None)
            if pd.isna(name) or not str(name).strip():
                name = Path(path).stem
            name = str(name)
        logger.info(f"Loaded region '{name}' from {path}")
        return cls(name=name, geometry=geometry)

    @classmethod
    def from_config(cls, cfg) -> "Region":
        if cfg.region.path:
            return cls.from_file(cfg.region.path, name=cfg.region.name)
        return cls.from_coordinates(cfg.region.name, cfg.region.coordinates)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return self.geometry.bounds

    @property
    def center(self) -> Tuple[float, float]:
        """(lat, lon) of the centroid, in the order folium expects."""
        centroid = self.geometry.centroid
        return centroid.y, centroid.x

    def to_geojson(self) -> dict:
        return mapping(self.geometry)

    def to_ee(self) -> ee.Geometry:
        return ee.Geometry(self.to_geojson())

    def contains(self, lon: np.ndarray, lat: np.ndarray) -> np.ndarray:
        """Vectorised point-in-region test; boundary points are outside."""
        return shapely.contains_xy(self.geometry, lon, lat)

    def mask(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """
        Boolean (len(ys), len(xs)) grid, True where the pixel center falls inside the region.
        """
        lon, lat = np.meshgrid(xs, ys)
        return self.contains(lon, lat)

