import os
import random
from typing import Any, Dict, List, Optional, Sequence, Union

import ee
import geemap
import pandas as pd
from dotenv import load_dotenv
from loguru import logger

from src.data.sources import EmptyCollectionError, RasterDataSource, RasterSourceError, TooManyPixelsError
from src.region import Region

load_dotenv()

# Names of ee.Reducer constructors; they only exist after ee.Initialize()
REDUCERS = ("min", "max", "mean")


def credentials_present() -> bool:
    return bool(os.getenv("GEE_PROJECT_ID")) or bool(os.getenv("GEE_SERVICE_ACCOUNT"))


def authenticate():
    try:
        ee.Initialize(project=os.getenv('GEE_PROJECT_ID'))
        logger.info("Earth Engine already authenticated and initialized.")
    except Exception as e:
        logger.info(f"Authentication needed or project not set. Attempting service account... {e}")
        try:
            service_account = os.getenv('GEE_SERVICE_ACCOUNT')
            credentials = ee.ServiceAccountCredentials(service_account, '.private-key.json')
            ee.Initialize(credentials)
        except Exception as inner_e:
            logger.error(f"Failed to authenticate: {inner_e}")
            # Fallback to standard flow if service account fails or not provided
            ee.Authenticate()
            ee.Initialize(project=os.getenv('GEE_PROJECT_ID'))


def combined_reducer(names: Sequence[str]) -> ee.Reducer:
    """min().combine(max(), sharedInputs=True).combine(mean(), ...) for the given names."""
    unknown = [name for name in names if name not in REDUCERS]
    if unknown or not names:
        raise ValueError(f"Unsupported reducers {unknown or names}; expected some of {list(REDUCERS)}")
    reducer = getattr(ee.Reducer, names[0])()
    for name in names[1:]:
        reducer = reducer.combine(reducer2=getattr(ee.Reducer, name)(), sharedInputs=True)
    return reducer


def get_info(computed, what: str):
    """
    Fetches a computed object, raising Earth Engine failures as RasterSourceError
    (TooManyPixelsError when the request exceeds maxPixels).
    """
    try:
        return computed.getInfo()
    except ee.EEException as e:
        if "too many pixels" in str(e).lower():
            raise TooManyPixelsError(f"{what}: {e}") from e
        raise RasterSourceError(f"{what} failed: {e}") from e


class EarthEngineSource(RasterDataSource):
    """Issues every raster request to Google Earth Engine; only results come back."""

    def __init__(self, collection: str = 'LANDSAT/LC08/C02/T1', cloud_property: str = 'CLOUD_COVER'):
        self.collection = collection
        self.cloud_property = cloud_property

    @classmethod
    def from_config(cls, cfg) -> "EarthEngineSource":
        return cls(collection=cfg.imagery.collection, cloud_property=cfg.imagery.cloud_property)

    def load_composite(self, region: Region, start_date: str, end_date: str, max_cloud_cover: float) -> ee.Image:
        geometry = region.to_ee()
        collection = (ee.ImageCollection(self.collection)
                      .filterBounds(geometry)
                      .filterDate(start_date, end_date)
                      .filter(ee.Filter.lt(self.cloud_property, max_cloud_cover)))

        size = get_info(collection.size(), f"Querying {self.collection}")
        if size == 0:
            raise EmptyCollectionError(
                f"No {self.collection} scenes over {region.name} between {start_date} and {end_date} "
                f"with {self.cloud_property} < {max_cloud_cover}"
            )
        logger.info(f"Compositing {size} scenes from {self.collection} ({start_date} to {end_date})")
        return collection.median().clip(geometry)

    def add_band(self, image: ee.Image, name: str, expression: str, variables: Dict[str, Union[str, float]]) -> ee.Image:
        bound = {key: image.select(value) if isinstance(value, str) else value for key, value in variables.items()}
        return image.addBands(image.expression(expression, bound).rename(name))

    def band_names(self, image: ee.Image) -> List[str]:
        return get_info(image.bandNames(), "Listing bands")

    def reduce_region(self, image: ee.Image, band: str, region: Region, reducers: Sequence[str],
                      scale: float, max_pixels: float) -> Dict[str, Optional[float]]:
        stats = get_info(image.select(band).reduceRegion(
            reducer=combined_reducer(list(reducers)),
            geometry=region.to_ee(),
            scale=scale,
            maxPixels=max_pixels
        ), f"Reducing {band} over {region.name}")
        logger.debug(f"{band} statistics: {stats}")
        return {f"{band}_{name}": stats.get(f"{band}_{name}") for name in reducers}

    def sample(self, image: ee.Image, bands: Sequence[str], region: Region, scale: float,
               num_pixels: int, seed: Optional[int] = None) -> pd.DataFrame:
        if seed is None:
            seed = random.randint(0, 2**31 - 1)
        samples = image.select(list(bands)).sample(
            region=region.to_ee(),
            scale=scale,
            numPixels=num_pixels,
            seed=seed,
            geometries=False
        )
        features = get_info(samples, f"Sampling {list(bands)}")["features"]
        logger.debug(f"Sampled {len(features)} pixels with seed {seed}")
        return pd.DataFrame([feature["properties"] for feature in features], columns=list(bands))

    def add_map_layer(self, m, image: ee.Image, band: str, vis_params: Dict[str, Any], name: str) -> None:
        m.add_layer(image.select(band), vis_params, name)

    def export_geotiff(self, image: ee.Image, bands: Sequence[str], region: Region, path: str, scale: float) -> str:
        geemap.ee_export_image(
            image.select(list(bands)),
            filename=path,
            scale=scale,
            region=region.to_ee(),
            file_per_band=False
        )
        if not os.path.exists(path):
            raise RasterSourceError(f"Earth Engine export to {path} failed")
        return path
