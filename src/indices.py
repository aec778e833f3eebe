"""
Band math for NDVI, emissivity and land surface temperature (Landsat 8).

Every function appends one or more bands through the data source and returns
the new image handle; no band is modified after it is added.
"""
from loguru import logger

NDVI_EXPRESSION = "(NIR - RED) / (NIR + RED)"
EMISSIVITY_EXPRESSION = "NDVI * MULT + ADD"
RADIANCE_EXPRESSION = "DN * MULT + ADD"
BRIGHTNESS_TEMP_EXPRESSION = "(K2 / log((K1 / L) + 1)) - 273.15"
LST_EXPRESSION = "BT / (1 + (W * BT / RHO) * log(E))"


def add_ndvi(source, image, red: str = 'B4', nir: str = 'B5'):
    return source.add_band(image, 'NDVI', NDVI_EXPRESSION, {'NIR': nir, 'RED': red})


def add_emissivity(source, image, thermal_cfg):
    # Same linear rescale as the thermal radiance conversion
    return source.add_band(image, 'EMISSIVITY', EMISSIVITY_EXPRESSION, {
        'NDVI': 'NDVI',
        'MULT': thermal_cfg.radiance_mult,
        'ADD': thermal_cfg.radiance_add,
    })


def add_lst(source, image, thermal_cfg, thermal: str = 'B10'):
    """
    Thermal DN -> TOA radiance -> brightness temperature (°C) -> LST (°C).
    Requires the EMISSIVITY band; pixels with emissivity <= 0 end up NaN.
    """
    image = source.add_band(image, 'TOA_RADIANCE', RADIANCE_EXPRESSION, {
        'DN': thermal,
        'MULT': thermal_cfg.radiance_mult,
        'ADD': thermal_cfg.radiance_add,
    })
    image = source.add_band(image, 'BRIGHTNESS_TEMP', BRIGHTNESS_TEMP_EXPRESSION, {
        'K1': thermal_cfg.k1,
        'K2': thermal_cfg.k2,
        'L': 'TOA_RADIANCE',
    })
    return source.add_band(image, 'LST', LST_EXPRESSION, {
        'BT': 'BRIGHTNESS_TEMP',
        'E': 'EMISSIVITY',
        'W': thermal_cfg.wavelength,
        'RHO': thermal_cfg.rho,
    })


def derive_bands(source, image, cfg):
    """Appends NDVI, EMISSIVITY, TOA_RADIANCE, BRIGHTNESS_TEMP and LST in dependency order."""
    bands = cfg.imagery.bands
    image = add_ndvi(source, image, red=bands.red, nir=bands.nir)
    image = add_emissivity(source, image, cfg.thermal)
    image = add_lst(source, image, cfg.thermal, thermal=bands.thermal)
    logger.info("Derived NDVI, EMISSIVITY, BRIGHTNESS_TEMP and LST bands")
    return image
