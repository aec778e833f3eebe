import math

import numpy as np
import pytest
import xarray as xr

from src.data.memory import InMemorySource
from src.data.sources import EmptyCollectionError
from src.data.synthetic import DEFAULT_ACQUISITIONS
from src.pipeline import AnalysisContext, acquire, run_analysis
from src.statistics import UNDEFINED


def reference_lst_ndvi(scenes):
    """Independent numpy version of the composite and the four formulas."""
    kept = [scene for scene, (date, cloud) in zip(scenes, DEFAULT_ACQUISITIONS)
            if cloud < 10 and "2024-04-01" <= date < "2024-07-30"]
    stack = {band: np.median(np.stack([s[band].values for s in kept]), axis=0) for band in ("B4", "B5", "B10")}

    ndvi = (stack["B5"] - stack["B4"]) / (stack["B5"] + stack["B4"])
    emissivity = ndvi * 0.0003342 + 0.1
    radiance = stack["B10"] * 0.0003342 + 0.1
    bt = 1321.0789 / np.log(774.8853 / radiance + 1) - 273.15
    lst = bt / (1 + (0.00115 * bt / 1.4388) * np.log(emissivity))
    return lst, ndvi


def test_end_to_end_matches_reference(source, scenes, region, cfg):
    # The sample covers every pixel, so the coefficient is the population one
    cfg.correlation.num_pixels = 1000
    ctx = run_analysis(source, region, cfg)

    lst, ndvi = reference_lst_ndvi(scenes)
    assert ctx.statistics["LST_min"] == pytest.approx(lst.min(), abs=1e-6)
    assert ctx.statistics["LST_max"] == pytest.approx(lst.max(), abs=1e-6)
    assert ctx.statistics["LST_mean"] == pytest.approx(lst.mean(), abs=1e-6)
    assert ctx.statistics_rows(cfg.statistics) == [
        ("Min", f"{lst.min():.2f} °C"),
        ("Max", f"{lst.max():.2f} °C"),
        ("Mean", f"{lst.mean():.2f} °C"),
    ]

    expected_r = np.corrcoef(lst.ravel(), ndvi.ravel())[0, 1]
    assert len(ctx.sample) == lst.size
    assert ctx.correlation == pytest.approx(expected_r, abs=1e-6)
    assert ctx.correlation_text(4) == f"{expected_r:.4f}"


def test_lst_falls_as_vegetation_rises(source, region, cfg):
    ctx = run_analysis(source, region, cfg)
    assert len(ctx.sample) == 24 * 24
    assert -1.0 <= ctx.correlation < 0.0


def test_sampling_respects_pixel_count_and_seed(source, region, cfg):
    cfg.correlation.num_pixels = 100
    first = run_analysis(source, region, cfg)
    second = run_analysis(source, region, cfg)
    assert len(first.sample) == 100
    assert first.sample.equals(second.sample)
    assert first.correlation == second.correlation


def test_derived_bands_are_reused_across_stages(source, region, cfg):
    ctx = run_analysis(source, region, cfg)
    assert ctx.composite is not ctx.image
    assert "LST" in ctx.image and "LST" not in ctx.composite
    assert set(ctx.sample.columns) == {"LST", "NDVI"}


def test_constant_scene_reports_undefined_correlation(region, cfg):
    west, south, east, north = region.bounds
    xs = np.linspace(west, east, 6)[1:-1]
    ys = np.linspace(north, south, 6)[1:-1]
    flat = xr.Dataset(
        {band: (("y", "x"), np.full((4, 4), value)) for band, value in (("B4", 9000.0), ("B5", 20000.0), ("B10", 27000.0))},
        coords={"x": xs, "y": ys},
        attrs={"date": "2024-05-01", "CLOUD_COVER": 1.0},
    )
    ctx = run_analysis(InMemorySource([flat]), region, cfg)

    assert math.isnan(ctx.correlation)
    assert ctx.correlation_text() == UNDEFINED
    assert ctx.statistics["LST_min"] == pytest.approx(ctx.statistics["LST_max"])


def test_empty_archive_propagates(region, cfg):
    cfg.imagery.start_date = "2019-01-01"
    cfg.imagery.end_date = "2019-02-01"
    with pytest.raises(EmptyCollectionError):
        run_analysis(InMemorySource([]), region, cfg)


def test_acquire_fills_only_the_composite(source, region, cfg):
    ctx = acquire(AnalysisContext(region=region), source, cfg)
    assert ctx.composite is not None
    assert ctx.image is None and ctx.sample is None and ctx.statistics == {}
