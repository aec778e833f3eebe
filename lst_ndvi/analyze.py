import copy
import json
import math
import os
from typing import Optional

import typer
from loguru import logger

from lst_ndvi.config import CONFIG
from src.data.sources import RasterSourceError
from src.pipeline import run_analysis
from src.region import Region
from src.utils.plot_utils import correlation_scatter, use_headless_backend

app = typer.Typer()


def build_source(cfg, region: Region, demo: bool):
    if demo:
        from src.data.memory import InMemorySource
        from src.data.synthetic import synthetic_scenes

        bands = cfg.imagery.bands
        scenes = synthetic_scenes(region, bands=(bands.red, bands.nir, bands.thermal),
                                  cloud_property=cfg.imagery.cloud_property)
        logger.info(f"Demo mode: {len(scenes)} synthetic scenes over {region.name}")
        return InMemorySource(scenes, cloud_property=cfg.imagery.cloud_property)

    from src.data.earth_engine import EarthEngineSource, authenticate

    authenticate()
    return EarthEngineSource.from_config(cfg)


def write_summary(ctx, cfg, output_dir: str) -> str:
    summary = {
        "region": ctx.region.name,
        "start_date": cfg.imagery.start_date,
        "end_date": cfg.imagery.end_date,
        "statistics": ctx.statistics,
        "statistics_text": dict(ctx.statistics_rows(cfg.statistics)),
        "correlation": ctx.correlation if math.isfinite(ctx.correlation) else None,
        "correlation_text": ctx.correlation_text(cfg.correlation.digits),
        "n_samples": 0 if ctx.sample is None else len(ctx.sample),
    }
    path = os.path.join(output_dir, "lst_ndvi_summary.json")
    with open(path, 'w') as f:
        json.dump(summary, f, indent=2, ensure_ascii=False)
    return path


@app.command()
def main(
    demo: bool = typer.Option(False, help="Use synthetic local scenes instead of Earth Engine."),
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    max_cloud: Optional[float] = None,
    num_pixels: Optional[int] = None,
    seed: Optional[int] = None,
    region_path: Optional[str] = typer.Option(None, help="Vector file with the area of interest."),
    output_dir: str = CONFIG.REPORTS_DIR,
    export: bool = typer.Option(False, help="Export LST and NDVI as a GeoTIFF."),
):
    cfg = copy.deepcopy(CONFIG)
    if start_date:
        cfg.imagery.start_date = start_date
    if end_date:
        cfg.imagery.end_date = end_date
    if max_cloud is not None:
        cfg.imagery.max_cloud_cover = max_cloud
    if num_pixels is not None:
        cfg.correlation.num_pixels = num_pixels
    if seed is not None:
        cfg.seed = seed
    if region_path:
        cfg.region.path = region_path

    use_headless_backend()
    os.makedirs(output_dir, exist_ok=True)

    region = Region.from_config(cfg)
    try:
        source = build_source(cfg, region, demo)
        ctx = run_analysis(source, region, cfg)
    except RasterSourceError as e:
        logger.error(f"Analysis failed: {e}")
        raise typer.Exit(code=1)

    for label, value in ctx.statistics_rows(cfg.statistics):
        logger.info(f"  {label}: {value}")
    logger.info(f"Correlation between LST and NDVI: {ctx.correlation_text(cfg.correlation.digits)}")

    summary_path = write_summary(ctx, cfg, output_dir)
    logger.success(f"Summary saved to {summary_path}")

    fig, _ = correlation_scatter(ctx.sample, correlation_text=ctx.correlation_text(cfg.correlation.digits))
    chart_path = os.path.join(output_dir, "lst_ndvi_scatter.png")
    fig.savefig(chart_path, dpi=150)
    logger.success(f"Scatter plot saved to {chart_path}")

    if export:
        tif_path = os.path.join(output_dir, "lst_ndvi.tif")
        try:
            source.export_geotiff(ctx.image, ['LST', 'NDVI'], region, tif_path, scale=cfg.statistics.scale)
        except RuntimeError as e:
            logger.error(f"Export failed: {e}")
            raise typer.Exit(code=1)
        logger.success(f"Rasters exported to {tif_path}")


if __name__ == "__main__":
    app()
