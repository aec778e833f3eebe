"""
Forward pipeline: composite -> band math -> statistics -> correlation.

All cross-stage results live on one AnalysisContext passed between the stages.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pandas as pd
from loguru import logger

from src.indices import derive_bands
from src.region import Region
from src.statistics import format_correlation, format_statistics, pearson_correlation, region_statistics


@dataclass
class AnalysisContext:
    region: Region
    composite: Any = None
    image: Any = None
    statistics: Dict[str, Optional[float]] = field(default_factory=dict)
    sample: Optional[pd.DataFrame] = None
    correlation: float = float("nan")

    def statistics_rows(self, stats_cfg):
        return format_statistics(
            self.statistics,
            band=stats_cfg.band,
            reducers=list(stats_cfg.reducers),
            unit=stats_cfg.unit,
            digits=stats_cfg.digits,
        )

    def correlation_text(self, digits: int = 4) -> str:
        return format_correlation(self.correlation, digits=digits)


def acquire(ctx: AnalysisContext, source, cfg) -> AnalysisContext:
    imagery = cfg.imagery
    ctx.composite = source.load_composite(ctx.region, imagery.start_date, imagery.end_date, imagery.max_cloud_cover)
    return ctx


def compute_bands(ctx: AnalysisContext, source, cfg) -> AnalysisContext:
    ctx.image = derive_bands(source, ctx.composite, cfg)
    return ctx


def summarize(ctx: AnalysisContext, source, cfg) -> AnalysisContext:
    ctx.statistics = region_statistics(source, ctx.image, ctx.region, cfg.statistics)
    return ctx


def correlate(ctx: AnalysisContext, source, cfg) -> AnalysisContext:
    corr_cfg = cfg.correlation
    x, y = list(corr_cfg.bands)
    ctx.sample = source.sample(
        ctx.image,
        [x, y],
        ctx.region,
        scale=corr_cfg.scale,
        num_pixels=corr_cfg.num_pixels,
        seed=cfg.get("seed"),
    )
    ctx.correlation = pearson_correlation(ctx.sample, x, y)
    return ctx


def run_analysis(source, region: Region, cfg) -> AnalysisContext:
    logger.info(f"Running LST/NDVI analysis for {region.name}")
    ctx = AnalysisContext(region=region)
    for stage in (acquire, compute_bands, summarize, correlate):
        ctx = stage(ctx, source, cfg)
    logger.success(f"Analysis complete: correlation {ctx.correlation_text(cfg.correlation.digits)}")
    return ctx
