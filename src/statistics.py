import math
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger
from scipy.stats import pearsonr

REDUCER_LABELS = {"min": "Min", "max": "Max", "mean": "Mean"}
MISSING = "n/a"
UNDEFINED = "undefined"


def region_statistics(source, image, region, stats_cfg) -> Dict[str, Optional[float]]:
    """Combined min/max/mean of the configured band over the region."""
    stats = source.reduce_region(
        image,
        stats_cfg.band,
        region,
        reducers=list(stats_cfg.reducers),
        scale=stats_cfg.scale,
        max_pixels=stats_cfg.max_pixels,
    )
    logger.info(f"{stats_cfg.band} Statistics : {stats}")
    return stats


def format_statistics(stats: Dict[str, Optional[float]], band: str = 'LST', reducers=("min", "max", "mean"),
                      unit: str = "°C", digits: int = 2) -> List[Tuple[str, str]]:
    """
    Display rows such as ('Min', '21.37 °C'). Missing values become 'n/a'.
    """
    rows = []
    for name in reducers:
        value = stats.get(f"{band}_{name}")
        label = REDUCER_LABELS.get(name, name.capitalize())
        if value is None or not math.isfinite(value):
            logger.warning(f"{band}_{name} is missing; the region may contain no valid pixels")
            rows.append((label, MISSING))
        else:
            rows.append((label, f"{value:.{digits}f} {unit}"))
    return rows


def pearson_correlation(sample: pd.DataFrame, x: str, y: str) -> float:
    """
    Pearson coefficient between two sample columns.
    Returns NaN for degenerate samples (fewer than two rows or a constant column).
    """
    data = sample[[x, y]].dropna()
    if len(data) < 2:
        logger.warning(f"Cannot correlate {x} and {y}: only {len(data)} valid sample(s)")
        return float("nan")
    if data[x].nunique() < 2 or data[y].nunique() < 2:
        logger.warning(f"Cannot correlate {x} and {y}: constant input")
        return float("nan")

    r, p_value = pearsonr(data[x].to_numpy(), data[y].to_numpy())
    r = float(np.clip(r, -1.0, 1.0))
    logger.info(f"Correlation between {x} and {y}: {r:.4f} (p={p_value:.3g}, n={len(data)})")
    return r


def format_correlation(value: float, digits: int = 4) -> str:
    if value is None or not math.isfinite(value):
        return UNDEFINED
    return f"{value:.{digits}f}"
