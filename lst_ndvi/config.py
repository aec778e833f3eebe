from pathlib import Path

import sys
from dotenv import load_dotenv
from loguru import logger

from hydra import compose, initialize
from omegaconf import OmegaConf

# Load environment variables from .env file if it exists
load_dotenv()

# Paths
PROJ_ROOT = Path(__file__).resolve().parents[1]
logger.debug(f"PROJ_ROOT path is: {PROJ_ROOT}")

REPORTS_DIR = PROJ_ROOT / "reports"
CACHE_DIR = PROJ_ROOT / "app" / "cache"

logger.remove()
logger.add(sys.stderr, colorize=True, level="INFO")
logger.add("log.log", colorize=False, mode='a', level="DEBUG")


def load_config():
    with initialize(config_path="../conf", version_base=None):
        cfg = compose(config_name="config")
        OmegaConf.set_struct(cfg, False)
    cfg.PROJ_ROOT = str(PROJ_ROOT)
    cfg.REPORTS_DIR = str(REPORTS_DIR)
    cfg.CACHE_DIR = str(CACHE_DIR)

    if cfg.region.path is not None:
        # Relative AOI files are looked up from the project root
        cfg.region.path = str(PROJ_ROOT / cfg.region.path)

    return cfg


CONFIG = load_config()
