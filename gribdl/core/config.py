"""Configuration loading, download settings, and CLI helpers.

Centralized so that every entry point resolves config the same way.
Paths, HTTP behaviour and CLI defaults live in config.yaml; the
``GRIBDL_CONFIG`` environment variable points at an alternative file.
"""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


# ======================================================================
# Config loading
# ======================================================================

def load_config(config_path: Optional[str] = None) -> tuple[dict, Path]:
    """Load and return the YAML config dictionary and the path it came from.

    Resolution order: explicit ``config_path``, ``GRIBDL_CONFIG``, then
    ``config.yaml`` next to the package root.
    """
    if config_path:
        path = Path(config_path)
    elif os.environ.get("GRIBDL_CONFIG"):
        path = Path(os.environ["GRIBDL_CONFIG"])
    else:
        path = DEFAULT_CONFIG_PATH
    with open(path) as f:
        cfg = yaml.safe_load(f) or {}
    logger.debug("Loaded config from %s", path)
    return cfg, path


# ======================================================================
# Settings
# ======================================================================

@dataclass(frozen=True)
class DownloadSettings:
    """Everything a downloader needs besides the model and its parameters."""

    output_dir: Path = Path("output")
    tmp_dir: Path = Path("/tmp/gribdl")
    weights_dir: Path = Path("weights")

    timeout: float = 60.0
    retries: int = 5                # additional attempts after the first
    retry_delay: float = 1.0        # seconds before the first retry
    retry_backoff: float = 2.0      # multiplier applied after each retry
    max_concurrency: int = 16

    regrid: bool = True
    regrid_command: str = "cdo"

    default_param: str = "t_2m"
    default_max_step: int = 10
    default_height: str = "surface"

    @classmethod
    def from_config(cls, cfg: dict) -> "DownloadSettings":
        """Build settings from a loaded config.yaml dictionary."""
        storage = cfg.get("storage", {}) or {}
        http = cfg.get("http", {}) or {}
        regrid = cfg.get("regrid", {}) or {}
        defaults = cfg.get("defaults", {}) or {}

        settings = cls(
            output_dir=Path(storage.get("output_dir", cls.output_dir)),
            tmp_dir=Path(storage.get("tmp_dir", cls.tmp_dir)),
            weights_dir=Path(storage.get("weights_dir", cls.weights_dir)),
            timeout=float(http.get("timeout", cls.timeout)),
            retries=int(http.get("retries", cls.retries)),
            retry_delay=float(http.get("retry_delay", cls.retry_delay)),
            retry_backoff=float(http.get("retry_backoff", cls.retry_backoff)),
            max_concurrency=int(http.get("max_concurrency", cls.max_concurrency)),
            regrid=bool(regrid.get("enabled", cls.regrid)),
            regrid_command=str(regrid.get("command", cls.regrid_command)),
            default_param=str(defaults.get("param", cls.default_param)),
            default_max_step=int(defaults.get("max_step", cls.default_max_step)),
            default_height=str(defaults.get("height", cls.default_height)),
        )
        if settings.retries < 0:
            raise ValueError(f"http.retries must be >= 0, got {settings.retries}")
        if settings.max_concurrency < 1:
            raise ValueError(
                f"http.max_concurrency must be >= 1, got {settings.max_concurrency}"
            )
        return settings


# ======================================================================
# CLI helpers
# ======================================================================

def standard_argparser(description: str) -> argparse.ArgumentParser:
    """Return an ``ArgumentParser`` with common flags."""
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: $GRIBDL_CONFIG or bundled config)",
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


def configure_logging(level_name: str = "INFO") -> None:
    """Set up root logging with a consistent format."""
    logging.basicConfig(
        level=getattr(logging, level_name.upper()),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    )
