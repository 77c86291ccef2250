"""Model registry: static metadata for every supported NWP model.

Single source of truth for:
  - when a model run becomes available (publication delay, run interval)
  - how far each run reaches (per-run-hour step cap)
  - where hourly output ends and 3-hourly output begins (breakpoint)
  - how to build the download URL (provider template)

Who uses what:
  - DWD (download.dwd): grid, area, url_template in legacy ``%sU``/``%sL`` form
  - NOAA (download.noaa): resolution, url_template in printf form

Expanding to new models:
  1. Add one entry to ``_MODELS`` below.
  2. That's it, the CLI and downloaders pick it up by name.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from gribdl.core.errors import UnknownModelError

DWD = "dwd"
NOAA = "noaa"
PROVIDERS = (DWD, NOAA)

REGULAR_LAT_LON = "regular-lat-lon"


# ======================================================================
# Data classes
# ======================================================================

@dataclass(frozen=True)
class ModelDescriptor:
    """Immutable description of one model as published by its provider."""

    name: str                          # e.g. "icon-eu", "gfs"
    provider: str                      # "dwd" or "noaa"
    publication_delay_minutes: int     # run time → files reliably on the server
    run_interval_hours: int            # runs start on multiples of this (from epoch)
    step_caps: Mapping[int, int]       # run hour → last published forecast step
    breakpoint: int                    # first step of the 3-hourly cadence
    url_template: str

    # DWD only
    grid: str = ""
    area: str = ""

    # NOAA only
    resolution: str = ""

    def __post_init__(self):
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown provider {self.provider!r} for {self.name}")
        object.__setattr__(self, "step_caps", MappingProxyType(dict(self.step_caps)))

    @property
    def needs_regrid(self) -> bool:
        """True when the native grid is not already regular lat/lon."""
        return self.provider == DWD and self.grid != REGULAR_LAT_LON


# ======================================================================
# Registry
# ======================================================================

_DWD_URL = (
    "https://opendata.dwd.de/weather/nwp/%sL/grib/%s/%sL/"
    "%sL_%s_%s_single-level_%s%s_%s_%sU.grib2.bz2"
)
_DWD_D2_URL = (
    "https://opendata.dwd.de/weather/nwp/%sL/grib/%s/%sL/"
    "%sL_%s_%s_single-level_%s%s_%s_2d_%sL.grib2.bz2"
)
_GFS_URL = "https://noaa-gfs-bdp-pds.s3.amazonaws.com/gfs.%s/%s/atmos/gfs.t%sz.pgrb2.%s.f%s"

_MODELS = (
    ModelDescriptor(
        name="icon",
        provider=DWD,
        publication_delay_minutes=240,
        run_interval_hours=6,
        step_caps={0: 180, 6: 120, 12: 180, 18: 120},
        breakpoint=78,
        url_template=_DWD_URL,
        grid="icosahedral",
        area="global",
    ),
    ModelDescriptor(
        name="icon-d2",
        provider=DWD,
        publication_delay_minutes=540,
        run_interval_hours=12,
        step_caps={0: 180, 6: 120, 12: 180, 18: 120},
        breakpoint=24,
        url_template=_DWD_D2_URL,
        grid="icosahedral",
        area="germany",
    ),
    ModelDescriptor(
        name="icon-eu",
        provider=DWD,
        publication_delay_minutes=240,
        run_interval_hours=3,
        step_caps={0: 120, 3: 30, 6: 120, 9: 30, 12: 120, 15: 30, 18: 120, 21: 30},
        breakpoint=78,
        url_template=_DWD_URL,
        grid=REGULAR_LAT_LON,
        area="europe",
    ),
    ModelDescriptor(
        name="gfs",
        provider=NOAA,
        publication_delay_minutes=360,
        run_interval_hours=6,
        step_caps={0: 384, 6: 384, 12: 384, 18: 384},
        breakpoint=120,
        url_template=_GFS_URL,
        resolution="0p25",
    ),
)

# Maps model name → ModelDescriptor.  Read-only view; never mutated.
MODEL_REGISTRY: Mapping[str, ModelDescriptor] = MappingProxyType(
    {m.name: m for m in _MODELS}
)


# ======================================================================
# Lookup helpers
# ======================================================================

def lookup(name: str) -> Optional[ModelDescriptor]:
    """Return the descriptor for ``name``, or None when it is not registered."""
    return MODEL_REGISTRY.get(name)


def supported_models(provider: Optional[str] = None) -> list[str]:
    """Registered model names, optionally restricted to one provider."""
    return [
        m.name for m in MODEL_REGISTRY.values()
        if provider is None or m.provider == provider
    ]


def get_model(name: str, provider: Optional[str] = None) -> ModelDescriptor:
    """Return the descriptor for ``name`` or raise ``UnknownModelError``.

    When ``provider`` is given the model must also belong to it, and the
    error lists only that provider's models.
    """
    descriptor = lookup(name)
    if descriptor is None or (provider is not None and descriptor.provider != provider):
        raise UnknownModelError(name, supported_models(provider))
    return descriptor
