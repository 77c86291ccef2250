"""Provider downloaders and the pieces they are built from."""

from .base import BatchReport, FetchUnit, GribDownloader, UnitOutcome
from .dwd import DWDDownloader
from .noaa import NOAADownloader

DOWNLOADERS: dict[str, type[GribDownloader]] = {
    DWDDownloader.PROVIDER: DWDDownloader,
    NOAADownloader.PROVIDER: NOAADownloader,
}

__all__ = [
    "BatchReport",
    "FetchUnit",
    "GribDownloader",
    "UnitOutcome",
    "DWDDownloader",
    "NOAADownloader",
    "DOWNLOADERS",
]
