"""DWD ICON open-data downloader.

Each (parameter, step) is its own bzip2-compressed GRIB2 file on
https://opendata.dwd.de/weather/nwp/.  Files are decoded while streaming
into a staging directory, optionally remapped to a regular lat/lon grid
with ``cdo``, then moved into the output directory.

DWD specifics:
  - icon     global, icosahedral, runs every 6 h, ~4 h publication delay
  - icon-d2  Germany, icosahedral, hourly to step 24 then 3-hourly
  - icon-eu  Europe, regular lat/lon (never regridded), runs every 3 h
"""

from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

from gribdl.core.errors import DownloadError, TransientError
from gribdl.download.base import FetchUnit, GribDownloader
from gribdl.download.http import copy_body, open_stream
from gribdl.download.regrid import Regridder
from gribdl.download.templating import dwd_url
from gribdl.models.registry import DWD

logger = logging.getLogger(__name__)

COMPRESSION_SUFFIX = ".bz2"
PARTIAL_SUFFIX = ".partial"


class DWDDownloader(GribDownloader):
    """Whole-file downloader for DWD ICON models."""

    PROVIDER = DWD

    def __init__(
        self,
        model: str,
        params: Any,
        *,
        regrid: Optional[bool] = None,
        regridder: Optional[Regridder] = None,
        **kwargs: Any,
    ):
        super().__init__(model, params, **kwargs)
        self.tmp_dir = self.settings.tmp_dir / DWD
        self.regrid = self.settings.regrid if regrid is None else regrid
        self.regridder = regridder or Regridder(
            self.model, self.settings.weights_dir, self.settings.regrid_command
        )

    def url_for(self, param: str, run: datetime, step: int) -> str:
        return dwd_url(self.descriptor, param, run, step)

    def build_jobs(self, run: datetime, steps: list[int]) -> list[FetchUnit]:
        return [
            FetchUnit(param=param, step=step, url=self.url_for(param, run, step))
            for param in self.params
            for step in steps
        ]

    # ------------------------------------------------------------------
    # Fetch and land
    # ------------------------------------------------------------------

    def staged_path(self, url: str) -> Path:
        name = Path(urlsplit(url).path).name
        if name.endswith(COMPRESSION_SUFFIX):
            name = name[: -len(COMPRESSION_SUFFIX)]
        return self.tmp_dir / name

    def fetch_unit(self, unit: FetchUnit) -> Path:
        path = self._download(unit.url)
        if self.regrid and self.descriptor.needs_regrid:
            path = self.regridder.regrid(path)
        return self._move_to_output(path)

    def _download(self, url: str) -> Path:
        """Fetch and bzip2-decode ``url`` into the staging directory."""
        staged = self.staged_path(url)
        partial = staged.with_name(staged.name + PARTIAL_SUFFIX)
        try:
            self.tmp_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(f"creating staging directory: {e}", url=url) from e

        def attempt() -> None:
            with open_stream(
                self.session, url, expected_status=200, timeout=self.settings.timeout
            ) as resp:
                try:
                    out = open(partial, "wb")
                except OSError as e:
                    raise DownloadError(f"creating file: {e}", url=url) from e
                try:
                    with out:
                        copy_body(resp, out, decompress_bz2=True)
                except (TransientError, OSError):
                    partial.unlink(missing_ok=True)
                    raise

        try:
            self._with_retries(attempt, what=url)
            os.replace(partial, staged)
        except OSError as e:
            raise DownloadError(f"writing {staged.name}: {e}", url=url) from e

        logger.debug("[DL] %s -> %s", url, staged)
        return staged

    def _move_to_output(self, path: Path) -> Path:
        """Copy + remove, since staging and output may be different mounts."""
        dest = self.output_dir / path.name
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(f"creating output directory: {e}", stage="MOVE") from e
        try:
            shutil.copyfile(path, dest)
        except OSError as e:
            raise DownloadError(f"copying {path} to {dest}: {e}", stage="MOVE") from e
        try:
            path.unlink()
        except OSError as e:
            raise DownloadError(f"removing original file {path}: {e}", stage="MOVE") from e

        logger.info("[MOVE] %s", dest)
        return dest
