"""NOAA GFS downloader using ``.idx`` byte-range extraction.

GFS publishes one combined GRIB2 archive per forecast step containing
every parameter and level.  For each step the ``.idx`` sidecar is fetched
once, then each requested parameter is pulled with an HTTP Range request
and written straight to the output directory.

Data source: NOAA GFS via AWS S3 (noaa-gfs-bdp-pds), public, no auth.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

from gribdl.core.errors import DownloadError, IndexFetchError, TransientError
from gribdl.download.base import FetchUnit, GribDownloader, UnitOutcome
from gribdl.download.http import copy_body, open_stream
from gribdl.download.index import IndexTable, resolve_index
from gribdl.download.templating import noaa_url
from gribdl.models.registry import NOAA

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"


@dataclass(frozen=True)
class StepJob:
    """All requested parameters of one forecast step (one shared index)."""

    step: int
    url: str


class NOAADownloader(GribDownloader):
    """Byte-range downloader for NOAA GFS."""

    PROVIDER = NOAA

    def __init__(
        self,
        model: str,
        params: Any,
        *,
        height: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(model, params, **kwargs)
        self.height = height if height is not None else self.settings.default_height

    def url_for(self, run: datetime, step: int) -> str:
        return noaa_url(self.descriptor, run, step)

    def build_jobs(self, run: datetime, steps: list[int]) -> list[StepJob]:
        return [StepJob(step=step, url=self.url_for(run, step)) for step in steps]

    def process(self, job: StepJob) -> UnitOutcome:
        """Resolve the step's index once, then fetch each parameter in turn."""
        try:
            index = resolve_index(self.session, job.url, timeout=self.settings.timeout)
        except IndexFetchError as e:
            return UnitOutcome(errors=[e])

        outcome = UnitOutcome()
        for param in self.params:
            try:
                unit = self.resolve_unit(index, param, job)
                outcome.paths.append(self.fetch_unit(unit))
            except DownloadError as e:
                outcome.errors.append(e)
        return outcome

    def resolve_unit(self, index: IndexTable, param: str, job: StepJob) -> FetchUnit:
        entry = index.get(param, {}).get(self.height)
        if entry is None:
            raise DownloadError(
                f"{param} at {self.height!r} not found in index of {job.url}", url=job.url
            )
        return FetchUnit(
            param=param, step=job.step, url=job.url,
            height=self.height, byte_range=entry,
        )

    # ------------------------------------------------------------------
    # Fetch and land
    # ------------------------------------------------------------------

    def output_path(self, unit: FetchUnit) -> Path:
        name = Path(urlsplit(unit.url).path).name
        return self.output_dir / f"{name}_{unit.param}_{unit.height}.grib2"

    def fetch_unit(self, unit: FetchUnit) -> Path:
        if unit.byte_range is None:
            raise DownloadError(f"no byte range for {unit.param}", url=unit.url)

        dest = self.output_path(unit)
        partial = dest.with_name(dest.name + PARTIAL_SUFFIX)
        headers = {"Range": unit.byte_range.range_header()}
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(f"creating output directory: {e}", url=unit.url) from e

        def attempt() -> None:
            with open_stream(
                self.session, unit.url,
                expected_status=206, timeout=self.settings.timeout, headers=headers,
            ) as resp:
                try:
                    out = open(partial, "wb")
                except OSError as e:
                    raise DownloadError(f"creating file: {e}", url=unit.url) from e
                try:
                    with out:
                        copy_body(resp, out)
                except (TransientError, OSError):
                    partial.unlink(missing_ok=True)
                    raise

        what = f"{unit.url} [{unit.param} {unit.height}]"
        try:
            self._with_retries(attempt, what=what)
            os.replace(partial, dest)
        except OSError as e:
            raise DownloadError(f"writing {dest.name}: {e}", url=unit.url) from e

        logger.info("[DL] %s", dest)
        return dest
