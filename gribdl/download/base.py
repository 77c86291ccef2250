"""Base class for provider downloaders: planning, fan-out, error collection.

Subclasses set ``PROVIDER`` and implement ``build_jobs`` / ``fetch_unit``
(and ``process`` when one job covers more than one file).  Everything
else is inherited: run resolution, step planning, bounded concurrency,
retries and error aggregation.

One batch goes through four states:

1. **Planning**: most recent run + step plan.  Configuration errors are
   raised here, before any request is made.
2. **Dispatching**: one asyncio task per job.  Blocking HTTP and file
   work runs in a worker thread, admitted by a semaphore so at most
   ``max_concurrency`` jobs are in flight.
3. **Awaiting**: wait for every task.  A failed job never cancels its
   siblings.
4. **Collected**: drain the error queue, log every failure, return a
   ``BatchReport``.  The batch itself always completes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

import requests

from gribdl.core.config import DownloadSettings, load_config
from gribdl.core.errors import ConfigurationError, DownloadError
from gribdl.download.http import RetryPolicy, make_session, with_retries
from gribdl.download.index import IndexEntry
from gribdl.models.registry import ModelDescriptor, get_model
from gribdl.schedule import effective_max_step, most_recent_run, plan_steps

logger = logging.getLogger(__name__)


# ======================================================================
# Data classes
# ======================================================================

@dataclass(frozen=True)
class FetchUnit:
    """One file to fetch: a parameter at one forecast step."""

    param: str
    step: int
    url: str
    height: Optional[str] = None
    byte_range: Optional[IndexEntry] = None


@dataclass
class UnitOutcome:
    paths: list[Path] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)


@dataclass
class BatchReport:
    model: str
    run: datetime
    steps: list[int]
    paths: list[Path] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def failed(self) -> int:
        return len(self.errors)


def parse_params(params: str | Iterable[str]) -> list[str]:
    """Accept ``"t_2m,tot_prec"`` or an iterable of names; drop blanks."""
    if isinstance(params, str):
        params = params.split(",")
    return [p.strip() for p in params if p and p.strip()]


# ======================================================================
# Base class
# ======================================================================

class GribDownloader:
    """Download one model run for a set of parameters."""

    # --- Override in subclass ------------------------------------------------
    PROVIDER: str = ""
    # -------------------------------------------------------------------------

    def __init__(
        self,
        model: str,
        params: str | Iterable[str],
        *,
        max_step: Optional[int] = None,
        output_dir: Path | str | None = None,
        settings: Optional[DownloadSettings] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.descriptor: ModelDescriptor = get_model(model, self.PROVIDER or None)
        self.params = parse_params(params)
        if not self.params:
            raise ConfigurationError("At least one parameter is required")

        self.settings = settings or DownloadSettings()
        self.output_dir = Path(output_dir) if output_dir is not None else self.settings.output_dir
        self.max_step = max_step if max_step is not None else self.settings.default_max_step
        self.retry = RetryPolicy(
            retries=self.settings.retries,
            delay=self.settings.retry_delay,
            backoff=self.settings.retry_backoff,
        )
        self._owns_session = session is None
        self.session = session or make_session(self.settings.max_concurrency)
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Config integration
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls, model: str, config_path: Optional[str] = None, **kwargs: Any
    ) -> "GribDownloader":
        """Create a downloader with settings from config.yaml."""
        cfg, _ = load_config(config_path)
        settings = DownloadSettings.from_config(cfg)
        kwargs.setdefault("params", settings.default_param)
        return cls(model, settings=settings, **kwargs)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    @property
    def model(self) -> str:
        return self.descriptor.name

    def plan(self, now: Optional[datetime] = None) -> tuple[datetime, list[int]]:
        """Resolve the run to fetch and its forecast steps."""
        run = most_recent_run(self.descriptor, now)
        steps = plan_steps(self.descriptor, run.hour, self.max_step)
        return run, steps

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def build_jobs(self, run: datetime, steps: list[int]) -> list:
        """Return the work items to dispatch, one task each."""
        raise NotImplementedError

    def fetch_unit(self, unit: FetchUnit) -> Path:
        """Fetch one unit and return the landed file.  Raises ``DownloadError``."""
        raise NotImplementedError

    def process(self, job: Any) -> UnitOutcome:
        """Run one dispatched job.  Default: the job is a single ``FetchUnit``."""
        try:
            return UnitOutcome(paths=[self.fetch_unit(job)])
        except DownloadError as e:
            return UnitOutcome(errors=[e])

    def _with_retries(self, attempt: Callable[[], Any], what: str) -> Any:
        return with_retries(attempt, self.retry, what=what, sleep=self._sleep)

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def run(self, now: Optional[datetime] = None) -> BatchReport:
        """Fetch the most recent run.  Blocks until every job finished."""
        return asyncio.run(self.run_async(now))

    async def run_async(self, now: Optional[datetime] = None) -> BatchReport:
        run, steps = self.plan(now)
        logger.info(
            "[MAIN] Processing %s model for parameter %s up to %d steps starting from %s",
            self.model, ",".join(self.params),
            effective_max_step(self.descriptor, run.hour, self.max_step),
            run.strftime("%Y-%m-%d %HZ"),
        )

        jobs = self.build_jobs(run, steps)
        report = BatchReport(model=self.model, run=run, steps=steps)
        errors: asyncio.Queue = asyncio.Queue(maxsize=max(1, len(jobs) * len(self.params)))
        admission = asyncio.Semaphore(self.settings.max_concurrency)

        async def dispatch(job: Any) -> None:
            async with admission:
                try:
                    outcome = await asyncio.to_thread(self.process, job)
                except Exception as e:
                    logger.debug("Unexpected failure in job %r", job, exc_info=True)
                    outcome = UnitOutcome(errors=[e])
            report.paths.extend(outcome.paths)
            for err in outcome.errors:
                errors.put_nowait(err)

        await asyncio.gather(*(dispatch(job) for job in jobs))

        while not errors.empty():
            err = errors.get_nowait()
            logger.error("%s", err)
            report.errors.append(err)

        logger.info(
            "[MAIN] %s %s: %d files landed, %d failed",
            self.model, run.strftime("%Y-%m-%d %HZ"), len(report.paths), report.failed,
        )
        return report
