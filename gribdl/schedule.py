"""Run clock and step planner.

``most_recent_run`` answers "which run can I download right now?";
``plan_steps`` answers "which forecast steps does that run publish?".

Both are pure functions of their arguments.  Wall-clock time only enters
through the ``now`` default, so tests pin ``now`` explicitly.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

import pandas as pd

from gribdl.core.errors import StepPlanError
from gribdl.core.tz import as_utc, utc_now
from gribdl.models.registry import ModelDescriptor

logger = logging.getLogger(__name__)

SPARSE_STRIDE = 3


# ======================================================================
# Run clock
# ======================================================================

def most_recent_run(
    descriptor: ModelDescriptor, now: Optional[datetime] = None
) -> datetime:
    """Latest run of ``descriptor`` whose files should already be published.

    ``floor(now - publication_delay, run_interval)`` with the floor taken
    from the UTC epoch.  Naive ``now`` is read as UTC.
    """
    now = as_utc(now if now is not None else utc_now())
    available = pd.Timestamp(now - timedelta(minutes=descriptor.publication_delay_minutes))
    run = available.floor(pd.Timedelta(hours=descriptor.run_interval_hours))
    return run.to_pydatetime()


# ======================================================================
# Step planner
# ======================================================================

def effective_max_step(
    descriptor: ModelDescriptor, run_hour: int, requested_max_step: int
) -> int:
    """Requested maximum clipped to what the provider publishes for this run."""
    try:
        cap = descriptor.step_caps[run_hour]
    except KeyError:
        raise StepPlanError(
            f"{descriptor.name} is not published for the {run_hour:02d}Z run "
            f"(runs: {sorted(descriptor.step_caps)})"
        ) from None
    return min(requested_max_step, cap)


def plan_steps(
    descriptor: ModelDescriptor, run_hour: int, requested_max_step: int
) -> list[int]:
    """Ordered forecast steps to fetch for one run.

    Every step below the breakpoint, then every third step from the
    breakpoint up to and including the effective maximum.
    """
    effective_max = effective_max_step(descriptor, run_hour, requested_max_step)
    if requested_max_step < 0:
        return []

    breakpoint_ = descriptor.breakpoint
    steps = list(range(0, min(effective_max, breakpoint_)))
    if effective_max >= breakpoint_:
        steps.extend(range(breakpoint_, effective_max + 1, SPARSE_STRIDE))

    logger.debug(
        "%s %02dZ: %d steps up to %d (breakpoint %d)",
        descriptor.name, run_hour, len(steps), effective_max, breakpoint_,
    )
    return steps
