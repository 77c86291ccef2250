"""Core infrastructure: config, logging, errors, time helpers."""

from .config import (
    DownloadSettings,
    load_config,
    standard_argparser,
    configure_logging,
)
from .errors import (
    GribdlError,
    ConfigurationError,
    UnknownModelError,
    StepPlanError,
    DownloadError,
    IndexFetchError,
    TransientError,
)
from .tz import utc_now, as_utc
