"""Exception hierarchy.

Configuration errors stop a batch before anything is dispatched.
Download errors are collected per unit and only ever logged.
"""

from __future__ import annotations


class GribdlError(Exception):
    """Base class for all gribdl errors."""


class ConfigurationError(GribdlError):
    """Invalid input detected before any download starts."""


class UnknownModelError(ConfigurationError):
    """Model name not present in the registry.

    ``supported`` carries the valid names so callers can report or retry
    without parsing the message.
    """

    def __init__(self, name: str, supported: list[str]):
        self.name = name
        self.supported = list(supported)
        super().__init__(
            f"Unsupported model {name!r}. Available models are: "
            f"{', '.join(self.supported)}"
        )


class StepPlanError(ConfigurationError):
    """The provider does not publish this model at the requested run hour."""


class DownloadError(GribdlError):
    """A fetch unit failed for good.

    ``stage`` is one of ``DL``, ``MOVE`` or ``IDX`` and is rendered as a
    ``[STAGE]`` prefix so log lines stay greppable.
    """

    stage = "DL"

    def __init__(self, message: str, *, url: str = "", stage: str | None = None):
        if stage is not None:
            self.stage = stage
        self.url = url
        self.message = message
        super().__init__(f"[{self.stage}] {message}")


class IndexFetchError(DownloadError):
    """The ``.idx`` sidecar of a combined archive could not be fetched."""

    stage = "IDX"


class TransientError(GribdlError):
    """One attempt failed in a way worth retrying (network, status, stream)."""
