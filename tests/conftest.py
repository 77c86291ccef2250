"""Shared fixtures: a scripted stand-in for ``requests.Session``."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from gribdl.core.config import DownloadSettings


class FakeResponse:
    """Minimal ``requests.Response``: status, streamed chunks, text."""

    def __init__(self, status_code=200, chunks=(), text="", fail_after=None):
        self.status_code = status_code
        self._chunks = list(chunks)
        self.text = text
        self.fail_after = fail_after      # exception raised once chunks run out
        self.closed = False

    def iter_content(self, chunk_size=1):
        for chunk in self._chunks:
            yield chunk
        if self.fail_after is not None:
            raise self.fail_after

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakeSession:
    """Routes ``get`` calls by URL.

    A route is a list of responses (or exceptions) handed out in order; the
    last one repeats.  Unknown URLs get ``default_status``.
    """

    def __init__(self, routes=None, default_status=404):
        self.routes = {url: list(items) for url, items in (routes or {}).items()}
        self.default_status = default_status
        self.calls: list[tuple[str, dict]] = []
        self._lock = threading.Lock()

    def add(self, url, *items):
        self.routes.setdefault(url, []).extend(items)

    def get(self, url, headers=None, stream=False, timeout=None):
        with self._lock:
            self.calls.append((url, dict(headers or {})))
            items = self.routes.get(url)
            if not items:
                item = FakeResponse(self.default_status)
            elif len(items) > 1:
                item = items.pop(0)
            else:
                item = items[0]
        if isinstance(item, Exception):
            raise item
        # fresh copy, repeated responses stream from the start each time
        return FakeResponse(item.status_code, item._chunks, item.text, item.fail_after)

    def calls_to(self, url) -> int:
        return sum(1 for called, _ in self.calls if called == url)

    def close(self):
        pass


@pytest.fixture
def settings(tmp_path: Path) -> DownloadSettings:
    return DownloadSettings(
        output_dir=tmp_path / "output",
        tmp_dir=tmp_path / "tmp",
        weights_dir=tmp_path / "weights",
        timeout=5.0,
        retries=5,
        retry_delay=0.0,
        max_concurrency=4,
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()
