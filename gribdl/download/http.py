"""HTTP plumbing shared by both providers: session, retry loop, streaming.

Attempts signal retryable failures by raising ``TransientError``.
Anything else (local filesystem errors in particular) escapes the retry
loop immediately.
"""

from __future__ import annotations

import bz2
import logging
import time
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional, TypeVar

import requests
from requests.adapters import HTTPAdapter

from gribdl.core.errors import DownloadError, TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHUNK_SIZE = 1 << 16


def make_session(pool_size: int = 16) -> requests.Session:
    """A ``requests.Session`` whose connection pool fits ``pool_size`` workers."""
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


# ======================================================================
# Retry
# ======================================================================

@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 5            # additional attempts after the first
    delay: float = 1.0
    backoff: float = 2.0

    @property
    def attempts(self) -> int:
        return self.retries + 1


def with_retries(
    attempt: Callable[[], T],
    policy: RetryPolicy,
    *,
    what: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``attempt`` until it succeeds or the retry budget is spent.

    Only ``TransientError`` is retried.  Exhaustion raises a ``[DL]``
    ``DownloadError`` carrying the last failure.
    """
    delay = policy.delay
    last_error: Optional[TransientError] = None
    for number in range(1, policy.attempts + 1):
        try:
            return attempt()
        except TransientError as e:
            last_error = e
            if number == policy.attempts:
                break
            logger.warning(
                "[DL] %s failed (attempt %d/%d): %s. Retrying in %.1fs...",
                what, number, policy.attempts, e, delay,
            )
            if delay > 0:
                sleep(delay)
            delay *= policy.backoff

    raise DownloadError(
        f"giving up on {what} after {policy.attempts} attempts: {last_error}",
        url=what,
    )


# ======================================================================
# Requests
# ======================================================================

def open_stream(
    session: requests.Session,
    url: str,
    *,
    expected_status: int,
    timeout: float,
    headers: Optional[dict] = None,
) -> requests.Response:
    """Issue a streaming GET, raising ``TransientError`` unless the status matches."""
    try:
        resp = session.get(url, headers=headers, stream=True, timeout=timeout)
    except requests.RequestException as e:
        raise TransientError(f"getting url: {e}") from e

    if resp.status_code != expected_status:
        resp.close()
        raise TransientError(
            f"expected status {expected_status}, got {resp.status_code}"
        )
    return resp


def copy_body(
    resp: requests.Response,
    out: BinaryIO,
    *,
    decompress_bz2: bool = False,
    chunk_size: int = CHUNK_SIZE,
) -> int:
    """Stream the response body into ``out``, optionally bzip2-decoding it.

    Concatenated bzip2 streams are decoded one after another; bytes after
    a stream that do not start another one fail the attempt.  Network and
    decoding failures are transient; write failures on ``out`` propagate
    as ``OSError``.  Returns the number of bytes written.
    """
    decompressor = bz2.BZ2Decompressor() if decompress_bz2 else None
    written = 0
    chunks = resp.iter_content(chunk_size=chunk_size)
    while True:
        try:
            chunk = next(chunks, None)
        except requests.RequestException as e:
            raise TransientError(f"reading body: {e}") from e
        if chunk is None:
            break
        if not chunk:
            continue
        if decompressor is not None:
            decoded = []
            try:
                while chunk:
                    # concatenated archives (pbzip2): a new stream follows the last
                    if decompressor.eof:
                        decompressor = bz2.BZ2Decompressor()
                    decoded.append(decompressor.decompress(chunk))
                    chunk = decompressor.unused_data if decompressor.eof else b""
            except (OSError, EOFError) as e:
                raise TransientError(f"decoding bzip2 stream: {e}") from e
            chunk = b"".join(decoded)
        out.write(chunk)
        written += len(chunk)

    if decompressor is not None and not decompressor.eof:
        raise TransientError("truncated bzip2 stream")
    return written
