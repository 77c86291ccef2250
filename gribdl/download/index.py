"""GRIB2 ``.idx`` sidecar parsing for byte-range downloads.

An index line looks like::

    12:4405433:d=2024010100:TMP:2 m above ground:anl:

Field 1 is the byte offset of the message inside the combined archive,
field 3 the parameter and field 4 the level.  A message ends where the
next one starts; the last message runs to the end of the archive, which
is represented by ``end=None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from gribdl.core.errors import IndexFetchError

logger = logging.getLogger(__name__)

MIN_FIELDS = 5


@dataclass(frozen=True)
class IndexEntry:
    start: int
    end: Optional[int]          # exclusive; None = to end of archive

    def range_header(self) -> str:
        """``Range`` header value (HTTP ranges are inclusive)."""
        if self.end is None:
            return f"bytes={self.start}-"
        return f"bytes={self.start}-{self.end - 1}"


IndexTable = dict[str, dict[str, IndexEntry]]


def _parse_record(line: str) -> Optional[tuple[int, str, str]]:
    parts = line.split(":")
    if len(parts) < MIN_FIELDS:
        return None
    try:
        offset = int(parts[1])
    except ValueError:
        return None
    return offset, parts[3], parts[4]


def parse_index(text: str) -> IndexTable:
    """Build ``{param: {level: IndexEntry}}`` from an index document.

    Malformed lines are skipped.  A later record for the same
    (param, level) replaces the earlier one.
    """
    records = [r for r in map(_parse_record, text.splitlines()) if r is not None]

    table: IndexTable = {}
    for i, (start, param, level) in enumerate(records):
        end = records[i + 1][0] if i + 1 < len(records) else None
        table.setdefault(param, {})[level] = IndexEntry(start, end)
    return table


def resolve_index(
    session: requests.Session, url: str, *, timeout: float = 60.0
) -> IndexTable:
    """Fetch ``<url>.idx`` and parse it."""
    idx_url = f"{url}.idx"
    try:
        resp = session.get(idx_url, timeout=timeout)
    except requests.RequestException as e:
        raise IndexFetchError(f"fetching index {idx_url}: {e}", url=idx_url) from e

    with resp:
        if resp.status_code != 200:
            raise IndexFetchError(
                f"fetching index {idx_url}: status {resp.status_code}", url=idx_url
            )
        table = parse_index(resp.text)

    logger.debug("[IDX] %s: %d parameters", idx_url, len(table))
    return table
