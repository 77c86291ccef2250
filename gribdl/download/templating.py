"""URL templates for both providers.

DWD templates use a small legacy notation: ``%s`` substitutes an argument
verbatim, ``%sU`` upper-cases it, ``%sL`` lower-cases it.  The notation is
parsed once into a ``UrlTemplate`` (literal segments plus one ``Directive``
per placeholder) and rendering then works by position only.

Rendering is lenient: a placeholder without a matching argument renders
as an empty string, surplus arguments are ignored.  Existing templates
rely on this.

NOAA templates are plain printf strings with a fixed argument list.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Any

from gribdl.models.registry import ModelDescriptor


class Directive(enum.Enum):
    VERBATIM = "s"
    UPPER = "sU"
    LOWER = "sL"

    def apply(self, value: Any) -> str:
        text = str(value)
        if self is Directive.UPPER:
            return text.upper()
        if self is Directive.LOWER:
            return text.lower()
        return text


@dataclass(frozen=True)
class UrlTemplate:
    """A compiled template: ``literals[0] d0 literals[1] d1 ... literals[n]``."""

    literals: tuple[str, ...]
    directives: tuple[Directive, ...]

    @classmethod
    def parse(cls, fmt: str) -> "UrlTemplate":
        """Compile a legacy ``%s``/``%sU``/``%sL`` format string."""
        literals: list[str] = []
        directives: list[Directive] = []
        current: list[str] = []
        i = 0
        while i < len(fmt):
            if fmt.startswith("%s", i):
                marker = fmt[i + 2:i + 3]
                if marker == "U":
                    directive, width = Directive.UPPER, 3
                elif marker == "L":
                    directive, width = Directive.LOWER, 3
                else:
                    directive, width = Directive.VERBATIM, 2
                literals.append("".join(current))
                directives.append(directive)
                current = []
                i += width
            else:
                current.append(fmt[i])
                i += 1
        literals.append("".join(current))
        return cls(tuple(literals), tuple(directives))

    @property
    def arity(self) -> int:
        return len(self.directives)

    def render(self, *args: Any) -> str:
        parts = [self.literals[0]]
        for position, directive in enumerate(self.directives):
            if position < len(args):
                parts.append(directive.apply(args[position]))
            parts.append(self.literals[position + 1])
        return "".join(parts)


@lru_cache(maxsize=None)
def compile_template(fmt: str) -> UrlTemplate:
    return UrlTemplate.parse(fmt)


def format_string(fmt: str, *args: Any) -> str:
    """One-shot render of a legacy DWD format string."""
    return compile_template(fmt).render(*args)


# ======================================================================
# Provider URLs
# ======================================================================

def dwd_url(descriptor: ModelDescriptor, param: str, run: datetime, step: int) -> str:
    """Download URL of one DWD single-level archive."""
    hour = f"{run.hour:02d}"
    model = descriptor.name
    return format_string(
        descriptor.url_template,
        model, hour,
        param, model,
        descriptor.area, descriptor.grid,
        run.strftime("%Y%m%d"), hour, f"{step:03d}",
        param,
    )


def noaa_url(descriptor: ModelDescriptor, run: datetime, step: int) -> str:
    """Download URL of one GFS combined archive (all parameters, one step)."""
    hour = f"{run.hour:02d}"
    return descriptor.url_template % (
        run.strftime("%Y%m%d"), hour, hour, descriptor.resolution, f"{step:03d}",
    )
