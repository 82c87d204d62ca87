"""
Hindsight viewBox patching.

Output documents open with ``<svg viewBox="VIEWBOX_PLACEHOLDER_1234" ...``.
The quoted placeholder is exactly 26 bytes at byte offset 13; once the real
bounds are known it is overwritten in place with ``"minx miny maxx maxy"``
padded with spaces.  There is no length prefix anywhere in the markup, so
the replacement must be the same width.
"""

from __future__ import annotations

import io
import re
from typing import BinaryIO, Tuple

from .errors import InvalidHeaderError, PatchError

SVG_HEADER_PREFIX = "<svg viewBox="
SVG_HEADER_SUFFIX = ' version="1.1" baseProfile="full" xmlns="http://www.w3.org/2000/svg">\n'
SVG_FOOTER = "</svg>\n"
VIEWBOX_PLACEHOLDER = '"VIEWBOX_PLACEHOLDER_1234"'
VIEWBOX_FIELD_OFFSET = len(SVG_HEADER_PREFIX)
VIEWBOX_FIELD_WIDTH = len(VIEWBOX_PLACEHOLDER)

_VIEWBOX_RE = re.compile(rb"\s*([+-]?\d+)\s+([+-]?\d+)\s+([+-]?\d+)\s+([+-]?\d+)")


def format_viewbox_field(min_x: int, min_y: int, max_x: int, max_y: int) -> str:
    text = f'"{min_x} {min_y} {max_x} {max_y}"'
    if len(text) > VIEWBOX_FIELD_WIDTH:
        raise PatchError(f"viewBox {text} does not fit the {VIEWBOX_FIELD_WIDTH}-character placeholder")
    return text.ljust(VIEWBOX_FIELD_WIDTH)


def patch_viewport(stream: BinaryIO, bounds: Tuple[int, int, int, int]) -> None:
    field = format_viewbox_field(*bounds).encode("ascii")
    try:
        stream.flush()
        if not stream.seekable():
            raise PatchError("output stream is not seekable")
        pos = stream.tell()
        stream.seek(VIEWBOX_FIELD_OFFSET, io.SEEK_SET)
        written = stream.write(field)
        stream.seek(pos, io.SEEK_SET)
    except (OSError, ValueError) as exc:
        raise PatchError(f"unable to rewrite viewBox placeholder: {exc}") from exc
    if written is not None and written != VIEWBOX_FIELD_WIDTH:
        raise PatchError(f"short write while patching viewBox ({written} bytes)")


def parse_viewbox(header: bytes) -> Tuple[int, int, int, int]:
    """Read the four integers a patched fragment carries just inside its quote."""

    match = _VIEWBOX_RE.match(header, VIEWBOX_FIELD_OFFSET + 1)
    if match is None:
        raise InvalidHeaderError("unable to read viewBox")
    x1, y1, x2, y2 = (int(g) for g in match.groups())
    return x1, y1, x2, y2
