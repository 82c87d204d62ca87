from __future__ import annotations

from enum import Enum, IntEnum
from typing import BinaryIO, Dict, FrozenSet, Optional, Tuple

from .errors import StateError
from .geometry import format_point
from .model import Color, Cubic, Document, Layer, Path, PathEnd, Point, Segment
from .viewport import (
    SVG_FOOTER,
    SVG_HEADER_PREFIX,
    SVG_HEADER_SUFFIX,
    VIEWBOX_PLACEHOLDER,
    patch_viewport,
)


class EmitterState(IntEnum):
    BEGIN = 0
    AFTER_HEADER = 1
    AFTER_LAYER_START = 2
    AFTER_PATH_START = 3
    AFTER_LINE = 4
    AFTER_CLOSE = 5
    AFTER_PATH_END = 6
    AFTER_LAYER_END = 7
    AFTER_FOOTER = 8


class Variant(Enum):
    LAYERED = "layered"  # Type 1: explicit <g> per layer
    FLAT = "flat"  # Type 2: one implicit layer, no <g>


S = EmitterState

_LAYERED: Dict[str, FrozenSet[EmitterState]] = {
    "header": frozenset({S.BEGIN}),
    "layer_start": frozenset({S.AFTER_HEADER, S.AFTER_LAYER_END}),
    "path_open": frozenset({S.AFTER_LAYER_START, S.AFTER_PATH_END}),
    "path_continue": frozenset({S.AFTER_CLOSE, S.AFTER_LINE}),
    "segment": frozenset({S.AFTER_PATH_START, S.AFTER_LINE}),
    "close": frozenset({S.AFTER_LINE}),
    "path_end": frozenset({S.AFTER_LINE, S.AFTER_CLOSE}),
    "layer_end": frozenset({S.AFTER_PATH_END, S.AFTER_LAYER_START}),
    "footer": frozenset({S.AFTER_LAYER_END}),
}

_FLAT: Dict[str, FrozenSet[EmitterState]] = {
    "header": frozenset({S.BEGIN}),
    "layer_start": frozenset(),
    "path_open": frozenset({S.AFTER_HEADER, S.AFTER_PATH_END}),
    "path_continue": frozenset({S.AFTER_CLOSE, S.AFTER_LINE}),
    "segment": frozenset({S.AFTER_PATH_START, S.AFTER_LINE}),
    "close": frozenset({S.AFTER_LINE, S.AFTER_PATH_START}),
    "path_end": frozenset({S.AFTER_LINE, S.AFTER_CLOSE}),
    "layer_end": frozenset(),
    "footer": frozenset({S.AFTER_PATH_END}),
}

TRANSITIONS = {Variant.LAYERED: _LAYERED, Variant.FLAT: _FLAT}

STROKE_STYLE = 'stroke-linecap="butt" stroke-linejoin="miter" stroke-miterlimit="10"'


class SvgEmitter:
    """
    Finite-state SVG writer.  Each ``emit_*`` call is legal only from a fixed
    set of states; anything else raises :class:`StateError` because it means
    the decoder and the emitter have lost step with each other.

    When ``document`` is given every event is also recorded into it, which is
    what the PNG preview renders from.
    """

    def __init__(
        self,
        stream: BinaryIO,
        scale: int,
        variant: Variant = Variant.LAYERED,
        *,
        document: Optional[Document] = None,
    ) -> None:
        self.stream = stream
        self.scale = scale
        self.variant = variant
        self.state = EmitterState.BEGIN
        self.document = document
        self._rules = TRANSITIONS[variant]
        self._placeholder = False
        self._layer: Optional[Layer] = None
        self._path: Optional[Path] = None

    @property
    def finished(self) -> bool:
        return self.state == EmitterState.AFTER_FOOTER

    def _require(self, rule: str, operation: str) -> None:
        if self.state not in self._rules[rule]:
            raise StateError(f"state error: {operation} called in state {self.state.name}")

    def _write(self, text: str) -> None:
        self.stream.write(text.encode("ascii"))

    def emit_header(self, viewbox: Optional[Tuple[int, int, int, int]] = None) -> None:
        """Open the document; ``None`` writes the fixed-width placeholder."""
        self._require("header", "emit_header")
        if viewbox is None:
            field = VIEWBOX_PLACEHOLDER
            self._placeholder = True
        else:
            field = '"{} {} {} {}"'.format(*viewbox)
        self._write(f"{SVG_HEADER_PREFIX}{field}{SVG_HEADER_SUFFIX}")
        if self.document is not None:
            self.document.viewport = viewbox
            if self.variant is Variant.FLAT:
                self._layer = Layer()
                self.document.layers.append(self._layer)
        self.state = EmitterState.AFTER_HEADER

    def emit_layer_start(self, name: Optional[str] = None) -> None:
        self._require("layer_start", "emit_layer_start")
        self._write("<g>\n")
        if self.document is not None:
            self._layer = Layer(name=name)
            self.document.layers.append(self._layer)
        self.state = EmitterState.AFTER_LAYER_START

    def emit_path_start(self, point: Point) -> None:
        if self.state in self._rules["path_continue"]:
            prefix = "M "
            if self._path is not None:
                self._path.segments.append(Segment("move", (point,)))
        else:
            self._require("path_open", "emit_path_start")
            prefix = '<path d="M '
            if self._layer is not None:
                self._path = Path(segments=[Segment("move", (point,))])
                self._layer.paths.append(self._path)
        self._write(f"{prefix}{format_point(point, self.scale)} ")
        self.state = EmitterState.AFTER_PATH_START

    def emit_line(self, point: Point) -> None:
        self._require("segment", "emit_line")
        self._write(f"L {format_point(point, self.scale)} ")
        if self._path is not None:
            self._path.segments.append(Segment("line", (point,)))
        self.state = EmitterState.AFTER_LINE

    def emit_cubic(self, cubic: Cubic) -> None:
        self._require("segment", "emit_cubic")
        p0, p1, p2 = cubic
        self._write(
            f"C {format_point(p0, self.scale)}, {format_point(p1, self.scale)}, {format_point(p2, self.scale)} "
        )
        if self._path is not None:
            self._path.segments.append(Segment("cubic", (p0, p1, p2)))
        self.state = EmitterState.AFTER_LINE

    def emit_close(self) -> None:
        self._require("close", "emit_close")
        self._write("Z ")
        if self._path is not None:
            self._path.segments.append(Segment("close"))
        self.state = EmitterState.AFTER_CLOSE

    def emit_path_end(
        self,
        has_fill: bool,
        fill: Color,
        has_stroke: bool,
        stroke_width: int,
        stroke: Color,
    ) -> None:
        self._require("path_end", "emit_path_end")
        fill_attr = f'fill="{fill.as_rgb()}" ' if has_fill else 'fill="none" '
        if has_stroke:
            width = stroke_width / self.scale
            stroke_attr = f'stroke="{stroke.as_rgb()}" stroke-width="{width:.6f}" {STROKE_STYLE} '
        else:
            stroke_attr = 'stroke="none" '
        self._write(f'" {fill_attr}{stroke_attr}/>\n')
        if self._path is not None:
            self._path.end = PathEnd(has_fill, fill, has_stroke, stroke_width, stroke)
        self.state = EmitterState.AFTER_PATH_END

    def emit_layer_end(self) -> None:
        self._require("layer_end", "emit_layer_end")
        self._write("</g>\n")
        self._path = None
        self.state = EmitterState.AFTER_LAYER_END

    def emit_footer(self) -> None:
        self._require("footer", "emit_footer")
        self._write(SVG_FOOTER)
        self.state = EmitterState.AFTER_FOOTER

    def finalize_viewport(self, bounds: Tuple[int, int, int, int]) -> None:
        """Overwrite the header placeholder with the final integer bounds."""
        if not self._placeholder:
            raise StateError("state error: finalize_viewport without a viewBox placeholder")
        patch_viewport(self.stream, bounds)
        if self.document is not None:
            self.document.viewport = bounds
