from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Point:
    x: int
    y: int


Cubic = Tuple[Point, Point, Point]


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    reserved: int = 0

    def as_rgb(self) -> str:
        return f"rgb({self.r},{self.g},{self.b})"

    @classmethod
    def from_word(cls, word: int) -> "Color":
        """Type 1 colour word: red in the low byte, reserved in the top byte."""
        return cls(r=word & 0xFF, g=(word >> 8) & 0xFF, b=(word >> 16) & 0xFF, reserved=(word >> 24) & 0xFF)


BLACK = Color(0, 0, 0)


@dataclass(frozen=True)
class Segment:
    kind: str  # "move", "line", "cubic" or "close"
    points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class PathEnd:
    has_fill: bool
    fill: Color
    has_stroke: bool
    stroke_width: int
    stroke: Color


@dataclass
class Path:
    segments: List[Segment] = field(default_factory=list)
    end: Optional[PathEnd] = None

    def points(self) -> List[Point]:
        return [pt for seg in self.segments for pt in seg.points]


@dataclass
class Layer:
    name: Optional[str] = None
    paths: List[Path] = field(default_factory=list)


@dataclass
class Document:
    scale: int
    viewport: Optional[Tuple[int, int, int, int]] = None
    layers: List[Layer] = field(default_factory=list)

    def iter_paths(self):
        for layer in self.layers:
            yield from layer.paths


@dataclass(frozen=True)
class IncludeRef:
    file_id: int
    layer_id: int


@dataclass(frozen=True)
class OpcodeInfo:
    name: str
    operands: str = ""
