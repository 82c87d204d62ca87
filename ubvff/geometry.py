from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from .model import Point

TYPE1_SCALE = 0x8000
TYPE2_SCALE = 0x10000
COORD_PLACES = 6


def round_int(n: int, d: int) -> int:
    """
    Integer division that truncates when the remainder is under a quarter of
    the divisor and otherwise steps one unit away from zero.  Viewport sizes
    in both formats are rounded this way.
    """

    if d <= 0:
        raise ValueError("divisor must be positive")
    q, r = divmod(abs(n), d)
    if r >= d // 4:
        q += 1
    return -q if n < 0 else q


def scale_value(value: int, scale: int) -> float:
    return value / scale


def format_coord(value: int, scale: int) -> str:
    return f"{value / scale:.{COORD_PLACES}f}"


def format_point(point: Point, scale: int) -> str:
    return f"{format_coord(point.x, scale)} {format_coord(point.y, scale)}"


@dataclass
class BoundsAccumulator:
    """Running min/max over fixed-point coordinates (raw, unscaled)."""

    min_x: int = 0
    min_y: int = 0
    max_x: int = TYPE2_SCALE
    max_y: int = TYPE2_SCALE

    def add(self, x: int, y: int) -> None:
        if x > self.max_x:
            self.max_x = x
        elif x < self.min_x:
            self.min_x = x
        if y > self.max_y:
            self.max_y = y
        elif y < self.min_y:
            self.min_y = y

    def add_points(self, points: Iterable[Point]) -> None:
        for pt in points:
            self.add(pt.x, pt.y)

    def fold(self, bounds: Tuple[int, int, int, int]) -> None:
        min_x, min_y, max_x, max_y = bounds
        self.min_x = min(self.min_x, min_x)
        self.min_y = min(self.min_y, min_y)
        self.max_x = max(self.max_x, max_x)
        self.max_y = max(self.max_y, max_y)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def rounded(self, scale: int) -> Tuple[int, int, int, int]:
        return (
            round_int(self.min_x, scale),
            round_int(self.min_y, scale),
            round_int(self.max_x, scale),
            round_int(self.max_y, scale),
        )
