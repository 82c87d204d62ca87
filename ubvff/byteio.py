"""
Fixed-width record reads for the UBVFF binaries.

Both formats are stored big-endian on disk.  ``struct`` is always given an
explicit ``>`` byte order, so values come out in host order whatever the
machine is.  Type 2 point files are the odd one out: each 32-bit value is
written as two big-endian 16-bit halves with the low half first.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, List, Tuple

from .errors import TruncatedError
from .geometry import BoundsAccumulator
from .model import Point

_UNSIGNED = {1: "B", 2: "H", 4: "I"}
_SIGNED = {1: "b", 2: "h", 4: "i"}


class RecordReader:
    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def read(self, count: int, record_size: int, *, signed: bool = False) -> Tuple[int, ...]:
        codes = _SIGNED if signed else _UNSIGNED
        try:
            code = codes[record_size]
        except KeyError:
            raise ValueError(f"unsupported record size: {record_size}") from None
        wanted = count * record_size
        data = self.stream.read(wanted)
        if len(data) < wanted:
            raise TruncatedError(count, len(data) // record_size)
        return struct.unpack(f">{count}{code}", data)

    def read_u16(self, count: int = 1) -> Tuple[int, ...]:
        return self.read(count, 2)

    def read_u32(self, count: int = 1) -> Tuple[int, ...]:
        return self.read(count, 4)

    def read_i32(self, count: int = 1) -> Tuple[int, ...]:
        return self.read(count, 4, signed=True)

    def read_points(self, count: int) -> List[Point]:
        raw = self.read_i32(count * 2)
        return [Point(raw[i], raw[i + 1]) for i in range(0, len(raw), 2)]

    def seek(self, offset: int, whence: int = 0) -> int:
        return self.stream.seek(offset, whence)

    def tell(self) -> int:
        return self.stream.tell()

    def has_trailing_data(self) -> bool:
        """Probe one byte past the current position without treating EOF as an error."""
        return bool(self.stream.read(1))


def decode_split_word(raw: bytes) -> int:
    """Signed 32-bit value stored as big-endian halves, low half first."""
    low, high = struct.unpack(">HH", raw)
    value = (high << 16) | low
    if value & 0x80000000:
        value -= 0x100000000
    return value


class PointReader(RecordReader):
    """Cursor over a Type 2 point file that also tracks the discovered viewport."""

    def __init__(self, stream: BinaryIO, bounds: BoundsAccumulator | None = None) -> None:
        super().__init__(stream)
        self.bounds = bounds if bounds is not None else BoundsAccumulator()
        self.points_read = 0

    def read_points(self, count: int) -> List[Point]:
        wanted = count * 8
        data = self.stream.read(wanted)
        if len(data) < wanted:
            raise TruncatedError(count, len(data) // 8, what="point")
        points: List[Point] = []
        for offset in range(0, wanted, 8):
            pt = Point(decode_split_word(data[offset : offset + 4]), decode_split_word(data[offset + 4 : offset + 8]))
            self.bounds.add(pt.x, pt.y)
            points.append(pt)
        self.points_read += count
        return points
