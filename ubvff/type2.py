"""
Decoder for UBVFF Type 2, the split-stream variant.

Only seen in one print-studio title (container Bugsai.mms).  An image is
spread across several NNNNN.bin resources:

    command file   7 x u16 header   reserved, cmd_count, reserved, x1, y1, x2, y2
                   5 x u16 commands opcode + four parameter words
                   last command     END_FILE, points file id, 0, 0, 0
    point file     2 x u16 header   reserved, point_count
                   points from byte 4, each value as two BE halves, low first

MOVE_TO / POINTS_* commands carry only a count; the coordinates come from
the point file's running cursor.  The header viewport is not trusted: the
real bounds are gathered while points are read and patched into the SVG at
the end.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO, Mapping, Optional, Sequence

from .byteio import PointReader, RecordReader
from .emitter import SvgEmitter, Variant
from .errors import DecodeError, InvalidFooterError, InvalidHeaderError, StateError, TruncatedError
from .geometry import TYPE2_SCALE, format_coord
from .logging import ConversionLog, describe_points
from .model import BLACK, Color, Document, OpcodeInfo
from .naming import AUTO, derive_points_path

HEADER_SIZE = 14
COMMAND_SIZE = 10
FOOTER_SIZE = 10
POINTS_DATA_OFFSET = 4
MIN_COMMAND_COUNT = 0x0A  # header must declare more than this


class Type2Op(IntEnum):
    END_FILE = 0x01
    MOVE_TO = 0x02
    POINTS_LINES = 0x03
    POINTS_CUBICS = 0x04
    STROKE_COLOR = 0x05
    FILL_COLOR = 0x06
    END_PATH = 0x07
    STROKE_FLAG_A = 0x08
    STROKE_FLAG_B = 0x09
    STROKE_WIDTH = 0x0A


TYPE2_OPCODES: Mapping[Type2Op, OpcodeInfo] = MappingProxyType(
    {
        Type2Op.END_FILE: OpcodeInfo("END_FILE", "points file id"),
        Type2Op.MOVE_TO: OpcodeInfo("MOVE_TO", "1 (one point)"),
        Type2Op.POINTS_LINES: OpcodeInfo("POINTS_LINES", "point count"),
        Type2Op.POINTS_CUBICS: OpcodeInfo("POINTS_CUBICS", "point count (multiple of 3)"),
        Type2Op.STROKE_COLOR: OpcodeInfo("STROKE_COLOR", "r g b reserved"),
        Type2Op.FILL_COLOR: OpcodeInfo("FILL_COLOR", "r g b reserved"),
        Type2Op.END_PATH: OpcodeInfo("END_PATH", "sub-code"),
        Type2Op.STROKE_FLAG_A: OpcodeInfo("STROKE_FLAG_A", "0 or 1"),
        Type2Op.STROKE_FLAG_B: OpcodeInfo("STROKE_FLAG_B", "0, 1 or 2"),
        Type2Op.STROKE_WIDTH: OpcodeInfo("STROKE_WIDTH", "low word, high word"),
    }
)


class EndPathCode(IntEnum):
    HAS_STROKE = 0
    CLOSE_FILL = 1
    FINALIZE = 2
    NO_FILL = 3
    UNPAINTED_START = 4
    UNPAINTED_END = 5


@dataclass(frozen=True)
class CommandFileHeader:
    reserved1: int
    cmd_count: int
    reserved2: int
    x1: int
    y1: int
    x2: int
    y2: int

    def validate(self) -> None:
        if self.cmd_count <= MIN_COMMAND_COUNT:
            raise InvalidHeaderError(
                f"not a valid command file (header check failed: {self.cmd_count} commands)"
            )


@dataclass(frozen=True)
class CommandFileFooter:
    opcode: int
    points_file_id: int
    reserved1: int
    reserved2: int
    reserved3: int

    def validate(self) -> None:
        if self.opcode != Type2Op.END_FILE or (self.reserved1, self.reserved2, self.reserved3) != (0, 0, 0):
            raise InvalidFooterError("not a valid command file (footer check failed)")


@dataclass(frozen=True)
class PointFileHeader:
    reserved: int
    point_count: int


def read_command_frame(stream: BinaryIO) -> tuple[CommandFileHeader, CommandFileFooter]:
    """Read and validate header and footer, leaving the stream at the first command."""

    reader = RecordReader(stream)
    size = stream.seek(0, io.SEEK_END)
    if size < HEADER_SIZE + FOOTER_SIZE:
        raise TruncatedError(HEADER_SIZE + FOOTER_SIZE, size, what="command file bytes")
    stream.seek(0)
    header = CommandFileHeader(*reader.read_u16(7))
    header.validate()
    stream.seek(-FOOTER_SIZE, io.SEEK_END)
    footer = CommandFileFooter(*reader.read_u16(5))
    footer.validate()
    stream.seek(HEADER_SIZE)
    return header, footer


def read_point_header(stream: BinaryIO) -> PointFileHeader:
    stream.seek(0)
    header = PointFileHeader(*RecordReader(stream).read_u16(2))
    stream.seek(POINTS_DATA_OFFSET)
    return header


def combine_stroke_width(low: int, high: int, *, legacy: bool = False) -> int:
    """
    Merge STROKE_WIDTH's two parameter words.  The first converters combined
    them with AND, which zeroes every width; ``legacy`` keeps that result for
    byte-for-byte comparison with old output.
    """

    if legacy:
        return (high << 16) & low
    return (high << 16) | low


class Type2Decoder:
    def __init__(
        self,
        emitter: Optional[SvgEmitter] = None,
        log: Optional[ConversionLog] = None,
        *,
        legacy_stroke_width: bool = False,
    ) -> None:
        self.emitter = emitter
        self.log = log or ConversionLog()
        self.legacy_stroke_width = legacy_stroke_width
        self.fill_color: Color = BLACK
        self.stroke_color: Color = BLACK
        self.stroke_width = TYPE2_SCALE
        self.stroke_flag_a = 0
        self.stroke_flag_b = 0
        self.has_fill = False
        self.has_stroke = False
        self.counter = 0
        self.ended = False

    def decode(self, commands: BinaryIO, points: PointReader, header: CommandFileHeader) -> None:
        reader = RecordReader(commands)
        if self.emitter is not None:
            self.emitter.emit_header(None)

        self.counter = 1
        while self.counter < header.cmd_count:
            words = reader.read_u16(5)
            self.counter += 1
            if self._dispatch(words, points):
                break

        if self.counter != header.cmd_count:
            self.log.warn("count-mismatch", f"command counter got to {self.counter} of {header.cmd_count}")
        if not self.ended:
            if self.emitter is not None:
                raise StateError(f"document not finished (emitter stopped in {self.emitter.state.name})")
            self.log.warn("count-mismatch", "no END_FILE command before the declared count ran out")
        elif reader.has_trailing_data():
            self.log.warn("trailing-data", "additional data past END_FILE marker")

    def _dispatch(self, words: Sequence[int], points: PointReader) -> bool:
        op, p1, p2, p3, p4 = words
        try:
            code = Type2Op(op)
        except ValueError:
            self.log.warn("unknown-opcode", f"UNKNOWN 0x{op:04X} 0x{p1:04X} 0x{p2:04X} 0x{p3:04X} 0x{p4:04X}")
            return False
        name = TYPE2_OPCODES[code].name
        em = self.emitter

        if code is Type2Op.END_FILE:
            self.log.command(name)
            self.ended = True
            if em is not None:
                em.emit_footer()
                em.finalize_viewport(points.bounds.rounded(TYPE2_SCALE))
            return True
        if code is Type2Op.MOVE_TO:
            if p1 != 1:
                raise DecodeError(f"MOVE_TO has parameter that isn't 1: {p1}")
            (point,) = points.read_points(1)
            self.log.command(name, describe_points([point], TYPE2_SCALE, detail=self.log.detail))
            if em is not None:
                em.emit_path_start(point)
        elif code is Type2Op.POINTS_LINES:
            if p1 == 0:
                raise DecodeError(f"unexpected point count (POINTS_LINES): {p1}")
            pts = points.read_points(p1)
            self.log.command(name, f"{p1} lines")
            if em is not None:
                for point in pts:
                    em.emit_line(point)
        elif code is Type2Op.POINTS_CUBICS:
            if p1 == 0 or p1 % 3:
                raise DecodeError(f"unexpected point count (POINTS_CUBICS): {p1}")
            pts = points.read_points(p1)
            self.log.command(name, f"{p1 // 3} cubics")
            if em is not None:
                for idx in range(0, p1, 3):
                    em.emit_cubic((pts[idx], pts[idx + 1], pts[idx + 2]))
        elif code is Type2Op.STROKE_COLOR:
            self.stroke_color = Color(p1, p2, p3, p4)
            self.log.command(name, self.stroke_color.as_rgb())
        elif code is Type2Op.FILL_COLOR:
            self.fill_color = Color(p1, p2, p3, p4)
            self.log.command(name, self.fill_color.as_rgb())
        elif code is Type2Op.END_PATH:
            self.log.command(name, str(p1))
            self._end_path(p1)
        elif code is Type2Op.STROKE_FLAG_A:
            self.stroke_flag_a = p1
            self.log.command(name, str(p1))
        elif code is Type2Op.STROKE_FLAG_B:
            self.stroke_flag_b = p1
            self.log.command(name, str(p1))
        elif code is Type2Op.STROKE_WIDTH:
            self.stroke_width = combine_stroke_width(p1, p2, legacy=self.legacy_stroke_width)
            self.log.command(name, format_coord(self.stroke_width, TYPE2_SCALE))
        return False

    def _end_path(self, sub: int) -> None:
        # Sub-codes arrive as [1] [0] [2]: close, has-stroke, then finalize.
        em = self.emitter
        try:
            code = EndPathCode(sub)
        except ValueError:
            raise DecodeError(f"unknown parameter to END_PATH: {sub}") from None
        if code is EndPathCode.CLOSE_FILL:
            if em is not None:
                em.emit_close()
            self.has_stroke = False
            self.has_fill = True
        elif code is EndPathCode.HAS_STROKE:
            self.has_stroke = True
        elif code is EndPathCode.FINALIZE:
            if em is not None:
                em.emit_path_end(self.has_fill, self.fill_color, self.has_stroke, self.stroke_width, self.stroke_color)
        elif code is EndPathCode.NO_FILL:
            self.has_fill = False


def convert_type2(
    command_path: Path,
    points_path: Optional[Path],
    destination: Optional[Path],
    *,
    log: Optional[ConversionLog] = None,
    legacy_stroke_width: bool = False,
    document: Optional[Document] = None,
) -> Type2Decoder:
    """
    Convert one command file (plus its point file) to SVG.  ``points_path``
    of ``None`` or ``auto`` derives NNNNN.bin from the footer's point-file id.
    """

    log = log or ConversionLog()
    with command_path.open("rb") as fin1:
        header, footer = read_command_frame(fin1)
        if points_path is None or str(points_path) == AUTO:
            points_path = derive_points_path(command_path, footer.points_file_id)
        with points_path.open("rb") as fin2:
            point_header = read_point_header(fin2)
            log.info(f"command file ({header.cmd_count:5d} commands) : {command_path}")
            log.info(f"points file  ({point_header.point_count:5d} points  ) : {points_path}")
            points = PointReader(fin2)
            if destination is None:
                decoder = Type2Decoder(None, log, legacy_stroke_width=legacy_stroke_width)
                decoder.decode(fin1, points, header)
            else:
                with destination.open("w+b") as fout:
                    log.info(f"svg output file               : {destination}")
                    emitter = SvgEmitter(fout, TYPE2_SCALE, Variant.FLAT, document=document)
                    decoder = Type2Decoder(emitter, log, legacy_stroke_width=legacy_stroke_width)
                    decoder.decode(fin1, points, header)
            if decoder.ended and points.has_trailing_data():
                log.warn("trailing-data", "didn't reach end of points file")
            log.note(f"{points.points_read} of {point_header.point_count} declared points consumed")
    return decoder


def decode_type2_document(
    command_blob: bytes,
    points_blob: bytes,
    *,
    log: Optional[ConversionLog] = None,
    legacy_stroke_width: bool = False,
) -> Document:
    commands = io.BytesIO(command_blob)
    header, _footer = read_command_frame(commands)
    points_stream = io.BytesIO(points_blob)
    read_point_header(points_stream)
    document = Document(scale=TYPE2_SCALE)
    emitter = SvgEmitter(io.BytesIO(), TYPE2_SCALE, Variant.FLAT, document=document)
    decoder = Type2Decoder(emitter, log, legacy_stroke_width=legacy_stroke_width)
    decoder.decode(commands, PointReader(points_stream), header)
    return document
