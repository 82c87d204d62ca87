"""
Decoder for UBVFF Type 1: one self-contained big-endian command stream.

Layout observed in the print-studio samples (tscp001.BIN, 006pooh.BIN, ...):

    00000003 00000000 00000000 ...   START_FILE + viewport (x1 y1 x2 y2 unknown)
    <opcode:u32> <operands...>       repeated
    0000000D 0000000A 0000000C 00000002 00000015   typical tail

Every opcode is a 32-bit word.  Layer names are stored one 32-bit word per
character.  Coordinates are signed 32-bit fixed point with a 0x8000 scale.
"""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO, Mapping, Optional, Tuple

from .byteio import RecordReader
from .emitter import EmitterState, SvgEmitter, Variant
from .errors import DecodeError, InvalidHeaderError, StateError
from .geometry import TYPE1_SCALE, format_coord, round_int
from .logging import ConversionLog, describe_points
from .model import BLACK, Color, Document, OpcodeInfo

MAGIC_HEADER = bytes.fromhex("00000003" "00000000" "00000000")
MAGIC_FOOTER = bytes.fromhex("0000000D" "0000000A" "0000000C" "00000002" "00000015")
MAX_TITLE = 64


class Type1Op(IntEnum):
    LAYER_SEP = 0x00
    START_LAYER = 0x01
    END_LAYER = 0x02
    START_FILE = 0x03
    STROKE_COLOR = 0x04
    FILL_COLOR = 0x05
    START_PATH = 0x06
    LINE = 0x07
    CUBIC = 0x08
    END_PATH_SO = 0x09
    END_PATH_FO = 0x0A
    END_PATH_SF = 0x0B
    NOP = 0x0C
    CLOSE_PATH = 0x0D
    UNKNOWN_FLAG1 = 0x0E
    UNKNOWN_FLAG2 = 0x0F
    STROKE_WIDTH = 0x10
    END_FILE = 0x15


TYPE1_OPCODES: Mapping[Type1Op, OpcodeInfo] = MappingProxyType(
    {
        Type1Op.LAYER_SEP: OpcodeInfo("CMD_00_LAYER_SEP", ""),
        Type1Op.START_LAYER: OpcodeInfo("CMD_01_START_LAYER", "u32 length, length x char32"),
        Type1Op.END_LAYER: OpcodeInfo("CMD_02_END_LAYER", ""),
        Type1Op.START_FILE: OpcodeInfo("CMD_03_START_FILE", "5 x i32"),
        Type1Op.STROKE_COLOR: OpcodeInfo("CMD_04_STROKE_COLOR", "color32"),
        Type1Op.FILL_COLOR: OpcodeInfo("CMD_05_FILL_COLOR", "color32"),
        Type1Op.START_PATH: OpcodeInfo("CMD_06_START_PATH", "point"),
        Type1Op.LINE: OpcodeInfo("CMD_07_LINE", "u32 count, count x point"),
        Type1Op.CUBIC: OpcodeInfo("CMD_08_CUBIC", "u32 count, count/3 x 3 points"),
        Type1Op.END_PATH_SO: OpcodeInfo("CMD_09_END_PATH_SO", ""),
        Type1Op.END_PATH_FO: OpcodeInfo("CMD_0A_END_PATH_FO", ""),
        Type1Op.END_PATH_SF: OpcodeInfo("CMD_0B_END_PATH_SF", ""),
        Type1Op.NOP: OpcodeInfo("CMD_0C_NOP", ""),
        Type1Op.CLOSE_PATH: OpcodeInfo("CMD_0D_CLOSE_PATH", ""),
        Type1Op.UNKNOWN_FLAG1: OpcodeInfo("CMD_0E_UNKNOWN_FLAG1", "i32"),
        Type1Op.UNKNOWN_FLAG2: OpcodeInfo("CMD_0F_UNKNOWN_FLAG2", "i32"),
        Type1Op.STROKE_WIDTH: OpcodeInfo("CMD_10_STROKE_WIDTH", "i32"),
        Type1Op.END_FILE: OpcodeInfo("CMD_15_END_FILE", ""),
    }
)

# (has_fill, has_stroke) for each path ending
END_PATH_FLAGS = {
    Type1Op.END_PATH_SO: (False, True),
    Type1Op.END_PATH_FO: (True, False),
    Type1Op.END_PATH_SF: (True, True),
}


@dataclass(frozen=True)
class Type1Header:
    x1: int
    y1: int
    x2: int
    y2: int
    unknown: int

    def viewbox(self) -> Tuple[int, int, int, int]:
        return (0, 0, round_int(self.x2, TYPE1_SCALE), round_int(self.y2, TYPE1_SCALE))


def escape_title(title: str) -> str:
    out = []
    for ch in title:
        code = ord(ch)
        if code < 32 or code > 126 or ch in "\\'\"":
            out.append(f"\\x{code:02X}")
        else:
            out.append(ch)
    return "".join(out)


def check_magic_header(blob: bytes) -> bool:
    return blob[: len(MAGIC_HEADER)] == MAGIC_HEADER


def check_magic_footer(blob: bytes) -> bool:
    return blob.endswith(MAGIC_FOOTER)


class Type1Decoder:
    """
    Streams one Type 1 file into an :class:`SvgEmitter`.  Passing no emitter
    runs in analysis mode: commands are decoded and listed but nothing is
    written and emitter ordering is not checked.
    """

    def __init__(self, emitter: Optional[SvgEmitter] = None, log: Optional[ConversionLog] = None) -> None:
        self.emitter = emitter
        self.log = log or ConversionLog()
        self.title = ""
        self.fill_color: Color = BLACK
        self.stroke_color: Color = BLACK
        self.stroke_width = TYPE1_SCALE
        self.header = Type1Header(0, 0, 0, 0, 0)
        self.commands = 0
        self.layers = 0
        self.ended = False

    def _fmt(self, value: int) -> str:
        return f"{value / TYPE1_SCALE:11.6f}"

    def decode(self, stream: BinaryIO) -> None:
        reader = RecordReader(stream)
        lead = stream.read(len(MAGIC_HEADER))
        if not check_magic_header(lead):
            raise InvalidHeaderError("not a Type 1 file (magic header mismatch)")
        stream.seek(-len(lead), 1)

        while True:
            data = stream.read(4)
            if len(data) < 4:
                break
            (op,) = struct.unpack(">I", data)
            self.commands += 1
            if self._dispatch(reader, op):
                break

        if self.emitter is not None and not self.emitter.finished:
            raise StateError(f"document not finished (emitter stopped in {self.emitter.state.name})")
        if self.ended and reader.has_trailing_data():
            self.log.warn("trailing-data", "additional data past CMD_15_END_FILE marker")

    def _dispatch(self, reader: RecordReader, op: int) -> bool:
        """Handle one command; returns True once END_FILE has been seen."""

        try:
            code = Type1Op(op)
        except ValueError:
            self.log.warn("unknown-opcode", f"UNKNOWN 0x{op:08X}")
            return False
        name = TYPE1_OPCODES[code].name
        detail = self.log.detail
        em = self.emitter

        if code is Type1Op.START_LAYER:
            (length,) = reader.read_u32()
            if length > MAX_TITLE:
                raise DecodeError(f"layer title of {length} characters overflows the {MAX_TITLE}-character limit")
            words = reader.read_u32(length)
            self.title = "".join(chr(w & 0xFF) for w in words)
            self.layers += 1
            self.log.command(name, f'"{escape_title(self.title)}"')
            if em is not None:
                if em.state == EmitterState.BEGIN:
                    em.emit_header(self.header.viewbox())
                em.emit_layer_start(self.title)
        elif code is Type1Op.END_LAYER:
            self.log.command(name)
            if em is not None:
                if em.state == EmitterState.AFTER_CLOSE:
                    self.log.warn("sequence-gap", "missing END_PATH before END_LAYER")
                    em.emit_path_end(False, self.fill_color, False, self.stroke_width, self.stroke_color)
                em.emit_layer_end()
        elif code is Type1Op.START_FILE:
            self.header = Type1Header(*reader.read_i32(5))
            h = self.header
            self.log.command(name, f"{self._fmt(h.x1)} {self._fmt(h.y1)} {self._fmt(h.x2)} {self._fmt(h.y2)} {h.unknown}")
        elif code is Type1Op.STROKE_COLOR:
            (word,) = reader.read_u32()
            self.stroke_color = Color.from_word(word)
            self.log.command(name, self.stroke_color.as_rgb())
        elif code is Type1Op.FILL_COLOR:
            (word,) = reader.read_u32()
            self.fill_color = Color.from_word(word)
            self.log.command(name, self.fill_color.as_rgb())
        elif code is Type1Op.START_PATH:
            (point,) = reader.read_points(1)
            self.log.command(name, f"{self._fmt(point.x)} {self._fmt(point.y)}")
            if em is not None:
                em.emit_path_start(point)
        elif code is Type1Op.LINE:
            (count,) = reader.read_u32()
            points = reader.read_points(count)
            self.log.command(name, describe_points(points, TYPE1_SCALE, detail=detail))
            if em is not None:
                for point in points:
                    em.emit_line(point)
        elif code is Type1Op.CUBIC:
            (count,) = reader.read_u32()
            points = reader.read_points((count // 3) * 3)
            self.log.command(name, describe_points(points, TYPE1_SCALE, detail=detail))
            if em is not None:
                for idx in range(0, len(points), 3):
                    em.emit_cubic((points[idx], points[idx + 1], points[idx + 2]))
        elif code in END_PATH_FLAGS:
            has_fill, has_stroke = END_PATH_FLAGS[code]
            self.log.command(name)
            if em is not None:
                em.emit_path_end(has_fill, self.fill_color, has_stroke, self.stroke_width, self.stroke_color)
        elif code is Type1Op.CLOSE_PATH:
            self.log.command(name)
            if em is not None:
                em.emit_close()
        elif code in (Type1Op.UNKNOWN_FLAG1, Type1Op.UNKNOWN_FLAG2):
            (value,) = reader.read_i32()
            self.log.command(name, f"0x{value & 0xFFFFFFFF:08X}")
        elif code is Type1Op.STROKE_WIDTH:
            (self.stroke_width,) = reader.read_i32()
            self.log.command(name, format_coord(self.stroke_width, TYPE1_SCALE))
        elif code is Type1Op.END_FILE:
            self.log.command(name)
            if em is not None:
                em.emit_footer()
            self.ended = True
            return True
        else:
            # LAYER_SEP, NOP
            self.log.command(name)
        return False


def convert_type1(
    source: Path,
    destination: Optional[Path],
    *,
    log: Optional[ConversionLog] = None,
    document: Optional[Document] = None,
) -> Type1Decoder:
    """Decode ``source``; write SVG to ``destination`` when one is given."""

    log = log or ConversionLog()
    blob = source.read_bytes()
    log.info(f"Loaded {source} ({len(blob)} bytes)")
    if check_magic_header(blob) and not check_magic_footer(blob):
        log.warn("footer-magic", "file does not end with the usual END_PATH/NOP/END_LAYER/END_FILE tail")
    if destination is None:
        decoder = Type1Decoder(None, log)
        decoder.decode(io.BytesIO(blob))
        return decoder
    with destination.open("w+b") as fout:
        emitter = SvgEmitter(fout, TYPE1_SCALE, Variant.LAYERED, document=document)
        decoder = Type1Decoder(emitter, log)
        decoder.decode(io.BytesIO(blob))
    log.info(f"SVG written to {destination} ({decoder.layers} layers)")
    return decoder


def decode_type1_document(blob: bytes, *, log: Optional[ConversionLog] = None) -> Document:
    """Decode into an in-memory :class:`Document` (the SVG text is discarded)."""

    document = Document(scale=TYPE1_SCALE)
    emitter = SvgEmitter(io.BytesIO(), TYPE1_SCALE, Variant.LAYERED, document=document)
    Type1Decoder(emitter, log).decode(io.BytesIO(blob))
    return document
