"""
Decoders and SVG writers for the Unusual Binary Vector File Formats used by
legacy print-studio titles.
"""

from .assembler import Assembler, DumpList, HeaderKind, assemble_file, classify_header
from .byteio import PointReader, RecordReader
from .emitter import EmitterState, SvgEmitter, Variant
from .errors import (
    ConversionError,
    DecodeError,
    InvalidFooterError,
    InvalidHeaderError,
    PatchError,
    ResourceUnavailableError,
    StateError,
    TruncatedError,
)
from .geometry import TYPE1_SCALE, TYPE2_SCALE, BoundsAccumulator, round_int
from .logging import ConversionLog, Diagnostic
from .model import Color, Document, IncludeRef, Layer, Path, PathEnd, Point, Segment
from .type1 import Type1Decoder, Type1Op, convert_type1, decode_type1_document
from .type2 import Type2Decoder, Type2Op, convert_type2, decode_type2_document
from .viewport import format_viewbox_field, parse_viewbox, patch_viewport

__all__ = [
    "Assembler",
    "DumpList",
    "HeaderKind",
    "assemble_file",
    "classify_header",
    "PointReader",
    "RecordReader",
    "EmitterState",
    "SvgEmitter",
    "Variant",
    "ConversionError",
    "DecodeError",
    "InvalidFooterError",
    "InvalidHeaderError",
    "PatchError",
    "ResourceUnavailableError",
    "StateError",
    "TruncatedError",
    "TYPE1_SCALE",
    "TYPE2_SCALE",
    "BoundsAccumulator",
    "round_int",
    "ConversionLog",
    "Diagnostic",
    "Color",
    "Document",
    "IncludeRef",
    "Layer",
    "Path",
    "PathEnd",
    "Point",
    "Segment",
    "Type1Decoder",
    "Type1Op",
    "convert_type1",
    "decode_type1_document",
    "Type2Decoder",
    "Type2Op",
    "convert_type2",
    "decode_type2_document",
    "format_viewbox_field",
    "parse_viewbox",
    "patch_viewport",
]
