"""
Assemble multi-layer Type 2 images ("vecass").

Some Type 2 command files carry no geometry of their own; they are group
files that include other files, e.g. 00100.bin pulls in layers 89, 93 and 97
and 00116.bin pulls in 109 and 113.  Following the includes down leads to
small include records naming a (file, layer) pair.  Each named file must
already have been converted to NNNNN.svg; this module splices those SVGs
into one composite document ordered by layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional

from .byteio import RecordReader
from .errors import InvalidHeaderError, ResourceUnavailableError, TruncatedError
from .geometry import BoundsAccumulator
from .logging import ConversionLog
from .model import IncludeRef
from .naming import numbered_path, resource_prefix
from .viewport import (
    SVG_FOOTER,
    SVG_HEADER_PREFIX,
    SVG_HEADER_SUFFIX,
    VIEWBOX_PLACEHOLDER,
    parse_viewbox,
    patch_viewport,
)

MAX_DEPTH = 10
MAX_GROUP_COMMANDS = 100
INCLUDE_OPCODES = (3, 4)
HEADER_SCAN_LIMIT = 150


class HeaderKind(Enum):
    INCLUDE = "include"
    GROUP = "group"
    NOT_APPLICABLE = "skip"


@dataclass(frozen=True)
class Classification:
    kind: HeaderKind
    reason: str = ""
    ref: Optional[IncludeRef] = None


def classify_header(h0: int, h1: int, h2: int, *, depth: int) -> Classification:
    """Sort a command file by the shape of its first three big-endian words."""

    if h0 == 1:
        if h1 != 0:
            return Classification(HeaderKind.NOT_APPLICABLE, "weird header")
        if depth == 0:
            return Classification(HeaderKind.NOT_APPLICABLE, "skip.shallow")
        data = h2 & 0xFFFFFFFF
        return Classification(HeaderKind.INCLUDE, ref=IncludeRef(file_id=data >> 16, layer_id=data & 0xFFFF))
    if h0 < 3 or h0 >= MAX_GROUP_COMMANDS:
        return Classification(HeaderKind.NOT_APPLICABLE, "skip.type")
    if h0 == 3 and depth == 0:
        return Classification(HeaderKind.NOT_APPLICABLE, "skip.three")
    if h1 == 0x48:
        return Classification(HeaderKind.NOT_APPLICABLE, "skip.0x48")
    if h1 != 0 or h2 != 0:
        return Classification(HeaderKind.NOT_APPLICABLE, "skip.not_group")
    return Classification(HeaderKind.GROUP)


class DumpList:
    """Include references awaiting assembly; one entry per file, first seen wins."""

    def __init__(self) -> None:
        self._refs: List[IncludeRef] = []
        self._files: set[int] = set()

    def add(self, ref: IncludeRef) -> bool:
        if ref.file_id in self._files:
            return False
        self._files.add(ref.file_id)
        self._refs.append(ref)
        return True

    def __len__(self) -> int:
        return len(self._refs)

    def __iter__(self) -> Iterator[IncludeRef]:
        return iter(self._refs)

    def ordered(self) -> List[IncludeRef]:
        # sorted() is stable: equal layers keep discovery order
        return sorted(self._refs, key=lambda ref: ref.layer_id)


@dataclass(frozen=True)
class Fragment:
    bounds: tuple[int, int, int, int]
    body: bytes


def read_fragment(path: Path) -> Fragment:
    """Pull the viewBox and the body (between header line and footer) out of a rendered SVG."""

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ResourceUnavailableError(f"unable to open input file '{path}'") from exc
    bounds = parse_viewbox(data[:HEADER_SCAN_LIMIT])
    newline = data.find(b"\n", 0, HEADER_SCAN_LIMIT)
    if newline == -1:
        raise InvalidHeaderError(f"error reading header of {path}")
    end = len(data) - len(SVG_FOOTER)
    if end < newline + 1:
        raise InvalidHeaderError(f"{path} is too short to hold a footer")
    return Fragment(bounds=bounds, body=data[newline + 1 : end])


class Assembler:
    def __init__(
        self,
        prefix: str = "",
        *,
        log: Optional[ConversionLog] = None,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self.prefix = prefix
        self.log = log or ConversionLog()
        self.max_depth = max_depth
        self.deepest = 0

    def scan(self, path: Path, dump_list: DumpList, depth: int = 0) -> Classification:
        """
        Walk ``path`` and every file it includes, adding include records to
        ``dump_list``.  Stops descending at ``max_depth``.
        """

        spacer = "    " * depth
        if depth >= self.max_depth:
            self.log.warn("max-depth", f"{spacer}MAX DEPTH reached, not going deeper")
            return Classification(HeaderKind.NOT_APPLICABLE, "max-depth")
        self.deepest = max(self.deepest, depth)

        with path.open("rb") as fin:
            reader = RecordReader(fin)
            h0, h1, h2 = reader.read_i32(3)
            result = classify_header(h0, h1, h2, depth=depth)
            if result.kind is HeaderKind.INCLUDE:
                ref = result.ref
                self.log.info(f"{spacer}load layer {ref.layer_id} from {ref.file_id:05d}.svg")
                dump_list.add(ref)
            elif result.kind is HeaderKind.NOT_APPLICABLE:
                self.log.warn("skip", f"{spacer}{result.reason}: {path}")
            else:
                reader.read_i32(3)
                self._scan_group(reader, dump_list, depth, spacer)
                self.log.info(f"{spacer}end file")
        return result

    def _scan_group(self, reader: RecordReader, dump_list: DumpList, depth: int, spacer: str) -> None:
        while True:
            try:
                (cmd,) = reader.read_u16()
            except TruncatedError:
                break
            if cmd not in INCLUDE_OPCODES:
                continue
            try:
                (number,) = reader.read_u16()
            except TruncatedError:
                self.log.warn("truncated", f"{spacer}read failed (include parameter)")
                break
            child = numbered_path(self.prefix, number)
            self.log.info(f"{spacer}include {child}")
            try:
                self.scan(child, dump_list, depth + 1)
            except (OSError, TruncatedError) as exc:
                self.log.warn("resource-unavailable", f"{spacer}failed to read {child}: {exc}")

    def splice(self, dump_list: DumpList, out: BinaryIO) -> BoundsAccumulator:
        """Write the composite document for ``dump_list`` into ``out``."""

        bounds = BoundsAccumulator(0, 0, 1, 1)
        out.write(f"{SVG_HEADER_PREFIX}{VIEWBOX_PLACEHOLDER}{SVG_HEADER_SUFFIX}".encode("ascii"))
        for ref in dump_list.ordered():
            source = numbered_path(self.prefix, ref.file_id, ".svg")
            try:
                fragment = read_fragment(source)
            except ResourceUnavailableError as exc:
                self.log.warn("resource-unavailable", str(exc))
                continue
            bounds.fold(fragment.bounds)
            out.write(b"<g>\n")
            out.write(fragment.body)
            out.write(b"</g>\n")
        patch_viewport(out, bounds.as_tuple())
        out.write(SVG_FOOTER.encode("ascii"))
        return bounds

    def assemble(self, top: Path, destination: Path) -> tuple[Classification, DumpList]:
        """
        Scan ``top`` and, if it is a group file, write the composite SVG to
        ``destination``.  Nothing is written when ``top`` is skipped.
        """

        dump_list = DumpList()
        result = self.scan(top, dump_list, 0)
        if result.kind is not HeaderKind.GROUP:
            return result, dump_list
        self.log.info(f"writing to {destination}")
        with destination.open("w+b") as fout:
            self.splice(dump_list, fout)
        self.log.info(f"assembled {len(dump_list)} layers")
        return result, dump_list


def assemble_file(top: Path, destination: Path, *, log: Optional[ConversionLog] = None) -> tuple[Classification, DumpList]:
    return Assembler(resource_prefix(top), log=log).assemble(top, destination)
