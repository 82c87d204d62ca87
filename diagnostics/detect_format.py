#!/usr/bin/env python3
"""
Guess which UBVFF resource a file is: Type 1 image, Type 2 command file,
Type 2 point file, or an assembly record/group.  Read-only; prints a short
report per file.

Usage:
    python diagnostics/detect_format.py FILE [FILE ...]
"""

from __future__ import annotations

import argparse
import io
import struct
import sys
from pathlib import Path
from typing import Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ubvff.assembler import HeaderKind, classify_header
from ubvff.errors import ConversionError
from ubvff.type1 import check_magic_footer, check_magic_header
from ubvff.type2 import POINTS_DATA_OFFSET, read_command_frame


def detect(blob: bytes) -> str:
    if check_magic_header(blob):
        return "type1" if check_magic_footer(blob) else "type1 (unusual tail)"
    try:
        header, footer = read_command_frame(io.BytesIO(blob))
    except ConversionError:
        pass
    else:
        return f"type2 command file ({header.cmd_count} commands, points {footer.points_file_id:05d}.bin)"
    result = None
    if len(blob) >= 12:
        h0, h1, h2 = struct.unpack_from(">iii", blob, 0)
        result = classify_header(h0, h1, h2, depth=1)
        if result.kind is HeaderKind.INCLUDE:
            return f"include record (layer {result.ref.layer_id} of {result.ref.file_id:05d})"
    if len(blob) >= POINTS_DATA_OFFSET:
        (count,) = struct.unpack_from(">H", blob, 2)
        if count and len(blob) == POINTS_DATA_OFFSET + count * 8:
            return f"type2 point file ({count} points)"
    if result is not None and result.kind is HeaderKind.GROUP:
        return "group file (run vecass.py)"
    return "unknown"


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Classify UBVFF resources.")
    parser.add_argument("inputs", type=Path, nargs="+", help="Files to inspect")
    args = parser.parse_args(argv)
    for path in args.inputs:
        if not path.exists():
            print(f"{path} missing")
            continue
        blob = path.read_bytes()
        print(f"{path.name}: size={len(blob)} bytes")
        print(f"  heuristic: {detect(blob)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
