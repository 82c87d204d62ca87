#!/usr/bin/env python3
"""
Assemble a multi-layer Type 2 image from its already converted layers.

Group files such as 00100.bin (layers 89, 93, 97) or 00116.bin (layers 109,
113) only reference other files.  Convert every layer to NNNNN.svg with
ubvff2.py first, then:

    python vecass.py 00100.bin auto

Exit codes:
    0 -> success (or a single-layer file that needs no assembly)
    1 -> failure
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from ubvff.assembler import HeaderKind, assemble_file
from ubvff.errors import ConversionError
from ubvff.logging import ConversionLog
from ubvff.naming import AUTO, auto_assembly_output


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Unusual Binary Vector File Format Type 2: assemble an image from its layers."
    )
    parser.add_argument("cmd_file", type=Path, help="Group command file (NNNNN.bin)")
    parser.add_argument("output", help='SVG output path; "auto" swaps .bin for .svg')
    parser.add_argument("--log-file", type=Path, help="Also write the console transcript to this path")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    log = ConversionLog()
    try:
        destination = auto_assembly_output(args.cmd_file) if args.output == AUTO else Path(args.output)
        result, _dump_list = assemble_file(args.cmd_file, destination, log=log)
        if result.kind is HeaderKind.GROUP:
            log.info("done")
            return 0
        # A lone include record is a single layer: nothing to assemble.
        return 0 if result.reason == "skip.shallow" else 1
    except (ConversionError, OSError, ValueError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    finally:
        if args.log_file:
            log.flush(args.log_file)


if __name__ == "__main__":
    raise SystemExit(main())
