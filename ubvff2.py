#!/usr/bin/env python3
"""
Analyser and SVG converter for Unusual Binary Vector File Format Type 2.

Type 2 spreads an image over several NNNNN.bin resources: a command file
(e.g. 00053.bin) and the point file its footer names.  Multi-layer images
are group files; convert each layer with this tool, then run vecass.py.

Usage:
    python ubvff2.py CMD_FILE POINTS_FILE|auto [--svgdump OUTPUT|auto] [--more] [--less]

Exit codes:
    0 -> success
    1 -> decode / emission / IO failure
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from ubvff.errors import ConversionError
from ubvff.logging import DETAIL_COMMANDS, ConversionLog
from ubvff.naming import AUTO, auto_svg_path
from ubvff.type2 import convert_type2


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Unusual Binary Vector File Format Type 2: analyser and SVG converter."
    )
    parser.add_argument("cmd_file", type=Path, help="Command file (NNNNN.bin)")
    parser.add_argument(
        "points_file",
        help='Point file; "auto" derives NNNNN.bin from the command file footer',
    )
    parser.add_argument(
        "--svgdump",
        metavar="OUTPUT",
        help='Write an SVG file; "auto" swaps the command file extension for .svg',
    )
    parser.add_argument("--more", action="count", default=0, help="Display more analysis information")
    parser.add_argument("--less", action="count", default=0, help="Display less analysis information")
    parser.add_argument(
        "--legacy-stroke-width",
        action="store_true",
        help="Combine STROKE_WIDTH words with AND like the first converters did",
    )
    parser.add_argument("--log-file", type=Path, help="Also write the console transcript to this path")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    log = ConversionLog(detail=DETAIL_COMMANDS + args.more - args.less)
    points_path = None if args.points_file == AUTO else Path(args.points_file)
    destination = None
    if args.svgdump is not None:
        destination = auto_svg_path(args.cmd_file) if args.svgdump == AUTO else Path(args.svgdump)
    try:
        convert_type2(
            args.cmd_file,
            points_path,
            destination,
            log=log,
            legacy_stroke_width=args.legacy_stroke_width,
        )
        log.info("done.")
        return 0
    except (ConversionError, OSError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    finally:
        if args.log_file:
            log.flush(args.log_file)


if __name__ == "__main__":
    raise SystemExit(main())
