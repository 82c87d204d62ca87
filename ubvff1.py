#!/usr/bin/env python3
"""
Analyser and SVG converter for Unusual Binary Vector File Format Type 1.

Type 1 keeps the whole image in one file (e.g. tscp001.BIN, TZcpBW001.BIN,
006pooh.BIN).  For the split Type 2 format use ubvff2.py.

Usage:
    python ubvff1.py INPUT [--svgdump OUTPUT|auto] [--more] [--less]

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
from ubvff.type1 import convert_type1


def resolve_output(source: Path, svgdump: str | None) -> Path | None:
    if svgdump is None:
        return None
    if svgdump == AUTO:
        return auto_svg_path(source)
    return Path(svgdump)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Unusual Binary Vector File Format Type 1: analyser and SVG converter."
    )
    parser.add_argument("input", type=Path, help="Type 1 vector file")
    parser.add_argument(
        "--svgdump",
        metavar="OUTPUT",
        help='Write an SVG file; "auto" swaps the input extension for .svg',
    )
    parser.add_argument("--more", action="count", default=0, help="Display more analysis information")
    parser.add_argument("--less", action="count", default=0, help="Display less analysis information")
    parser.add_argument("--log-file", type=Path, help="Also write the console transcript to this path")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    log = ConversionLog(detail=DETAIL_COMMANDS + args.more - args.less)
    try:
        destination = resolve_output(args.input, args.svgdump)
        if destination is not None:
            log.info(f"dumping SVG to : {destination}")
        convert_type1(args.input, destination, log=log)
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
