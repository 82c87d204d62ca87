#!/usr/bin/env python3
"""
Summarise a Type 2 point file with numpy: declared vs. stored point count,
coordinate ranges, and the viewBox the converter would discover from it.

Usage:
    python diagnostics/point_file_stats.py 00052.bin [--json stats.json]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Sequence

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ubvff.geometry import TYPE2_SCALE, BoundsAccumulator
from ubvff.type2 import POINTS_DATA_OFFSET


def load_points(blob: bytes) -> np.ndarray:
    """Decode every stored point as an (N, 2) int64 array of raw fixed-point values."""

    usable = max(len(blob) - POINTS_DATA_OFFSET, 0) // 8 * 8
    if not usable:
        return np.zeros((0, 2), dtype=np.int64)
    halves = np.frombuffer(blob, dtype=">u2", count=usable // 2, offset=POINTS_DATA_OFFSET).astype(np.int64)
    values = (halves[1::2] << 16) | halves[0::2]
    values = np.where(values >= 0x80000000, values - 0x100000000, values)
    return values.reshape(-1, 2)


def summarize(blob: bytes) -> Dict[str, Any]:
    declared = int(np.frombuffer(blob, dtype=">u2", count=2)[1]) if len(blob) >= 4 else 0
    points = load_points(blob)
    summary: Dict[str, Any] = {
        "size_bytes": len(blob),
        "declared_points": declared,
        "stored_points": int(points.shape[0]),
    }
    if points.shape[0]:
        mins = points.min(axis=0)
        maxs = points.max(axis=0)
        bounds = BoundsAccumulator()
        bounds.fold((int(mins[0]), int(mins[1]), int(maxs[0]), int(maxs[1])))
        summary["x_range"] = [float(mins[0]) / TYPE2_SCALE, float(maxs[0]) / TYPE2_SCALE]
        summary["y_range"] = [float(mins[1]) / TYPE2_SCALE, float(maxs[1]) / TYPE2_SCALE]
        summary["viewbox"] = list(bounds.rounded(TYPE2_SCALE))
    return summary


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Point statistics for a Type 2 point file.")
    parser.add_argument("input", type=Path, help="Point file (NNNNN.bin)")
    parser.add_argument("--json", type=Path, help="Optional path to write the JSON summary")
    args = parser.parse_args(argv)

    summary = summarize(args.input.read_bytes())
    for key, value in summary.items():
        print(f"{key:>16}: {value}")
    if summary["declared_points"] != summary["stored_points"]:
        print("[warn] declared point count does not match the stored data")
    if args.json:
        args.json.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        print(f"[+] Summary written to {args.json}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
