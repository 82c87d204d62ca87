#!/usr/bin/env python3
"""
Render UBVFF geometry to a PNG preview without going through an SVG viewer.

The decoders drive the same emitter used for SVG output, recording into an
in-memory document, so the preview matches the converted SVG.  Example:

    python render_svg_png.py tscp001.BIN --preview tscp001.png --preview-size 512
    python render_svg_png.py 00053.bin --points auto --preview 00053.png
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Sequence, Tuple

from PIL import Image, ImageDraw

from ubvff.errors import ConversionError
from ubvff.logging import ConversionLog
from ubvff.model import Color, Document, Path as VectorPath, Point
from ubvff.naming import AUTO, derive_points_path
from ubvff.type1 import check_magic_header, decode_type1_document
from ubvff.type2 import decode_type2_document, read_command_frame

CUBIC_STEPS = 16


def load_document(source: Path, points: Path | None = None, *, log: ConversionLog | None = None) -> Document:
    blob = source.read_bytes()
    if check_magic_header(blob):
        return decode_type1_document(blob, log=log)
    if points is None or str(points) == AUTO:
        with source.open("rb") as fin:
            _header, footer = read_command_frame(fin)
        points = derive_points_path(source, footer.points_file_id)
    return decode_type2_document(blob, points.read_bytes(), log=log)


def _cubic_points(
    start: Tuple[float, float],
    c1: Tuple[float, float],
    c2: Tuple[float, float],
    end: Tuple[float, float],
    steps: int = CUBIC_STEPS,
) -> list[Tuple[float, float]]:
    out: list[Tuple[float, float]] = []
    for step in range(1, steps + 1):
        t = step / steps
        mt = 1.0 - t
        a = mt * mt * mt
        b = 3 * mt * mt * t
        c = 3 * mt * t * t
        d = t * t * t
        out.append(
            (
                a * start[0] + b * c1[0] + c * c2[0] + d * end[0],
                a * start[1] + b * c1[1] + c * c2[1] + d * end[1],
            )
        )
    return out


def flatten_path(path: VectorPath, scale: int) -> List[List[Tuple[float, float]]]:
    """Turn a path into one polyline per sub-path, cubics sampled."""

    def real(pt: Point) -> Tuple[float, float]:
        return pt.x / scale, pt.y / scale

    polylines: List[List[Tuple[float, float]]] = []
    current: List[Tuple[float, float]] = []
    for seg in path.segments:
        if seg.kind == "move":
            if len(current) > 1:
                polylines.append(current)
            current = [real(seg.points[0])]
        elif seg.kind == "line" and current:
            current.append(real(seg.points[0]))
        elif seg.kind == "cubic" and current:
            c1, c2, end = (real(pt) for pt in seg.points)
            current.extend(_cubic_points(current[-1], c1, c2, end))
        elif seg.kind == "close" and current:
            current.append(current[0])
    if len(current) > 1:
        polylines.append(current)
    return polylines


def _collect_bounds(polylines: Sequence[Sequence[Tuple[float, float]]]) -> Tuple[float, float, float, float]:
    xs = [pt[0] for line in polylines for pt in line]
    ys = [pt[1] for line in polylines for pt in line]
    if not xs:
        raise RuntimeError("No renderable paths were decoded.")
    return min(xs), max(xs), min(ys), max(ys)


def _build_transform(bounds: Tuple[float, float, float, float], size_px: int, padding_ratio: float):
    min_x, max_x, min_y, max_y = bounds
    width = max(max_x - min_x, 1e-9)
    height = max(max_y - min_y, 1e-9)
    pad = max(width, height) * padding_ratio
    world_min_x = min_x - pad
    world_min_y = min_y - pad
    world_width = width + 2 * pad
    world_height = height + 2 * pad
    scale = min(size_px / world_width, size_px / world_height)
    offset_x = (size_px - world_width * scale) / 2.0
    offset_y = (size_px - world_height * scale) / 2.0

    # SVG user space is already y-down, so no flip.
    def transform(point: Tuple[float, float]) -> Tuple[float, float]:
        return (point[0] - world_min_x) * scale + offset_x, (point[1] - world_min_y) * scale + offset_y

    return transform, scale


def _rgb(color: Color) -> Tuple[int, int, int]:
    # Type 2 colour channels are 16-bit words; clamp for 8-bit rendering.
    return (min(color.r, 255), min(color.g, 255), min(color.b, 255))


def render_png(document: Document, destination: Path, size_px: int, *, padding_ratio: float = 0.05) -> None:
    scale = document.scale
    shapes = [(path, flatten_path(path, scale)) for path in document.iter_paths()]
    bounds = _collect_bounds([line for _path, lines in shapes for line in lines])
    transform, px_per_unit = _build_transform(bounds, size_px, padding_ratio)

    image = Image.new("RGBA", (size_px, size_px), (255, 255, 255, 0))
    draw = ImageDraw.Draw(image)
    for path, polylines in shapes:
        end = path.end
        if end is None:
            continue
        for line in polylines:
            pixels = [transform(pt) for pt in line]
            if end.has_fill and len(pixels) > 2:
                draw.polygon(pixels, fill=_rgb(end.fill))
            if end.has_stroke:
                width = max(1, int(round(end.stroke_width / scale * px_per_unit)))
                draw.line(pixels, fill=_rgb(end.stroke), width=width)

    destination.parent.mkdir(parents=True, exist_ok=True)
    image.save(destination)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a UBVFF Type 1 or Type 2 file to PNG.")
    parser.add_argument("input", type=Path, help="Type 1 file or Type 2 command file")
    parser.add_argument("--points", type=Path, help='Type 2 point file (default: "auto")')
    parser.add_argument("--preview", type=Path, required=True, help="Destination PNG path")
    parser.add_argument("--preview-size", type=int, default=400, help="Square output size in pixels (default: 400)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        document = load_document(args.input, args.points, log=ConversionLog(detail=0))
        render_png(document, args.preview, args.preview_size)
    except (ConversionError, OSError, RuntimeError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    print(f"[+] Preview PNG written to {args.preview}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
