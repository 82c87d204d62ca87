"""
Tests for the command-line entry points, the PNG preview and the
diagnostics scripts.
"""

import json

import pytest
from PIL import Image

import render_svg_png
import ubvff1
import ubvff2
import vecass
from builders import (
    TRIANGLE_POINTS,
    UNIT1,
    UNIT2,
    Type1Builder,
    group_file,
    include_record,
    layer_svg,
    simple_type1,
    triangle_commands,
    type2_commands,
    type2_points,
)
from diagnostics.detect_format import detect
from diagnostics.point_file_stats import load_points, summarize
from diagnostics.point_file_stats import main as stats_main
from ubvff.model import Path as VectorPath, Point, Segment


@pytest.fixture
def type2_pair(write):
    cmd = write("00053.bin", type2_commands(triangle_commands()))
    write("00052.bin", type2_points(TRIANGLE_POINTS))
    return cmd


# --------------------------------------------------------------------------- #
# ubvff1 / ubvff2 / vecass
# --------------------------------------------------------------------------- #

class TestType1Cli:
    def test_auto_output(self, write, tmp_path):
        source = write("tscp001.BIN", simple_type1())
        assert ubvff1.main([str(source), "--svgdump", "auto", "--less", "--less"]) == 0
        assert (tmp_path / "tscp001.svg").read_bytes().endswith(b"</svg>\n")

    def test_analysis_only(self, write, tmp_path, capsys):
        source = write("tscp001.BIN", simple_type1())
        assert ubvff1.main([str(source)]) == 0
        assert "CMD_07_LINE" in capsys.readouterr().out
        assert not (tmp_path / "tscp001.svg").exists()

    def test_bad_file_exits_with_one(self, write, capsys):
        source = write("broken.BIN", b"\x00\x00\x00\x09" * 8)
        assert ubvff1.main([str(source), "--svgdump", "auto"]) == 1
        assert "[error]" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert ubvff1.main([str(tmp_path / "nope.BIN")]) == 1
        assert "[error]" in capsys.readouterr().err

    def test_resolve_output(self, tmp_path):
        source = tmp_path / "x.BIN"
        assert ubvff1.resolve_output(source, None) is None
        assert ubvff1.resolve_output(source, "auto") == tmp_path / "x.svg"
        assert ubvff1.resolve_output(source, "y.svg").name == "y.svg"


class TestType2Cli:
    def test_auto_points_and_log_file(self, type2_pair, tmp_path):
        target = tmp_path / "triangle.svg"
        transcript = tmp_path / "run.log"
        code = ubvff2.main([str(type2_pair), "auto", "--svgdump", str(target), "--log-file", str(transcript)])
        assert code == 0
        assert target.read_bytes()[13:39] == b'"0 0 2 3"'.ljust(26)
        text = transcript.read_text(encoding="utf-8")
        assert "[+] command file (   11 commands)" in text
        assert "END_FILE" in text

    def test_legacy_stroke_width_flag(self, write, tmp_path):
        commands = triangle_commands()
        commands.insert(-4, (0x0A, 0, 2))
        cmd = write("00053.bin", type2_commands(commands))
        write("00052.bin", type2_points(TRIANGLE_POINTS))
        wide = tmp_path / "wide.svg"
        legacy = tmp_path / "legacy.svg"
        assert ubvff2.main([str(cmd), "auto", "--svgdump", str(wide)]) == 0
        assert ubvff2.main([str(cmd), "auto", "--svgdump", str(legacy), "--legacy-stroke-width"]) == 0
        assert b'stroke-width="2.000000"' in wide.read_bytes()
        assert b'stroke-width="0.000000"' in legacy.read_bytes()

    def test_missing_points_file(self, write, tmp_path, capsys):
        cmd = write("00053.bin", type2_commands(triangle_commands()))
        assert ubvff2.main([str(cmd), "auto", "--svgdump", str(tmp_path / "out.svg")]) == 1
        assert "[error]" in capsys.readouterr().err


class TestVecassCli:
    def test_group_is_assembled(self, write, tmp_path):
        write("00100.bin", group_file([89]))
        write("00089.bin", include_record(90, 1))
        write("00090.svg", layer_svg((0, 0, 2, 2), "<path/>\n"))
        assert vecass.main([str(tmp_path / "00100.bin"), "auto"]) == 0
        assert b"<g>\n<path/>\n</g>\n" in (tmp_path / "00100.svg").read_bytes()

    def test_single_layer_is_success(self, write, tmp_path):
        write("00089.bin", include_record(90, 1))
        assert vecass.main([str(tmp_path / "00089.bin"), "auto"]) == 0

    def test_not_applicable_is_failure(self, write, tmp_path):
        write("00053.bin", type2_commands(triangle_commands(), viewport=(0, 0, 10, 10)))
        assert vecass.main([str(tmp_path / "00053.bin"), "auto"]) == 1

    def test_auto_name_needs_bin_suffix(self, write, tmp_path, capsys):
        write("group.dat", group_file([89]))
        assert vecass.main([str(tmp_path / "group.dat"), "auto"]) == 1
        assert "[error]" in capsys.readouterr().err


# --------------------------------------------------------------------------- #
# PNG preview
# --------------------------------------------------------------------------- #

class TestPreview:
    def test_flatten_closes_polyline(self):
        path = VectorPath(
            segments=[
                Segment("move", (Point(0, 0),)),
                Segment("line", (Point(2 * UNIT2, 0),)),
                Segment("close"),
            ]
        )
        assert render_svg_png.flatten_path(path, UNIT2) == [[(0.0, 0.0), (2.0, 0.0), (0.0, 0.0)]]

    def test_flatten_samples_cubics(self):
        path = VectorPath(
            segments=[
                Segment("move", (Point(0, 0),)),
                Segment("cubic", (Point(0, UNIT2), Point(UNIT2, UNIT2), Point(UNIT2, 0))),
            ]
        )
        (line,) = render_svg_png.flatten_path(path, UNIT2)
        assert len(line) == 1 + render_svg_png.CUBIC_STEPS
        assert line[-1] == pytest.approx((1.0, 0.0))

    def test_type1_preview(self, write, tmp_path):
        source = write("tscp001.BIN", simple_type1())
        target = tmp_path / "previews" / "tscp001.png"
        document = render_svg_png.load_document(source)
        render_svg_png.render_png(document, target, 64)
        with Image.open(target) as image:
            assert image.size == (64, 64)

    def test_type2_preview_cli(self, type2_pair, tmp_path):
        target = tmp_path / "triangle.png"
        assert render_svg_png.main([str(type2_pair), "--preview", str(target), "--preview-size", "48"]) == 0
        with Image.open(target) as image:
            assert image.size == (48, 48)
            assert image.getextrema()[3][1] == 255

    def test_nothing_to_render(self, write, tmp_path, capsys):
        blob = Type1Builder().start_file(UNIT1, UNIT1).start_layer("L").op(0x02).op(0x15).build()
        source = write("empty.BIN", blob)
        assert render_svg_png.main([str(source), "--preview", str(tmp_path / "empty.png")]) == 1
        assert "[error]" in capsys.readouterr().err


# --------------------------------------------------------------------------- #
# Diagnostics
# --------------------------------------------------------------------------- #

class TestDiagnostics:
    def test_detect(self):
        assert detect(simple_type1()) == "type1 (unusual tail)"
        assert detect(type2_commands(triangle_commands())).startswith("type2 command file (11 commands")
        assert detect(type2_points(TRIANGLE_POINTS)) == "type2 point file (3 points)"
        assert detect(include_record(90, 3)) == "include record (layer 3 of 00090)"
        assert detect(group_file([89])) == "group file (run vecass.py)"
        assert detect(b"\xff" * 5) == "unknown"

    def test_point_stats(self):
        summary = summarize(type2_points(TRIANGLE_POINTS, declared=4))
        assert summary["declared_points"] == 4
        assert summary["stored_points"] == 3
        assert summary["x_range"] == [0.0, 2.0]
        assert summary["y_range"] == [0.0, 3.0]
        assert summary["viewbox"] == [0, 0, 2, 3]

    def test_negative_split_words(self):
        points = load_points(type2_points([(-UNIT2, 5)]))
        assert points.tolist() == [[-UNIT2, 5]]

    def test_point_stats_json(self, write, tmp_path):
        source = write("00052.bin", type2_points(TRIANGLE_POINTS))
        target = tmp_path / "stats.json"
        assert stats_main([str(source), "--json", str(target)]) == 0
        assert json.loads(target.read_text(encoding="utf-8"))["stored_points"] == 3
