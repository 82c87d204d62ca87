"""
Tests for the shared building blocks: record reads, rounding, viewBox
patching, file naming and the conversion log.
"""

import io
import struct

import pytest

from builders import UNIT2, layer_svg, split_word
from ubvff.byteio import PointReader, RecordReader, decode_split_word
from ubvff.errors import InvalidHeaderError, PatchError, TruncatedError
from ubvff.geometry import TYPE1_SCALE, TYPE2_SCALE, BoundsAccumulator, format_coord, round_int
from ubvff.logging import ConversionLog, describe_points
from ubvff.model import Color, Point
from ubvff.naming import (
    auto_assembly_output,
    auto_svg_path,
    derive_points_path,
    numbered_path,
    resource_prefix,
    split_numbered_name,
)
from ubvff.viewport import (
    SVG_HEADER_PREFIX,
    SVG_HEADER_SUFFIX,
    VIEWBOX_FIELD_OFFSET,
    VIEWBOX_FIELD_WIDTH,
    VIEWBOX_PLACEHOLDER,
    format_viewbox_field,
    parse_viewbox,
    patch_viewport,
)


# --------------------------------------------------------------------------- #
# Record reads
# --------------------------------------------------------------------------- #

class TestRecordReader:
    def test_reads_big_endian_words(self):
        reader = RecordReader(io.BytesIO(struct.pack(">HHI", 1, 0x0203, 0x04050607)))
        assert reader.read_u16(2) == (1, 0x0203)
        assert reader.read_u32() == (0x04050607,)

    def test_signed_reads(self):
        reader = RecordReader(io.BytesIO(struct.pack(">ii", -1, -0x8000)))
        assert reader.read_i32(2) == (-1, -0x8000)

    def test_points_are_i32_pairs(self):
        reader = RecordReader(io.BytesIO(struct.pack(">iiii", 1, -2, 3, 4)))
        assert reader.read_points(2) == [Point(1, -2), Point(3, 4)]

    def test_short_read_raises_truncated(self):
        reader = RecordReader(io.BytesIO(b"\x00\x01\x00"))
        with pytest.raises(TruncatedError) as exc:
            reader.read_u16(2)
        assert exc.value.wanted == 2
        assert exc.value.got == 1

    def test_unsupported_record_size(self):
        with pytest.raises(ValueError):
            RecordReader(io.BytesIO(b"\x00" * 8)).read(1, 3)

    def test_trailing_data_probe(self):
        reader = RecordReader(io.BytesIO(b"\x00\x00\x00"))
        reader.read_u16()
        assert reader.has_trailing_data()
        assert not reader.has_trailing_data()


class TestSplitWords:
    def test_low_half_first(self):
        assert decode_split_word(struct.pack(">HH", 0x0001, 0x0002)) == 0x00020001

    def test_negative_values(self):
        assert decode_split_word(split_word(-1)) == -1
        assert decode_split_word(split_word(-UNIT2)) == -UNIT2

    def test_point_reader_tracks_bounds(self):
        data = split_word(-UNIT2) + split_word(3 * UNIT2) + split_word(5) + split_word(-7)
        reader = PointReader(io.BytesIO(data))
        assert reader.read_points(2) == [Point(-UNIT2, 3 * UNIT2), Point(5, -7)]
        assert reader.points_read == 2
        assert reader.bounds.as_tuple() == (-UNIT2, -7, UNIT2, 3 * UNIT2)

    def test_point_reader_truncation(self):
        reader = PointReader(io.BytesIO(split_word(1) + split_word(2) + split_word(3)))
        with pytest.raises(TruncatedError):
            reader.read_points(2)


# --------------------------------------------------------------------------- #
# Rounding and bounds
# --------------------------------------------------------------------------- #

class TestRoundInt:
    D = TYPE1_SCALE

    def test_exact_multiple(self):
        assert round_int(3 * self.D, self.D) == 3
        assert round_int(0, self.D) == 0

    def test_quarter_boundary(self):
        assert round_int(3 * self.D + self.D // 4 - 1, self.D) == 3
        assert round_int(3 * self.D + self.D // 4, self.D) == 4

    def test_just_below_next_unit(self):
        assert round_int(self.D - 1, self.D) == 1

    def test_small_positive_values(self):
        assert round_int(1, self.D) == 0
        assert round_int(self.D // 4, self.D) == 1

    def test_negative_values_mirror_positive(self):
        assert round_int(-(3 * self.D + self.D // 4), self.D) == -4
        assert round_int(-(3 * self.D + 1), self.D) == -3

    def test_half_unit_rounds_up_not_to_minus_one(self):
        d = TYPE2_SCALE
        assert round_int(d // 2, d) == 1
        assert round_int(d // 4 - 1, d) == 0
        assert round_int(-(d // 2), d) == -1
        assert round_int(-(3 * d + d // 4), d) == -4

    def test_rejects_non_positive_divisor(self):
        with pytest.raises(ValueError):
            round_int(1, 0)


class TestBounds:
    def test_starts_at_unit_square(self):
        assert BoundsAccumulator().rounded(UNIT2) == (0, 0, 1, 1)

    def test_fold_widens(self):
        bounds = BoundsAccumulator(0, 0, 1, 1)
        bounds.fold((-2, 0, 4, 1))
        bounds.fold((0, -5, 1, 3))
        assert bounds.as_tuple() == (-2, -5, 4, 3)

    def test_format_coord(self):
        assert format_coord(-3 * UNIT2 // 2, UNIT2) == "-1.500000"


# --------------------------------------------------------------------------- #
# viewBox placeholder
# --------------------------------------------------------------------------- #

class TestViewport:
    def test_placeholder_geometry(self):
        assert VIEWBOX_FIELD_OFFSET == 13
        assert VIEWBOX_FIELD_WIDTH == 26
        assert len(VIEWBOX_PLACEHOLDER) == 26

    def test_field_is_padded(self):
        assert format_viewbox_field(0, 0, 2, 3) == '"0 0 2 3"' + " " * 17

    def test_field_with_multi_digit_negatives(self):
        field = format_viewbox_field(-10000, -2000, 30000, 40000)
        assert field == '"-10000 -2000 30000 40000"'
        assert len(field) == VIEWBOX_FIELD_WIDTH

    def test_field_too_wide(self):
        with pytest.raises(PatchError):
            format_viewbox_field(-123456, -123456, 1234567, 1234567)

    def test_patch_in_place_keeps_position(self):
        out = io.BytesIO()
        out.write(f"{SVG_HEADER_PREFIX}{VIEWBOX_PLACEHOLDER}{SVG_HEADER_SUFFIX}".encode("ascii"))
        out.write(b"<path/>\n")
        end = out.tell()
        patch_viewport(out, (-1, -2, 3, 4))
        assert out.tell() == end
        data = out.getvalue()
        assert data[13:39] == b'"-1 -2 3 4"'.ljust(26)
        assert data.endswith(b"<path/>\n")
        assert len(data) == end

    def test_patch_needs_seekable_stream(self):
        class Pipe(io.BytesIO):
            def seekable(self):
                return False

        with pytest.raises(PatchError):
            patch_viewport(Pipe(), (0, 0, 1, 1))

    def test_parse_viewbox(self):
        assert parse_viewbox(layer_svg((-1, 0, 4, 4), "")) == (-1, 0, 4, 4)

    def test_parse_viewbox_rejects_placeholder(self):
        header = f"{SVG_HEADER_PREFIX}{VIEWBOX_PLACEHOLDER}{SVG_HEADER_SUFFIX}".encode("ascii")
        with pytest.raises(InvalidHeaderError):
            parse_viewbox(header)


# --------------------------------------------------------------------------- #
# Naming
# --------------------------------------------------------------------------- #

class TestNaming:
    def test_auto_svg_strips_short_extension(self):
        assert str(auto_svg_path("dir/tscp001.BIN")) == "dir/tscp001.svg"

    def test_auto_svg_only_last_dot_in_tail(self):
        assert str(auto_svg_path("archive.tar.gz")) == "archive.tar.svg"

    def test_auto_svg_ignores_dot_in_directory(self):
        assert str(auto_svg_path("a.b/file")) == "a.b/file.svg"

    def test_auto_svg_short_name_is_appended(self):
        assert str(auto_svg_path("a.b")) == "a.b.svg"

    def test_numbered_names(self):
        assert split_numbered_name("dir/BW00123.bin") == ("dir/BW", 123)
        assert split_numbered_name("dir/notes.txt") is None
        assert resource_prefix("dir/00053.bin") == "dir/"
        assert numbered_path("dir/BW", 7) == numbered_path("dir/BW", 7, ".bin")
        assert str(numbered_path("dir/BW", 7, ".svg")) == "dir/BW00007.svg"
        assert str(derive_points_path("dir/00053.bin", 52)) == "dir/00052.bin"

    def test_auto_assembly_output(self):
        assert str(auto_assembly_output("00100.bin")) == "00100.svg"
        with pytest.raises(ValueError):
            auto_assembly_output("00100.txt")


# --------------------------------------------------------------------------- #
# Conversion log
# --------------------------------------------------------------------------- #

class TestConversionLog:
    def test_detail_levels(self, capsys):
        log = ConversionLog(detail=1)
        log.info("loaded")
        log.command("CMD_0C_NOP")
        log.note("hidden")
        out = capsys.readouterr().out
        assert "[+] loaded" in out
        assert "CMD_0C_NOP" not in out
        assert "[i]" not in out

    def test_warnings_always_recorded(self):
        log = ConversionLog(detail=0, echo=False)
        log.warn("trailing-data", "extra bytes")
        assert log.warning_kinds() == ["trailing-data"]

    def test_flush_writes_transcript(self, tmp_path):
        log = ConversionLog(detail=3, echo=False)
        log.info("one")
        log.note("two")
        target = tmp_path / "logs" / "run.txt"
        log.flush(target)
        assert target.read_text(encoding="utf-8") == "[+] one\n[i] two\n"

    def test_describe_points_elides_tail(self):
        points = [Point(i * UNIT2, 0) for i in range(5)]
        short = describe_points(points, UNIT2, detail=2)
        full = describe_points(points, UNIT2, detail=3)
        assert short.endswith("...")
        assert "4.000000" in full
        assert "4.000000" not in short

    def test_color_word_layout(self):
        color = Color.from_word(0xFF302010)
        assert (color.r, color.g, color.b, color.reserved) == (0x10, 0x20, 0x30, 0xFF)
        assert color.as_rgb() == "rgb(16,32,48)"
