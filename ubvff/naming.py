from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Tuple

AUTO = "auto"

_NUMBERED_BIN = re.compile(r"^(?P<prefix>.*?)(?P<number>\d{5})\.bin$")


def auto_svg_path(source: Path | str) -> Path:
    """
    Strip a short trailing extension (the dot must sit in the last five
    characters with no separator after it) and append ``.svg``.
    """

    text = str(source)
    if len(text) > 5:
        dot = -1
        for idx in range(len(text) - 5, len(text)):
            if text[idx] in "/\\":
                dot = -1
            elif text[idx] == ".":
                dot = idx
        if dot != -1:
            text = text[:dot]
    return Path(text + ".svg")


def split_numbered_name(path: Path | str) -> Optional[Tuple[str, int]]:
    """``dir/BW00123.bin`` -> (``dir/BW``, 123); None when the name is not NNNNN.bin."""

    match = _NUMBERED_BIN.match(str(path))
    if match is None:
        return None
    return match.group("prefix"), int(match.group("number"))


def resource_prefix(path: Path | str) -> str:
    split = split_numbered_name(path)
    return split[0] if split else ""


def numbered_path(prefix: str, number: int, suffix: str = ".bin") -> Path:
    return Path(f"{prefix}{number:05d}{suffix}")


def derive_points_path(command_path: Path | str, points_file_id: int) -> Path:
    return numbered_path(resource_prefix(command_path), points_file_id)


def auto_assembly_output(command_path: Path | str) -> Path:
    text = str(command_path)
    if len(text) > 5 and text.endswith(".bin"):
        return Path(text[:-4] + ".svg")
    raise ValueError(f"unable to create auto name for output file from {command_path}")
