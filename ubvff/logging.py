from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, TextIO

from .model import Point

DETAIL_LITTLE = 1
DETAIL_COMMANDS = 2
DETAIL_ALL = 3
NAME_COLUMN = 24


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    message: str


@dataclass
class ConversionLog:
    """
    Console transcript for one conversion.  Command listings only appear at
    detail >= 2; warnings are always kept so callers and tests can inspect
    them after the run.
    """

    detail: int = DETAIL_COMMANDS
    echo: bool = True
    out: TextIO | None = None

    def __post_init__(self) -> None:
        self._lines: List[str] = []
        self.warnings: List[Diagnostic] = []

    def _emit(self, text: str) -> None:
        self._lines.append(text)
        if self.echo:
            print(text, file=self.out or sys.stdout)

    def info(self, message: str) -> None:
        if self.detail >= DETAIL_LITTLE:
            self._emit(f"[+] {message}")

    def note(self, message: str) -> None:
        if self.detail >= DETAIL_ALL:
            self._emit(f"[i] {message}")

    def command(self, name: str, operands: str = "") -> None:
        if self.detail >= DETAIL_COMMANDS:
            self._emit(f"{name:<{NAME_COLUMN}}{operands}".rstrip())

    def warn(self, kind: str, message: str) -> None:
        self.warnings.append(Diagnostic(kind, message))
        self._emit(f"[warn] {message}")

    def warning_kinds(self) -> List[str]:
        return [w.kind for w in self.warnings]

    def flush(self, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        text = "\n".join(self._lines) + ("\n" if self._lines else "")
        destination.write_text(text, encoding="utf-8")


def describe_points(points: Sequence[Point], scale: int, *, detail: int, head: int = 3) -> str:
    """Fixed-width listing of points, eliding the tail unless detail is 3."""

    shown = points if detail >= DETAIL_ALL else points[:head]
    parts = [f"{pt.x / scale:11.6f} {pt.y / scale:11.6f}" for pt in shown]
    text = " ".join(parts)
    if len(shown) < len(points):
        text += " ..."
    return text
