from pathlib import Path

import pytest

from ubvff.logging import ConversionLog


@pytest.fixture
def quiet_log() -> ConversionLog:
    return ConversionLog(echo=False)


@pytest.fixture
def write(tmp_path: Path):
    def _write(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write
