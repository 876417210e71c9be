from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest
import structlog

from polyjudge import EngineSettings, LocalEngine, Toolchain


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    return tmp_path / "scratch"


@pytest.fixture
def engine(scratch_dir: Path) -> LocalEngine:
    settings = EngineSettings(
        scratch_dir=scratch_dir,
        timeout_ms=5000,
        toolchain=Toolchain(python=sys.executable),
    )
    return LocalEngine(settings)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()
