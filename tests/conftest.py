from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

for path in (ROOT, SRC):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from tests.helpers import write_model  # noqa: E402


@pytest.fixture()
def model_dir(tmp_path: Path) -> Path:
    """A small two-hull model written to disk with the default file names."""

    return write_model(tmp_path / "model")
