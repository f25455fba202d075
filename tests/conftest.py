from __future__ import annotations

from pathlib import Path
import shutil

import pytest

EXAMPLES = Path(__file__).resolve().parents[1] / "examples"


@pytest.fixture
def sales_records() -> list[dict]:
    return [
        {"region": "E", "prod": "A", "qty": 10},
        {"region": "E", "prod": "B", "qty": 5},
        {"region": "W", "prod": "A", "qty": 7},
    ]


@pytest.fixture
def copy_example(tmp_path: Path):
    """Return a helper that copies an example project into a temp location."""

    def _copy(name: str) -> Path:
        src = EXAMPLES / name
        dest = tmp_path / name
        shutil.copytree(src, dest)
        return dest

    return _copy
