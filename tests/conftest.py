from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping

import pytest

from aware_binder.schemas.job import BundleJob


@pytest.fixture
def write_sources(tmp_path: Path) -> Callable[[Mapping[str, str]], Path]:
    """Write ``{relative path: text}`` under ``tmp_path / "src"`` and return that directory."""

    def _write(files: Mapping[str, str]) -> Path:
        base = tmp_path / "src"
        for name, text in files.items():
            path = base / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        base.mkdir(parents=True, exist_ok=True)
        return base

    return _write


@pytest.fixture
def scenario_job() -> BundleJob:
    """Minimal and full artifact built from a shared manifest."""

    return BundleJob.model_validate(
        {
            "base_dir": "src",
            "manifests": [
                {"name": "A", "files": ["license.txt", "core.txt"]},
                {"name": "B", "files": ["extra.txt"]},
            ],
            "targets": [
                {"path": "out_min.txt", "manifests": ["A"]},
                {"path": "out_all.txt", "manifests": ["A", "B"]},
            ],
        }
    )


@pytest.fixture
def scenario_sources(write_sources: Callable[[Mapping[str, str]], Path]) -> Path:
    return write_sources({"license.txt": "L", "core.txt": "C", "extra.txt": "E"})
