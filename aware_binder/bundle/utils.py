"""Shared helpers used by the binder and its CLI."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional


def compute_sha256(path: Path) -> str:
    """Return the SHA-256 checksum for a file."""

    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def resolve_path(value: str, workspace: Path) -> Path:
    """Resolve ``value`` against ``workspace`` unless it is already absolute."""

    path = Path(value)
    if not path.is_absolute():
        path = workspace / path
    return path.resolve()


def resolve_workspace(value: Optional[str]) -> Path:
    return Path(value).resolve() if value else Path.cwd()
