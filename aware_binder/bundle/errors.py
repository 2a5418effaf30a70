"""Exceptions raised while binding a job."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class BindError(RuntimeError):
    """Raised when a bundling pass cannot be completed."""


class InputOpenError(BindError):
    """Raised when a manifest input cannot be opened for reading."""

    def __init__(self, path: Path, manifest: str, *, reason: Optional[str] = None) -> None:
        self.path = path
        self.manifest = manifest
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Failed to open input '{path}' from manifest '{manifest}'{detail}")


class OutputWriteError(BindError):
    """Raised when a target cannot be truncated, opened or written."""

    def __init__(self, path: Path, *, reason: Optional[str] = None) -> None:
        self.path = path
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Failed to write target '{path}'{detail}")


__all__ = ["BindError", "InputOpenError", "OutputWriteError"]
