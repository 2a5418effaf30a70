"""Job file helpers for the binder."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..schemas.job import BundleJob

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


class JobLoadError(ValueError):
    """Raised when a job file cannot be read, parsed or validated."""


def load_job(path: Path) -> BundleJob:
    """Load a job from a YAML or JSON file."""

    if not path.exists():
        raise JobLoadError(f"Job file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise JobLoadError(f"Could not read job file {path}: {exc}") from exc
    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            payload = yaml.safe_load(text) or {}
        else:
            payload = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise JobLoadError(f"Could not parse job file {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise JobLoadError(f"Job file {path} must contain a mapping, got {type(payload).__name__}")

    try:
        job = BundleJob.model_validate(payload)
    except ValidationError as exc:
        raise JobLoadError(f"Invalid job file {path}: {exc}") from exc
    logger.debug("Loaded job %s with %d manifests and %d targets", path, len(job.manifests), len(job.targets))
    return job


def dump_job(job: BundleJob, path: Path) -> None:
    """Write a job to disk, as YAML or JSON depending on the suffix."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = job.model_dump(mode="json")
    if path.suffix.lower() in _YAML_SUFFIXES:
        path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    else:
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def apply_overrides(
    job: BundleJob,
    *,
    output: Optional[str] = None,
    atomic: Optional[bool] = None,
) -> BundleJob:
    """Return a new job with command-line overrides applied.

    ``output`` replaces the destination of a single-target job; a job with
    several targets has no single destination to override and is rejected.
    """

    updates: dict[str, Any] = {}
    if output is not None:
        if len(job.targets) != 1:
            raise ValueError(
                f"Output override requires a single-target job (job has {len(job.targets)} targets)"
            )
        updates["targets"] = (job.targets[0].model_copy(update={"path": output}),)
    if atomic is not None:
        updates["atomic"] = atomic
    if not updates:
        return job
    return merge_job(job, updates)


def merge_job(job: BundleJob, overrides: Mapping[str, Any]) -> BundleJob:
    """Return a new, re-validated job with overrides applied."""

    payload = job.model_dump()
    payload.update(overrides)
    return BundleJob.model_validate(payload)
