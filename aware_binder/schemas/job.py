"""Pydantic models describing a bundle job."""

from __future__ import annotations

import os
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Manifest(BaseModel):
    name: str = Field(..., min_length=1)
    files: Tuple[str, ...] = Field(
        default=(),
        description="Input paths relative to the job base directory, in concatenation order.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class OutputTarget(BaseModel):
    path: str = Field(..., min_length=1, description="Destination file, relative to the workspace root.")
    manifests: Tuple[str, ...] = Field(
        default=(),
        description="Names of the manifests streamed into this target, in order.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class BundleJob(BaseModel):
    base_dir: str = Field(default=".", description="Directory input paths are relative to.")
    encoding: str = "utf-8"
    atomic: bool = Field(
        default=False,
        description="Write targets to temporaries and move them into place only after a full run.",
    )
    manifests: Tuple[Manifest, ...] = ()
    targets: Tuple[OutputTarget, ...] = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def _check_references(self) -> "BundleJob":
        names: List[str] = [manifest.name for manifest in self.manifests]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate manifest names: {', '.join(duplicates)}")

        paths: List[str] = [os.path.normpath(target.path) for target in self.targets]
        duplicates = sorted({path for path in paths if paths.count(path) > 1})
        if duplicates:
            raise ValueError(f"Duplicate target paths: {', '.join(duplicates)}")

        known = set(names)
        for target in self.targets:
            missing = [name for name in target.manifests if name not in known]
            if missing:
                raise ValueError(
                    f"Target '{target.path}' references undeclared manifests: {', '.join(missing)}"
                )
        return self

    def manifest(self, name: str) -> Manifest:
        for manifest in self.manifests:
            if manifest.name == name:
                return manifest
        raise KeyError(name)

    def manifests_for(self, target: OutputTarget) -> List[Manifest]:
        return [self.manifest(name) for name in target.manifests]

    def manifest_index(self) -> Dict[str, Manifest]:
        return {manifest.name: manifest for manifest in self.manifests}
