"""Ordering of write passes for a bundle job."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..schemas.job import BundleJob, Manifest, OutputTarget


@dataclass(frozen=True, slots=True)
class BindPass:
    """One manifest read once and written to one or more targets."""

    manifest: Manifest
    targets: Tuple[OutputTarget, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "manifest": self.manifest.name,
            "targets": [target.path for target in self.targets],
            "files": list(self.manifest.files),
        }


def plan_passes(job: BundleJob) -> List[BindPass]:
    """Return the passes that produce every target of ``job``.

    Each target receives its manifests in declared order. A manifest that is
    the next pending entry of several targets at the same time is emitted once
    and fanned out to all of them, in target-declaration order.
    """

    manifests = job.manifest_index()
    cursors: Dict[int, int] = {index: 0 for index in range(len(job.targets))}
    passes: List[BindPass] = []

    while True:
        pending = [
            index
            for index, target in enumerate(job.targets)
            if cursors[index] < len(target.manifests)
        ]
        if not pending:
            break

        lead = pending[0]
        name = job.targets[lead].manifests[cursors[lead]]
        fanout = [
            index
            for index in pending
            if job.targets[index].manifests[cursors[index]] == name
        ]
        for index in fanout:
            cursors[index] += 1
        passes.append(
            BindPass(
                manifest=manifests[name],
                targets=tuple(job.targets[index] for index in fanout),
            )
        )

    return passes
