"""Bundling pass orchestration."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO, Tuple

from ..schemas.job import BundleJob
from .errors import InputOpenError, OutputWriteError
from .plan import BindPass, plan_passes
from .utils import compute_sha256, resolve_path

logger = logging.getLogger(__name__)


class BindState(str, Enum):
    NOT_STARTED = "not_started"
    TRUNCATING = "truncating"
    WRITING = "writing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class BindPosition:
    """Where the binder is while writing, or where it stopped."""

    targets: Tuple[str, ...]
    manifest: str
    file: str

    def to_dict(self) -> dict[str, object]:
        return {"targets": list(self.targets), "manifest": self.manifest, "file": self.file}


@dataclass(slots=True)
class TargetResult:
    path: Path
    manifests: List[str]
    files: int
    size: int
    sha256: str

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "manifests": list(self.manifests),
            "files": self.files,
            "size": self.size,
            "sha256": self.sha256,
        }


@dataclass(slots=True)
class BindResult:
    targets: List[TargetResult]
    atomic: bool = False
    logs: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "atomic": self.atomic,
            "targets": [target.to_dict() for target in self.targets],
            "logs": list(self.logs),
        }


@dataclass(slots=True)
class _Output:
    path: Path
    handle: TextIO


class Binder:
    """Concatenates the manifests of a job into its output targets."""

    def __init__(self, *, workspace_root: Optional[Path] = None) -> None:
        self.workspace_root = workspace_root or Path.cwd()
        self.state = BindState.NOT_STARTED
        self.position: Optional[BindPosition] = None

    def run(self, job: BundleJob) -> BindResult:
        """Produce every target of ``job`` and return a description of them.

        Raises :class:`InputOpenError` when a manifest input cannot be read and
        :class:`OutputWriteError` when a target cannot be written. In the
        default mode every target is truncated before the first write, so a
        failed run can leave targets empty or partially written. With
        ``job.atomic`` targets are only replaced once all of them are complete.
        """

        self.state = BindState.NOT_STARTED
        self.position = None

        base_dir = resolve_path(job.base_dir, self.workspace_root)
        destinations = {
            target.path: resolve_path(target.path, self.workspace_root) for target in job.targets
        }
        passes = plan_passes(job)

        try:
            if job.atomic:
                counts = self._run_atomic(job, passes, base_dir, destinations)
            else:
                counts = self._run_eager(job, passes, base_dir, destinations)
        except BaseException:
            self.state = BindState.FAILED
            raise

        self.state = BindState.COMPLETED
        results: List[TargetResult] = []
        logs: List[str] = []
        for target in job.targets:
            destination = destinations[target.path]
            results.append(
                TargetResult(
                    path=destination,
                    manifests=list(target.manifests),
                    files=counts[target.path],
                    size=destination.stat().st_size,
                    sha256=compute_sha256(destination),
                )
            )
            logs.append(f"Target written to {destination}")
        logger.info("Bound %d targets from %d passes", len(results), len(passes))
        return BindResult(targets=results, atomic=job.atomic, logs=logs)

    def _run_eager(
        self,
        job: BundleJob,
        passes: Sequence[BindPass],
        base_dir: Path,
        destinations: Dict[str, Path],
    ) -> Dict[str, int]:
        self.state = BindState.TRUNCATING
        for target in job.targets:
            self._truncate(destinations[target.path])

        with ExitStack() as stack:
            outputs: Dict[str, _Output] = {}
            for target in job.targets:
                destination = destinations[target.path]
                try:
                    handle = stack.enter_context(destination.open("a", encoding=job.encoding))
                except OSError as exc:
                    raise OutputWriteError(destination, reason=exc.strerror or str(exc)) from exc
                outputs[target.path] = _Output(path=destination, handle=handle)

            self.state = BindState.WRITING
            return self._write_passes(passes, outputs, base_dir, job.encoding)

    def _run_atomic(
        self,
        job: BundleJob,
        passes: Sequence[BindPass],
        base_dir: Path,
        destinations: Dict[str, Path],
    ) -> Dict[str, int]:
        self.state = BindState.TRUNCATING
        temporaries: Dict[str, Path] = {}
        try:
            with ExitStack() as stack:
                outputs: Dict[str, _Output] = {}
                for target in job.targets:
                    destination = destinations[target.path]
                    try:
                        destination.parent.mkdir(parents=True, exist_ok=True)
                        handle = stack.enter_context(
                            tempfile.NamedTemporaryFile(
                                "w",
                                encoding=job.encoding,
                                dir=destination.parent,
                                prefix=f".{destination.name}.",
                                suffix=".partial",
                                delete=False,
                            )
                        )
                    except OSError as exc:
                        raise OutputWriteError(destination, reason=exc.strerror or str(exc)) from exc
                    temporaries[target.path] = Path(handle.name)
                    outputs[target.path] = _Output(path=destination, handle=handle)

                self.state = BindState.WRITING
                counts = self._write_passes(passes, outputs, base_dir, job.encoding)

            self._commit(job, destinations, temporaries)
        except BaseException:
            for temporary in temporaries.values():
                temporary.unlink(missing_ok=True)
            logger.warning("Removed partial targets after a failed atomic run")
            raise
        return counts

    def _commit(
        self,
        job: BundleJob,
        destinations: Dict[str, Path],
        temporaries: Dict[str, Path],
    ) -> None:
        # Every destination is checked before the first replace; a failure of
        # os.replace itself can still leave earlier targets replaced.
        for target in job.targets:
            destination = destinations[target.path]
            if destination.is_dir():
                raise OutputWriteError(destination, reason="Is a directory")

        for target in job.targets:
            destination = destinations[target.path]
            temporary = temporaries[target.path]
            try:
                os.chmod(temporary, _target_mode(destination))
                os.replace(temporary, destination)
            except OSError as exc:
                raise OutputWriteError(destination, reason=exc.strerror or str(exc)) from exc
            logger.debug("Moved %s into place", destination)

    def _truncate(self, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with destination.open("w"):
                pass
        except OSError as exc:
            raise OutputWriteError(destination, reason=exc.strerror or str(exc)) from exc
        logger.debug("Truncated %s", destination)

    def _write_passes(
        self,
        passes: Sequence[BindPass],
        outputs: Dict[str, _Output],
        base_dir: Path,
        encoding: str,
    ) -> Dict[str, int]:
        counts = {key: 0 for key in outputs}
        for bind_pass in passes:
            keys = tuple(target.path for target in bind_pass.targets)
            pass_outputs = [outputs[key] for key in keys]
            logger.debug("Writing manifest '%s' to %s", bind_pass.manifest.name, ", ".join(keys))

            for name in bind_pass.manifest.files:
                self.position = BindPosition(targets=keys, manifest=bind_pass.manifest.name, file=name)
                self._copy_file(base_dir / name, bind_pass.manifest.name, pass_outputs, encoding)
                for key in keys:
                    counts[key] += 1
        return counts

    def _copy_file(
        self,
        source: Path,
        manifest: str,
        outputs: Sequence[_Output],
        encoding: str,
    ) -> None:
        try:
            reader = source.open("r", encoding=encoding)
        except OSError as exc:
            raise InputOpenError(source, manifest, reason=exc.strerror or str(exc)) from exc

        with reader:
            try:
                for line in reader:
                    if line.endswith("\n"):
                        line = line[:-1]
                    self._emit(outputs, line + "\n")
            except (OSError, UnicodeDecodeError) as exc:
                raise InputOpenError(source, manifest, reason=str(exc)) from exc
        # separator after every file, whether or not it ended with a blank line
        self._emit(outputs, "\n")
        logger.debug("Copied %s", source)

    @staticmethod
    def _emit(outputs: Sequence[_Output], text: str) -> None:
        for output in outputs:
            try:
                output.handle.write(text)
            except OSError as exc:
                raise OutputWriteError(output.path, reason=exc.strerror or str(exc)) from exc


def _target_mode(destination: Path) -> int:
    """Mode a target gets when written in place: its current one, or the umask default."""

    try:
        return stat.S_IMODE(destination.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask
