"""Command-line entry point for running bundle jobs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from aware_binder.bundle.binder import Binder
from aware_binder.bundle.errors import BindError, InputOpenError
from aware_binder.bundle.job import JobLoadError, apply_overrides, load_job
from aware_binder.bundle.plan import plan_passes
from aware_binder.bundle.utils import resolve_path, resolve_workspace
from aware_binder.schemas.job import BundleJob


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    workspace = resolve_workspace(args.workspace_root)
    try:
        job = load_job(resolve_path(args.job, workspace))
    except JobLoadError as exc:
        print(f"Invalid job file: {exc}", file=sys.stderr)
        return 1

    if args.command == "run":
        try:
            job = apply_overrides(job, output=args.output, atomic=True if args.atomic else None)
        except ValueError as exc:
            parser.error(str(exc))
        return _handle_run(job, workspace)
    if args.command == "validate":
        return _handle_validate(job, workspace)
    if args.command == "plan":
        return _handle_plan(job)

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aware-binder", description="Concatenate source manifests into bundles.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("job", help="Job file (YAML or JSON).")
    common.add_argument("--workspace-root")
    common.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr.")

    run = subparsers.add_parser("run", parents=[common], help="Build every target of a job.")
    run.add_argument("output", nargs="?", help="Override the destination of a single-target job.")
    run.add_argument("--atomic", action="store_true", help="Replace targets only after a complete run.")

    subparsers.add_parser("validate", parents=[common], help="Check that every manifest input can be opened.")
    subparsers.add_parser("plan", parents=[common], help="Show the write passes of a job.")

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _handle_run(job: BundleJob, workspace: Path) -> int:
    binder = Binder(workspace_root=workspace)
    try:
        result = binder.run(job)
    except InputOpenError as exc:
        print("Failed to open a file.", file=sys.stderr)
        print(str(exc), file=sys.stderr)
        return 1
    except BindError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    payload = {"state": binder.state.value}
    payload.update(result.to_dict())
    _print_json(payload)
    return 0


def _handle_validate(job: BundleJob, workspace: Path) -> int:
    base_dir = resolve_path(job.base_dir, workspace)
    missing: List[dict[str, str]] = []
    errors: List[str] = []
    for manifest in job.manifests:
        for name in manifest.files:
            source = base_dir / name
            try:
                with source.open("rb"):
                    pass
            except OSError as exc:
                missing.append({"manifest": manifest.name, "path": str(source)})
                errors.append(f"{source}: {exc.strerror or exc}")

    valid = not missing
    payload = {
        "base_dir": str(base_dir),
        "valid": valid,
        "missing": missing,
        "errors": errors,
        "targets": [str(resolve_path(target.path, workspace)) for target in job.targets],
    }
    _print_json(payload)
    return 0 if valid else 1


def _handle_plan(job: BundleJob) -> int:
    passes = plan_passes(job)
    payload = {
        "base_dir": job.base_dir,
        "atomic": job.atomic,
        "passes": [bind_pass.to_dict() for bind_pass in passes],
        "targets": {
            target.path: [manifest.name for manifest in job.manifests_for(target)]
            for target in job.targets
        },
    }
    _print_json(payload)
    return 0


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
