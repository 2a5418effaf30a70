"""Bundle assembly utilities."""

from .binder import Binder, BindPosition, BindResult, BindState, TargetResult
from .errors import BindError, InputOpenError, OutputWriteError
from .job import JobLoadError, apply_overrides, dump_job, load_job
from .plan import BindPass, plan_passes

__all__ = [
    "Binder",
    "BindPass",
    "BindPosition",
    "BindResult",
    "BindState",
    "TargetResult",
    "BindError",
    "InputOpenError",
    "OutputWriteError",
    "JobLoadError",
    "apply_overrides",
    "dump_job",
    "load_job",
    "plan_passes",
]
