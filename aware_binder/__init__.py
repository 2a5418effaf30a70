"""Source bundling helpers for single-file builds."""

__version__ = "0.1.0"
from .bundle import (
    Binder,
    BindError,
    BindResult,
    BindState,
    InputOpenError,
    JobLoadError,
    OutputWriteError,
    load_job,
)
from .schemas.job import BundleJob, Manifest, OutputTarget

__all__ = [
    "__version__",
    "Binder",
    "BindError",
    "BindResult",
    "BindState",
    "BundleJob",
    "InputOpenError",
    "JobLoadError",
    "Manifest",
    "OutputTarget",
    "OutputWriteError",
    "load_job",
]
