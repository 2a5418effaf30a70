"""Schema definitions for bundle jobs."""

from .job import BundleJob, Manifest, OutputTarget

__all__ = [
    "BundleJob",
    "Manifest",
    "OutputTarget",
]
