"""Domain layer definitions."""

from .jobs import (
    CompleteEvent,
    Document,
    ErrorEvent,
    Job,
    JobEvent,
    JobStatus,
    ProgressEvent,
    ReferenceContext,
    ReferenceFile,
    RewriteOutcome,
)

__all__ = [
    "CompleteEvent",
    "Document",
    "ErrorEvent",
    "Job",
    "JobEvent",
    "JobStatus",
    "ProgressEvent",
    "ReferenceContext",
    "ReferenceFile",
    "RewriteOutcome",
]
