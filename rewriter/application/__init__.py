"""Application services."""

from .references import (
    ReferenceService,
    configure_reference_store,
    get_reference_service,
    reset_reference_state,
)
from .rewriting import (
    RewriteJobService,
    configure_rewrite_jobs,
    get_rewrite_job_service,
    reset_rewrite_state,
)

__all__ = [
    "ReferenceService",
    "RewriteJobService",
    "configure_reference_store",
    "configure_rewrite_jobs",
    "get_reference_service",
    "get_rewrite_job_service",
    "reset_reference_state",
    "reset_rewrite_state",
]
