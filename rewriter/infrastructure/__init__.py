"""Infrastructure layer exports."""

from .anthropic import AnthropicRewriteService
from .references import (
    FileReferenceStore,
    InMemoryReferenceStore,
    KeyValueReferenceStore,
    ReferenceStore,
    build_reference_store,
)
from .rewrite_service import (
    RewriteResponse,
    RewriteService,
    configure_rewrite_service,
    get_rewrite_service,
)

__all__ = [
    "AnthropicRewriteService",
    "FileReferenceStore",
    "InMemoryReferenceStore",
    "KeyValueReferenceStore",
    "ReferenceStore",
    "RewriteResponse",
    "RewriteService",
    "build_reference_store",
    "configure_rewrite_service",
    "get_rewrite_service",
]
