"""Application service for batch rewrite jobs."""
from __future__ import annotations

import asyncio
import itertools
from typing import AsyncIterator

from rewriter.application.references import ReferenceService, get_reference_service
from rewriter.core.errors import RewriterError
from rewriter.core.events import format_event
from rewriter.core.schema import RewriteRequest, parse_rewrite_request
from rewriter.core.validation import admit
from rewriter.domain import ErrorEvent, Job
from rewriter.infrastructure.anthropic import DEFAULT_MODEL
from rewriter.logging import get_logger
from rewriter.workers.orchestrator import DisconnectCheck, JobOrchestrator
from rewriter.workers.rewrite_client import RemoteRewriteClient

logger = get_logger(__name__)


class RewriteJobService:
    """Admits rewrite submissions and streams their events as SSE frames."""

    def __init__(
        self,
        client: RemoteRewriteClient | None = None,
        *,
        references: ReferenceService | None = None,
        default_model: str = DEFAULT_MODEL,
    ) -> None:
        self._client = client or RemoteRewriteClient()
        self._references = references
        self._default_model = default_model
        self._job_counter = itertools.count(1)

    def _reference_service(self) -> ReferenceService:
        return self._references if self._references is not None else get_reference_service()

    def next_job_id(self) -> str:
        return f"job-{next(self._job_counter):05d}"

    def create_job(self, request: RewriteRequest) -> Job:
        """Build an admitted job or raise ``ConfigurationError`` / ``ValidationError``."""

        self._client.check_configured()
        if request.reference_context is not None:
            references = request.reference_context.to_domain()
        else:
            references = self._reference_service().load_references()
        documents = admit(request.to_documents(), references)
        return Job(
            job_id=self.next_job_id(),
            documents=tuple(documents),
            references=references,
            model=request.model or self._default_model,
        )

    async def stream(
        self,
        raw_body: bytes | str,
        *,
        is_disconnected: DisconnectCheck | None = None,
    ) -> AsyncIterator[str]:
        try:
            request = parse_rewrite_request(raw_body)
            # Reference stores may block on network I/O.
            job = await asyncio.to_thread(self.create_job, request)
        except RewriterError as exc:
            logger.info("rewrite request rejected: %s", exc)
            yield format_event(ErrorEvent(message=str(exc)))
            return
        except Exception as exc:
            logger.exception("rewrite request setup failed")
            yield format_event(ErrorEvent(message=f"Server error: {exc}"))
            return

        orchestrator = JobOrchestrator(self._client)
        try:
            async for event in orchestrator.run(job, is_disconnected=is_disconnected):
                yield format_event(event)
        except Exception as exc:
            logger.exception("job %s crashed while streaming", job.job_id)
            job.fail(str(exc))
            yield format_event(ErrorEvent(message=f"Server error: {exc}"))


_service = RewriteJobService()


def configure_rewrite_jobs(service: RewriteJobService) -> None:
    global _service
    _service = service


def get_rewrite_job_service() -> RewriteJobService:
    return _service


def reset_rewrite_state() -> None:
    """Restore the default job service (used in tests)."""

    configure_rewrite_jobs(RewriteJobService())
