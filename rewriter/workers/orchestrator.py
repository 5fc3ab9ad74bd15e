from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable, Iterable

from rewriter.core.archive import assemble_archive, encode_archive
from rewriter.core.prompts import build_system_prompt, build_user_message, check_context_limit
from rewriter.domain import CompleteEvent, Document, ErrorEvent, Job, JobEvent, ProgressEvent
from rewriter.logging import get_logger
from rewriter.workers.rewrite_client import RemoteRewriteClient

logger = get_logger(__name__)

DisconnectCheck = Callable[[], Awaitable[bool]]
Assembler = Callable[[Iterable[Document]], bytes]

DISCONNECTED = "caller disconnected"


class JobOrchestrator:
    """Drives one job strictly sequentially and yields its lifecycle events."""

    def __init__(self, client: RemoteRewriteClient, *, assembler: Assembler = assemble_archive) -> None:
        self._client = client
        self._assembler = assembler

    async def run(self, job: Job, *, is_disconnected: DisconnectCheck | None = None) -> AsyncIterator[JobEvent]:
        job.start()
        total = job.total
        logger.info("job %s started: %d documents, model=%s", job.job_id, total, job.model)

        instructions = build_system_prompt(job.references)
        rewritten: list[Document] = []

        for index, document in enumerate(job.documents):
            if is_disconnected is not None and await is_disconnected():
                job.fail(DISCONNECTED)
                logger.info("job %s abandoned by caller at %d/%d", job.job_id, index, total)
                return

            current = index + 1
            yield ProgressEvent(current=current, total=total, filename=document.name)
            logger.debug("job %s rewriting %d/%d %s", job.job_id, current, total, document.name)

            message = build_user_message(document.name, document.content)
            estimate = check_context_limit(instructions, message)
            if not estimate.fits:
                logger.warning(
                    "job %s document %s may exceed the context window (~%d tokens)",
                    job.job_id,
                    document.name,
                    estimate.estimated_tokens,
                )

            outcome = await self._client.rewrite(instructions, message, model=job.model)
            if not outcome.success:
                reason = outcome.reason or "Unknown error during rewriting"
                job.fail(reason, failed_at=current)
                logger.error("job %s failed at %d/%d (%s): %s", job.job_id, current, total, document.name, reason)
                yield ErrorEvent(message=reason, failed_at=current, filename=document.name)
                return

            rewritten.append(document.rewritten(outcome.content or ""))
            job.advance()

        archive = self._assembler(rewritten)
        job.complete()
        logger.info("job %s completed: %d documents, archive %d bytes", job.job_id, total, len(archive))
        yield CompleteEvent(archive_base64=encode_archive(archive), total_processed=total)
