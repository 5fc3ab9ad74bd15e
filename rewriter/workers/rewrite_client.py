from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable

from rewriter.core.errors import ConfigurationError, ServiceError
from rewriter.domain import RewriteOutcome
from rewriter.infrastructure import RewriteService, get_rewrite_service
from rewriter.logging import get_logger

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]

NO_TEXT_REASON = "No text content in rewrite response"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int = 5
    initial_delay: float = 2.0
    max_delay: float = 60.0
    jitter: float = 1.0

    def base_delay(self, retry: int) -> float:
        """Delay before retry ``retry`` (1 = the wait before the second attempt), without jitter."""

        return min(self.initial_delay * 2 ** (retry - 1), self.max_delay)

    def delay(self, retry: int, rng: random.Random) -> float:
        return self.base_delay(retry) + rng.uniform(0, self.jitter)


class RemoteRewriteClient:
    """Rewrites one document through the remote service, retrying transient faults."""

    def __init__(
        self,
        service: RewriteService | None = None,
        *,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._service = service
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def service(self) -> RewriteService:
        return self._service if self._service is not None else get_rewrite_service()

    def check_configured(self) -> None:
        self.service.check_configured()

    async def rewrite(self, instructions: str, content: str, *, model: str) -> RewriteOutcome:
        service = self.service
        try:
            service.check_configured()
        except ConfigurationError as exc:
            return RewriteOutcome.failed(f"Configuration error: {exc}")

        attempt = 0
        while True:
            attempt += 1
            try:
                response = await service.invoke(instructions, content, model)
            except ServiceError as exc:
                if not exc.retryable:
                    logger.error("rewrite failed (%s): %s", exc.category.value, exc.message)
                    return RewriteOutcome.failed(exc.message)
                if attempt >= self._policy.max_attempts:
                    logger.error("rewrite failed after %d attempts: %s", attempt, exc.message)
                    return RewriteOutcome.failed(
                        f"Service still unavailable after {attempt} attempts: {exc.message}"
                    )
                delay = self._policy.delay(attempt, self._rng)
                logger.warning(
                    "transient %s failure on attempt %d/%d, retrying in %.1fs: %s",
                    exc.category.value,
                    attempt,
                    self._policy.max_attempts,
                    delay,
                    exc.message,
                )
                await self._sleep(delay)
                continue

            if response.text is None or not response.text.strip():
                logger.error("rewrite response carried no text (stop_reason=%s)", response.stop_reason)
                return RewriteOutcome.failed(NO_TEXT_REASON)
            return RewriteOutcome.succeeded(response.text)
