from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from rewriter.application import reset_reference_state, reset_rewrite_state
from rewriter.core.errors import ConfigurationError
from rewriter.infrastructure import RewriteResponse, configure_rewrite_service


class ScriptedRewriteService:
    """Rewrite service double that replays a script of responses and errors.

    Script items may be a string (returned as text), a ``RewriteResponse`` or an
    exception instance (raised).  Once the script runs out every call succeeds
    with ``"rewritten <n>"``.
    """

    def __init__(self, script: list | None = None, *, configured: bool = True) -> None:
        self.script = list(script or [])
        self.configured = configured
        self.calls: list[tuple[str, str, str]] = []

    def check_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("Anthropic API key is not configured.")

    async def invoke(self, system_instructions: str, user_content: str, model: str) -> RewriteResponse:
        self.calls.append((system_instructions, user_content, model))
        if self.script:
            item = self.script.pop(0)
            if isinstance(item, BaseException):
                raise item
            if isinstance(item, RewriteResponse):
                return item
            return RewriteResponse(text=item)
        return RewriteResponse(text=f"rewritten {len(self.calls)}")


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def reset_state():
    reset_reference_state()
    reset_rewrite_state()
    configure_rewrite_service(None)
    yield
    reset_reference_state()
    reset_rewrite_state()
    configure_rewrite_service(None)


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


def parse_stream(body: str) -> list[tuple[str, dict]]:
    """Split an event-stream body back into ``(event, payload)`` pairs.

    Only CR and LF end a line in an event stream, so ``str.splitlines`` is not used.
    """

    events: list[tuple[str, dict]] = []
    for block in body.replace("\r\n", "\n").split("\n\n"):
        if not block.strip():
            continue
        event_type = "message"
        data_lines: list[str] = []
        for line in block.split("\n"):
            line = line.rstrip("\r")
            if line.startswith("event:"):
                event_type = line[len("event:"):].strip()
            elif line.startswith("data:"):
                data_lines.append(line[len("data:"):].lstrip())
        events.append((event_type, json.loads("\n".join(data_lines)) if data_lines else {}))
    return events
