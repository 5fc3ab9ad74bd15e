from __future__ import annotations

import json

from rewriter.domain import JobEvent

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_event(event: JobEvent) -> str:
    """Frame one event as a Server-Sent-Events message."""

    data = json.dumps(event.to_payload(), ensure_ascii=False)
    return f"event: {event.event}\ndata: {data}\n\n"
