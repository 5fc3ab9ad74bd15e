from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from rewriter.application import get_rewrite_job_service
from rewriter.core.events import STREAM_HEADERS

router = APIRouter(tags=["rewrite"])


@router.post("/rewrite")
async def rewrite_documents(request: Request) -> StreamingResponse:
    """Rewrite a batch of documents, streaming progress as server-sent events."""
    body = await request.body()
    service = get_rewrite_job_service()
    return StreamingResponse(
        service.stream(body, is_disconnected=request.is_disconnected),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
