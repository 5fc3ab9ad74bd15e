from __future__ import annotations

from fastapi import APIRouter, HTTPException

from rewriter.application import get_reference_service
from rewriter.core.errors import StorageError, ValidationError

router = APIRouter(prefix="/references", tags=["references"])


@router.get("")
def load_references() -> dict:
    service = get_reference_service()
    try:
        context = service.load_references()
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to load reference files") from exc
    return context.to_dict()


@router.post("")
def save_reference(payload: dict) -> dict:
    slot = payload.get("slot")
    content = payload.get("content")
    filename = payload.get("filename")
    if not slot or not isinstance(slot, str):
        raise HTTPException(status_code=400, detail="slot is required")
    if not content or not isinstance(content, str):
        raise HTTPException(status_code=400, detail="Content is required and must be a string")
    if not filename or not isinstance(filename, str):
        raise HTTPException(status_code=400, detail="Filename is required and must be a string")

    service = get_reference_service()
    try:
        saved = service.save_reference(slot, content, filename)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to save reference file") from exc
    return {"success": True, "slot": slot, "savedAt": saved.saved_at}


@router.delete("/{slot}")
def clear_reference(slot: str) -> dict:
    service = get_reference_service()
    try:
        service.clear_reference(slot)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to clear reference file") from exc
    return {"success": True, "slot": slot}
