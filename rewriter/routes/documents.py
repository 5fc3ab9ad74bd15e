from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, UploadFile

from rewriter.core.archive import decode_text, extract_documents
from rewriter.core.errors import ValidationError
from rewriter.domain import Document

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("/extract")
async def extract_uploads(files: list[UploadFile] = File(...)) -> dict:
    """Turn uploaded .txt files and .zip archives into a document set."""
    if not files:
        raise HTTPException(status_code=400, detail="At least one file must be provided")

    documents: list[Document] = []
    for upload in files:
        try:
            if not upload.filename:
                raise HTTPException(status_code=400, detail="Uploaded file must have a filename")

            payload = await upload.read()
            lowered = upload.filename.lower()
            if lowered.endswith(".zip"):
                try:
                    documents.extend(extract_documents(payload))
                except ValidationError as exc:
                    raise HTTPException(status_code=400, detail=str(exc)) from exc
            elif lowered.endswith(".txt"):
                documents.append(Document(name=upload.filename, content=decode_text(payload)))
            else:
                raise HTTPException(
                    status_code=400,
                    detail=f"Unsupported upload: {upload.filename}. Only .txt and .zip files are accepted.",
                )
        finally:
            await upload.close()

    items = [{"name": doc.name, "content": doc.content} for doc in documents]
    return {"items": items, "total": len(items)}
