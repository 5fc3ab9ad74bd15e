"""ZIP packaging of rewritten documents and decomposition of uploaded archives."""
from __future__ import annotations

import base64
import io
import zipfile
from typing import Iterable

from rewriter.core.errors import MalformedRequest
from rewriter.domain import Document

COMPRESSION_LEVEL = 6
# Fixed entry timestamp keeps archives byte-identical for identical inputs.
ENTRY_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def _entry_name(name: str) -> str:
    """Relative entry path with empty, "." and ".." segments removed."""

    parts = [part for part in name.replace("\\", "/").split("/") if part not in ("", ".", "..")]
    return "/".join(parts)


def assemble_archive(documents: Iterable[Document]) -> bytes:
    """Build a deflated ZIP with one entry per document, named by its path."""

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESSION_LEVEL) as archive:
        for document in documents:
            info = zipfile.ZipInfo(_entry_name(document.name), date_time=ENTRY_TIMESTAMP)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            archive.writestr(info, document.content.encode("utf-8"), compresslevel=COMPRESSION_LEVEL)
    return buffer.getvalue()


def encode_archive(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_text(payload: bytes) -> str:
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError:
        return payload.decode("latin-1")


def _is_skipped(path: str) -> bool:
    basename = path.rsplit("/", 1)[-1]
    if not basename or basename.startswith("."):
        return True
    return "__MACOSX" in path


def extract_documents(data: bytes, *, extension: str = ".txt") -> list[Document]:
    """Read the text entries of an uploaded ZIP, preserving relative paths."""

    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise MalformedRequest(f"Uploaded file is not a valid ZIP archive: {exc}") from exc

    documents: list[Document] = []
    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            name = info.filename
            if not name.lower().endswith(extension) or _is_skipped(name):
                continue
            documents.append(Document(name=name, content=decode_text(archive.read(info))))
    return documents
