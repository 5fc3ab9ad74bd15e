from __future__ import annotations

from pathlib import PurePosixPath
from typing import Sequence

from rewriter.core.errors import (
    BatchTooLarge,
    DocumentCountOutOfRange,
    EmptyDocument,
    InvalidReferenceFile,
    MissingRequiredReference,
    UnsupportedFileType,
)
from rewriter.domain import Document, ReferenceContext

MAX_DOCUMENTS = 200
MAX_BATCH_BYTES = 10 * 1024 * 1024
DOCUMENT_EXTENSION = ".txt"

REFERENCE_EXTENSIONS = frozenset({".md", ".txt"})
MAX_REFERENCE_BYTES = 1024 * 1024


def admit(documents: Sequence[Document], references: ReferenceContext) -> list[Document]:
    """Admit a whole batch or raise the first violated constraint."""

    if references.primary is None:
        raise MissingRequiredReference("Primary reference is required. Please upload it to the primary slot.")

    if not documents:
        raise DocumentCountOutOfRange("No files provided")
    if len(documents) > MAX_DOCUMENTS:
        raise DocumentCountOutOfRange(f"Too many files. Maximum is {MAX_DOCUMENTS}, got {len(documents)}")

    unsupported = [doc.name for doc in documents if not doc.name.lower().endswith(DOCUMENT_EXTENSION)]
    if unsupported:
        raise UnsupportedFileType(
            f"Invalid file types: {', '.join(unsupported)}. Only {DOCUMENT_EXTENSION} files are accepted.",
            unsupported,
        )

    empty = [doc.name for doc in documents if not doc.content or not doc.content.strip()]
    if empty:
        raise EmptyDocument(f"Empty files detected: {', '.join(empty)}", empty)

    total_size = sum(len(doc.content) for doc in documents)
    if total_size > MAX_BATCH_BYTES:
        size_mb = total_size / (1024 * 1024)
        raise BatchTooLarge(f"Total file size too large. Maximum is 10MB, got {size_mb:.2f}MB")

    return list(documents)


def validate_reference_file(content: str, filename: str) -> None:
    suffix = PurePosixPath(filename.replace("\\", "/")).suffix.lower()
    if suffix not in REFERENCE_EXTENSIONS:
        raise InvalidReferenceFile(
            f"Invalid file type: {filename}. Only .md and .txt files are accepted for reference slots."
        )
    if not content or not content.strip():
        raise InvalidReferenceFile(f"File is empty: {filename}")
    if len(content) > MAX_REFERENCE_BYTES:
        raise InvalidReferenceFile(f"Reference file too large: {filename}. Maximum is 1MB.")
