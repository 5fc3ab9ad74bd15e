"""Domain entities for batch rewrite jobs."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Union


@dataclass(frozen=True, slots=True)
class Document:
    """A named text document; ``name`` may carry a relative path."""

    name: str
    content: str

    def rewritten(self, content: str) -> "Document":
        return replace(self, content=content)


@dataclass(slots=True)
class ReferenceFile:
    """A persisted reference document stored in one slot."""

    content: str
    filename: str
    saved_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, str]:
        return {"content": self.content, "filename": self.filename, "savedAt": self.saved_at}

    @classmethod
    def from_dict(cls, data: Any) -> "ReferenceFile | None":
        if not isinstance(data, dict) or not data:
            return None
        return cls(
            content=str(data.get("content") or ""),
            filename=str(data.get("filename") or ""),
            saved_at=str(data.get("savedAt") or data.get("saved_at") or ""),
        )


@dataclass(slots=True)
class ReferenceContext:
    """Up to three reference slots; only ``primary`` is required for a job."""

    SLOTS: ClassVar[tuple[str, ...]] = ("primary", "guide", "supplementary")

    primary: ReferenceFile | None = None
    guide: ReferenceFile | None = None
    supplementary: ReferenceFile | None = None

    def get(self, slot: str) -> ReferenceFile | None:
        if slot not in self.SLOTS:
            raise KeyError(slot)
        return getattr(self, slot)

    def with_slot(self, slot: str, reference: ReferenceFile | None) -> "ReferenceContext":
        if slot not in self.SLOTS:
            raise KeyError(slot)
        return replace(self, **{slot: reference})

    def to_dict(self) -> dict[str, dict[str, str] | None]:
        payload: dict[str, dict[str, str] | None] = {}
        for slot in self.SLOTS:
            reference = self.get(slot)
            payload[slot] = reference.to_dict() if reference else None
        return payload

    @classmethod
    def from_dict(cls, data: Any) -> "ReferenceContext":
        if not isinstance(data, dict):
            data = {}
        return cls(**{slot: ReferenceFile.from_dict(data.get(slot)) for slot in cls.SLOTS})


@dataclass(frozen=True, slots=True)
class RewriteOutcome:
    """Result of rewriting one document."""

    success: bool
    content: str | None = None
    reason: str | None = None

    @classmethod
    def succeeded(cls, content: str) -> "RewriteOutcome":
        return cls(success=True, content=content)

    @classmethod
    def failed(cls, reason: str) -> "RewriteOutcome":
        return cls(success=False, reason=reason)


class JobStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class Job:
    """One batch rewrite request and its cursor.

    The document tuple and the reference snapshot are fixed at submission;
    ``current`` counts successfully rewritten documents and never decreases.
    """

    job_id: str
    documents: tuple[Document, ...]
    references: ReferenceContext
    model: str
    status: JobStatus = JobStatus.IDLE
    current: int = 0
    failed_at: int | None = None
    error: str | None = None

    @property
    def total(self) -> int:
        return len(self.documents)

    def start(self) -> None:
        if self.status is not JobStatus.IDLE:
            raise RuntimeError(f"job {self.job_id} already started")
        self.status = JobStatus.RUNNING

    def advance(self) -> None:
        if self.status is not JobStatus.RUNNING:
            raise RuntimeError(f"job {self.job_id} is not running")
        if self.current >= self.total:
            raise RuntimeError(f"job {self.job_id} cursor already at end")
        self.current += 1

    def complete(self) -> None:
        if self.status is not JobStatus.RUNNING or self.current != self.total:
            raise RuntimeError(f"job {self.job_id} cannot complete at {self.current}/{self.total}")
        self.status = JobStatus.COMPLETED

    def fail(self, error: str, *, failed_at: int | None = None) -> None:
        self.status = JobStatus.FAILED
        self.error = error
        self.failed_at = failed_at


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    event: ClassVar[str] = "progress"

    current: int
    total: int
    filename: str

    def to_payload(self) -> dict[str, Any]:
        return {"current": self.current, "total": self.total, "filename": self.filename}


@dataclass(frozen=True, slots=True)
class CompleteEvent:
    event: ClassVar[str] = "complete"

    archive_base64: str
    total_processed: int

    def to_payload(self) -> dict[str, Any]:
        return {"archiveBase64": self.archive_base64, "totalProcessed": self.total_processed}


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    event: ClassVar[str] = "error"

    message: str
    failed_at: int | None = None
    filename: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message}
        if self.failed_at is not None:
            payload["failedAt"] = self.failed_at
        if self.filename is not None:
            payload["filename"] = self.filename
        return payload


JobEvent = Union[ProgressEvent, CompleteEvent, ErrorEvent]
