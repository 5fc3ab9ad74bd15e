from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError, constr

from rewriter.core.errors import MalformedRequest
from rewriter.domain import Document, ReferenceContext, ReferenceFile


class DocumentModel(BaseModel):
    name: constr(min_length=1)
    content: str


class ReferenceFileModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    filename: str
    saved_at: str = Field(default="", alias="savedAt")

    def to_domain(self) -> ReferenceFile:
        return ReferenceFile(content=self.content, filename=self.filename, saved_at=self.saved_at)


class ReferenceContextModel(BaseModel):
    primary: ReferenceFileModel | None = None
    guide: ReferenceFileModel | None = None
    supplementary: ReferenceFileModel | None = None

    def to_domain(self) -> ReferenceContext:
        return ReferenceContext(
            primary=self.primary.to_domain() if self.primary else None,
            guide=self.guide.to_domain() if self.guide else None,
            supplementary=self.supplementary.to_domain() if self.supplementary else None,
        )


class RewriteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    documents: list[DocumentModel]
    reference_context: ReferenceContextModel | None = Field(default=None, alias="referenceContext")
    model: str | None = None

    def to_documents(self) -> tuple[Document, ...]:
        return tuple(Document(name=item.name, content=item.content) for item in self.documents)


def _describe(exc: ValidationError) -> str:
    problems: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "body"
        problems.append(f"{location}: {error.get('msg')}")
    return "; ".join(problems)


def parse_rewrite_request(raw: bytes | str) -> RewriteRequest:
    """Parse a rewrite submission, translating schema problems into ``MalformedRequest``."""

    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    if not text.strip():
        raise MalformedRequest("Request body is empty")
    try:
        return RewriteRequest.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedRequest(f"Invalid rewrite request: {_describe(exc)}") from exc
