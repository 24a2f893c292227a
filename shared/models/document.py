"""Pydantic models for uploaded documents.

Lifecycle:
  pending → processing → ready | failed

Only the extraction step moves a Document forward. Every transition returns
a new copy so that a snapshot handed to the question pipeline never changes
underneath it.
"""

from enum import Enum

from pydantic import BaseModel, Field


class DocumentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


class Document(BaseModel):
    """One uploaded PDF and, once ready, its extracted page texts.

    The raw payload is excluded from every serialisation; it stays with the
    service that owns the record.
    """

    id: str
    name: str
    size: str
    payload: bytes = Field(default=b"", exclude=True, repr=False)
    status: DocumentStatus = DocumentStatus.PENDING
    error: str | None = None
    pages: list[str] = []

    @property
    def content(self) -> str:
        """All page texts joined by a single space."""
        return " ".join(self.pages)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def is_ready(self) -> bool:
        return self.status == DocumentStatus.READY

    def is_busy(self) -> bool:
        """True while the document has not finished extraction."""
        return self.status in (DocumentStatus.PENDING, DocumentStatus.PROCESSING)

    def is_failed(self) -> bool:
        return self.status == DocumentStatus.FAILED


class DocumentSummary(BaseModel):
    """Client-facing view of a Document (no payload, no page texts)."""

    id: str
    name: str
    size: str
    status: DocumentStatus
    error: str | None = None
    page_count: int = 0

    @classmethod
    def from_document(cls, document: Document) -> "DocumentSummary":
        return cls(
            id=document.id,
            name=document.name,
            size=document.size,
            status=document.status,
            error=document.error,
            page_count=document.page_count,
        )
