"""Pydantic models produced by the question pipeline.

Passage            one scored page of one ready document.
Citation           a short excerpt pointing at a document page.
AssembledContext   the bounded prompt context plus its citations.
QuestionAnswer     the immutable result of one query.
"""

from pydantic import BaseModel, ConfigDict, Field


class Passage(BaseModel):
    """A read-only view of one page, scored against a question."""

    model_config = ConfigDict(frozen=True)

    document_name: str
    page_number: int
    text: str
    score: float


class Citation(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_name: str
    page_number: int
    excerpt: str


class AssembledContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    citations: list[Citation] = []


class QuestionAnswer(BaseModel):
    """Immutable record of one answered question."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    sources: list[Citation] = Field(default_factory=list, max_length=3)
