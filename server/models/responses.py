from pydantic import BaseModel

from shared.models.answer import QuestionAnswer
from shared.models.document import DocumentSummary


class DocumentListResponse(BaseModel):
    documents: list[DocumentSummary]
    total: int


class HistoryResponse(BaseModel):
    history: list[QuestionAnswer]
    total: int
