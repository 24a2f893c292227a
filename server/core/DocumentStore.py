"""In-memory store of the uploaded documents and the question history.

The store belongs to the server process, which is the caller of the question
pipeline. All access happens on the event loop, so no locking is needed.
"""

from shared.models.answer import QuestionAnswer
from shared.models.document import Document


class DocumentStore:
    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._history: list[QuestionAnswer] = []

    ################ DOCUMENTS ##################
    def add_documents(self, documents: list[Document]) -> None:
        for document in documents:
            self._documents[document.id] = document

    def merge_documents(self, documents: list[Document]) -> int:
        """Replace stored records by their processed versions.

        Records removed while they were being processed stay removed.

        Returns:
            int: Number of records that were updated.
        """
        updated = 0
        for document in documents:
            if document.id in self._documents:
                self._documents[document.id] = document
                updated += 1
        return updated

    def get_document(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def get_documents(self) -> list[Document]:
        """Snapshot of all documents in upload order."""
        return list(self._documents.values())

    def remove_document(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None

    ################ HISTORY ##################
    def add_answer(self, answer: QuestionAnswer) -> None:
        self._history.append(answer)

    def get_history(self) -> list[QuestionAnswer]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
