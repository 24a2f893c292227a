"""Document lifecycle service.

Creates Document records for uploaded files and runs text extraction for
them. Extraction of several documents runs concurrently with bounded
parallelism; a failing document ends up "failed" and never fails the batch.
"""

import asyncio
import uuid

from shared.extraction.PDFTextExtractor import PDFTextExtractor
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, DocumentStatus
from shared.models.errors import ExtractionError

DOC_CONCURRENCY = 5  # max parallel extractions


def format_file_size(num_bytes: int) -> str:
    """Human-readable size: "512 B", "1.5 KB", "2.0 MB"."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


class DocumentService:
    def __init__(self, helper_config: HelperConfig, extractor: PDFTextExtractor | None = None) -> None:
        self.logging = helper_config.get_logger()
        self._extractor = extractor or PDFTextExtractor(logger=self.logging)
        self._concurrency = int(helper_config.get_number_val("DOCUMENT_CONCURRENCY", default=DOC_CONCURRENCY))

    ##########################################
    ################ CORE ####################
    ##########################################

    def create_document_record(self, name: str, payload: bytes) -> Document:
        """Create a pending Document for an uploaded file.

        Args:
            name (str): The file name shown to the user.
            payload (bytes): The raw file content.

        Returns:
            Document: A new record in the "pending" state.
        """
        return Document(
            id=uuid.uuid4().hex,
            name=name,
            size=format_file_size(len(payload)),
            payload=payload,
            status=DocumentStatus.PENDING,
        )

    async def process_document(self, document: Document) -> Document:
        """Extract the page texts of one document.

        Extraction runs in a worker thread so the event loop stays responsive.

        Args:
            document (Document): The record to process.

        Returns:
            Document: A copy in the "ready" state with its pages, or in the
                      "failed" state with an error message.
        """
        processing = document.model_copy(update={"status": DocumentStatus.PROCESSING, "error": None})
        self.logging.info("Processing document %r (%s)", document.name, document.size)
        try:
            pages = await asyncio.to_thread(self._extractor.extract, document.payload)
        except ExtractionError as e:
            self.logging.warning("Failed to process %r: %s", document.name, e)
            return processing.model_copy(
                update={"status": DocumentStatus.FAILED, "error": f"Failed to process {document.name}: {e}", "pages": []}
            )

        self.logging.info("Extracted %d page(s) from %r", len(pages), document.name)
        return processing.model_copy(update={"status": DocumentStatus.READY, "pages": pages})

    async def process_documents(self, documents: list[Document]) -> list[Document]:
        """Process several documents concurrently and join the results.

        Args:
            documents (list[Document]): Records to process; independent of each other.

        Returns:
            list[Document]: Processed copies, in input order.
        """
        if not documents:
            return []

        sem = asyncio.Semaphore(self._concurrency)
        results = await asyncio.gather(
            *[self._process_bounded(document, sem) for document in documents],
            return_exceptions=True,
        )

        processed: list[Document] = []
        for document, result in zip(documents, results):
            if isinstance(result, Exception):
                self.logging.error("Unexpected error while processing %r: %s", document.name, result)
                result = document.model_copy(
                    update={"status": DocumentStatus.FAILED, "error": f"Failed to process {document.name}: {result}"}
                )
            processed.append(result)

        ready = sum(1 for document in processed if document.is_ready())
        self.logging.info(
            "Processing complete: %d ready, %d failed.", ready, len(processed) - ready,
        )
        return processed

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _process_bounded(self, document: Document, sem: asyncio.Semaphore) -> Document:
        async with sem:
            return await self.process_document(document)
