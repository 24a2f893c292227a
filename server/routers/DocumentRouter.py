from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Request, UploadFile

from server.core.DocumentStore import DocumentStore
from server.dependencies.auth import verify_api_key
from server.models.responses import DocumentListResponse
from services.document_qa.DocumentService import DocumentService
from shared.models.document import Document, DocumentStatus, DocumentSummary

router = APIRouter(prefix="/documents", tags=["documents"])

DEFAULT_MAX_SIZE_MB = 5


async def process_and_merge(
    document_service: DocumentService,
    store: DocumentStore,
    documents: list[Document],
) -> None:
    """Process a batch of uploaded documents and write the results back to the store."""
    processed = await document_service.process_documents(documents)
    store.merge_documents(processed)


@router.post("", status_code=202)
async def upload_documents(
    request: Request,
    background_tasks: BackgroundTasks,
    files: list[UploadFile] = File(...),
    _: None = Depends(verify_api_key),
) -> list[DocumentSummary]:
    """Accept one or more PDF files and start extracting their text.

    The records are stored immediately in the "processing" state; extraction
    of the whole batch runs concurrently in the background.

    Args:
        request (Request): FastAPI request (provides app.state services).
        background_tasks (BackgroundTasks): FastAPI background task queue.
        files (list[UploadFile]): The uploaded PDF files.
        _ (None): Auth dependency result (unused).

    Returns:
        list[DocumentSummary]: The created records.

    Raises:
        HTTPException: 400 for a non-PDF file name, 413 for a file above the size limit.
    """
    config = request.app.state.helper_config
    document_service: DocumentService = request.app.state.document_service
    store: DocumentStore = request.app.state.document_store
    max_size_mb = config.get_number_val("DOCUMENT_MAX_SIZE_MB", default=DEFAULT_MAX_SIZE_MB)

    records: list[Document] = []
    for upload in files:
        name = upload.filename or "document.pdf"
        if not name.lower().endswith(".pdf"):
            raise HTTPException(status_code=400, detail=f"Only PDF files are supported: '{name}'.")
        payload = await upload.read()
        if len(payload) > max_size_mb * 1024 * 1024:
            raise HTTPException(status_code=413, detail=f"'{name}' exceeds the {max_size_mb} MB limit.")
        record = document_service.create_document_record(name, payload)
        records.append(record.model_copy(update={"status": DocumentStatus.PROCESSING}))

    store.add_documents(records)
    background_tasks.add_task(process_and_merge, document_service, store, records)
    request.app.state.logging.info("Accepted %d document(s) for processing.", len(records))
    return [DocumentSummary.from_document(record) for record in records]


@router.get("")
async def list_documents(
    request: Request,
    _: None = Depends(verify_api_key),
) -> DocumentListResponse:
    store: DocumentStore = request.app.state.document_store
    documents = [DocumentSummary.from_document(document) for document in store.get_documents()]
    return DocumentListResponse(documents=documents, total=len(documents))


@router.get("/{document_id}")
async def get_document(
    request: Request,
    document_id: str,
    _: None = Depends(verify_api_key),
) -> DocumentSummary:
    document = request.app.state.document_store.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found.")
    return DocumentSummary.from_document(document)


@router.delete("/{document_id}")
async def delete_document(
    request: Request,
    document_id: str,
    _: None = Depends(verify_api_key),
) -> dict:
    if not request.app.state.document_store.remove_document(document_id):
        raise HTTPException(status_code=404, detail="Document not found.")
    return {"status": "deleted", "document_id": document_id}
