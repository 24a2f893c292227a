from fastapi import APIRouter, Depends, HTTPException, Request

from server.core.DocumentStore import DocumentStore
from server.dependencies.auth import verify_api_key
from server.models.requests import QueryRequest
from server.models.responses import HistoryResponse
from shared.models.answer import QuestionAnswer

router = APIRouter(prefix="/query", tags=["query"])


@router.post("")
async def ask_question(
    request: Request,
    body: QueryRequest,
    _: None = Depends(verify_api_key),
) -> QuestionAnswer:
    """Answer a question about the uploaded documents and record it in the history.

    Args:
        request (Request): FastAPI request (provides app.state.qa_service).
        body (QueryRequest): JSON body with the question and the AI provider settings.
        _ (None): Auth dependency result (unused).

    Returns:
        QuestionAnswer: The answer and up to three source citations.

    Raises:
        HTTPException: 400 if the requested AI provider is not enabled on this server.
    """
    store: DocumentStore = request.app.state.document_store
    try:
        result = await request.app.state.qa_service.answer_question(
            body.question, store.get_documents(), body.ai_config
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    store.add_answer(result)
    return result


@router.get("/history")
async def get_history(
    request: Request,
    _: None = Depends(verify_api_key),
) -> HistoryResponse:
    history = request.app.state.document_store.get_history()
    return HistoryResponse(history=history, total=len(history))


@router.delete("/history")
async def clear_history(
    request: Request,
    _: None = Depends(verify_api_key),
) -> dict:
    request.app.state.document_store.clear_history()
    return {"status": "cleared"}
