"""FastAPI application entry point for the PDF query service."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.llm.LLMClientManager import LLMClientManager
from services.document_qa.DocumentService import DocumentService
from services.document_qa.QAService import QAService
from server.core.DocumentStore import DocumentStore
from server.routers.DocumentRouter import router as document_router
from server.routers.QueryRouter import router as query_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


def create_app(llm_transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        llm_transport: Optional transport for the provider HTTP clients
                       (e.g. httpx.MockTransport in tests).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # when the app starts
        app.state.logging = logging
        app.state.helper_config = HelperConfig(logger=logging)

        llm_clients = LLMClientManager(helper_config=app.state.helper_config).get_clients()

        logging.info("Booting %d LLM client(s)...", len(llm_clients))
        for client in llm_clients.values():
            await client.boot(transport=llm_transport)

        app.state.llm_clients = llm_clients
        app.state.document_store = DocumentStore()
        app.state.document_service = DocumentService(helper_config=app.state.helper_config)
        app.state.qa_service = QAService(
            helper_config=app.state.helper_config,
            llm_clients=llm_clients,
        )
        logging.info("PDF query service ready.", color="green")

        # while the app is running...
        yield

        # when the app shuts down, close all client connections
        logging.info("Shutting down, closing all clients...")
        for client in llm_clients.values():
            await client.close()
        logging.info("All clients closed.")

    app = FastAPI(
        title="pdf_query",
        description=(
            "Upload PDF documents and ask questions about them. "
            "Answers come from a remote AI provider (OpenAI, Anthropic) or, "
            "without an API key, from a local keyword search over the pages."
        ),
        version=app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(document_router)
    app.include_router(query_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok", "version": app_version}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting pdf_query API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", os.getcwd()),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
