"""Shared fixtures for the test suite."""

import asyncio
import json
import logging
import os
import tempfile

import httpx
import pytest

# logs of the app under test go to a throwaway directory
os.environ.setdefault("ROOT_DIR", tempfile.mkdtemp(prefix="pdf_query_tests_"))

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, DocumentStatus

_ENV_KEYS = (
    "LLM_ENGINES",
    "LLM_TIMEOUT",
    "LLM_TEMPERATURE",
    "LLM_MAX_TOKENS",
    "LLM_OPENAI_BASE_URL",
    "LLM_ANTHROPIC_BASE_URL",
    "QA_MAX_PASSAGES",
    "QA_PASSAGE_CHAR_LIMIT",
    "DOCUMENT_CONCURRENCY",
    "DOCUMENT_MAX_SIZE_MB",
    "APP_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Run every test against the built-in defaults."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=logging.getLogger("pdf_query.tests"))


def make_document(name: str, pages: list[str] | None = None, status: DocumentStatus = DocumentStatus.READY) -> Document:
    return Document(
        id=f"id-{name}",
        name=name,
        size="1.0 KB",
        status=status,
        pages=pages or [],
    )


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    def json_body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


def boot_client(client, handler):
    """Boot an LLM client on a mock transport and return it."""
    asyncio.run(client.boot(transport=httpx.MockTransport(handler)))
    return client


def openai_reply(text: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "chatcmpl-1",
            "model": "gpt-4o-mini",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": text}, "finish_reason": "stop"}],
        },
    )


def anthropic_reply(text: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "msg_1",
            "type": "message",
            "model": "claude-3-5-haiku-latest",
            "content": [{"type": "text", "text": text}],
            "stop_reason": "end_turn",
        },
    )


def provider_error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"message": message, "type": "error"}})
