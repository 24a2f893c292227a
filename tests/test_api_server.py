"""End-to-end tests of the HTTP surface."""

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import RecordingHandler, make_document, openai_reply
from server.api_server import create_app
from services.document_qa.QAService import NO_DOCUMENTS_ANSWER
from shared.models.document import DocumentStatus


@pytest.fixture
def handler():
    return RecordingHandler(openai_reply("The budget grew (a.pdf, page 1)."))


@pytest.fixture
def client(handler):
    with TestClient(create_app(llm_transport=httpx.MockTransport(handler))) as test_client:
        yield test_client


def add_documents(client, *documents):
    client.app.state.document_store.add_documents(list(documents))


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestDocuments:
    def test_rejects_non_pdf(self, client):
        response = client.post("/documents", files=[("files", ("notes.txt", b"hello", "text/plain"))])
        assert response.status_code == 400
        assert client.get("/documents").json()["total"] == 0

    def test_rejects_oversized_file(self, client, monkeypatch):
        monkeypatch.setenv("DOCUMENT_MAX_SIZE_MB", "0.001")
        response = client.post("/documents", files=[("files", ("big.pdf", b"x" * 2048, "application/pdf"))])
        assert response.status_code == 413

    def test_upload_processes_in_background(self, client):
        response = client.post(
            "/documents",
            files=[("files", ("broken.pdf", b"not a pdf", "application/pdf"))],
        )

        assert response.status_code == 202
        created = response.json()
        assert [d["status"] for d in created] == ["processing"]
        assert "payload" not in created[0]

        # the background task has run once the TestClient call returns
        stored = client.get(f"/documents/{created[0]['id']}").json()
        assert stored["status"] == "failed"
        assert "broken.pdf" in stored["error"]

    def test_list_and_delete(self, client):
        add_documents(client, make_document("a.pdf", ["budget"]))

        listing = client.get("/documents").json()
        assert listing["total"] == 1
        assert listing["documents"][0]["page_count"] == 1

        assert client.delete("/documents/id-a.pdf").status_code == 200
        assert client.delete("/documents/id-a.pdf").status_code == 404
        assert client.get("/documents/id-a.pdf").status_code == 404


class TestQuery:
    def test_without_documents(self, client):
        response = client.post("/query", json={"question": "What was the budget?"})
        assert response.status_code == 200
        assert response.json() == {"question": "What was the budget?", "answer": NO_DOCUMENTS_ANSWER, "sources": []}

    def test_local_answer_is_recorded_in_history(self, client):
        add_documents(client, make_document("a.pdf", ["The budget grew."]))

        response = client.post("/query", json={"question": "budget", "ai_config": {"provider": "local"}})

        body = response.json()
        assert "The budget grew." in body["answer"]
        assert body["sources"][0]["document_name"] == "a.pdf"
        history = client.get("/query/history").json()
        assert history["total"] == 1
        assert history["history"][0]["question"] == "budget"

        assert client.delete("/query/history").status_code == 200
        assert client.get("/query/history").json()["total"] == 0

    def test_remote_answer(self, client, handler):
        add_documents(client, make_document("a.pdf", ["The budget grew."]))

        response = client.post(
            "/query",
            json={"question": "budget", "ai_config": {"provider": "openai", "api_key": "sk-test"}},
        )

        assert response.json()["answer"] == "The budget grew (a.pdf, page 1)."
        assert handler.requests[0].headers["Authorization"] == "Bearer sk-test"

    def test_processing_document_blocks_query(self, client):
        add_documents(client, make_document("slow.pdf", status=DocumentStatus.PROCESSING))
        response = client.post("/query", json={"question": "budget"})
        assert '"slow.pdf"' in response.json()["answer"]

    def test_unknown_provider_is_rejected(self, client):
        response = client.post("/query", json={"question": "budget", "ai_config": {"provider": "pigeon"}})
        assert response.status_code == 422

    def test_empty_question_is_rejected(self, client):
        assert client.post("/query", json={"question": ""}).status_code == 422

    def test_provider_not_enabled_on_server(self, handler, monkeypatch):
        monkeypatch.setenv("LLM_ENGINES", "[openai]")
        with TestClient(create_app(llm_transport=httpx.MockTransport(handler))) as openai_only:
            add_documents(openai_only, make_document("a.pdf", ["The budget grew."]))

            response = openai_only.post(
                "/query",
                json={"question": "budget", "ai_config": {"provider": "anthropic", "api_key": "k"}},
            )

        assert response.status_code == 400
        assert "not enabled" in response.json()["detail"]
        assert handler.requests == []


class TestAuth:
    def test_api_key_required_when_configured(self, client, monkeypatch):
        monkeypatch.setenv("APP_API_KEY", "secret")

        assert client.get("/documents").status_code == 401
        assert client.get("/documents", headers={"X-API-Key": "wrong"}).status_code == 401
        assert client.get("/documents", headers={"X-API-Key": "secret"}).status_code == 200
