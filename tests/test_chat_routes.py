import pytest
from fastapi.testclient import TestClient

from docs_assistant.main import app
from docs_assistant.api.dependencies import (
    get_docs_index,
    get_llm_client,
    get_session_store,
)
from docs_assistant.core.errors import CompletionError, EmbeddingError
from docs_assistant.prompts import NOT_FOUND_REPLY
from docs_assistant.sessions.store import SessionStore

from conftest import RENEWALS_URL


@pytest.fixture
def store():
    return SessionStore(max_turns=5)


@pytest.fixture
def client(seeded_index, mock_llm, store):
    app.dependency_overrides[get_docs_index] = lambda: seeded_index
    app.dependency_overrides[get_llm_client] = lambda: mock_llm
    app.dependency_overrides[get_session_store] = lambda: store

    # No context manager: the lifespan (API key check) is not run.
    yield TestClient(app)

    app.dependency_overrides = {}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_free_chat_defaults(client, mock_llm, store):
    mock_llm.chat.return_value = "Hello!"
    resp = client.post("/chat", json={"message": "Hello there, how are you today?"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["reply"] == "Hello!"
    assert "language" in data
    assert "citations" not in data
    assert store.has_session("default-user")


def test_free_chat_uses_user_id(client, store):
    resp = client.post("/chat", json={"message": "hi", "userId": "alice", "mode": "chat"})
    assert resp.status_code == 200
    assert store.has_session("alice")


def test_docs_mode_answers_with_citations(client):
    resp = client.post("/chat", json={"message": "How do I renew a subscription?", "mode": "docs"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["reply"]
    assert RENEWALS_URL in [c["url"] for c in data["citations"]]
    assert "language" not in data


def test_docs_mode_fallback(client, mock_llm):
    resp = client.post("/chat", json={"message": "What's the weather today?", "mode": "docs"})

    assert resp.status_code == 200
    assert resp.json() == {"reply": NOT_FOUND_REPLY, "citations": []}
    mock_llm.chat.assert_not_awaited()


def test_docs_mode_does_not_touch_sessions(client, store):
    client.post("/chat", json={"message": "renew?", "mode": "docs", "userId": "alice"})
    assert len(store) == 0


def test_out_of_scope_source_forbidden(client, mock_llm, mock_crawler, keyword_embedder):
    resp = client.post("/chat", json={
        "message": "renew?",
        "mode": "docs",
        "allowedSources": ["https://example.com/manual/"],
    })

    assert resp.status_code == 403
    assert resp.json()["error"] == "forbidden_source"
    mock_crawler.crawl.assert_not_awaited()
    keyword_embedder.embed.assert_not_awaited()
    mock_llm.chat.assert_not_awaited()


@pytest.mark.parametrize("payload", [
    {"mode": "docs"},
    {"mode": "chat"},
    {"message": "", "mode": "docs"},
])
def test_missing_message_rejected(client, mock_llm, keyword_embedder, payload):
    resp = client.post("/chat", json=payload)

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_request"
    keyword_embedder.embed.assert_not_awaited()
    mock_llm.chat.assert_not_awaited()


def test_blank_message_rejected(client):
    resp = client.post("/chat", json={"message": "   "})
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_request"


def test_unknown_mode_rejected(client):
    resp = client.post("/chat", json={"message": "hi", "mode": "admin"})
    assert resp.status_code == 422


def test_completion_failure_is_502(client, mock_llm, store):
    mock_llm.chat.side_effect = CompletionError("upstream down")
    resp = client.post("/chat", json={"message": "hi", "userId": "alice"})

    assert resp.status_code == 502
    assert resp.json() == {
        "error": "upstream_service_error",
        "detail": "Failed to fetch AI response",
    }
    assert store.get_history("alice") == []


def test_embedding_failure_is_502(client, keyword_embedder):
    keyword_embedder.embed.side_effect = EmbeddingError("quota")
    resp = client.post("/chat", json={"message": "renew?", "mode": "docs"})
    assert resp.status_code == 502


def test_index_stats(client):
    resp = client.get("/index/stats")
    assert resp.status_code == 200
    data = resp.json()
    assert data["state"] == "ready"
    assert data["total_chunks"] == 2
    assert data["total_pages"] == 2
