"""
Test Suite: FastAPI Contract & Error Mapping

Validates the public HTTP contract of the AskWeb server WITHOUT calling
Tavily or any language model. A real AnswerOrchestrator is wired to fake
retrieval and generation clients and injected with FastAPI dependency
overrides, together with an in-memory ConversationStore.

Covers:
- Health and status endpoints
- Input validation (blank queries, malformed bodies) answered with 400
- Upstream failure kinds mapped to their HTTP status codes
- Missing API keys reported as 500 "API keys not configured"
- Chat history routes and the chat message flow
"""

import pytest
from conftest import FakeGenerationClient, FakeSearchClient, make_sources
from fastapi.testclient import TestClient

from context.conversation_store import ConversationStore
from context.storage import InMemoryChatStorage
from models.errors import ConfigurationError, UpstreamErrorKind, UpstreamUnavailable
from orchestrator.core import AnswerOrchestrator
from server import dependencies as deps
from server.app import create_app

pytestmark = pytest.mark.integration


# -------------------------------------------------------------------
# Pytest fixtures
# -------------------------------------------------------------------


@pytest.fixture()
def search_client():
    return FakeSearchClient(make_sources(2))


@pytest.fixture()
def generation_client():
    return FakeGenerationClient("Quantum computers use qubits [1][2].")


@pytest.fixture()
def chat_store():
    return ConversationStore(InMemoryChatStorage())


@pytest.fixture()
def app(search_client, generation_client, chat_store, monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)
    app = create_app()

    # Clear singleton cache to avoid cross-test leakage
    for dependency in (deps.get_orchestrator, deps.get_conversation_store):
        if hasattr(dependency, "_instance"):
            delattr(dependency, "_instance")

    orchestrator = AnswerOrchestrator(search_client, generation_client)
    app.dependency_overrides[deps.get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[deps.get_conversation_store] = lambda: chat_store
    return app


@pytest.fixture()
def client(app):
    with TestClient(app) as client:
        yield client


def _unconfigured():
    raise ConfigurationError("API keys not configured", details="TAVILY_API_KEY not found")


# -------------------------------------------------------------------
# Health & search
# -------------------------------------------------------------------


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert r.json()["timestamp"].endswith("Z")


def test_search_status_message(client):
    r = client.get("/api/search")
    assert r.status_code == 200
    assert r.json() == {"message": "Search API is running. Use POST method to search."}


def test_search_returns_answer_sources_and_citations(client):
    r = client.post("/api/search", json={"query": "What is quantum computing?"})

    assert r.status_code == 200
    body = r.json()
    assert body["query"] == "What is quantum computing?"
    assert body["answer"] == "Quantum computers use qubits [1][2]."
    assert [s["url"] for s in body["sources"]] == ["https://example.com/1", "https://example.com/2"]
    assert [c["index"] for c in body["citations"]] == [1, 2]


def test_search_forwards_conversation_context(client, generation_client):
    payload = {
        "query": "How are they built?",
        "conversationContext": [{"query": "What is quantum computing?", "answer": "Qubits."}],
    }
    r = client.post("/api/search", json=payload)

    assert r.status_code == 200
    assert '1. User asked: "What is quantum computing?"' in generation_client.calls[0]["prompt"]


@pytest.mark.parametrize("payload", [{}, {"query": ""}, {"query": "   "}, {"query": None}])
def test_blank_query_is_400_without_upstream_calls(client, search_client, payload):
    r = client.post("/api/search", json=payload)

    assert r.status_code == 400
    assert r.json() == {"error": "Query is required and must be a non-empty string"}
    assert search_client.calls == []


def test_blank_query_is_400_even_without_api_keys(app, client):
    app.dependency_overrides[deps.get_orchestrator] = _unconfigured
    r = client.post("/api/search", json={"query": ""})
    assert r.status_code == 400


def test_malformed_body_is_400(client):
    r = client.post("/api/search", json={"query": 123})

    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"


def test_missing_api_keys_is_500(app, client):
    app.dependency_overrides[deps.get_orchestrator] = _unconfigured
    r = client.post("/api/search", json={"query": "What is quantum computing?"})

    assert r.status_code == 500
    assert r.json() == {"error": "API keys not configured"}


def test_details_only_exposed_in_development(app, client, monkeypatch):
    monkeypatch.setenv("APP_ENV", "development")
    app.dependency_overrides[deps.get_orchestrator] = _unconfigured
    r = client.post("/api/search", json={"query": "What is quantum computing?"})

    assert r.json()["details"] == "TAVILY_API_KEY not found"


@pytest.mark.parametrize(
    "kind, status, message",
    [
        (UpstreamErrorKind.QUOTA_EXCEEDED, 429, "API quota exceeded. Please try again later."),
        (UpstreamErrorKind.INVALID_CREDENTIALS, 401, "Invalid API configuration"),
        (UpstreamErrorKind.NETWORK, 503, "Network error. Please check your connection and try again."),
        (
            UpstreamErrorKind.GENERIC,
            500,
            "An error occurred while processing your request. Please try again.",
        ),
    ],
)
def test_upstream_failures_map_to_status_codes(client, search_client, kind, status, message):
    search_client.error = UpstreamUnavailable(kind, details="provider said no")
    r = client.post("/api/search", json={"query": "What is quantum computing?"})

    assert r.status_code == status
    assert r.json() == {"error": message}


# -------------------------------------------------------------------
# Chat history
# -------------------------------------------------------------------


def test_create_and_list_chats(client):
    r = client.post("/api/chats", json={"firstQuery": "Quantum computing"})
    assert r.status_code == 201
    chat_id = r.json()["chatId"]

    history = client.get("/api/chats").json()
    assert history["currentChatId"] == chat_id
    assert history["isLoading"] is False
    assert history["chats"][0]["title"] == "Quantum computing"
    assert history["chats"][0]["createdAt"].endswith("Z")


def test_create_chat_without_body(client):
    r = client.post("/api/chats")
    assert r.status_code == 201
    assert client.get("/api/chats/current").json()["title"] == "New Chat"


def test_switch_rename_delete_and_clear(client):
    first = client.post("/api/chats").json()["chatId"]
    second = client.post("/api/chats").json()["chatId"]

    r = client.put("/api/chats/current", json={"chatId": first})
    assert r.json()["currentChatId"] == first
    assert client.get("/api/chats/current").json()["id"] == first

    r = client.patch(f"/api/chats/{second}", json={"title": "Renamed"})
    assert r.status_code == 200
    assert r.json()["title"] == "Renamed"

    r = client.delete(f"/api/chats/{first}")
    assert [c["id"] for c in r.json()["chats"]] == [second]
    assert r.json()["currentChatId"] == second

    r = client.delete("/api/chats")
    assert r.json() == {"chats": [], "currentChatId": None, "isLoading": False}


def test_current_chat_is_null_when_unset(client):
    r = client.get("/api/chats/current")
    assert r.status_code == 200
    assert r.json() is None


def test_rename_unknown_chat_is_404(client):
    r = client.patch("/api/chats/chat_missing", json={"title": "Anything"})
    assert r.status_code == 404
    assert r.json()["error"] == "Chat not found"


def test_rename_with_empty_title_is_400(client):
    chat_id = client.post("/api/chats").json()["chatId"]
    r = client.patch(f"/api/chats/{chat_id}", json={"title": ""})
    assert r.status_code == 400


@pytest.mark.parametrize("title", ["   ", "\t\n"])
def test_rename_with_blank_title_is_400_not_404(client, chat_store, title):
    chat_id = client.post("/api/chats").json()["chatId"]
    r = client.patch(f"/api/chats/{chat_id}", json={"title": title})

    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"
    assert chat_store.get_chat(chat_id).title == "New Chat"


def test_chat_message_appends_and_forwards_context(client, chat_store, generation_client):
    r = client.post("/api/chats/messages", json={"query": "What is quantum computing?"})
    assert r.status_code == 200
    body = r.json()
    chat_id = body["chatId"]
    assert body["message"]["query"] == "What is quantum computing?"
    assert body["message"]["response"]["citations"][0]["index"] == 1
    assert body["message"]["id"].startswith("msg_")

    r = client.post("/api/chats/messages", json={"query": "How are qubits built?"})
    assert r.json()["chatId"] == chat_id

    assert len(chat_store.get_chat(chat_id).messages) == 2
    assert '1. User asked: "What is quantum computing?"' in generation_client.calls[1]["prompt"]
    assert chat_store.is_loading is False


def test_failed_chat_message_leaves_store_untouched(client, chat_store, search_client):
    chat_id = client.post("/api/chats").json()["chatId"]
    search_client.error = UpstreamUnavailable(UpstreamErrorKind.NETWORK)

    r = client.post("/api/chats/messages", json={"query": "What is quantum computing?"})

    assert r.status_code == 503
    assert chat_store.get_chat(chat_id).messages == []
    assert chat_store.is_loading is False


def test_blank_chat_message_is_400(client, chat_store):
    r = client.post("/api/chats/messages", json={"query": "  "})

    assert r.status_code == 400
    assert chat_store.chats == []
