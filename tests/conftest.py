import os

import pytest
from dotenv import load_dotenv

from api.base_client import BaseAIClient
from context.conversation_store import ConversationStore
from context.storage import InMemoryChatStorage
from context.title_synthesizer import TitleSynthesizer
from models.generation import GenerationResult, TokenUsage
from models.search_response import SearchResponse, Source

# Load environment variables from .env file for tests
load_dotenv()


# -------------------------------------------------------------------
# Fakes (keep tests offline & deterministic)
# -------------------------------------------------------------------


class FakeSearchClient:
    """Records every search and returns canned sources, or raises ``error``."""

    def __init__(self, sources=None, error: Exception | None = None):
        self.sources = list(sources or [])
        self.error = error
        self.calls: list[dict] = []

    def search(self, query, max_results=8, search_depth="basic"):
        self.calls.append(
            {"query": query, "max_results": max_results, "search_depth": search_depth}
        )
        if self.error is not None:
            raise self.error
        return list(self.sources)


class FakeGenerationClient(BaseAIClient):
    provider = "fake"

    def __init__(self, text: str = "Answer [1].", error: Exception | None = None):
        # don't call BaseAIClient.__init__ (no key needed)
        self.model_name = "fake-model"
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    def get_completion(self, prompt, **kwargs):
        self.calls.append({"prompt": prompt, **kwargs})
        if self.error is not None:
            raise self.error
        return GenerationResult(
            text=self.text,
            provider=self.provider,
            model=self.model_name,
            latency_ms=5,
            token_usage=TokenUsage(prompt_tokens=10, completion_tokens=5),
            finish_reason="stop",
        )


def make_sources(count: int = 2) -> list[Source]:
    return [
        Source(title=f"Source {i}", url=f"https://example.com/{i}", content=f"Content {i}", score=0.9)
        for i in range(1, count + 1)
    ]


def make_response(query: str = "What is quantum computing?", answer: str = "It is [1].") -> SearchResponse:
    return SearchResponse(query=query, answer=answer, sources=tuple(make_sources(1)))


# -------------------------------------------------------------------
# Pytest fixtures
# -------------------------------------------------------------------


@pytest.fixture()
def storage():
    return InMemoryChatStorage()


@pytest.fixture()
def store(storage):
    return ConversationStore(storage, TitleSynthesizer())


@pytest.fixture()
def sources():
    return make_sources(2)


@pytest.fixture
def mock_env(monkeypatch):
    """Fixture to mock environment variables for testing."""
    env_vars = {
        "MODEL_TYPE": "openai",
        "OPENAI_API_KEY": "test-openai-key",
        "TAVILY_API_KEY": "test-tavily-key",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def tavily_api_key():
    key = os.getenv("TAVILY_API_KEY")
    if not key:
        pytest.skip("TAVILY_API_KEY environment variable not set")
    return key
