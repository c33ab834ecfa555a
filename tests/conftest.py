from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from chatrelay.api.deps import get_generation_client
from chatrelay.core.config import Settings
from chatrelay.core.database import Database
from chatrelay.main import create_app
from chatrelay.services.ollama_client import GenerationClient
from chatrelay.services.user_store import UserStore

OLLAMA_URL = "http://ollama.test:11434"
MODEL = "llama3.2:1b-instruct-q4_K_M"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        OLLAMA_URL=OLLAMA_URL,
        OLLAMA_MODEL=MODEL,
        BCRYPT_ROUNDS=4,
    )


@pytest.fixture
async def db(settings):
    database = Database(settings.DATABASE_URL)
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def store(db) -> UserStore:
    return UserStore(db)


def make_generation_client(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> GenerationClient:
    """GenerationClient whose HTTP traffic is answered by `handler`."""
    return GenerationClient(
        base_url=OLLAMA_URL,
        model=MODEL,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


class FakeOllama:
    """Records requests and answers them with a configurable handler."""

    def __init__(self):
        self.requests = []
        self.handler = self.default_handler

    def default_handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/generate":
            return httpx.Response(200, json={"model": MODEL, "response": "Hello there!", "done": True})
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": [{"name": MODEL}, {"name": "mistral:7b"}]})
        return httpx.Response(404, json={"error": "not found"})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def fake_ollama() -> FakeOllama:
    return FakeOllama()


@pytest.fixture
def client(settings, fake_ollama):
    app = create_app(settings)
    generation_client = make_generation_client(fake_ollama)
    app.dependency_overrides[get_generation_client] = lambda: generation_client
    with TestClient(app) as test_client:
        yield test_client
