import pytest
from fastapi.testclient import TestClient

from psychodash.auth import get_store
from psychodash.main import app
from psychodash.routers.patients import get_summarizer
from psychodash.services.summarizer import SummaryResult
from psychodash.store import MemoryStore


class FakeSummarizer:
    """Stands in for the OpenAI-backed summarizer in API tests."""

    def __init__(self, text="Stable mood. Continue weekly sessions.", ok=True):
        self.text = text
        self.ok = ok
        self.calls = []

    async def summarize_notes(self, notes):
        self.calls.append(notes)
        return SummaryResult(ok=self.ok, text=self.text)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def client(store, summarizer):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_summarizer] = lambda: summarizer
    # entering the client runs startup, which seeds the overridden store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    def _login(username="admin", password="password"):
        return client.post("/login", data={"username": username, "password": password})
    return _login
