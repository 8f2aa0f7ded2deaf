"""Pytest configuration."""
import os

os.environ["STORE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OPENAI_API_KEY"] = ""
os.environ["STORE_RETRY_BASE_DELAY"] = "0"

from types import SimpleNamespace
import asyncio

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.models import User
from app.repositories import MemoryDocumentStore, MemoryIdentityProvider, PersistenceGateway
from app.services import AutoReplyService, LoyaltyStore


class FakeCompletions:
    """Stands in for ``AsyncOpenAI().chat.completions``"""

    def __init__(self, reply="Noted, see you at six.", error=None, delay=0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts = []

    async def create(self, **kwargs):
        self.prompts.append(kwargs["messages"][0]["content"])
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def completions():
    return FakeCompletions()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def document_store():
    return MemoryDocumentStore()


@pytest.fixture
def identity():
    return MemoryIdentityProvider()


@pytest.fixture
def gateway(document_store, identity):
    return PersistenceGateway(document_store, identity, retry_attempts=3, retry_base_delay=0)


@pytest.fixture
def auto_reply(completions):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return AutoReplyService(client=client, timeout=1.0)


@pytest.fixture
def store(gateway, auto_reply, settings):
    return LoyaltyStore(gateway, auto_reply, settings)


@pytest.fixture
async def ada(store):
    """A registered client"""
    user, _ = await store.register("ada@example.com", "secret123", "Ada")
    return user


@pytest.fixture
def make_user():
    def _make(**fields):
        fields.setdefault("id", "u1")
        fields.setdefault("name", "Ada")
        fields.setdefault("email", "ada@example.com")
        return User(**fields)
    return _make


@pytest.fixture
def client():
    from app.main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/v1/auth/admin/login", json={"email": "boss@example.com", "pin": "123456"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
def register(client):
    """Register a client over HTTP and return (user json, auth headers)"""
    def _register(name="Ada", email="ada@example.com", password="secret123"):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return data["user"], {"Authorization": f"Bearer {data['accessToken']}"}
    return _register
