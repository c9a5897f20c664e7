# tests/conftest.py
from typing import AsyncGenerator, Callable, Dict, List, Set, Union

import httpx
import mongomock
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import ServerSelectionTimeoutError

from backoffice.core.config import Settings
from backoffice.core.document_store import DocumentStore
from backoffice.main import create_app

# Operações do driver que falham quando a coleção está em `failing_collections`
FAILING_METHODS = ("find", "find_one", "find_one_and_update", "find_one_and_delete")


# --- Terceiros (Correios, Stripe, NFe) via httpx.MockTransport ---
UpstreamReply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class UpstreamStub:
    """Respostas por host; guarda todas as requisições recebidas."""

    def __init__(self):
        self.replies: Dict[str, UpstreamReply] = {}
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.get(request.url.host)
        if reply is None:
            return httpx.Response(404, json={"error": "no stub"})
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply


def make_settings(**overrides) -> Settings:
    values = {
        "LOG_LEVEL": "DEBUG",
        "MONGODB_URI": "mongodb://localhost:27017/backoffice_test",
        "CORREIOS_API_URL": "http://correios.test/calculador/CalcPrecoPrazo.aspx",
        "STRIPE_SECRET_KEY": "sk_test_123",
        "STRIPE_API_URL": "https://stripe.test/v1",
        "NFE_API_URL": "https://nfe.test/v1/nfe",
        "NFE_API_TOKEN": "nfe-token",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(scope="function")
def settings() -> Settings:
    return make_settings()


@pytest.fixture(scope="function")
def mongo_db():
    return AsyncMongoMockClient()["backoffice_test"]


@pytest.fixture(scope="function")
def failing_collections(monkeypatch) -> Set[str]:
    """Coleções listadas aqui respondem como um MongoDB fora do ar."""
    failing: Set[str] = set()

    def fail_when_listed(method):
        def wrapper(self, *args, **kwargs):
            if self.name in failing:
                raise ServerSelectionTimeoutError(f"mongo indisponível (teste): {self.name}")
            return method(self, *args, **kwargs)

        return wrapper

    for name in FAILING_METHODS:
        monkeypatch.setattr(mongomock.Collection, name, fail_when_listed(getattr(mongomock.Collection, name)))
    return failing


@pytest.fixture(scope="function")
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture(scope="function")
def app(settings: Settings, mongo_db, upstream: UpstreamStub) -> FastAPI:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    return create_app(settings, database=mongo_db, http_client=http_client)


@pytest.fixture(scope="function")
def store(app: FastAPI) -> DocumentStore:
    return app.state.context.store


@pytest_asyncio.fixture(scope="function")
async def test_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    await app.state.context.store.drain()
    await app.state.context.http_client.aclose()


@pytest.fixture(scope="function")
def settings_factory() -> Callable[..., Settings]:
    return make_settings
