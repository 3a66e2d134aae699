"""Shared fixtures: in-memory store and a TestClient factory."""

import pytest
from fastapi.testclient import TestClient

from chat_microservice.config import Settings
from chat_microservice.db_store import ExchangeStore
from chat_microservice.llm import StubProvider
from chat_microservice.main import create_app


@pytest.fixture
def store():
    """In-memory SQLite store with tables created."""
    s = ExchangeStore("sqlite://")
    s.init_schema()
    yield s
    s.dispose()


@pytest.fixture
def make_client():
    """Build a TestClient around a freshly wired app.

    The lifespan is not entered, so a store without tables stays without
    tables.
    """

    def _make(settings=None, provider=None, store=None):
        settings = settings or Settings(database_url="sqlite://")
        app = create_app(settings, provider=provider or StubProvider(), store=store)
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client, store):
    return make_client(store=store)
