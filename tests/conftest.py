import os

# Config reads the environment at import time
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("SERVICE_AUTH_SECRET", "test-secret-for-tenq-service-tokens-0123")
os.environ.setdefault("SERVICE_AUTH_ISSUER", "tenq-auth")
os.environ.setdefault("SERVICE_AUTH_AUDIENCE", "tenq-api")
os.environ.setdefault("LANGSMITH_TRACING", "false")
os.environ["METRICS_TOKEN"] = ""

import pytest
from dishka import Provider, Scope, provide
from fastapi.testclient import TestClient
from openai import AsyncOpenAI

from fakes import FakeOpenAI, ScriptedGenerator
from jwt_generation import bearer, service_token
from tenq.config.permissions import REGENERATE_PERMISSION
from tenq.config.settings import Config, TestingConfig
from tenq.fastapi_app import create_fastapi_app
from tenq.infrastructure.persistence import (
    SqlAlchemyConversationStore,
    create_engine,
    create_session_factory,
    init_schema,
)
from tenq.presentation.dependencies.admission import limiter
from tenq.setup.ioc import AppProvider, create_container


def make_config(tmp_path, **overrides) -> type[Config]:
    attrs = {
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'tenq.db'}",
        "OPENAI_KEY": "test-key",
        **overrides,
    }
    return type("PerTestConfig", (TestingConfig,), attrs)


class FakeOpenAIProvider(Provider):
    """Replaces the AsyncOpenAI client registered by AppProvider."""

    def __init__(self, client: FakeOpenAI):
        super().__init__()
        self.client = client

    @provide(scope=Scope.APP)
    def get_openai_client(self) -> AsyncOpenAI:
        return self.client


# ==================== HTTP ====================


@pytest.fixture()
def fake_openai():
    return FakeOpenAI()


@pytest.fixture()
def app_factory(tmp_path, fake_openai):
    """Build an app whose Config overrides the given settings."""

    def build(**overrides):
        limiter.reset()
        container = create_container(
            AppProvider(make_config(tmp_path, **overrides)),
            FakeOpenAIProvider(fake_openai),
        )
        return create_fastapi_app(container)

    return build


@pytest.fixture()
def app(app_factory):
    """Create and configure a new FastAPI app instance for each test."""
    return app_factory()


@pytest.fixture()
def client(app):
    """A test client for the FastAPI app; runs startup and shutdown."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers():
    """Authentication headers with valid JWT token."""
    return bearer(service_token())


@pytest.fixture()
def admin_headers():
    """Token holding the regeneration permission."""
    return bearer(service_token(permissions=[REGENERATE_PERMISSION]))


@pytest.fixture()
def other_user_headers():
    return bearer(service_token(sub="user-2", email="other@example.com"))


# ==================== STORE / ENGINE ====================


@pytest.fixture()
async def store(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await init_schema(engine)
    yield SqlAlchemyConversationStore(create_session_factory(engine))
    await engine.dispose()


@pytest.fixture()
def generator():
    return ScriptedGenerator()
