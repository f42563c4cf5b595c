"""Pytest configuration and fixtures."""

import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient

from config import Config
from shortlink.auth.passwords import SimpleHasher
from shortlink.auth.sessions import SessionStore
from shortlink.auth.tokens import CredentialAuthority
from shortlink.database.memory import MemoryStore
from shortlink.keygen import KeyGenerator
from shortlink.resolver import LinkResolver
from shortlink.service import LinkService
from shortlink.common.logging_config import setup_logging
from web_app import create_app

START_TIME = 1_700_000_000.0


class FakeClock:
    """Controllable wall clock (seconds)."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(logger):
    return MemoryStore(logger=logger)


@pytest.fixture
def hasher():
    return SimpleHasher()


@pytest.fixture
def service(store, hasher, logger) -> LinkService:
    """Create service instance (no cache, no safety oracle)."""
    return LinkService(
        store=store,
        hasher=hasher,
        key_generator=KeyGenerator(),
        logger=logger,
    )


@pytest.fixture
def resolver(store, hasher, logger) -> LinkResolver:
    return LinkResolver(store=store, hasher=hasher, logger=logger)


@pytest.fixture
def authority(clock, logger) -> CredentialAuthority:
    return CredentialAuthority(secret_key="test-signing-key", clock=clock, logger=logger)


@pytest.fixture
def sessions(clock, logger) -> SessionStore:
    return SessionStore(secret_key="test-session-key", clock=clock, logger=logger)


@pytest.fixture
def config() -> Config:
    return Config(
        jwt_secret_key="test-signing-key",
        session_secret_key="test-session-key",
        base_url="http://testserver",
        password_hasher="simple",
    )


@pytest.fixture
def app(service, resolver, authority, sessions, config):
    """Create test FastAPI app."""
    return create_app(
        service=service,
        resolver=resolver,
        authority=authority,
        sessions=sessions,
        config=config,
    )


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
async def alice(service):
    """A registered user."""
    return await service.register("alice", "alice@example.com", "wonderland1")


@pytest.fixture
async def bob(service):
    return await service.register("bob", "bob@example.com", "builder123")


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
