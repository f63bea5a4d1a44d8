"""Shared fixtures."""

import os

# Keep tests off the network and away from the default database
os.environ["PROXY_SERVICE_URL"] = ""
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from product_scraper.db.models import Base
from product_scraper.db.repository import ProductStore
from product_scraper.ingest.base import Identity
from product_scraper.ingest.http_client import FetchClient
from product_scraper.ingest.identity import IdentityRotator
from product_scraper.ingest.proxy_manager import ProxyPool


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records requested waits."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class SequenceRotator:
    """Identity rotator handing out numbered user agents."""

    def __init__(self):
        self.proxies = ProxyPool(service_url="", static_proxies=[])
        self.issued: list[Identity] = []

    def next_identity(self) -> Identity:
        identity = Identity(user_agent=f"TestAgent/{len(self.issued)}")
        self.issued.append(identity)
        return identity


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def rotator() -> SequenceRotator:
    return SequenceRotator()


@pytest.fixture
def make_fetch_client(sleeper):
    """Build a FetchClient whose requests are answered by handler."""
    clients: list[FetchClient] = []

    def factory(handler, identities=None, **kwargs) -> FetchClient:
        client = FetchClient(
            identities=identities or IdentityRotator(
                proxies=ProxyPool(service_url="", static_proxies=[])
            ),
            transport=httpx.MockTransport(handler),
            sleep=sleeper,
            **kwargs,
        )
        clients.append(client)
        return client

    return factory


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session_factory) -> ProductStore:
    return ProductStore(session_factory)
