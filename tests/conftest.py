import os
import tempfile

# Must be set before anything imports catalog.core.config
_TMP_DIR = tempfile.mkdtemp(prefix="klara-catalog-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'api.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["USE_MOCK_KLARA"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("KLARA_API_KEY", None)

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from catalog.db.base import Base
from catalog.services.klara_client import KlaraClient
from catalog.utils.caching import TTLCache
from helpers import KLARA_TEST_URL, FakeClock, klara_article


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl=3600, clock=clock)


@pytest.fixture
def raw_articles():
    return [
        klara_article("a-1", "RW-002", "Barolo Riserva", 89.5, ["cat-rotwein", "cat-italien"]),
        klara_article("a-2", "RW-003", "Pinot Noir Graubünden", 45, ["cat-rotwein"]),
        klara_article("a-3", "WW-001", "Chasselas Lavaux", 28.5, ["cat-weisswein"]),
    ]


@pytest.fixture
def make_client(cache):
    def _make(handler, **kwargs):
        kwargs.setdefault("api_key", "test-key")
        kwargs.setdefault("api_url", KLARA_TEST_URL)
        return KlaraClient(cache=cache, transport=httpx.MockTransport(handler), **kwargs)

    return _make


@pytest.fixture
async def db_session(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'overrides.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture(scope="module")
def client():
    """TestClient running the real lifespan against the mock KLARA catalog."""
    from main import app

    with TestClient(app) as test_client:
        yield test_client
