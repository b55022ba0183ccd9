"""
Shared fixtures for Garden Catalog backend integration tests.

Uses the database named by TEST_DATABASE_URL (defaults to a local SQLite file
through aiosqlite, so no server is needed).  Each test function gets its own
session; tables are created before the test and dropped after it.

Gemini and Plant.id are never called: keys are blanked before the app is
imported, and tests that need the assistant install a fake reply with the
``fake_gemini`` fixture.
"""
from __future__ import annotations

import json
import os
import tempfile
from typing import Any, AsyncGenerator, Callable, Dict, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Override settings *before* any app module is imported, so that
# settings.DATABASE_URL and the global engine point at the test DB.
TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///./test_garden_catalog.db",
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["GEMINI_API_KEY"] = ""
os.environ["PLANTID_API_KEY"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="garden-catalog-uploads-")

from garden_catalog.config import settings  # noqa: E402
from garden_catalog.database import Base, build_engine, get_db  # noqa: E402
from garden_catalog.main import app  # noqa: E402
from garden_catalog.models import database_models  # noqa: E402,F401
from garden_catalog.services.assistant import GeminiAssistantService  # noqa: E402


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a DB session for each test. After the test, all tables are dropped
    so each test starts with a clean slate.
    """
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the DB dependency
    overridden to use the per-test session.
    """

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def fake_gemini(monkeypatch) -> Callable[..., List[Dict[str, Any]]]:
    """
    Configure the assistant and replace the Gemini call.

    Usage::

        calls = fake_gemini({"action": "chat", "response": "Hi!"})

    A dict/list reply is JSON-encoded, a str is returned verbatim, and an
    exception instance is raised.  Each call records ``system_prompt`` and
    ``contents`` in the returned list.
    """
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-gemini-key")

    def _install(*replies: Any) -> List[Dict[str, Any]]:
        calls: List[Dict[str, Any]] = []
        queue = list(replies)

        async def _fake_call_llm(self, system_prompt, contents):
            calls.append({"system_prompt": system_prompt, "contents": contents})
            reply = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(reply, BaseException):
                raise reply
            if isinstance(reply, (dict, list)):
                return json.dumps(reply)
            return reply

        monkeypatch.setattr(GeminiAssistantService, "_call_llm", _fake_call_llm)
        return calls

    return _install


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def create_user(client: AsyncClient, email: str = "gardener@example.com", name: str = "Garden Enthusiast") -> str:
    resp = await client.post("/api/users", json={"name": name, "email": email})
    assert resp.status_code == 201
    return resp.json()["id"]


async def create_bed(client: AsyncClient, user_id: str, bed_name: str = "Herb Garden", **extra) -> str:
    resp = await client.post("/api/beds", json={"userId": user_id, "bedName": bed_name, **extra})
    assert resp.status_code == 201
    return resp.json()["id"]


async def create_plant(client: AsyncClient, bed_id: str, common_name: str = "Basil", **extra) -> str:
    resp = await client.post("/api/plants", json={"bedId": bed_id, "commonName": common_name, **extra})
    assert resp.status_code == 201
    return resp.json()["id"]
