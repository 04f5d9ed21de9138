from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from signage.db.base import Base
from signage.db.session import get_db
from signage.main import create_app
from signage.schemas.schedule import PRESET_KEYS

# Use a throwaway SQLite file for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@event.listens_for(engine.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class FakeClient:
    """Stands in for a WebSocket: records everything sent to it."""

    def __init__(self, name: str = "client", fail: bool = False):
        self.name = name
        self.fail = fail
        self.messages: list[dict] = []

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise ConnectionError(f"{self.name} is gone")
        self.messages.append(data)

    def events(self) -> list[str]:
        return [message["type"] for message in self.messages]

    def __repr__(self) -> str:
        return f"FakeClient({self.name!r})"


@pytest_asyncio.fixture
async def db_session() -> AsyncIterator[AsyncSession]:
    # Import all models
    import signage.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def app() -> FastAPI:
    return create_app(database_url=TEST_DATABASE_URL)


@pytest_asyncio.fixture
async def client(app: FastAPI, db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    async def override_get_db():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def schedule_payload() -> dict:
    """A valid preset schedule with two programs on Monday."""
    presets = {key: {"saunas": ["Vulkan", "Nordisch", "Bio"], "rows": []} for key in PRESET_KEYS}
    presets["Mon"]["rows"] = [
        {
            "time": "09:00",
            "entries": [
                {"title": "Birke", "duration": 15, "badges": ["Classic"]},
                None,
                None,
            ],
        },
        {
            "time": "10:30",
            "entries": [
                None,
                {"title": "Eukalyptus", "subtitle": "Menthol", "notes": "Bitte Handtuch"},
                None,
            ],
        },
    ]
    return {"version": 2, "presets": presets, "autoPlay": True}
