"""Shared fixtures for maintenance service tests backed by sqlite."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import dwellwell.maintenance.models  # noqa: F401
from api_service.db.models import Base


@pytest.fixture
def maintenance_db(tmp_path: Path):
    """Return a factory opening an isolated async sqlite database."""

    @asynccontextmanager
    async def _open():
        db_path = tmp_path / "maintenance.db"
        engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", future=True)
        session_maker = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        try:
            yield session_maker
        finally:
            await engine.dispose()

    return _open
