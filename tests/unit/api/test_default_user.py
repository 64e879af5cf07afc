"""Tests for the default user bootstrap used when auth is disabled."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from api_service.auth import (
    _DEFAULT_USER_ID,
    get_or_create_default_user,
    get_user_manager_context,
)
from api_service.db.models import Base, User
from dwellwell.config.settings import AppSettings

pytestmark = [pytest.mark.asyncio]


@asynccontextmanager
async def user_db(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'users.db'}")
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield session_maker
    finally:
        await engine.dispose()


def test_user_table_has_only_account_columns() -> None:
    assert set(User.__table__.columns.keys()) == {
        "id",
        "email",
        "hashed_password",
        "is_active",
        "is_superuser",
        "is_verified",
    }


def test_reload_flag_is_not_a_setting() -> None:
    with pytest.raises(ValueError):
        AppSettings(fastapi_reload=True)


async def test_default_user_is_created_once(tmp_path, disabled_env_keys) -> None:
    async with user_db(tmp_path) as session_maker:
        async with session_maker() as session:
            async with get_user_manager_context(session) as manager:
                created = await get_or_create_default_user(
                    db_session=session, user_manager=manager
                )
                again = await get_or_create_default_user(
                    db_session=session, user_manager=manager
                )

    assert created.id == UUID(_DEFAULT_USER_ID)
    assert created.email == "seed@example.com"
    assert created.is_active is True
    assert created.is_verified is True
    assert again.id == created.id
