"""Database models used by the DwellWell API service."""

from __future__ import annotations

import enum

from fastapi_users.db import SQLAlchemyBaseUserTableUUID
from sqlalchemy import JSON, Column, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# fastapi-users uses UUID ids; routers and the maintenance tables key
# ownership off ``User.id``.
class User(SQLAlchemyBaseUserTableUUID, Base):
    __tablename__ = "user"

    hashed_password = Column(Text, nullable=True)


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Return enum labels for SQLAlchemy Enum definitions."""

    return [member.value for member in enum_cls]


def _json_variant() -> JSON:
    return JSON().with_variant(JSONB(astext_type=Text()), "postgresql")


def json_column_type() -> JSON:
    return _json_variant()


def mutable_json_list() -> JSON:
    return MutableList.as_mutable(_json_variant())


__all__ = [
    "Base",
    "User",
    "enum_values",
    "json_column_type",
    "mutable_json_list",
]
