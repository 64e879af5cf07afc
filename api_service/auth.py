import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi_users import BaseUserManager, FastAPIUsers, UUIDIDMixin, schemas
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    JWTStrategy,
)
from fastapi_users.db import SQLAlchemyUserDatabase
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.db.base import get_async_session
from api_service.db.models import User
from dwellwell.config.settings import settings

logger = logging.getLogger(__name__)

# Used when auth is disabled and DEFAULT_USER_ID is not configured.
_DEFAULT_USER_ID = "00000000-0000-0000-0000-000000000001"
_DEFAULT_USER_EMAIL = "default@dwellwell.local"


class UserRead(schemas.BaseUser[uuid.UUID]):
    pass


class UserCreate(schemas.BaseUserCreate):
    pass


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    reset_password_token_secret = settings.security.JWT_SECRET_KEY
    verification_token_secret = settings.security.JWT_SECRET_KEY

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info("auth.user_registered", extra={"user_id": str(user.id)})

    async def on_after_forgot_password(
        self, user: User, token: str, request: Optional[Request] = None
    ):
        logger.info("auth.password_reset_requested", extra={"user_id": str(user.id)})

    async def on_after_request_verify(
        self, user: User, token: str, request: Optional[Request] = None
    ):
        logger.info("auth.verification_requested", extra={"user_id": str(user.id)})


async def get_user_db(session: AsyncSession = Depends(get_async_session)):
    yield SQLAlchemyUserDatabase(session, User)


async def get_user_manager(user_db: SQLAlchemyUserDatabase = Depends(get_user_db)):
    yield UserManager(user_db)


@asynccontextmanager
async def get_user_manager_context(
    db_session: AsyncSession,
) -> AsyncGenerator[UserManager, None]:
    """Context manager for UserManager bound to an existing session."""
    yield UserManager(SQLAlchemyUserDatabase(db_session, User))


def default_user_id() -> uuid.UUID:
    return uuid.UUID(settings.oidc.DEFAULT_USER_ID or _DEFAULT_USER_ID)


async def get_or_create_default_user(
    db_session: AsyncSession, user_manager: UserManager
) -> User:
    """
    Retrieve or create the user every request resolves to when AUTH_PROVIDER is
    'disabled'. The row is created with DEFAULT_USER_ID so task ownership stays
    stable across restarts.
    """
    default_user_uuid = default_user_id()
    default_email = settings.oidc.DEFAULT_USER_EMAIL or _DEFAULT_USER_EMAIL

    user = await db_session.get(User, default_user_uuid)
    if user is not None:
        return user

    existing_user_by_email = await user_manager.user_db.get_by_email(default_email)
    if existing_user_by_email is not None:
        raise ValueError(
            f"A user with email {default_email} already exists with ID "
            f"{existing_user_by_email.id}, not DEFAULT_USER_ID {default_user_uuid}."
        )

    password = settings.oidc.DEFAULT_USER_PASSWORD or uuid.uuid4().hex
    user = User(
        id=default_user_uuid,
        email=default_email,
        hashed_password=user_manager.password_helper.hash(password),
        is_active=True,
        is_superuser=settings.oidc.DEFAULT_USER_IS_SUPERUSER,
        is_verified=True,
    )
    db_session.add(user)
    try:
        await db_session.commit()
    except Exception:
        await db_session.rollback()
        logger.exception(
            "auth.default_user_create_failed",
            extra={"user_id": str(default_user_uuid)},
        )
        raise
    await db_session.refresh(user)
    logger.info("auth.default_user_created", extra={"user_id": str(user.id)})
    return user


bearer_transport = BearerTransport(tokenUrl="auth/jwt/login")


def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(
        secret=settings.security.JWT_SECRET_KEY,
        lifetime_seconds=settings.security.JWT_LIFETIME_SECONDS,
    )


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, uuid.UUID](get_user_manager, [auth_backend])

current_active_user = fastapi_users.current_user(active=True)
