import logging
from types import SimpleNamespace

from fastapi import APIRouter

from api_service.auth import (
    UserCreate,
    UserRead,
    auth_backend,
    current_active_user,
    default_user_id,
    fastapi_users,
)
from api_service.db.models import User
from dwellwell.config.settings import settings

logger = logging.getLogger(__name__)


async def _current_user_fallback():
    """Resolve the configured default user when authentication is disabled.

    If the database cannot be reached a lightweight stub carrying the default
    id is returned so local tooling keeps working without Postgres.
    """
    from api_service.db.base import get_async_session_context

    user_uuid = default_user_id()
    try:
        async with get_async_session_context() as session:
            user_obj = await session.get(User, user_uuid)
            if user_obj is not None:
                return user_obj
    except OSError as exc:
        logger.warning(
            "auth.default_user_unavailable",
            extra={"user_id": str(user_uuid), "error": str(exc)},
        )

    return SimpleNamespace(
        id=user_uuid,
        email=settings.oidc.DEFAULT_USER_EMAIL or "default@dwellwell.local",
        is_active=True,
        is_superuser=settings.oidc.DEFAULT_USER_IS_SUPERUSER,
    )


def get_current_user():
    """Return the dependency that yields the acting user.

    With AUTH_PROVIDER == "disabled" every request resolves to the default
    user; otherwise the fastapi-users bearer dependency is used. The same
    callable is returned on every call so routers and
    ``app.dependency_overrides`` agree on the key.
    """

    if settings.oidc.AUTH_PROVIDER != "disabled":
        return current_active_user
    return _current_user_fallback


def get_auth_router():
    router = APIRouter()
    if settings.oidc.AUTH_PROVIDER == "default":
        router.include_router(
            fastapi_users.get_auth_router(auth_backend),
            prefix="/auth/jwt",
            tags=["auth"],
        )
        router.include_router(
            fastapi_users.get_register_router(UserRead, UserCreate),
            prefix="/auth",
            tags=["auth"],
        )
    return router
