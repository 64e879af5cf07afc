# main.py
# Configure logging at the very beginning
import logging

from dwellwell.config.logging import configure_logging
from dwellwell.config.settings import settings

configure_logging(level=settings.log_level, structured=settings.structured_logs)
logger = logging.getLogger(__name__)

from uuid import uuid4

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from api_service.api.routers.task_templates import router as task_templates_router
from api_service.api.routers.tasks import router as tasks_router
from api_service.auth_providers import get_auth_router

logger.info("Starting FastAPI...")

app = FastAPI(
    title="DwellWell API",
    description="API for DwellWell - home maintenance task tracking",
    version="0.1.0",
    docs_url="/docs",
    openapi_url="/openapi.json",
)


# Healthz router
health_router = APIRouter()


@health_router.get("/healthz")
async def health_check():
    return {"status": "ok"}


@app.get("/", include_in_schema=False)
async def docs_redirect() -> RedirectResponse:
    """Redirect root path to Swagger UI."""
    return RedirectResponse(url=app.docs_url)


app.include_router(health_router, tags=["health"])
app.include_router(tasks_router)
app.include_router(task_templates_router)
app.include_router(get_auth_router())


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = str(uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "api.unhandled_error",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(status_code=500, content={"error": "INTERNAL_ERROR"})


@app.on_event("startup")
async def startup_event():
    """Defines the application's startup events."""
    logger.info("Executing application startup events...")

    # Ensure the default user exists if auth is disabled
    if settings.oidc.AUTH_PROVIDER == "disabled":
        from api_service.auth import get_or_create_default_user, get_user_manager_context
        from api_service.db.base import get_async_session_context

        async with get_async_session_context() as db_session:
            async with get_user_manager_context(db_session) as user_manager:
                try:
                    default_user = await get_or_create_default_user(
                        db_session=db_session, user_manager=user_manager
                    )
                    logger.info(
                        "Default user %s (ID: %s) ensured.",
                        default_user.email,
                        default_user.id,
                    )
                except ValueError as ve:
                    logger.error(
                        "Configuration error during default user setup on startup: %s",
                        ve,
                    )
    else:
        logger.info(
            "Auth provider is '%s'. Skipping default user creation on startup.",
            settings.oidc.AUTH_PROVIDER,
        )

    logger.info("Application startup events completed.")
