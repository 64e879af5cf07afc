"""Admin REST router for authoring versioned task templates."""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.auth_providers import get_current_user
from api_service.db.base import get_async_session
from api_service.db.models import User
from dwellwell.maintenance import get_template_admin_service
from dwellwell.maintenance.errors import (
    MaintenanceError,
    PermissionDeniedError,
    TemplateNotFoundError,
)
from dwellwell.maintenance.models import TemplateState
from dwellwell.maintenance.templates import TaskTemplateAdminService
from dwellwell.schemas.maintenance_models import (
    TaskTemplateCreateRequest,
    TaskTemplateListResponse,
    TaskTemplateModel,
    TaskTemplateUpdateRequest,
)

router = APIRouter(prefix="/api/admin/task-templates", tags=["task-templates"])


async def _get_service(
    session: AsyncSession = Depends(get_async_session),
) -> TaskTemplateAdminService:
    return get_template_admin_service(session)


def _map_service_error(exc: MaintenanceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code})


def _require_admin(user: Any) -> None:
    if not getattr(user, "is_superuser", False):
        raise PermissionDeniedError("template administration requires a superuser")


def _parse_template_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError as exc:
        raise TemplateNotFoundError(raw) from exc


@router.get("", response_model=TaskTemplateListResponse)
async def list_templates(
    *,
    service: TaskTemplateAdminService = Depends(_get_service),
    user: User = Depends(get_current_user()),
    state: Optional[TemplateState] = Query(None, alias="state"),
):
    try:
        _require_admin(user)
        templates = await service.list_templates(state=state)
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return TaskTemplateListResponse(
        items=[TaskTemplateModel.model_validate(item) for item in templates]
    )


@router.post("", response_model=TaskTemplateModel, status_code=status.HTTP_201_CREATED)
async def create_template(
    *,
    payload: TaskTemplateCreateRequest = Body(...),
    service: TaskTemplateAdminService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        _require_admin(user)
        template = await service.create_template(
            fields=payload.content_changes(),
            state=payload.state,
            task_type=payload.task_type,
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return TaskTemplateModel.model_validate(template)


@router.get("/{template_id}", response_model=TaskTemplateModel)
async def get_template(
    *,
    template_id: str,
    service: TaskTemplateAdminService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        _require_admin(user)
        template = await service.get_template(_parse_template_id(template_id))
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return TaskTemplateModel.model_validate(template)


@router.put("/{template_id}", response_model=TaskTemplateModel)
async def update_template(
    *,
    template_id: str,
    payload: TaskTemplateUpdateRequest = Body(...),
    service: TaskTemplateAdminService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        _require_admin(user)
        template = await service.update_template(
            _parse_template_id(template_id),
            changes=payload.content_changes(),
            state=payload.state,
            task_type=payload.task_type,
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return TaskTemplateModel.model_validate(template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    *,
    template_id: str,
    service: TaskTemplateAdminService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        _require_admin(user)
        await service.delete_template(_parse_template_id(template_id))
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
