"""REST router for user maintenance tasks and template reconciliation."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.auth_providers import get_current_user
from api_service.db.base import get_async_session
from api_service.db.models import User
from dwellwell.maintenance import get_reconciliation_service, get_task_service
from dwellwell.maintenance.errors import (
    MaintenanceError,
    TaskNotFoundError,
    TaskOrTemplateNotFoundError,
)
from dwellwell.maintenance.models import TaskTemplate, UserTask
from dwellwell.maintenance.reconciliation import (
    TemplateReconciliationService,
    TemplateUpdateRequest,
)
from dwellwell.maintenance.service import MaintenanceTaskService, TaskDetail
from dwellwell.schemas.maintenance_models import (
    ApplyTemplateUpdatesRequest,
    ApplyTemplateUpdatesResponse,
    PendingUpdatesResponse,
    TaskContentModel,
    TaskCreateRequest,
    TaskDetailResponse,
    TaskEditRequest,
    TaskResumeRequest,
    TaskSnoozeRequest,
    TaskTemplateSummaryModel,
    TemplateDiffResponse,
    UserTaskModel,
)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


async def _get_service(
    session: AsyncSession = Depends(get_async_session),
) -> MaintenanceTaskService:
    return get_task_service(session)


async def _get_reconciliation_service(
    session: AsyncSession = Depends(get_async_session),
) -> TemplateReconciliationService:
    return get_reconciliation_service(session)


def _map_service_error(exc: MaintenanceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code})


def _parse_task_id(
    raw: str, missing: type[MaintenanceError] = TaskNotFoundError
) -> UUID:
    try:
        return UUID(raw)
    except ValueError as exc:
        raise missing(raw) from exc


def _serialize_task(task: UserTask) -> UserTaskModel:
    return UserTaskModel.model_validate(task)


def _serialize_template_summary(
    template: TaskTemplate | None,
) -> TaskTemplateSummaryModel | None:
    if template is None:
        return None
    return TaskTemplateSummaryModel(
        id=template.id,
        title=template.title,
        summary=template.description,
        version=template.version,
        state=template.state,
        estimatedTimeMinutes=template.estimated_time_minutes,
        estimatedCost=template.estimated_cost,
        imageUrl=template.image_url,
        icon=template.icon,
        category=template.category,
    )


def _serialize_detail(detail: TaskDetail) -> TaskDetailResponse:
    return TaskDetailResponse(
        task=_serialize_task(detail.task),
        template=_serialize_template_summary(detail.template),
        content=TaskContentModel.model_validate(detail.content),
    )


@router.get("", response_model=list[UserTaskModel])
async def list_tasks(
    *,
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
    status_filter: Optional[str] = Query(None, alias="status"),
    home_id: Optional[str] = Query(None, alias="homeId"),
    room_id: Optional[str] = Query(None, alias="roomId"),
    trackable_id: Optional[str] = Query(None, alias="trackableId"),
    limit: Optional[int] = Query(None, alias="limit"),
    sort: Optional[str] = Query("dueDate", alias="sort"),
) -> list[UserTaskModel]:
    tasks = await service.list_tasks(
        user_id=user.id,
        status=status_filter,
        home_id=home_id or None,
        room_id=room_id or None,
        trackable_id=trackable_id or None,
        limit=limit,
        sort=sort,
    )
    return [_serialize_task(task) for task in tasks]


@router.post("", response_model=UserTaskModel, status_code=status.HTTP_201_CREATED)
async def create_task(
    *,
    payload: TaskCreateRequest = Body(...),
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        task = await service.create_from_template(
            user_id=user.id,
            template_id=payload.template_id,
            home_id=payload.home_id,
            room_id=payload.room_id,
            trackable_id=payload.trackable_id,
            item_name=payload.item_name,
            location=payload.location,
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_task(task)


@router.get("/updates", response_model=PendingUpdatesResponse)
async def list_template_updates(
    *,
    service: TemplateReconciliationService = Depends(_get_reconciliation_service),
    user: User = Depends(get_current_user()),
    trackable_id: Optional[str] = Query(None, alias="trackableId"),
) -> PendingUpdatesResponse:
    updates = await service.pending_updates(
        user_id=user.id, trackable_id=trackable_id or None
    )
    return PendingUpdatesResponse.model_validate(
        {"updates": updates}, from_attributes=True
    )


@router.post("/apply-template-updates", response_model=ApplyTemplateUpdatesResponse)
async def apply_template_updates(
    *,
    payload: ApplyTemplateUpdatesRequest = Body(
        default_factory=ApplyTemplateUpdatesRequest
    ),
    service: TemplateReconciliationService = Depends(_get_reconciliation_service),
    user: User = Depends(get_current_user()),
):
    requests = [
        TemplateUpdateRequest(
            user_task_id=item.user_task_id,
            fields=list(item.fields) if item.fields else None,
        )
        for item in payload.updates
    ]
    try:
        results = await service.apply_updates(
            user_id=user.id,
            requests=requests,
            policy=payload.override_policy,
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return ApplyTemplateUpdatesResponse.model_validate(
        {"results": results}, from_attributes=True
    )


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    *,
    task_id: str,
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        detail = await service.get_task_detail(
            user_id=user.id, task_id=_parse_task_id(task_id)
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_detail(detail)


@router.patch("/{task_id}", response_model=UserTaskModel)
async def edit_task(
    *,
    task_id: str,
    payload: TaskEditRequest = Body(...),
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        task = await service.edit_task(
            user_id=user.id,
            task_id=_parse_task_id(task_id),
            changes=payload.content_changes(),
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_task(task)


@router.get("/{task_id}/template-diff", response_model=TemplateDiffResponse)
async def get_template_diff(
    *,
    task_id: str,
    service: TemplateReconciliationService = Depends(_get_reconciliation_service),
    user: User = Depends(get_current_user()),
):
    try:
        diff = await service.diff(
            user_id=user.id,
            task_id=_parse_task_id(task_id, TaskOrTemplateNotFoundError),
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return TemplateDiffResponse.model_validate(diff)


@router.post("/{task_id}/complete", response_model=UserTaskModel)
async def complete_task(
    *,
    task_id: str,
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        task = await service.complete(user_id=user.id, task_id=_parse_task_id(task_id))
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_task(task)


@router.post("/{task_id}/uncomplete", response_model=UserTaskModel)
async def uncomplete_task(
    *,
    task_id: str,
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        task = await service.uncomplete(
            user_id=user.id, task_id=_parse_task_id(task_id)
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_task(task)


@router.post("/{task_id}/snooze", response_model=UserTaskModel)
async def snooze_task(
    *,
    task_id: str,
    payload: TaskSnoozeRequest = Body(default_factory=TaskSnoozeRequest),
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        task = await service.snooze(
            user_id=user.id, task_id=_parse_task_id(task_id), days=payload.days
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_task(task)


@router.post("/{task_id}/pause", response_model=UserTaskModel)
async def pause_task(
    *,
    task_id: str,
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        task = await service.pause(user_id=user.id, task_id=_parse_task_id(task_id))
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_task(task)


@router.post("/{task_id}/resume", response_model=UserTaskModel)
async def resume_task(
    *,
    task_id: str,
    payload: TaskResumeRequest = Body(default_factory=TaskResumeRequest),
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        task = await service.resume(
            user_id=user.id, task_id=_parse_task_id(task_id), mode=payload.mode
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_task(task)


@router.post("/{task_id}/archive", response_model=UserTaskModel)
async def archive_task(
    *,
    task_id: str,
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        task = await service.archive(user_id=user.id, task_id=_parse_task_id(task_id))
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_task(task)


@router.post("/{task_id}/unarchive", response_model=UserTaskModel)
async def unarchive_task(
    *,
    task_id: str,
    service: MaintenanceTaskService = Depends(_get_service),
    user: User = Depends(get_current_user()),
):
    try:
        task = await service.unarchive(
            user_id=user.id, task_id=_parse_task_id(task_id)
        )
    except MaintenanceError as exc:
        return _map_service_error(exc)
    return _serialize_task(task)
