"""Business logic for the user-facing maintenance task lifecycle."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Mapping
from uuid import UUID

from dwellwell.config.settings import settings
from dwellwell.maintenance.errors import (
    TaskNotFoundError,
    TaskValidationError,
    TemplateNotFoundError,
)
from dwellwell.maintenance.fields import (
    TEMPLATE_FIELDS,
    get_field,
    is_template_field,
    ordered_field_names,
)
from dwellwell.maintenance.models import TaskStatus, TaskTemplate, TemplateState, UserTask
from dwellwell.maintenance.recurrence import forward_from, initial_due_date
from dwellwell.maintenance.repositories import MaintenanceTaskRepository

logger = logging.getLogger(__name__)

_AMAZON_URL = re.compile(r"amazon\.", re.IGNORECASE)


class TaskListStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    DUE_SOON = "dueSoon"

    @classmethod
    def parse(cls, raw: str | None) -> "TaskListStatus":
        """Map a loose query value onto a status filter; unknown means active."""

        value = (raw or "").strip().lower()
        if value == "completed":
            return cls.COMPLETED
        if value == "overdue":
            return cls.OVERDUE
        if value in {"duesoon", "due_soon"}:
            return cls.DUE_SOON
        return cls.ACTIVE


class ResumeMode(str, enum.Enum):
    FORWARD = "forward"
    NOW = "now"


SORT_DUE_DATE = "dueDate"
SORT_RECENTLY_COMPLETED = "-completedAt"


@dataclass(frozen=True, slots=True)
class TaskContent:
    steps: list[Any] = field(default_factory=list)
    equipment_needed: list[Any] = field(default_factory=list)
    resources: list[Any] = field(default_factory=list)
    parts: list[Any] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TaskDetail:
    task: UserTask
    template: TaskTemplate | None
    content: TaskContent


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def _resolve_list(task_value: Any, template_value: Any) -> list[Any]:
    if _non_empty_list(task_value):
        return list(task_value)
    if isinstance(template_value, list):
        return list(template_value)
    return []


def extract_parts(resources: list[Any]) -> list[Any]:
    """Resources that describe something to buy: ``type == buy`` or Amazon links."""

    parts = []
    for resource in resources:
        if not isinstance(resource, Mapping):
            continue
        kind = str(resource.get("type") or "").lower()
        url = str(resource.get("url") or "")
        if kind == "buy" or _AMAZON_URL.search(url):
            parts.append(resource)
    return parts


class MaintenanceTaskService:
    """Application service for listing and transitioning a user's tasks."""

    def __init__(
        self,
        repository: MaintenanceTaskRepository,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._clock = clock or (lambda: datetime.now(UTC))
        self._settings = settings.maintenance

    def _now(self) -> datetime:
        return _as_utc(self._clock())  # type: ignore[return-value]

    async def _require_task(self, user_id: UUID, task_id: UUID) -> UserTask:
        task = await self._repository.get_task_for_user(task_id, user_id)
        if task is None:
            raise TaskNotFoundError(str(task_id))
        return task

    async def _save(self, task: UserTask) -> UserTask:
        await self._repository.commit()
        await self._repository.refresh(task)
        return task

    async def list_tasks(
        self,
        *,
        user_id: UUID,
        status: str | None = None,
        home_id: str | None = None,
        room_id: str | None = None,
        trackable_id: str | None = None,
        limit: int | None = None,
        sort: str | None = None,
    ) -> list[UserTask]:
        status_filter = TaskListStatus.parse(status)
        effective_limit = limit or self._settings.list_default_limit
        effective_limit = max(1, min(effective_limit, self._settings.list_max_limit))
        now = self._now()

        query: dict[str, Any] = {
            "statuses": (TaskStatus.PENDING,),
            "home_id": home_id,
            "room_id": room_id,
            "trackable_id": trackable_id,
            "newest_completed_first": sort == SORT_RECENTLY_COMPLETED,
            "limit": effective_limit,
        }
        if status_filter is TaskListStatus.COMPLETED:
            query["statuses"] = (TaskStatus.COMPLETED,)
        elif status_filter is TaskListStatus.OVERDUE:
            query["due_before"] = now
        elif status_filter is TaskListStatus.DUE_SOON:
            query["due_from"] = now
            query["due_until"] = now + timedelta(days=self._settings.due_soon_days)

        return await self._repository.list_tasks(user_id, **query)

    async def get_task_detail(self, *, user_id: UUID, task_id: UUID) -> TaskDetail:
        task = await self._repository.get_task_for_user(
            task_id, user_id, include_template=True
        )
        if task is None:
            raise TaskNotFoundError(str(task_id))
        template = task.template
        resources = _resolve_list(
            task.resources, template.resources if template else None
        )
        content = TaskContent(
            steps=_resolve_list(task.steps, template.steps if template else None),
            equipment_needed=_resolve_list(
                task.equipment_needed,
                template.equipment_needed if template else None,
            ),
            resources=resources,
            parts=extract_parts(resources),
        )
        return TaskDetail(task=task, template=template, content=content)

    async def create_from_template(
        self,
        *,
        user_id: UUID,
        template_id: UUID,
        home_id: str | None = None,
        room_id: str | None = None,
        trackable_id: str | None = None,
        item_name: str | None = None,
        location: str | None = None,
    ) -> UserTask:
        template = await self._repository.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(str(template_id))
        if template.state != TemplateState.VERIFIED:
            raise TaskValidationError(
                "TEMPLATE_NOT_VERIFIED", "only verified templates can create tasks"
            )

        values: dict[str, Any] = {
            descriptor.attribute: descriptor.serialize(template)
            for descriptor in TEMPLATE_FIELDS
        }
        task = await self._repository.create_task(
            user_id=user_id,
            task_template_id=template.id,
            source_template_version=template.version,
            overridden_fields=[],
            task_type=template.task_type,
            status=TaskStatus.PENDING,
            due_date=initial_due_date(self._now(), template.recurrence_interval),
            is_tracking=True,
            home_id=home_id,
            room_id=room_id,
            trackable_id=trackable_id,
            item_name=item_name or "",
            location=location,
            **values,
        )
        await self._save(task)
        logger.info(
            "maintenance.task_created",
            extra={
                "user_id": str(user_id),
                "task_id": str(task.id),
                "template_id": str(template.id),
                "template_version": template.version,
            },
        )
        return task

    async def edit_task(
        self,
        *,
        user_id: UUID,
        task_id: UUID,
        changes: Mapping[str, Any],
    ) -> UserTask:
        """Write content field edits and record them as user overrides.

        ``changes`` is keyed by wire field name. Only values that actually
        differ are written; for template-linked tasks those names join
        ``overridden_fields`` so later template syncs leave them alone.
        """

        unknown = [name for name in changes if not is_template_field(name)]
        if unknown:
            raise TaskValidationError(
                "UNKNOWN_TEMPLATE_FIELD", f"unknown fields: {', '.join(unknown)}"
            )
        if "title" in changes and not (changes["title"] or "").strip():
            raise TaskValidationError("TITLE_REQUIRED", "title cannot be empty")

        task = await self._require_task(user_id, task_id)
        edited = []
        for name in ordered_field_names(changes):
            descriptor = get_field(name)
            if descriptor.equals(descriptor.read(task), changes[name]):
                continue
            descriptor.write(task, changes[name])
            edited.append(name)

        if edited and task.task_template_id is not None:
            task.overridden_fields = ordered_field_names(
                [*(task.overridden_fields or []), *edited]
            )

        await self._save(task)
        logger.info(
            "maintenance.task_edited",
            extra={
                "user_id": str(user_id),
                "task_id": str(task.id),
                "fields": edited,
            },
        )
        return task

    async def complete(self, *, user_id: UUID, task_id: UUID) -> UserTask:
        task = await self._require_task(user_id, task_id)
        task.status = TaskStatus.COMPLETED
        task.completed_date = self._now()
        await self._save(task)
        logger.info(
            "maintenance.task_completed",
            extra={"user_id": str(user_id), "task_id": str(task.id)},
        )
        return task

    async def uncomplete(self, *, user_id: UUID, task_id: UUID) -> UserTask:
        task = await self._require_task(user_id, task_id)
        task.status = TaskStatus.PENDING
        task.completed_date = None
        await self._save(task)
        logger.info(
            "maintenance.task_uncompleted",
            extra={"user_id": str(user_id), "task_id": str(task.id)},
        )
        return task

    async def snooze(
        self,
        *,
        user_id: UUID,
        task_id: UUID,
        days: int | None = None,
    ) -> UserTask:
        task = await self._require_task(user_id, task_id)
        if task.can_defer is False:
            raise TaskValidationError(
                "SNOOZE_NOT_ALLOWED", "this task cannot be deferred"
            )

        requested = self._settings.default_snooze_days if days is None else days
        effective = max(1, int(requested))
        limit = task.defer_limit_days or 0
        if limit > 0:
            effective = min(effective, limit)

        base = _as_utc(task.due_date) or self._now()
        task.due_date = base + timedelta(days=effective)
        await self._save(task)
        logger.info(
            "maintenance.task_snoozed",
            extra={
                "user_id": str(user_id),
                "task_id": str(task.id),
                "days": effective,
            },
        )
        return task

    async def pause(self, *, user_id: UUID, task_id: UUID) -> UserTask:
        task = await self._require_task(user_id, task_id)
        task.paused_at = self._now()
        task.is_tracking = False
        await self._repository.add_lifecycle_event(
            user_id=user_id, entity_id=task.id, action="paused"
        )
        await self._save(task)
        logger.info(
            "maintenance.task_paused",
            extra={"user_id": str(user_id), "task_id": str(task.id)},
        )
        return task

    async def resume(
        self,
        *,
        user_id: UUID,
        task_id: UUID,
        mode: ResumeMode = ResumeMode.FORWARD,
    ) -> UserTask:
        task = await self._require_task(user_id, task_id)
        now = self._now()
        task.paused_at = None
        task.is_tracking = True
        if mode is ResumeMode.FORWARD:
            task.due_date = forward_from(now, task.recurrence_interval)
        else:
            task.due_date = now
        await self._repository.add_lifecycle_event(
            user_id=user_id,
            entity_id=task.id,
            action="resumed",
            metadata={"mode": mode.value},
        )
        await self._save(task)
        logger.info(
            "maintenance.task_resumed",
            extra={"user_id": str(user_id), "task_id": str(task.id), "mode": mode.value},
        )
        return task

    async def archive(self, *, user_id: UUID, task_id: UUID) -> UserTask:
        task = await self._require_task(user_id, task_id)
        task.archived_at = self._now()
        task.paused_at = None
        task.is_tracking = False
        await self._repository.add_lifecycle_event(
            user_id=user_id, entity_id=task.id, action="archived"
        )
        await self._save(task)
        logger.info(
            "maintenance.task_archived",
            extra={"user_id": str(user_id), "task_id": str(task.id)},
        )
        return task

    async def unarchive(self, *, user_id: UUID, task_id: UUID) -> UserTask:
        task = await self._require_task(user_id, task_id)
        task.archived_at = None
        task.is_tracking = True
        await self._repository.add_lifecycle_event(
            user_id=user_id, entity_id=task.id, action="unarchived"
        )
        await self._save(task)
        logger.info(
            "maintenance.task_unarchived",
            extra={"user_id": str(user_id), "task_id": str(task.id)},
        )
        return task


__all__ = [
    "MaintenanceTaskService",
    "ResumeMode",
    "SORT_DUE_DATE",
    "SORT_RECENTLY_COMPLETED",
    "TaskContent",
    "TaskDetail",
    "TaskListStatus",
    "extract_parts",
]
