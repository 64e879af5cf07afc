"""Persistence helpers for maintenance templates and user tasks."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dwellwell.maintenance import models


class MaintenanceTaskRepository:
    """Repository wrapper around an ``AsyncSession`` for task records."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def get_task_for_user(
        self,
        task_id: UUID,
        user_id: UUID,
        *,
        include_template: bool = False,
    ) -> models.UserTask | None:
        stmt: Select[tuple[models.UserTask]] = select(models.UserTask).where(
            models.UserTask.id == task_id,
            models.UserTask.user_id == user_id,
        )
        if include_template:
            stmt = stmt.options(selectinload(models.UserTask.template))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_template_linked_tasks(
        self,
        user_id: UUID,
        *,
        trackable_id: str | None = None,
    ) -> list[models.UserTask]:
        """Non-archived tasks that still point at a template, oldest first."""

        stmt: Select[tuple[models.UserTask]] = (
            select(models.UserTask)
            .options(selectinload(models.UserTask.template))
            .where(
                models.UserTask.user_id == user_id,
                models.UserTask.archived_at.is_(None),
                models.UserTask.task_template_id.is_not(None),
            )
            .order_by(models.UserTask.created_at.asc(), models.UserTask.id.asc())
        )
        if trackable_id:
            stmt = stmt.where(models.UserTask.trackable_id == trackable_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_tasks(
        self,
        user_id: UUID,
        *,
        statuses: tuple[models.TaskStatus, ...],
        due_before: datetime | None = None,
        due_from: datetime | None = None,
        due_until: datetime | None = None,
        home_id: str | None = None,
        room_id: str | None = None,
        trackable_id: str | None = None,
        newest_completed_first: bool = False,
        limit: int = 100,
    ) -> list[models.UserTask]:
        stmt: Select[tuple[models.UserTask]] = select(models.UserTask).where(
            models.UserTask.user_id == user_id,
            models.UserTask.archived_at.is_(None),
            models.UserTask.status.in_(statuses),
        )
        if due_before is not None:
            stmt = stmt.where(
                models.UserTask.due_date.is_not(None),
                models.UserTask.due_date < due_before,
            )
        if due_from is not None:
            stmt = stmt.where(models.UserTask.due_date >= due_from)
        if due_until is not None:
            stmt = stmt.where(models.UserTask.due_date <= due_until)
        # Room and trackable scopes are narrower than a home and take precedence.
        if room_id:
            stmt = stmt.where(models.UserTask.room_id == room_id)
        if trackable_id:
            stmt = stmt.where(models.UserTask.trackable_id == trackable_id)
        if home_id and not room_id and not trackable_id:
            stmt = stmt.where(models.UserTask.home_id == home_id)

        if newest_completed_first:
            stmt = stmt.order_by(
                models.UserTask.completed_date.desc(),
                models.UserTask.created_at.desc(),
            )
        else:
            stmt = stmt.order_by(
                models.UserTask.due_date.asc(),
                models.UserTask.created_at.asc(),
            )
        result = await self._session.execute(stmt.limit(limit))
        return list(result.scalars().all())

    async def create_task(self, **values: Any) -> models.UserTask:
        entity = models.UserTask(**values)
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def add_snapshot(
        self,
        *,
        user_task_id: UUID,
        from_version: int,
        to_version: int,
        fields_changed: list[str],
        snapshot_before: dict[str, Any],
        snapshot_after: dict[str, Any],
    ) -> models.TaskSnapshotHistory:
        entry = models.TaskSnapshotHistory(
            user_task_id=user_task_id,
            from_version=from_version,
            to_version=to_version,
            fields_changed=fields_changed,
            snapshot_before=snapshot_before,
            snapshot_after=snapshot_after,
        )
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def list_snapshots(self, user_task_id: UUID) -> list[models.TaskSnapshotHistory]:
        stmt = (
            select(models.TaskSnapshotHistory)
            .where(models.TaskSnapshotHistory.user_task_id == user_task_id)
            .order_by(models.TaskSnapshotHistory.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def add_lifecycle_event(
        self,
        *,
        user_id: UUID,
        entity_id: UUID,
        action: str,
        metadata: dict[str, Any] | None = None,
        entity: str = "task",
    ) -> models.TaskLifecycleEvent:
        event = models.TaskLifecycleEvent(
            user_id=user_id,
            entity=entity,
            entity_id=entity_id,
            action=action,
            event_metadata=dict(metadata or {}),
        )
        self._session.add(event)
        await self._session.flush()
        return event

    async def list_lifecycle_events(self, entity_id: UUID) -> list[models.TaskLifecycleEvent]:
        stmt = (
            select(models.TaskLifecycleEvent)
            .where(models.TaskLifecycleEvent.entity_id == entity_id)
            .order_by(models.TaskLifecycleEvent.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # Templates -------------------------------------------------------------

    async def get_template(self, template_id: UUID) -> models.TaskTemplate | None:
        return await self._session.get(models.TaskTemplate, template_id)

    async def get_template_by_seed_key(
        self, seed_key: str
    ) -> models.TaskTemplate | None:
        stmt = select(models.TaskTemplate).where(
            models.TaskTemplate.seed_key == seed_key
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_templates(
        self, *, state: models.TemplateState | None = None
    ) -> list[models.TaskTemplate]:
        stmt = select(models.TaskTemplate).order_by(
            models.TaskTemplate.title.asc(), models.TaskTemplate.created_at.asc()
        )
        if state is not None:
            stmt = stmt.where(models.TaskTemplate.state == state)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def add_template(self, template: models.TaskTemplate) -> models.TaskTemplate:
        self._session.add(template)
        await self._session.flush()
        return template

    async def delete_template(self, template: models.TaskTemplate) -> None:
        # SQLite test databases do not enforce ON DELETE SET NULL.
        await self._session.execute(
            update(models.UserTask)
            .where(models.UserTask.task_template_id == template.id)
            .values(task_template_id=None)
        )
        await self._session.delete(template)
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def refresh(self, entity: Any) -> None:
        await self._session.refresh(entity)


__all__ = ["MaintenanceTaskRepository"]
