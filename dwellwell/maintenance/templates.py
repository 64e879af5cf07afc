"""Administration and seeding of versioned task templates."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping
from uuid import UUID

from dwellwell.maintenance.errors import TaskValidationError, TemplateNotFoundError
from dwellwell.maintenance.fields import TEMPLATE_FIELDS, get_field, is_template_field
from dwellwell.maintenance.models import TaskTemplate, TaskType, TemplateState
from dwellwell.maintenance.repositories import MaintenanceTaskRepository
from dwellwell.maintenance.seed import SeedDocument

logger = logging.getLogger(__name__)

# Values applied to seeded templates when the seed leaves a field out.
SEED_DEFAULTS: dict[str, Any] = {
    "criticality": "medium",
    "canDefer": True,
    "deferLimitDays": 0,
    "estimatedTimeMinutes": 30,
    "estimatedCost": 0.0,
    "canBeOutsourced": False,
    "steps": [],
    "equipmentNeeded": [],
}


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, (list, dict, str)) and len(value) == 0)


def _validate_content(changes: Mapping[str, Any], *, creating: bool) -> None:
    unknown = [name for name in changes if not is_template_field(name)]
    if unknown:
        raise TaskValidationError(
            "UNKNOWN_TEMPLATE_FIELD", f"unknown fields: {', '.join(unknown)}"
        )
    if creating or "title" in changes:
        title = changes.get("title")
        if not isinstance(title, str) or not title.strip():
            raise TaskValidationError("TITLE_REQUIRED", "title cannot be empty")


def _coerce_task_type(value: Any) -> TaskType:
    if isinstance(value, TaskType):
        return value
    try:
        return TaskType(str(value or TaskType.GENERAL.value).upper())
    except ValueError as exc:
        raise TaskValidationError("INVALID_TASK_TYPE", str(exc)) from exc


class TaskTemplateAdminService:
    """Create, edit, delete and seed task templates."""

    def __init__(self, repository: MaintenanceTaskRepository) -> None:
        self._repository = repository

    async def list_templates(
        self, *, state: TemplateState | None = None
    ) -> list[TaskTemplate]:
        return await self._repository.list_templates(state=state)

    async def get_template(self, template_id: UUID) -> TaskTemplate:
        template = await self._repository.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(str(template_id))
        return template

    async def create_template(
        self,
        *,
        fields: Mapping[str, Any],
        state: TemplateState = TemplateState.DRAFT,
        task_type: TaskType | str = TaskType.GENERAL,
    ) -> TaskTemplate:
        _validate_content(fields, creating=True)
        template = TaskTemplate(
            version=1,
            state=state,
            task_type=_coerce_task_type(task_type),
        )
        for name, value in fields.items():
            get_field(name).write(template, value)
        await self._repository.add_template(template)
        await self._repository.commit()
        await self._repository.refresh(template)
        logger.info(
            "maintenance.template_created",
            extra={"template_id": str(template.id), "state": template.state.value},
        )
        return template

    async def update_template(
        self,
        template_id: UUID,
        *,
        changes: Mapping[str, Any],
        state: TemplateState | None = None,
        task_type: TaskType | str | None = None,
    ) -> TaskTemplate:
        """Apply edits; any real content change publishes version + 1."""

        _validate_content(changes, creating=False)
        template = await self.get_template(template_id)

        changed = []
        for name, value in changes.items():
            descriptor = get_field(name)
            if descriptor.equals(descriptor.read(template), value):
                continue
            descriptor.write(template, value)
            changed.append(name)
        if changed:
            template.version = (template.version or 0) + 1
        if state is not None:
            template.state = state
        if task_type is not None:
            template.task_type = _coerce_task_type(task_type)

        await self._repository.commit()
        await self._repository.refresh(template)
        logger.info(
            "maintenance.template_updated",
            extra={
                "template_id": str(template.id),
                "version": template.version,
                "fields": changed,
                "state": template.state.value,
            },
        )
        return template

    async def delete_template(self, template_id: UUID) -> None:
        template = await self.get_template(template_id)
        await self._repository.delete_template(template)
        await self._repository.commit()
        logger.info(
            "maintenance.template_deleted", extra={"template_id": str(template_id)}
        )

    async def seed_templates(
        self, documents: Iterable[SeedDocument]
    ) -> tuple[int, int]:
        """Insert or backfill templates keyed by ``seed_key``.

        New keys become version 1 VERIFIED templates. Existing rows only have
        empty fields filled in and keep their version, so seeding is safe to
        rerun against a live catalog.
        """

        created = 0
        updated = 0
        for document in documents:
            values = {**SEED_DEFAULTS, **document.values}
            existing = await self._repository.get_template_by_seed_key(document.key)
            if existing is None:
                template = TaskTemplate(
                    seed_key=document.key,
                    version=1,
                    state=TemplateState.VERIFIED,
                    task_type=_coerce_task_type(document.task_type),
                )
                for descriptor in TEMPLATE_FIELDS:
                    descriptor.write(template, values.get(descriptor.name))
                await self._repository.add_template(template)
                created += 1
                continue

            filled = False
            for descriptor in TEMPLATE_FIELDS:
                incoming = values.get(descriptor.name)
                if _is_missing(descriptor.read(existing)) and not _is_missing(incoming):
                    descriptor.write(existing, incoming)
                    filled = True
            if filled:
                updated += 1

        await self._repository.commit()
        logger.info(
            "maintenance.templates_seeded",
            extra={"created": created, "updated": updated},
        )
        return created, updated


__all__ = ["SEED_DEFAULTS", "TaskTemplateAdminService"]
