"""Template version reconciliation for user maintenance tasks.

A user task is a copy of a template's content fields. When admins publish a new
template version, these operations show what moved (``diff``), list which tasks
are behind (``pending_updates``) and copy template values back into tasks
(``apply_updates``) while honouring the fields the user has overridden.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence
from uuid import UUID

from dwellwell.maintenance.errors import TaskOrTemplateNotFoundError, TaskValidationError
from dwellwell.maintenance.fields import (
    TEMPLATE_FIELD_NAMES,
    TEMPLATE_FIELDS,
    changed_fields,
    get_field,
    is_template_field,
    ordered_field_names,
    snapshot,
)
from dwellwell.maintenance.models import TemplateState, UserTask
from dwellwell.maintenance.repositories import MaintenanceTaskRepository

logger = logging.getLogger(__name__)

SKIP_TASK_OR_TEMPLATE_NOT_FOUND = "TASK_OR_TEMPLATE_NOT_FOUND"


class OverridePolicy(str, enum.Enum):
    """How ``apply_updates`` treats fields listed in ``overridden_fields``."""

    RESPECT_OVERRIDES = "respect_overrides"
    FORCE_ALL = "force_all"
    # Currently filters exactly like RESPECT_OVERRIDES.
    ONLY_NON_OVERRIDDEN = "only_non_overridden"


@dataclass(frozen=True, slots=True)
class FieldDiff:
    field: str
    current: Any
    proposed: Any
    overridden: bool


@dataclass(frozen=True, slots=True)
class TemplateDiff:
    user_task_id: UUID
    source_template_id: UUID
    current_version: int
    latest_version: int
    diffs: list[FieldDiff]


@dataclass(frozen=True, slots=True)
class TemplateUpdateRequest:
    user_task_id: str
    fields: list[str] | None = None


@dataclass(frozen=True, slots=True)
class AppliedUpdate:
    user_task_id: str
    applied_fields: list[str]
    new_version: int


@dataclass(frozen=True, slots=True)
class SkippedUpdate:
    user_task_id: str
    skipped_reason: str


@dataclass(frozen=True, slots=True)
class PendingUpdate:
    user_task_id: UUID
    source_template_id: UUID
    current_version: int
    latest_version: int
    changed_fields: list[str] = field(default_factory=list)
    is_overridden: bool = False


def _parse_uuid(raw: Any) -> UUID | None:
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except (TypeError, ValueError):
        return None


def filter_fields_for_policy(
    candidates: Sequence[str],
    overridden: Sequence[str],
    policy: OverridePolicy,
) -> list[str]:
    """Return the candidate fields that ``policy`` allows to be overwritten."""

    unique = list(dict.fromkeys(candidates))
    if policy is OverridePolicy.FORCE_ALL:
        return unique
    blocked = set(overridden)
    return [name for name in unique if name not in blocked]


class TemplateReconciliationService:
    """Compare and synchronise user tasks with their source templates."""

    def __init__(self, repository: MaintenanceTaskRepository) -> None:
        self._repository = repository

    async def diff(self, *, user_id: UUID, task_id: UUID) -> TemplateDiff:
        task = await self._repository.get_task_for_user(
            task_id, user_id, include_template=True
        )
        if task is None or task.template is None:
            raise TaskOrTemplateNotFoundError(str(task_id))
        template = task.template
        overridden = set(task.overridden_fields or [])

        diffs = []
        for descriptor in TEMPLATE_FIELDS:
            current = descriptor.read(task)
            proposed = descriptor.read(template)
            if descriptor.equals(current, proposed):
                continue
            diffs.append(
                FieldDiff(
                    field=descriptor.name,
                    current=descriptor.serialize(task),
                    proposed=descriptor.serialize(template),
                    overridden=descriptor.name in overridden,
                )
            )

        return TemplateDiff(
            user_task_id=task.id,
            source_template_id=template.id,
            current_version=task.source_template_version or 0,
            latest_version=template.version,
            diffs=diffs,
        )

    async def apply_updates(
        self,
        *,
        user_id: UUID,
        requests: Sequence[TemplateUpdateRequest],
        policy: OverridePolicy = OverridePolicy.RESPECT_OVERRIDES,
    ) -> list[AppliedUpdate | SkippedUpdate]:
        """Copy template values into each requested task.

        Items are processed in order and committed one at a time. A task that
        cannot be resolved yields a ``SkippedUpdate`` and never stops the batch.
        Storage errors roll back the current item and propagate.
        """

        for request in requests:
            unknown = [name for name in request.fields or [] if not is_template_field(name)]
            if unknown:
                raise TaskValidationError(
                    "UNKNOWN_TEMPLATE_FIELD", f"unknown fields: {', '.join(unknown)}"
                )

        results: list[AppliedUpdate | SkippedUpdate] = []
        for request in requests:
            task_id = _parse_uuid(request.user_task_id)
            task = None
            if task_id is not None:
                task = await self._repository.get_task_for_user(
                    task_id, user_id, include_template=True
                )
            if task is None or task.template is None:
                results.append(
                    SkippedUpdate(
                        user_task_id=str(request.user_task_id),
                        skipped_reason=SKIP_TASK_OR_TEMPLATE_NOT_FOUND,
                    )
                )
                continue

            try:
                applied = await self._apply_one(task, request.fields, policy)
            except Exception:
                await self._repository.rollback()
                raise
            results.append(applied)

        applied_count = sum(1 for item in results if isinstance(item, AppliedUpdate))
        logger.info(
            "maintenance.apply_template_updates",
            extra={
                "user_id": str(user_id),
                "policy": policy.value,
                "requested": len(requests),
                "applied": applied_count,
                "skipped": len(results) - applied_count,
            },
        )
        return results

    async def _apply_one(
        self,
        task: UserTask,
        requested_fields: list[str] | None,
        policy: OverridePolicy,
    ) -> AppliedUpdate:
        template = task.template
        if template is None:
            raise TaskOrTemplateNotFoundError(str(task.id))
        from_version = task.source_template_version or 0
        overridden = list(task.overridden_fields or [])

        candidates = list(requested_fields) if requested_fields else list(TEMPLATE_FIELD_NAMES)
        to_apply = filter_fields_for_policy(candidates, overridden, policy)

        before = snapshot(task, to_apply)
        after = snapshot(template, to_apply)
        for name in to_apply:
            get_field(name).write(task, after[name])
        task.source_template_version = template.version

        if policy is OverridePolicy.FORCE_ALL and overridden:
            cleared = set(to_apply)
            task.overridden_fields = ordered_field_names(
                name for name in overridden if name not in cleared
            )

        await self._repository.add_snapshot(
            user_task_id=task.id,
            from_version=from_version,
            to_version=template.version,
            fields_changed=list(to_apply),
            snapshot_before=before,
            snapshot_after=after,
        )
        await self._repository.commit()
        return AppliedUpdate(
            user_task_id=str(task.id),
            applied_fields=list(to_apply),
            new_version=template.version,
        )

    async def pending_updates(
        self,
        *,
        user_id: UUID,
        trackable_id: str | None = None,
    ) -> list[PendingUpdate]:
        tasks = await self._repository.list_template_linked_tasks(
            user_id, trackable_id=trackable_id
        )
        updates = []
        for task in tasks:
            template = task.template
            if template is None or template.state != TemplateState.VERIFIED:
                continue
            current_version = task.source_template_version or 0
            if template.version <= current_version:
                continue
            changed = changed_fields(task, template)
            overridden = set(task.overridden_fields or [])
            updates.append(
                PendingUpdate(
                    user_task_id=task.id,
                    source_template_id=template.id,
                    current_version=current_version,
                    latest_version=template.version,
                    changed_fields=changed,
                    is_overridden=any(name in overridden for name in changed),
                )
            )
        return updates


__all__ = [
    "AppliedUpdate",
    "FieldDiff",
    "OverridePolicy",
    "PendingUpdate",
    "SKIP_TASK_OR_TEMPLATE_NOT_FOUND",
    "SkippedUpdate",
    "TemplateDiff",
    "TemplateReconciliationService",
    "TemplateUpdateRequest",
    "filter_fields_for_policy",
]
