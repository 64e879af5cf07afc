"""Pydantic schemas for maintenance task and template APIs."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dwellwell.maintenance.models import (
    TaskCriticality,
    TaskStatus,
    TaskType,
    TemplateState,
)
from dwellwell.maintenance.reconciliation import OverridePolicy
from dwellwell.maintenance.service import ResumeMode

TemplateFieldName = Literal[
    "title",
    "description",
    "recurrenceInterval",
    "criticality",
    "estimatedTimeMinutes",
    "estimatedCost",
    "canBeOutsourced",
    "canDefer",
    "deferLimitDays",
    "category",
    "icon",
    "imageUrl",
    "steps",
    "equipmentNeeded",
    "resources",
]


# Template reconciliation -----------------------------------------------------


class FieldDiffModel(BaseModel):
    """One content field whose task and template values differ."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    field: str = Field(..., alias="field")
    current: Any = Field(None, alias="current")
    proposed: Any = Field(None, alias="proposed")
    overridden: bool = Field(False, alias="overridden")


class TemplateDiffResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    user_task_id: UUID = Field(..., alias="userTaskId")
    source_template_id: UUID = Field(..., alias="sourceTemplateId")
    current_version: int = Field(0, alias="currentVersion")
    latest_version: int = Field(..., alias="latestVersion")
    diffs: list[FieldDiffModel] = Field(default_factory=list, alias="diffs")


class TemplateUpdateItem(BaseModel):
    """A task to sync, optionally narrowed to specific fields."""

    model_config = ConfigDict(populate_by_name=True)

    user_task_id: str = Field(..., alias="userTaskId")
    fields: Optional[list[TemplateFieldName]] = Field(None, alias="fields")

    @field_validator("user_task_id", mode="before")
    @classmethod
    def _stringify_numeric_id(cls, value: object) -> object:
        # Numeric ids reach the service as text and are skipped per item.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ApplyTemplateUpdatesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    updates: list[TemplateUpdateItem] = Field(default_factory=list, alias="updates")
    override_policy: OverridePolicy = Field(
        OverridePolicy.RESPECT_OVERRIDES, alias="overridePolicy"
    )


class AppliedUpdateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    user_task_id: str = Field(..., alias="userTaskId")
    applied_fields: list[str] = Field(default_factory=list, alias="appliedFields")
    new_version: int = Field(..., alias="newVersion")


class SkippedUpdateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    user_task_id: str = Field(..., alias="userTaskId")
    skipped_reason: str = Field(..., alias="skippedReason")


class ApplyTemplateUpdatesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    results: list[Union[AppliedUpdateModel, SkippedUpdateModel]] = Field(
        default_factory=list, alias="results"
    )


class PendingUpdateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    user_task_id: UUID = Field(..., alias="userTaskId")
    source_template_id: UUID = Field(..., alias="sourceTemplateId")
    current_version: int = Field(0, alias="currentVersion")
    latest_version: int = Field(..., alias="latestVersion")
    changed_fields: list[str] = Field(default_factory=list, alias="changedFields")
    is_overridden: bool = Field(False, alias="isOverridden")


class PendingUpdatesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    updates: list[PendingUpdateModel] = Field(default_factory=list, alias="updates")


# Content fields --------------------------------------------------------------


class TaskContentFields(BaseModel):
    """The shared content fields; every entry is optional for partial edits."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: Optional[str] = Field(None, alias="title", min_length=1)
    description: Optional[str] = Field(None, alias="description")
    recurrence_interval: Optional[str] = Field(None, alias="recurrenceInterval")
    criticality: Optional[TaskCriticality] = Field(None, alias="criticality")
    estimated_time_minutes: Optional[int] = Field(
        None, alias="estimatedTimeMinutes", ge=0
    )
    estimated_cost: Optional[float] = Field(None, alias="estimatedCost", ge=0)
    can_be_outsourced: Optional[bool] = Field(None, alias="canBeOutsourced")
    can_defer: Optional[bool] = Field(None, alias="canDefer")
    defer_limit_days: Optional[int] = Field(None, alias="deferLimitDays", ge=0)
    category: Optional[str] = Field(None, alias="category")
    icon: Optional[str] = Field(None, alias="icon")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    steps: Optional[list[Any]] = Field(None, alias="steps")
    equipment_needed: Optional[list[Any]] = Field(None, alias="equipmentNeeded")
    resources: Optional[list[dict[str, Any]]] = Field(None, alias="resources")

    def content_changes(self) -> dict[str, Any]:
        """Explicitly supplied fields, keyed by wire name."""

        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_unset=True,
            include=set(type(self).model_fields) & _CONTENT_ATTRIBUTES,
        )


_CONTENT_ATTRIBUTES = set(TaskContentFields.model_fields)


class TaskEditRequest(TaskContentFields):
    """PATCH payload for a user task."""


# Tasks -----------------------------------------------------------------------


class UserTaskModel(BaseModel):
    """Serialized user task."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID = Field(..., alias="id")
    task_template_id: Optional[UUID] = Field(None, alias="taskTemplateId")
    source_template_version: int = Field(0, alias="sourceTemplateVersion")
    overridden_fields: list[str] = Field(default_factory=list, alias="overriddenFields")
    task_type: TaskType = Field(TaskType.GENERAL, alias="taskType")
    status: TaskStatus = Field(..., alias="status")
    title: str = Field(..., alias="title")
    description: Optional[str] = Field(None, alias="description")
    recurrence_interval: Optional[str] = Field(None, alias="recurrenceInterval")
    criticality: Optional[str] = Field(None, alias="criticality")
    estimated_time_minutes: Optional[int] = Field(None, alias="estimatedTimeMinutes")
    estimated_cost: Optional[float] = Field(None, alias="estimatedCost")
    can_be_outsourced: Optional[bool] = Field(None, alias="canBeOutsourced")
    can_defer: Optional[bool] = Field(None, alias="canDefer")
    defer_limit_days: Optional[int] = Field(None, alias="deferLimitDays")
    category: Optional[str] = Field(None, alias="category")
    icon: Optional[str] = Field(None, alias="icon")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    steps: Optional[list[Any]] = Field(None, alias="steps")
    equipment_needed: Optional[list[Any]] = Field(None, alias="equipmentNeeded")
    resources: Optional[list[Any]] = Field(None, alias="resources")
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    completed_date: Optional[datetime] = Field(None, alias="completedDate")
    paused_at: Optional[datetime] = Field(None, alias="pausedAt")
    archived_at: Optional[datetime] = Field(None, alias="archivedAt")
    is_tracking: bool = Field(True, alias="isTracking")
    home_id: Optional[str] = Field(None, alias="homeId")
    room_id: Optional[str] = Field(None, alias="roomId")
    trackable_id: Optional[str] = Field(None, alias="trackableId")
    item_name: str = Field("", alias="itemName")
    location: Optional[str] = Field(None, alias="location")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class TaskTemplateSummaryModel(BaseModel):
    """Template breadcrumb embedded in task detail responses."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(..., alias="id")
    title: str = Field(..., alias="title")
    summary: Optional[str] = Field(None, alias="summary")
    version: int = Field(..., alias="version")
    state: TemplateState = Field(..., alias="state")
    estimated_time_minutes: Optional[int] = Field(None, alias="estimatedTimeMinutes")
    estimated_cost: Optional[float] = Field(None, alias="estimatedCost")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    icon: Optional[str] = Field(None, alias="icon")
    category: Optional[str] = Field(None, alias="category")


class TaskContentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    steps: list[Any] = Field(default_factory=list, alias="steps")
    equipment_needed: list[Any] = Field(default_factory=list, alias="equipmentNeeded")
    resources: list[Any] = Field(default_factory=list, alias="resources")
    parts: list[Any] = Field(default_factory=list, alias="parts")


class TaskDetailResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task: UserTaskModel = Field(..., alias="task")
    template: Optional[TaskTemplateSummaryModel] = Field(None, alias="template")
    content: TaskContentModel = Field(..., alias="content")


class TaskCreateRequest(BaseModel):
    """Create a task for the current user from a verified template."""

    model_config = ConfigDict(populate_by_name=True)

    template_id: UUID = Field(..., alias="templateId")
    home_id: Optional[str] = Field(None, alias="homeId")
    room_id: Optional[str] = Field(None, alias="roomId")
    trackable_id: Optional[str] = Field(None, alias="trackableId")
    item_name: Optional[str] = Field(None, alias="itemName")
    location: Optional[str] = Field(None, alias="location")


class TaskSnoozeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    days: Optional[int] = Field(None, alias="days")


class TaskResumeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: ResumeMode = Field(ResumeMode.FORWARD, alias="mode")


# Template administration -----------------------------------------------------


class TaskTemplateModel(BaseModel):
    """Serialized task template."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID = Field(..., alias="id")
    version: int = Field(..., alias="version")
    state: TemplateState = Field(..., alias="state")
    task_type: TaskType = Field(TaskType.GENERAL, alias="taskType")
    seed_key: Optional[str] = Field(None, alias="seedKey")
    title: str = Field(..., alias="title")
    description: Optional[str] = Field(None, alias="description")
    recurrence_interval: Optional[str] = Field(None, alias="recurrenceInterval")
    criticality: Optional[str] = Field(None, alias="criticality")
    estimated_time_minutes: Optional[int] = Field(None, alias="estimatedTimeMinutes")
    estimated_cost: Optional[float] = Field(None, alias="estimatedCost")
    can_be_outsourced: Optional[bool] = Field(None, alias="canBeOutsourced")
    can_defer: Optional[bool] = Field(None, alias="canDefer")
    defer_limit_days: Optional[int] = Field(None, alias="deferLimitDays")
    category: Optional[str] = Field(None, alias="category")
    icon: Optional[str] = Field(None, alias="icon")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    steps: Optional[list[Any]] = Field(None, alias="steps")
    equipment_needed: Optional[list[Any]] = Field(None, alias="equipmentNeeded")
    resources: Optional[list[Any]] = Field(None, alias="resources")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class TaskTemplateListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[TaskTemplateModel] = Field(default_factory=list, alias="items")


class TaskTemplateCreateRequest(TaskContentFields):
    title: str = Field(..., alias="title", min_length=1)
    state: TemplateState = Field(TemplateState.DRAFT, alias="state")
    task_type: TaskType = Field(TaskType.GENERAL, alias="taskType")


class TaskTemplateUpdateRequest(TaskContentFields):
    state: Optional[TemplateState] = Field(None, alias="state")
    task_type: Optional[TaskType] = Field(None, alias="taskType")


__all__ = [
    "ApplyTemplateUpdatesRequest",
    "ApplyTemplateUpdatesResponse",
    "AppliedUpdateModel",
    "FieldDiffModel",
    "PendingUpdateModel",
    "PendingUpdatesResponse",
    "SkippedUpdateModel",
    "TaskContentFields",
    "TaskContentModel",
    "TaskCreateRequest",
    "TaskDetailResponse",
    "TaskEditRequest",
    "TaskResumeRequest",
    "TaskSnoozeRequest",
    "TaskTemplateCreateRequest",
    "TaskTemplateListResponse",
    "TaskTemplateModel",
    "TaskTemplateSummaryModel",
    "TaskTemplateUpdateRequest",
    "TemplateDiffResponse",
    "TemplateFieldName",
    "TemplateUpdateItem",
    "UserTaskModel",
]
