"""SQLAlchemy models for maintenance templates, user tasks and their audit trail."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from api_service.db.models import (
    Base,
    enum_values,
    json_column_type,
    mutable_json_list,
)


class TemplateState(str, enum.Enum):
    """Lifecycle states for task templates; only VERIFIED rows reach users."""

    DRAFT = "DRAFT"
    VERIFIED = "VERIFIED"
    DEPRECATED = "DEPRECATED"


class TaskType(str, enum.Enum):
    GENERAL = "GENERAL"
    AI_GENERATED = "AI_GENERATED"
    USER_DEFINED = "USER_DEFINED"


class TaskStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"


class TaskCriticality(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class _TemplateContentMixin:
    """Columns shared by templates and the per-user task copies."""

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recurrence_interval: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    criticality: Mapped[Optional[str]] = mapped_column(
        String(16), nullable=True, default=TaskCriticality.MEDIUM.value
    )
    estimated_time_minutes: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    estimated_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    can_be_outsourced: Mapped[Optional[bool]] = mapped_column(
        Boolean, nullable=True, default=False
    )
    can_defer: Mapped[Optional[bool]] = mapped_column(
        Boolean, nullable=True, default=True
    )
    defer_limit_days: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True, default=0
    )
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    steps: Mapped[Optional[list[Any]]] = mapped_column(
        json_column_type(), nullable=True
    )
    equipment_needed: Mapped[Optional[list[Any]]] = mapped_column(
        json_column_type(), nullable=True
    )
    resources: Mapped[Optional[list[Any]]] = mapped_column(
        json_column_type(), nullable=True
    )


class TaskTemplate(_TemplateContentMixin, Base):
    """Versioned, admin-authored definition of a recurring maintenance task."""

    __tablename__ = "task_templates"
    __table_args__ = (
        Index("ix_task_templates_state_version", "state", "version"),
        Index("ix_task_templates_title", "title"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    task_type: Mapped[TaskType] = mapped_column(
        Enum(
            TaskType,
            name="tasktype",
            native_enum=True,
            validate_strings=True,
            values_callable=enum_values,
        ),
        nullable=False,
        default=TaskType.GENERAL,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    state: Mapped[TemplateState] = mapped_column(
        Enum(
            TemplateState,
            name="templatestate",
            native_enum=True,
            validate_strings=True,
            values_callable=enum_values,
        ),
        nullable=False,
        default=TemplateState.DRAFT,
    )
    seed_key: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, unique=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class UserTask(_TemplateContentMixin, Base):
    """A user-owned, mutable copy of a template's content fields."""

    __tablename__ = "user_tasks"
    __table_args__ = (
        Index("ix_user_tasks_user_status_due", "user_id", "status", "due_date"),
        Index("ix_user_tasks_user_template", "user_id", "task_template_id"),
        Index("ix_user_tasks_trackable", "trackable_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    task_template_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("task_templates.id", ondelete="SET NULL"),
        nullable=True,
    )
    source_template_version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    overridden_fields: Mapped[list[str]] = mapped_column(
        mutable_json_list(), nullable=False, default=list
    )
    task_type: Mapped[TaskType] = mapped_column(
        Enum(
            TaskType,
            name="tasktype",
            native_enum=True,
            validate_strings=True,
            values_callable=enum_values,
        ),
        nullable=False,
        default=TaskType.GENERAL,
    )
    status: Mapped[TaskStatus] = mapped_column(
        Enum(
            TaskStatus,
            name="taskstatus",
            native_enum=True,
            validate_strings=True,
            values_callable=enum_values,
        ),
        nullable=False,
        default=TaskStatus.PENDING,
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    paused_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    archived_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_tracking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    home_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    room_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    trackable_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    item_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    location: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    template: Mapped[Optional[TaskTemplate]] = relationship(
        TaskTemplate, lazy="selectin"
    )


class TaskSnapshotHistory(Base):
    """Immutable record of one template reconciliation applied to a task."""

    __tablename__ = "task_snapshot_history"
    __table_args__ = (
        Index("ix_task_snapshot_history_task_created", "user_task_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_task_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("user_tasks.id", ondelete="CASCADE"), nullable=False
    )
    from_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    to_version: Mapped[int] = mapped_column(Integer, nullable=False)
    fields_changed: Mapped[list[str]] = mapped_column(
        json_column_type(), nullable=False, default=list
    )
    snapshot_before: Mapped[dict[str, Any]] = mapped_column(
        json_column_type(), nullable=False, default=dict
    )
    snapshot_after: Mapped[dict[str, Any]] = mapped_column(
        json_column_type(), nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class TaskLifecycleEvent(Base):
    """Append-only log of pause/resume/archive transitions."""

    __tablename__ = "task_lifecycle_events"
    __table_args__ = (
        Index("ix_task_lifecycle_events_entity", "entity", "entity_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    entity: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    event_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", json_column_type(), nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


__all__ = [
    "TaskCriticality",
    "TaskLifecycleEvent",
    "TaskSnapshotHistory",
    "TaskStatus",
    "TaskTemplate",
    "TaskType",
    "TemplateState",
    "UserTask",
]
