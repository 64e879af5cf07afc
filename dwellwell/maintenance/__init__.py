"""Maintenance task package exports and service wiring."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from .errors import (
    MaintenanceError,
    PermissionDeniedError,
    TaskNotFoundError,
    TaskOrTemplateNotFoundError,
    TaskValidationError,
    TemplateNotFoundError,
)
from .fields import TEMPLATE_FIELD_NAMES, TEMPLATE_FIELDS, TemplateField
from .models import (
    TaskLifecycleEvent,
    TaskSnapshotHistory,
    TaskStatus,
    TaskTemplate,
    TaskType,
    TemplateState,
    UserTask,
)
from .reconciliation import OverridePolicy, TemplateReconciliationService
from .repositories import MaintenanceTaskRepository
from .service import MaintenanceTaskService
from .templates import TaskTemplateAdminService


def get_maintenance_repository(session: AsyncSession) -> MaintenanceTaskRepository:
    """Factory helper used by FastAPI dependencies to access repositories."""

    return MaintenanceTaskRepository(session)


def get_task_service(session: AsyncSession) -> MaintenanceTaskService:
    return MaintenanceTaskService(get_maintenance_repository(session))


def get_reconciliation_service(session: AsyncSession) -> TemplateReconciliationService:
    return TemplateReconciliationService(get_maintenance_repository(session))


def get_template_admin_service(session: AsyncSession) -> TaskTemplateAdminService:
    return TaskTemplateAdminService(get_maintenance_repository(session))


__all__ = [
    "MaintenanceError",
    "MaintenanceTaskRepository",
    "MaintenanceTaskService",
    "PermissionDeniedError",
    "OverridePolicy",
    "TEMPLATE_FIELDS",
    "TEMPLATE_FIELD_NAMES",
    "TaskLifecycleEvent",
    "TaskNotFoundError",
    "TaskOrTemplateNotFoundError",
    "TaskSnapshotHistory",
    "TaskStatus",
    "TaskTemplate",
    "TaskTemplateAdminService",
    "TaskType",
    "TaskValidationError",
    "TemplateField",
    "TemplateNotFoundError",
    "TemplateReconciliationService",
    "TemplateState",
    "UserTask",
    "get_maintenance_repository",
    "get_reconciliation_service",
    "get_task_service",
    "get_template_admin_service",
]
