"""Domain errors raised by the maintenance services."""

from __future__ import annotations


class MaintenanceError(RuntimeError):
    """Base error for maintenance task and template operations."""

    code = "MAINTENANCE_ERROR"
    status_code = 400


class TaskNotFoundError(MaintenanceError):
    """Raised when a task does not exist or belongs to another user."""

    code = "TASK_NOT_FOUND"
    status_code = 404


class TaskOrTemplateNotFoundError(MaintenanceError):
    """Raised when a task or its linked template cannot be resolved."""

    code = "TASK_OR_TEMPLATE_NOT_FOUND"
    status_code = 404


class TemplateNotFoundError(MaintenanceError):
    """Raised when a task template id is unknown."""

    code = "TEMPLATE_NOT_FOUND"
    status_code = 404


class PermissionDeniedError(MaintenanceError):
    """Raised when a non-admin user calls a template administration action."""

    code = "FORBIDDEN"
    status_code = 403


class TaskValidationError(MaintenanceError):
    """Raised when a request is well-formed but not allowed for the record."""

    status_code = 422

    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(message or code)
        self.code = code


__all__ = [
    "MaintenanceError",
    "PermissionDeniedError",
    "TaskNotFoundError",
    "TaskOrTemplateNotFoundError",
    "TaskValidationError",
    "TemplateNotFoundError",
]
