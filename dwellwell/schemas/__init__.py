from .maintenance_models import (
    ApplyTemplateUpdatesRequest,
    ApplyTemplateUpdatesResponse,
    PendingUpdatesResponse,
    TaskDetailResponse,
    TaskTemplateModel,
    TemplateDiffResponse,
    UserTaskModel,
)

__all__ = [
    "ApplyTemplateUpdatesRequest",
    "ApplyTemplateUpdatesResponse",
    "PendingUpdatesResponse",
    "TaskDetailResponse",
    "TaskTemplateModel",
    "TemplateDiffResponse",
    "UserTaskModel",
]
