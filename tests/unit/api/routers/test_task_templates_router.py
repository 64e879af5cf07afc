"""Router tests for task template administration endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api_service.api.routers.task_templates import _get_service, router
from api_service.auth_providers import get_current_user
from dwellwell.maintenance.errors import TaskValidationError, TemplateNotFoundError
from dwellwell.maintenance.models import TaskType, TemplateState


def _user(is_superuser: bool):
    def _resolve():
        return SimpleNamespace(
            id=uuid4(),
            email="admin@example.com",
            is_active=True,
            is_superuser=is_superuser,
        )

    return _resolve


def _build_app(*, is_superuser: bool = True) -> tuple[TestClient, AsyncMock]:
    app = FastAPI()
    app.include_router(router)
    service = AsyncMock()
    app.dependency_overrides[_get_service] = lambda: service
    app.dependency_overrides[get_current_user()] = _user(is_superuser)
    return TestClient(app), service


def _template(**overrides):
    values = {
        "id": uuid4(),
        "version": 1,
        "state": TemplateState.DRAFT,
        "task_type": TaskType.GENERAL,
        "seed_key": None,
        "title": "Flush water heater",
        "description": "Drain sediment from the tank.",
        "recurrence_interval": "yearly",
        "criticality": "medium",
        "estimated_time_minutes": 60,
        "estimated_cost": 0.0,
        "can_be_outsourced": True,
        "can_defer": True,
        "defer_limit_days": 30,
        "category": "utility",
        "icon": "water",
        "image_url": None,
        "steps": ["Turn off power", "Attach hose", "Drain"],
        "equipment_needed": ["Garden hose"],
        "resources": [],
        "created_at": datetime(2026, 10, 1, tzinfo=UTC),
        "updated_at": datetime(2026, 10, 1, tzinfo=UTC),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_list_templates_filters_by_state() -> None:
    client, service = _build_app()
    template = _template(state=TemplateState.VERIFIED, seed_key="utility_flush")
    service.list_templates.return_value = [template]

    response = client.get("/api/admin/task-templates", params={"state": "VERIFIED"})

    assert response.status_code == 200
    (item,) = response.json()["items"]
    assert item["id"] == str(template.id)
    assert item["seedKey"] == "utility_flush"
    assert item["recurrenceInterval"] == "yearly"
    service.list_templates.assert_awaited_once_with(state=TemplateState.VERIFIED)


def test_non_admin_is_forbidden() -> None:
    client, service = _build_app(is_superuser=False)

    response = client.get("/api/admin/task-templates")
    create = client.post("/api/admin/task-templates", json={"title": "Sweep"})

    assert response.status_code == 403
    assert response.json() == {"error": "FORBIDDEN"}
    assert create.status_code == 403
    service.list_templates.assert_not_awaited()
    service.create_template.assert_not_awaited()


def test_create_template_passes_content_state_and_type() -> None:
    client, service = _build_app()
    template = _template()
    service.create_template.return_value = template

    response = client.post(
        "/api/admin/task-templates",
        json={
            "title": "Flush water heater",
            "recurrenceInterval": "yearly",
            "criticality": "medium",
            "taskType": "USER_DEFINED",
        },
    )

    assert response.status_code == 201
    assert response.json()["title"] == "Flush water heater"
    service.create_template.assert_awaited_once_with(
        fields={
            "title": "Flush water heater",
            "recurrenceInterval": "yearly",
            "criticality": "medium",
        },
        state=TemplateState.DRAFT,
        task_type=TaskType.USER_DEFINED,
    )


def test_create_template_requires_title() -> None:
    client, service = _build_app()

    response = client.post("/api/admin/task-templates", json={"description": "x"})

    assert response.status_code == 422
    service.create_template.assert_not_awaited()


def test_update_template_publishes_new_version() -> None:
    client, service = _build_app()
    template = _template(version=2, state=TemplateState.VERIFIED)
    service.update_template.return_value = template

    response = client.put(
        f"/api/admin/task-templates/{template.id}",
        json={"steps": ["Drain"], "state": "VERIFIED"},
    )

    assert response.status_code == 200
    assert response.json()["version"] == 2
    service.update_template.assert_awaited_once_with(
        template.id,
        changes={"steps": ["Drain"]},
        state=TemplateState.VERIFIED,
        task_type=None,
    )


def test_update_template_validation_error() -> None:
    client, service = _build_app()
    service.update_template.side_effect = TaskValidationError("TITLE_REQUIRED")

    response = client.put(f"/api/admin/task-templates/{uuid4()}", json={"icon": "x"})

    assert response.status_code == 422
    assert response.json() == {"error": "TITLE_REQUIRED"}


def test_get_and_delete_unknown_template() -> None:
    client, service = _build_app()
    service.get_template.side_effect = TemplateNotFoundError("missing")
    service.delete_template.side_effect = TemplateNotFoundError("missing")

    fetched = client.get(f"/api/admin/task-templates/{uuid4()}")
    deleted = client.delete(f"/api/admin/task-templates/{uuid4()}")
    malformed = client.get("/api/admin/task-templates/not-a-uuid")

    assert fetched.status_code == 404
    assert fetched.json() == {"error": "TEMPLATE_NOT_FOUND"}
    assert deleted.status_code == 404
    assert malformed.status_code == 404


def test_delete_template_returns_no_content() -> None:
    client, service = _build_app()
    template_id = uuid4()
    service.delete_template.return_value = None

    response = client.delete(f"/api/admin/task-templates/{template_id}")

    assert response.status_code == 204
    service.delete_template.assert_awaited_once_with(template_id)
