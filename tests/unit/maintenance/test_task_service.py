"""Tests for the maintenance task lifecycle service."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from dwellwell.maintenance.errors import (
    TaskNotFoundError,
    TaskValidationError,
    TemplateNotFoundError,
)
from dwellwell.maintenance.models import TaskStatus, TemplateState
from dwellwell.maintenance.repositories import MaintenanceTaskRepository
from dwellwell.maintenance.service import (
    MaintenanceTaskService,
    ResumeMode,
    TaskListStatus,
    extract_parts,
)
from maintenance_factories import build_task, build_template

pytestmark = [pytest.mark.asyncio]

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def _service(session) -> tuple[MaintenanceTaskService, MaintenanceTaskRepository]:
    repository = MaintenanceTaskRepository(session)
    return MaintenanceTaskService(repository, clock=lambda: NOW), repository


def _utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, TaskListStatus.ACTIVE),
        ("bogus", TaskListStatus.ACTIVE),
        ("Completed", TaskListStatus.COMPLETED),
        ("overdue", TaskListStatus.OVERDUE),
        ("dueSoon", TaskListStatus.DUE_SOON),
        ("due_soon", TaskListStatus.DUE_SOON),
    ],
)
def test_task_list_status_parse(raw, expected) -> None:
    assert TaskListStatus.parse(raw) is expected


def test_extract_parts_matches_buy_links_and_amazon_urls() -> None:
    resources = [
        {"label": "Filter", "type": "buy", "url": "https://hardware.example.com"},
        {"label": "Cartridge", "url": "https://www.amazon.com/dp/B000"},
        {"label": "How-to", "type": "video", "url": "https://video.example.com"},
        "not a mapping",
    ]
    assert [part["label"] for part in extract_parts(resources)] == [
        "Filter",
        "Cartridge",
    ]


async def test_list_tasks_filters_by_status_window_and_scope(maintenance_db) -> None:
    user_id = uuid4()
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            overdue = build_task(
                None, user_id, title="Overdue", due_date=NOW - timedelta(days=2)
            )
            soon = build_task(
                None,
                user_id,
                title="Soon",
                due_date=NOW + timedelta(days=3),
                room_id="kitchen",
                home_id="home-1",
            )
            later = build_task(
                None,
                user_id,
                title="Later",
                due_date=NOW + timedelta(days=40),
                home_id="home-1",
            )
            done = build_task(
                None,
                user_id,
                title="Done",
                status=TaskStatus.COMPLETED,
                completed_date=NOW - timedelta(days=1),
            )
            done_earlier = build_task(
                None,
                user_id,
                title="Done earlier",
                status=TaskStatus.COMPLETED,
                completed_date=NOW - timedelta(days=5),
            )
            archived = build_task(
                None,
                user_id,
                title="Archived",
                due_date=NOW - timedelta(days=10),
                archived_at=NOW,
            )
            foreign = build_task(None, uuid4(), title="Foreign", due_date=NOW)
            session.add_all(
                [overdue, soon, later, done, done_earlier, archived, foreign]
            )
            await session.commit()

            service, _ = _service(session)
            active = await service.list_tasks(user_id=user_id)
            overdue_only = await service.list_tasks(user_id=user_id, status="overdue")
            due_soon = await service.list_tasks(user_id=user_id, status="dueSoon")
            completed = await service.list_tasks(
                user_id=user_id, status="completed", sort="-completedAt"
            )
            in_home = await service.list_tasks(user_id=user_id, home_id="home-1")
            room_wins = await service.list_tasks(
                user_id=user_id, home_id="home-2", room_id="kitchen"
            )
            limited = await service.list_tasks(user_id=user_id, limit=1)

    assert [task.title for task in active] == ["Overdue", "Soon", "Later"]
    assert [task.title for task in overdue_only] == ["Overdue"]
    assert [task.title for task in due_soon] == ["Soon"]
    assert [task.title for task in completed] == ["Done", "Done earlier"]
    assert [task.title for task in in_home] == ["Soon", "Later"]
    assert [task.title for task in room_wins] == ["Soon"]
    assert len(limited) == 1


async def test_create_from_template_copies_content_and_schedules(
    maintenance_db,
) -> None:
    user_id = uuid4()
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            template = build_template(version=4, recurrence_interval="3 months")
            session.add(template)
            await session.commit()

            service, _ = _service(session)
            task = await service.create_from_template(
                user_id=user_id,
                template_id=template.id,
                trackable_id="gutters",
                item_name="Front gutters",
            )

    assert task.task_template_id == template.id
    assert task.source_template_version == 4
    assert task.overridden_fields == []
    assert task.title == template.title
    assert task.steps == template.steps
    assert task.status == TaskStatus.PENDING
    assert task.is_tracking is True
    assert task.item_name == "Front gutters"
    assert _utc(task.due_date) == datetime(2026, 6, 15, 12, 0, tzinfo=UTC)


async def test_create_from_template_requires_verified_template(maintenance_db) -> None:
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            draft = build_template(state=TemplateState.DRAFT)
            session.add(draft)
            await session.commit()

            service, _ = _service(session)
            with pytest.raises(TaskValidationError) as excinfo:
                await service.create_from_template(
                    user_id=uuid4(), template_id=draft.id
                )
            with pytest.raises(TemplateNotFoundError):
                await service.create_from_template(
                    user_id=uuid4(), template_id=uuid4()
                )

    assert excinfo.value.code == "TEMPLATE_NOT_VERIFIED"


async def test_edit_task_records_overrides_for_changed_fields(maintenance_db) -> None:
    user_id = uuid4()
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            template = build_template()
            task = build_task(template, user_id, overridden_fields=["icon"])
            session.add_all([template, task])
            await session.commit()

            service, _ = _service(session)
            edited = await service.edit_task(
                user_id=user_id,
                task_id=task.id,
                changes={
                    "steps": ["Use a gutter scoop"],
                    "title": template.title,
                    "estimatedTimeMinutes": 45,
                },
            )

    assert edited.steps == ["Use a gutter scoop"]
    assert edited.estimated_time_minutes == 45
    assert edited.overridden_fields == ["estimatedTimeMinutes", "icon", "steps"]


async def test_edit_task_without_template_keeps_overrides_empty(
    maintenance_db,
) -> None:
    user_id = uuid4()
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            task = build_task(None, user_id, title="Water plants")
            session.add(task)
            await session.commit()

            service, _ = _service(session)
            edited = await service.edit_task(
                user_id=user_id,
                task_id=task.id,
                changes={"title": "Water the ferns"},
            )

    assert edited.title == "Water the ferns"
    assert edited.overridden_fields == []


async def test_edit_task_validation(maintenance_db) -> None:
    user_id = uuid4()
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            task = build_task(None, user_id)
            session.add(task)
            await session.commit()

            service, _ = _service(session)
            with pytest.raises(TaskValidationError) as blank:
                await service.edit_task(
                    user_id=user_id, task_id=task.id, changes={"title": "  "}
                )
            with pytest.raises(TaskValidationError) as unknown:
                await service.edit_task(
                    user_id=user_id, task_id=task.id, changes={"dueDate": "soon"}
                )
            with pytest.raises(TaskNotFoundError):
                await service.edit_task(
                    user_id=uuid4(), task_id=task.id, changes={"title": "Mine"}
                )

    assert blank.value.code == "TITLE_REQUIRED"
    assert unknown.value.code == "UNKNOWN_TEMPLATE_FIELD"


async def test_complete_and_uncomplete(maintenance_db) -> None:
    user_id = uuid4()
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            task = build_task(
                None,
                user_id,
                due_date=datetime(2026, 3, 1, tzinfo=UTC),
                recurrence_interval="monthly",
            )
            session.add(task)
            await session.commit()

            service, _ = _service(session)
            completed = await service.complete(user_id=user_id, task_id=task.id)
            assert completed.status == TaskStatus.COMPLETED
            assert _utc(completed.completed_date) == NOW
            assert _utc(completed.due_date) == datetime(2026, 3, 1, tzinfo=UTC)

            reopened = await service.uncomplete(user_id=user_id, task_id=task.id)

    assert reopened.status == TaskStatus.PENDING
    assert reopened.completed_date is None


async def test_snooze_respects_defaults_and_defer_limit(maintenance_db) -> None:
    user_id = uuid4()
    due = datetime(2026, 3, 20, tzinfo=UTC)
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            flexible = build_task(None, user_id, due_date=due, can_defer=True)
            capped = build_task(
                None, user_id, due_date=due, can_defer=True, defer_limit_days=3
            )
            undated = build_task(None, user_id, can_defer=True)
            fixed = build_task(None, user_id, due_date=due, can_defer=False)
            session.add_all([flexible, capped, undated, fixed])
            await session.commit()

            service, _ = _service(session)
            default_snooze = await service.snooze(user_id=user_id, task_id=flexible.id)
            assert _utc(default_snooze.due_date) == due + timedelta(days=7)

            clamped = await service.snooze(user_id=user_id, task_id=capped.id, days=10)
            assert _utc(clamped.due_date) == due + timedelta(days=3)

            floor = await service.snooze(user_id=user_id, task_id=undated.id, days=0)
            assert _utc(floor.due_date) == NOW + timedelta(days=1)

            with pytest.raises(TaskValidationError) as excinfo:
                await service.snooze(user_id=user_id, task_id=fixed.id)

    assert excinfo.value.code == "SNOOZE_NOT_ALLOWED"


async def test_pause_resume_and_archive_write_lifecycle_events(maintenance_db) -> None:
    user_id = uuid4()
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            task = build_task(
                None,
                user_id,
                recurrence_interval="weekly",
                due_date=NOW - timedelta(days=30),
            )
            session.add(task)
            await session.commit()

            service, repository = _service(session)
            paused = await service.pause(user_id=user_id, task_id=task.id)
            assert _utc(paused.paused_at) == NOW
            assert paused.is_tracking is False

            resumed = await service.resume(user_id=user_id, task_id=task.id)
            assert resumed.paused_at is None
            assert resumed.is_tracking is True
            assert _utc(resumed.due_date) == NOW + timedelta(weeks=1)

            now_mode = await service.resume(
                user_id=user_id, task_id=task.id, mode=ResumeMode.NOW
            )
            assert _utc(now_mode.due_date) == NOW

            archived = await service.archive(user_id=user_id, task_id=task.id)
            assert _utc(archived.archived_at) == NOW
            assert archived.is_tracking is False

            restored = await service.unarchive(user_id=user_id, task_id=task.id)
            assert restored.archived_at is None
            assert restored.is_tracking is True

            events = await repository.list_lifecycle_events(task.id)

    actions = sorted(event.action for event in events)
    assert actions == ["archived", "paused", "resumed", "resumed", "unarchived"]
    modes = sorted(
        event.event_metadata["mode"] for event in events if event.action == "resumed"
    )
    assert modes == ["forward", "now"]


async def test_get_task_detail_falls_back_to_template_content(maintenance_db) -> None:
    user_id = uuid4()
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            template = build_template(
                resources=[{"label": "Scoop", "url": "https://www.amazon.com/dp/X"}]
            )
            task = build_task(
                template, user_id, steps=[], resources=[], equipment_needed=["Hose"]
            )
            session.add_all([template, task])
            await session.commit()

            service, _ = _service(session)
            detail = await service.get_task_detail(user_id=user_id, task_id=task.id)
            with pytest.raises(TaskNotFoundError):
                await service.get_task_detail(user_id=uuid4(), task_id=task.id)

    assert detail.template is not None
    assert detail.content.steps == template.steps
    assert detail.content.equipment_needed == ["Hose"]
    assert detail.content.parts == [
        {"label": "Scoop", "url": "https://www.amazon.com/dp/X"}
    ]
