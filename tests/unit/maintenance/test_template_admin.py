"""Tests for template administration, seed parsing and catalog seeding."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

import pytest

from dwellwell.config.settings import settings
from dwellwell.maintenance.errors import TaskValidationError, TemplateNotFoundError
from dwellwell.maintenance.models import TaskType, TemplateState
from dwellwell.maintenance.repositories import MaintenanceTaskRepository
from dwellwell.maintenance.seed import (
    SeedFileError,
    default_seed_key,
    load_seed_directory,
    parse_seed_entries,
)
from dwellwell.maintenance.templates import TaskTemplateAdminService
from maintenance_factories import build_task

pytestmark = [pytest.mark.asyncio]


def test_default_seed_key_slugs_category_title_and_interval() -> None:
    entry = {"category": "HVAC", "title": "Replace Filter!", "recurrenceInterval": "90 days"}
    assert default_seed_key(entry) == "hvac_replace_filter_90_days"
    assert default_seed_key({"title": "Sweep", "recurrenceInterval": "weekly"}) == (
        "home_sweep_weekly"
    )


def test_parse_seed_entries_reports_problems_per_entry() -> None:
    result = parse_seed_entries(
        [
            {"key": "a", "title": "Flush water heater", "recurrenceInterval": "yearly"},
            {"title": "No key", "recurrenceInterval": "monthly"},
            {"key": "b", "title": "Odd", "recurrenceInterval": "monthly", "color": "red"},
            "just a string",
        ],
        source="inline.yaml",
    )

    assert not result.ok
    assert [document.key for document in result.documents] == ["a"]
    messages = [str(problem) for problem in result.problems]
    assert messages == [
        "inline.yaml[1]: missing key",
        "inline.yaml[2]: unknown fields color",
        "inline.yaml[3]: entry is not a mapping",
    ]


def test_parse_seed_entries_derives_key_when_optional() -> None:
    result = parse_seed_entries(
        [{"title": "Sweep porch", "recurrenceInterval": "weekly", "taskType": "general"}],
        require_key=False,
    )
    (document,) = result.documents
    assert document.key == "home_sweep_porch_weekly"
    assert document.task_type == "general"
    assert document.values == {"title": "Sweep porch", "recurrenceInterval": "weekly"}


def test_load_seed_directory_reads_yaml_files_in_order(tmp_path: Path) -> None:
    (tmp_path / "b_garage.yaml").write_text(
        "category: garage\n"
        "templates:\n"
        "  - key: garage_door_lube\n"
        "    title: Lubricate garage door\n"
        "    recurrenceInterval: 6 months\n",
        encoding="utf-8",
    )
    (tmp_path / "a_yard.yaml").write_text(
        "- key: yard_aerate\n"
        "  title: Aerate lawn\n"
        "  recurrenceInterval: yearly\n",
        encoding="utf-8",
    )
    (tmp_path / "c_broken.yaml").write_text("templates: [unclosed\n", encoding="utf-8")

    result = load_seed_directory(tmp_path)

    assert [document.key for document in result.documents] == [
        "yard_aerate",
        "garage_door_lube",
    ]
    assert result.documents[1].values["category"] == "garage"
    assert len(result.problems) == 1
    assert result.problems[0].source == "c_broken.yaml"


def test_load_seed_directory_missing_path(tmp_path: Path) -> None:
    with pytest.raises(SeedFileError):
        load_seed_directory(tmp_path / "missing")


def test_bundled_seed_catalog_is_valid() -> None:
    result = load_seed_directory(settings.maintenance.template_seed_dir)
    assert result.ok, [str(problem) for problem in result.problems]
    keys = [document.key for document in result.documents]
    assert "bathroom_descale_showerhead" in keys
    assert len(keys) == len(set(keys))


async def test_create_and_update_template_bumps_version_on_content_change(
    maintenance_db,
) -> None:
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            service = TaskTemplateAdminService(MaintenanceTaskRepository(session))
            template = await service.create_template(
                fields={"title": "Check smoke alarms", "recurrenceInterval": "monthly"},
                task_type="ai_generated",
            )
            assert template.version == 1
            assert template.state == TemplateState.DRAFT
            assert template.task_type == TaskType.AI_GENERATED

            unchanged = await service.update_template(
                template.id,
                changes={"title": "Check smoke alarms"},
                state=TemplateState.VERIFIED,
            )
            assert unchanged.version == 1
            assert unchanged.state == TemplateState.VERIFIED

            changed = await service.update_template(
                template.id,
                changes={"steps": ["Press test button"], "estimatedTimeMinutes": 5},
            )

    assert changed.version == 2
    assert changed.steps == ["Press test button"]


async def test_template_validation_errors(maintenance_db) -> None:
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            service = TaskTemplateAdminService(MaintenanceTaskRepository(session))
            with pytest.raises(TaskValidationError) as missing_title:
                await service.create_template(fields={"description": "no title"})
            with pytest.raises(TaskValidationError) as unknown:
                await service.create_template(fields={"title": "x", "dueDate": "now"})
            with pytest.raises(TaskValidationError) as bad_type:
                await service.create_template(fields={"title": "x"}, task_type="chore")
            with pytest.raises(TemplateNotFoundError):
                await service.update_template(uuid4(), changes={"title": "y"})

    assert missing_title.value.code == "TITLE_REQUIRED"
    assert unknown.value.code == "UNKNOWN_TEMPLATE_FIELD"
    assert bad_type.value.code == "INVALID_TASK_TYPE"


async def test_delete_template_unlinks_tasks(maintenance_db) -> None:
    user_id = uuid4()
    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            repository = MaintenanceTaskRepository(session)
            service = TaskTemplateAdminService(repository)
            template = await service.create_template(fields={"title": "Flush drains"})
            task = build_task(template, user_id)
            session.add(task)
            await session.commit()
            task_id = task.id

            await service.delete_template(template.id)
            with pytest.raises(TemplateNotFoundError):
                await service.get_template(template.id)

        async with session_maker() as fresh:
            reloaded = await MaintenanceTaskRepository(fresh).get_task_for_user(
                task_id, user_id
            )

    assert reloaded is not None
    assert reloaded.task_template_id is None
    assert reloaded.title == "Flush drains"


async def test_seed_templates_is_idempotent_and_backfills(maintenance_db) -> None:
    first = parse_seed_entries(
        [
            {
                "key": "hvac_filter",
                "title": "Replace HVAC filter",
                "recurrenceInterval": "90 days",
            }
        ]
    ).documents
    second = parse_seed_entries(
        [
            {
                "key": "hvac_filter",
                "title": "Renamed filter task",
                "recurrenceInterval": "90 days",
                "description": "Use a MERV 8 filter.",
            },
            {
                "key": "dryer_vent",
                "title": "Clean dryer vent",
                "recurrenceInterval": "yearly",
            },
        ]
    ).documents

    async with maintenance_db() as session_maker:
        async with session_maker() as session:
            repository = MaintenanceTaskRepository(session)
            service = TaskTemplateAdminService(repository)
            assert await service.seed_templates(first) == (1, 0)
            assert await service.seed_templates(second) == (1, 1)
            assert await service.seed_templates(second) == (0, 0)

            hvac = await repository.get_template_by_seed_key("hvac_filter")
            templates = await service.list_templates(state=TemplateState.VERIFIED)

    assert hvac is not None
    assert hvac.title == "Replace HVAC filter"
    assert hvac.description == "Use a MERV 8 filter."
    assert hvac.version == 1
    assert hvac.state == TemplateState.VERIFIED
    assert hvac.estimated_time_minutes == 30
    assert hvac.criticality == "medium"
    assert [template.title for template in templates] == [
        "Clean dryer vent",
        "Replace HVAC filter",
    ]
