"""Top-level DwellWell CLI exposing template catalog utilities."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from dwellwell.config.settings import settings
from dwellwell.maintenance.seed import (
    SeedDocument,
    SeedFileError,
    SeedLoadResult,
    load_seed_directory,
)

app = typer.Typer(help="DwellWell developer utilities.")
templates_app = typer.Typer(help="Task template catalog helpers.")
app.add_typer(templates_app, name="templates")


def _load(path: Optional[Path], *, require_key: bool) -> SeedLoadResult:
    seed_dir = path or settings.maintenance.template_seed_dir
    try:
        return load_seed_directory(seed_dir, require_key=require_key)
    except SeedFileError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc


async def _seed(documents: list[SeedDocument]) -> tuple[int, int]:
    from api_service.db.base import get_async_session_context
    from dwellwell.maintenance import get_template_admin_service

    async with get_async_session_context() as session:
        service = get_template_admin_service(session)
        return await service.seed_templates(documents)


@templates_app.command("seed", help="Insert or backfill templates from YAML seed files.")
def seed_templates(
    path: Optional[Path] = typer.Option(
        None,
        "--path",
        help="Seed directory (defaults to the bundled template catalog).",
    ),
) -> None:
    result = _load(path, require_key=False)
    if not result.ok:
        for problem in result.problems:
            typer.secho(str(problem), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    created, updated = asyncio.run(_seed(result.documents))
    typer.secho(
        f"Templates seeded: {created} created, {updated} updated.",
        fg=typer.colors.GREEN,
    )


@templates_app.command("validate", help="Check seed files for missing or unknown fields.")
def validate_templates(
    path: Optional[Path] = typer.Option(
        None,
        "--path",
        help="Seed directory (defaults to the bundled template catalog).",
    ),
) -> None:
    result = _load(path, require_key=True)
    if not result.ok:
        for problem in result.problems:
            typer.secho(str(problem), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho(
        f"{len(result.documents)} template documents are valid.",
        fg=typer.colors.GREEN,
    )


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
