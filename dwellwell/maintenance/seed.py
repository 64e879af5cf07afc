"""Load and validate YAML task template seed documents."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml

from dwellwell.maintenance.fields import is_template_field

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
REQUIRED_SEED_KEYS = ("key", "title", "recurrenceInterval")
_SEED_META_KEYS = frozenset({"key", "taskType", "state"})


class SeedFileError(ValueError):
    """Raised when a seed file cannot be parsed into template documents."""


@dataclass(slots=True)
class SeedDocument:
    """One template definition from a seed file, keyed by wire field names."""

    key: str
    values: dict[str, Any]
    task_type: str | None = None
    source: str | None = None


@dataclass(slots=True)
class SeedProblem:
    source: str
    index: int
    message: str

    def __str__(self) -> str:
        return f"{self.source}[{self.index}]: {self.message}"


@dataclass(slots=True)
class SeedLoadResult:
    documents: list[SeedDocument] = field(default_factory=list)
    problems: list[SeedProblem] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def key_slug(value: str) -> str:
    return _SLUG_PATTERN.sub("_", value.lower()).strip("_")


def default_seed_key(entry: dict[str, Any]) -> str:
    """``<category>_<title>_<interval>`` slug used when a seed omits ``key``."""

    category = str(entry.get("category") or "home")
    title = str(entry.get("title") or "")
    interval = str(entry.get("recurrenceInterval") or "")
    return "_".join(key_slug(part) for part in (category, title, interval))


def _entries_from_document(document: Any, source: str) -> list[Any]:
    if document is None:
        return []
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        templates = document.get("templates")
        if isinstance(templates, list):
            category = document.get("category")
            if category:
                return [
                    {"category": category, **entry} if isinstance(entry, dict) else entry
                    for entry in templates
                ]
            return templates
        return [document]
    raise SeedFileError(f"{source}: expected a mapping or a list of templates")


def parse_seed_entries(
    entries: Iterable[Any],
    *,
    source: str = "<memory>",
    require_key: bool = True,
) -> SeedLoadResult:
    """Validate raw seed mappings and turn them into ``SeedDocument`` objects."""

    result = SeedLoadResult()
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            result.problems.append(SeedProblem(source, index, "entry is not a mapping"))
            continue

        missing = [
            name
            for name in REQUIRED_SEED_KEYS
            if (name != "key" or require_key) and not str(entry.get(name) or "").strip()
        ]
        if missing:
            result.problems.append(
                SeedProblem(source, index, f"missing {', '.join(missing)}")
            )
            continue

        unknown = sorted(
            name
            for name in entry
            if name not in _SEED_META_KEYS and not is_template_field(name)
        )
        if unknown:
            result.problems.append(
                SeedProblem(source, index, f"unknown fields {', '.join(unknown)}")
            )
            continue

        key = str(entry.get("key") or "").strip() or default_seed_key(entry)
        values = {
            name: value for name, value in entry.items() if is_template_field(name)
        }
        result.documents.append(
            SeedDocument(
                key=key,
                values=values,
                task_type=entry.get("taskType"),
                source=source,
            )
        )
    return result


def load_seed_directory(path: Path, *, require_key: bool = True) -> SeedLoadResult:
    """Read every ``*.yaml`` file under ``path`` in name order."""

    combined = SeedLoadResult()
    if not path.exists():
        raise SeedFileError(f"seed directory not found: {path}")
    for seed_file in sorted(path.glob("*.yaml")):
        try:
            document = yaml.safe_load(seed_file.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            combined.problems.append(SeedProblem(seed_file.name, 0, f"invalid YAML: {exc}"))
            continue
        parsed = parse_seed_entries(
            _entries_from_document(document, seed_file.name),
            source=seed_file.name,
            require_key=require_key,
        )
        combined.documents.extend(parsed.documents)
        combined.problems.extend(parsed.problems)
    return combined


__all__ = [
    "REQUIRED_SEED_KEYS",
    "SeedDocument",
    "SeedFileError",
    "SeedLoadResult",
    "SeedProblem",
    "default_seed_key",
    "key_slug",
    "load_seed_directory",
    "parse_seed_entries",
]
