"""Registry of the content fields shared by task templates and user tasks.

Every reconciliation and edit path reads, writes and compares content through
``TEMPLATE_FIELDS`` rather than by ad-hoc attribute names, so the set of
tracked fields and their equality rules live in one place.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping


def _canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


@dataclass(frozen=True, slots=True)
class TemplateField:
    """Accessor pair plus equality rule for one content field."""

    name: str
    attribute: str
    compound: bool = False

    def read(self, record: Any) -> Any:
        return getattr(record, self.attribute, None)

    def write(self, record: Any, value: Any) -> None:
        setattr(record, self.attribute, copy.deepcopy(value))

    def equals(self, left: Any, right: Any) -> bool:
        if self.compound:
            return _canonical_json(left) == _canonical_json(right)
        return left == right

    def serialize(self, record: Any) -> Any:
        """Return a detached, JSON-friendly copy of the field's value."""

        return copy.deepcopy(self.read(record))


TEMPLATE_FIELDS: tuple[TemplateField, ...] = (
    TemplateField("title", "title"),
    TemplateField("description", "description"),
    TemplateField("recurrenceInterval", "recurrence_interval"),
    TemplateField("criticality", "criticality"),
    TemplateField("estimatedTimeMinutes", "estimated_time_minutes"),
    TemplateField("estimatedCost", "estimated_cost"),
    TemplateField("canBeOutsourced", "can_be_outsourced"),
    TemplateField("canDefer", "can_defer"),
    TemplateField("deferLimitDays", "defer_limit_days"),
    TemplateField("category", "category"),
    TemplateField("icon", "icon"),
    TemplateField("imageUrl", "image_url"),
    TemplateField("steps", "steps", compound=True),
    TemplateField("equipmentNeeded", "equipment_needed", compound=True),
    TemplateField("resources", "resources", compound=True),
)

TEMPLATE_FIELD_NAMES: tuple[str, ...] = tuple(field.name for field in TEMPLATE_FIELDS)

_BY_NAME: Mapping[str, TemplateField] = {field.name: field for field in TEMPLATE_FIELDS}
_BY_ATTRIBUTE: Mapping[str, TemplateField] = {
    field.attribute: field for field in TEMPLATE_FIELDS
}


def get_field(name: str) -> TemplateField:
    """Look up a field by wire name or ORM attribute; raises ``KeyError``."""

    field = _BY_NAME.get(name) or _BY_ATTRIBUTE.get(name)
    if field is None:
        raise KeyError(name)
    return field


def is_template_field(name: str) -> bool:
    return name in _BY_NAME


def ordered_field_names(names: Iterable[str]) -> list[str]:
    """Deduplicate ``names`` and return them in canonical registry order."""

    wanted = set(names)
    return [name for name in TEMPLATE_FIELD_NAMES if name in wanted]


def changed_fields(task: Any, template: Any) -> list[str]:
    """Names of fields whose task and template values differ."""

    return [
        field.name
        for field in TEMPLATE_FIELDS
        if not field.equals(field.read(task), field.read(template))
    ]


def snapshot(record: Any, names: Iterable[str] | None = None) -> dict[str, Any]:
    """Return a ``name -> value`` map for ``names`` (default: every field)."""

    selected = TEMPLATE_FIELDS if names is None else [get_field(n) for n in names]
    return {field.name: field.serialize(record) for field in selected}


__all__ = [
    "TEMPLATE_FIELDS",
    "TEMPLATE_FIELD_NAMES",
    "TemplateField",
    "changed_fields",
    "get_field",
    "is_template_field",
    "ordered_field_names",
    "snapshot",
]
