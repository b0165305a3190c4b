"""Pydantic models for the camelCase JSON payloads in generated responses."""

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

M = TypeVar("M", bound="WireModel")


class WireModel(BaseModel):
    """Lenient response model: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def validate_items(raw: Any, model: type[M], label: str) -> list[M]:
    """Validate each element of ``raw`` independently.

    Non-list input yields an empty list; invalid elements are dropped with a
    warning so one malformed entry does not discard the rest.
    """
    if not isinstance(raw, list):
        return []
    items: list[M] = []
    for idx, element in enumerate(raw):
        try:
            items.append(model.model_validate(element))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s entry %d: %s", label, idx, exc.errors()[0]["msg"])
    return items


def optional_text(value: Any) -> str | None:
    """Normalise empty strings to None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
