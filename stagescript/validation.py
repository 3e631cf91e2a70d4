"""Validation layer: untrusted input -> normalized, fully-typed records.

Pure functions; nothing here touches storage.  Every violation is reported,
not just the first, as a list of ``FieldError`` inside ``ValidationError``.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from stagescript.errors import FieldError, ValidationError
from stagescript.models import (
    ITEM_ADAPTER,
    ITEM_TYPES,
    PAYLOAD_MODELS,
    CharacterFields,
    ItemPayload,
    ScriptFields,
)

_M = TypeVar("_M", bound=BaseModel)

# Largest value a SQLite INTEGER column holds.
MAX_POSITION = 2**63 - 1

_TAG_ERRORS = frozenset({"union_tag_invalid", "union_tag_not_found"})


def _field_name(loc: tuple, strip_tag: bool) -> str:
    parts = [str(p) for p in loc]
    # Discriminated unions prefix the location with the matched tag.
    if strip_tag and parts and parts[0] in ITEM_TYPES:
        parts = parts[1:]
    return ".".join(parts) or "input"


def to_field_errors(exc: PydanticValidationError, *, strip_tag: bool = False) -> List[FieldError]:
    errors: List[FieldError] = []
    for e in exc.errors():
        if e["type"] in _TAG_ERRORS:
            given = e["input"]
            got = given.get("type") if isinstance(given, Mapping) else given
            errors.append(FieldError("type", f"must be one of {list(ITEM_TYPES)}, got {got!r}"))
            continue
        errors.append(FieldError(_field_name(e["loc"], strip_tag), e["msg"]))
    return errors


def _validate(model: Type[_M], data: Any) -> _M:
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(to_field_errors(exc)) from exc


def validate_item(data: Any) -> ItemPayload:
    """Validate one item input (``{"type": ..., <variant fields>}``).

    Raises:
        ValidationError: unknown ``type`` or any variant field violation.
    """
    if isinstance(data, tuple(PAYLOAD_MODELS.values())):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    try:
        return ITEM_ADAPTER.validate_python(data)
    except PydanticValidationError as exc:
        raise ValidationError(to_field_errors(exc, strip_tag=True)) from exc


def validate_character(data: Any) -> CharacterFields:
    return _validate(CharacterFields, data)


def validate_script_fields(data: Any) -> ScriptFields:
    return _validate(ScriptFields, data)


def validate_position(position: Any) -> int:
    """Explicit insertion index: a non-negative integer that fits SQLite INTEGER (bools rejected)."""
    if isinstance(position, bool) or not isinstance(position, int) or not 0 <= position <= MAX_POSITION:
        raise ValidationError([
            FieldError("position", f"must be an integer from 0 to {MAX_POSITION}, got {position!r}")
        ])
    return position
