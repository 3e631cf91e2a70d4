"""ScriptDocument v1 — the portable export/import document.

Shape::

    {
      "characters": [{"id", "realName", "stageName", "role", "color", ...}],
      "script": [{"id", "type", "position", "<type>": {<payload fields>}}]
    }

Documents written by the legacy editor are also accepted: there, dialogue
and narration items carry ``character`` and ``text`` on the item itself
instead of under the type key, and sound/image payloads name their media
kind ``type`` instead of ``kind``.

Canonical JSON (sort_keys=True) keeps identical documents byte-identical.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from stagescript.contract_validate import document_contract_errors
from stagescript.errors import ValidationError
from stagescript.models import CHARACTER_BOUND_TYPES, MEDIA_KINDS
from stagescript.validation import validate_character, validate_item

_LEGACY_KEYS = ("character", "characterId", "text")


def load_document(source: Union[str, bytes, dict, Path]) -> Dict[str, Any]:
    """Parse a document from JSON string, bytes, dict, or file Path.

    No validation happens here; see ``validate_document``.

    Raises:
        json.JSONDecodeError: malformed JSON.
        FileNotFoundError: Path does not exist.
    """
    if isinstance(source, Path):
        return json.loads(source.read_text(encoding="utf-8"))
    if isinstance(source, (str, bytes)):
        return json.loads(source)
    return source


def dump_document(document: Dict[str, Any], *, indent: int = 2) -> str:
    """Serialize a document to canonical JSON (sort_keys=True, indent=2)."""
    return json.dumps(document, sort_keys=True, indent=indent, ensure_ascii=False)


def item_input(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten one document item into validation input ``{"type", ...fields}``.

    Character-bound variants always come back with a ``characterId`` key
    ("" when the document had none).
    """
    item_type = raw.get("type")
    nested = raw.get(item_type) if isinstance(item_type, str) else None
    if isinstance(nested, dict):
        data = dict(nested)
        legacy_kind = data.get("type")
        if "kind" not in data and isinstance(legacy_kind, str):
            if legacy_kind in MEDIA_KINDS.get(item_type, ()):
                data["kind"] = legacy_kind
    else:
        data = {k: raw[k] for k in _LEGACY_KEYS if k in raw}
    data["type"] = item_type

    if item_type in CHARACTER_BOUND_TYPES:
        ref = data.pop("characterId", None) or data.pop("character", None)
        data.pop("character", None)
        data["characterId"] = ref or ""
    return data


def validate_document(data: Any) -> List[str]:
    """Validate a raw document: contract shape, then every character and item.

    Returns a list of human-readable error strings (empty list = valid).
    Does not raise.  Character references are not resolved here.
    """
    errors = document_contract_errors(data)
    if errors:
        return errors

    for i, raw in enumerate(data["characters"]):
        try:
            validate_character(raw)
        except ValidationError as exc:
            errors.extend(f"characters[{i}].{e.field}: {e.message}" for e in exc.errors)

    for i, raw in enumerate(data["script"]):
        try:
            validate_item(item_input(raw))
        except ValidationError as exc:
            errors.extend(f"script[{i}].{e.field}: {e.message}" for e in exc.errors)
    return errors
