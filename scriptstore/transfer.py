"""Bulk export/import of a whole script.

Import is a full replace, all-or-nothing:

  1. drop every character and item of the target script;
  2. recreate the characters, mapping old id -> new id;
  3. recreate the items in document order (position = array index), rewriting
     embedded character ids through the map.

A character reference the map cannot resolve is written as empty rather than
failing the import.  A character or item that fails validation aborts the
whole import, so the result is never a silent subset of the document.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from stagescript.contract_validate import document_contract_errors
from stagescript.errors import DocumentImportError, ValidationError
from stagescript.models import CHARACTER_BOUND_TYPES, ScriptWithRelations
from stagescript.schemas.document_v1 import item_input

from .characters import create_character, delete_all_characters, list_characters
from .db import Database
from .items import create_item, delete_all_items, list_items
from .scripts import get_script_with_relations, require_script

logger = logging.getLogger(__name__)


def export_script(db: Database, script_id: str) -> Dict[str, Any]:
    """Return ``{"characters": [...], "script": [...]}`` for *script_id*.

    Items come out in script order, each with its payload nested under its
    type key and character references expressed as current character ids.

    Raises:
        NotFound: the script does not exist.
    """
    with db.snapshot() as conn:
        require_script(conn, script_id)
        document = {
            "characters": [c.model_dump(by_alias=True) for c in list_characters(db, script_id)],
            "script": [item.to_document() for item in list_items(db, script_id)],
        }
    logger.info(
        "Exported script %s: %d character(s), %d item(s)",
        script_id, len(document["characters"]), len(document["script"]),
    )
    return document


def _problems(prefix: str, exc: ValidationError) -> List[str]:
    return [f"{prefix}.{e.field}: {e.message}" for e in exc.errors]


def import_script(db: Database, script_id: str, document: Any) -> ScriptWithRelations:
    """Replace the content of *script_id* with *document*.

    Raises:
        DocumentImportError: malformed document, or a character/item that fails
                             validation.  Nothing is written in either case.
        NotFound: the target script does not exist.
    """
    problems = document_contract_errors(document)
    if problems:
        raise DocumentImportError("import document does not match ScriptDocument.v1", problems)

    with db.transaction() as conn:
        require_script(conn, script_id)
        removed_items = delete_all_items(db, script_id)
        removed_chars = delete_all_characters(db, script_id)
        logger.debug("Import into %s cleared %d item(s), %d character(s)", script_id, removed_items, removed_chars)

        id_map: Dict[str, str] = {}
        for i, raw in enumerate(document["characters"]):
            try:
                character = create_character(db, script_id, raw)
            except ValidationError as exc:
                raise DocumentImportError(f"characters[{i}] is invalid", _problems(f"characters[{i}]", exc)) from exc
            old_id = raw.get("id")
            if old_id:
                id_map[str(old_id)] = character.id

        for i, raw in enumerate(document["script"]):
            data = item_input(raw)
            if data["type"] in CHARACTER_BOUND_TYPES:
                old_ref = data["characterId"]
                new_ref = id_map.get(str(old_ref), "") if old_ref else ""
                if old_ref and not new_ref:
                    logger.warning("script[%d]: dropping unmapped character reference %r", i, old_ref)
                data["characterId"] = new_ref
            try:
                create_item(db, script_id, data, position=i)
            except ValidationError as exc:
                raise DocumentImportError(f"script[{i}] is invalid", _problems(f"script[{i}]", exc)) from exc

    logger.info(
        "Imported %d character(s) and %d item(s) into script %s",
        len(document["characters"]), len(document["script"]), script_id,
    )
    return get_script_with_relations(db, script_id)
