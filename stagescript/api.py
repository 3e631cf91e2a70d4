"""Operation surface of the script-content engine.

Each function performs one user-level operation against a ``Database`` and
returns a ``Result`` instead of raising: ``success`` plus ``data`` on
success, ``success=False`` plus a tagged ``error`` (``ValidationError``,
``NotFound``, ``OwnershipError`` or ``ImportError``) on failure.  Anything
that is not a ``StageScriptError`` is a bug and propagates.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from pydantic import BaseModel

from scriptstore import characters, items, positions, scripts, transfer
from scriptstore.db import Database
from stagescript.errors import StageScriptError

logger = logging.getLogger(__name__)


class ErrorInfo(BaseModel):
    code: str
    message: str
    details: Any = None


class Result(BaseModel):
    success: bool
    data: Any = None
    error: Optional[ErrorInfo] = None

    @classmethod
    def ok(cls, data: Any = None) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, exc: StageScriptError) -> "Result":
        return cls(
            success=False,
            error=ErrorInfo(code=exc.code, message=str(exc), details=exc.details()),
        )


def _run(operation: Callable[..., Any], *args: Any) -> Result:
    try:
        data = operation(*args)
    except StageScriptError as exc:
        logger.info("%s failed: %s: %s", operation.__name__, exc.code, exc)
        return Result.fail(exc)
    return Result.ok(data)


# ── Scripts ───────────────────────────────────────────────────────────────────


def create_script(db: Database, fields: Any) -> Result:
    return _run(scripts.create_script, db, fields)


def get_script(db: Database, script_id: str) -> Result:
    """The script with its characters and ordered items (ScriptWithRelations)."""
    return _run(scripts.get_script_with_relations, db, script_id)


def list_scripts(db: Database) -> Result:
    return _run(scripts.list_scripts, db)


def update_script(db: Database, script_id: str, fields: Any) -> Result:
    return _run(scripts.update_script, db, script_id, fields)


def delete_script(db: Database, script_id: str) -> Result:
    return _run(scripts.delete_script, db, script_id)


# ── Characters ────────────────────────────────────────────────────────────────


def create_character(db: Database, script_id: str, fields: Any) -> Result:
    return _run(characters.create_character, db, script_id, fields)


def list_characters(db: Database, script_id: str) -> Result:
    return _run(characters.list_characters, db, script_id)


def update_character(db: Database, character_id: str, fields: Any) -> Result:
    return _run(characters.update_character, db, character_id, fields)


def delete_character(db: Database, character_id: str) -> Result:
    """On success ``data`` is the id of the script the character belonged to."""
    return _run(characters.delete_character, db, character_id)


def delete_all_characters(db: Database, script_id: str) -> Result:
    return _run(characters.delete_all_characters, db, script_id)


# ── Script items ──────────────────────────────────────────────────────────────


def create_script_item(db: Database, script_id: str, item: Any, position: Optional[int] = None) -> Result:
    return _run(items.create_item, db, script_id, item, position)


def update_script_item(db: Database, item_id: str, item: Any) -> Result:
    return _run(items.update_item, db, item_id, item)


def delete_script_item(db: Database, item_id: str) -> Result:
    """On success ``data`` is the id of the script the item belonged to."""
    return _run(items.delete_item, db, item_id)


def delete_all_script_items(db: Database, script_id: str) -> Result:
    return _run(items.delete_all_items, db, script_id)


def reorder_script_items(db: Database, script_id: str, ordered_ids: Sequence[str]) -> Result:
    return _run(positions.reorder, db, script_id, ordered_ids)


def list_active_lightings(db: Database, script_id: str) -> Result:
    return _run(items.list_active_lightings, db, script_id)


def list_active_sounds(db: Database, script_id: str) -> Result:
    return _run(items.list_active_sounds, db, script_id)


# ── Import / export ───────────────────────────────────────────────────────────


def export_script(db: Database, script_id: str) -> Result:
    return _run(transfer.export_script, db, script_id)


def import_script(db: Database, script_id: str, document: Any) -> Result:
    return _run(transfer.import_script, db, script_id, document)
