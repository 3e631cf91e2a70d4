"""Script store: the top-level container that owns characters and items."""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, List

from stagescript.errors import NotFound
from stagescript.models import Script, ScriptWithRelations
from stagescript.validation import validate_script_fields

from .db import Database, new_id, now_iso

logger = logging.getLogger(__name__)


def _row_to_script(row: sqlite3.Row) -> Script:
    return Script.model_validate(dict(row))


def require_script(conn: sqlite3.Connection, script_id: str) -> None:
    """Raise NotFound unless *script_id* exists."""
    row = conn.execute("SELECT 1 FROM scripts WHERE id = ?", (script_id,)).fetchone()
    if row is None:
        raise NotFound("script", script_id)


def create_script(db: Database, fields: Any) -> Script:
    data = validate_script_fields(fields)
    script_id = new_id()
    stamp = now_iso()
    with db.transaction() as conn:
        conn.execute(
            "INSERT INTO scripts (id, name, description, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (script_id, data.name, data.description, stamp, stamp),
        )
    logger.debug("Created script %s (%r)", script_id, data.name)
    return Script(id=script_id, name=data.name, description=data.description,
                  created_at=stamp, updated_at=stamp)


def get_script(db: Database, script_id: str) -> Script:
    row = db.conn.execute("SELECT * FROM scripts WHERE id = ?", (script_id,)).fetchone()
    if row is None:
        raise NotFound("script", script_id)
    return _row_to_script(row)


def get_script_with_relations(db: Database, script_id: str) -> ScriptWithRelations:
    """Script plus its characters (by stage name) and items (in script order)."""
    # Lazy imports: both stores import require_script from this module.
    from .characters import list_characters  # noqa: PLC0415
    from .items import list_items  # noqa: PLC0415

    with db.snapshot():
        script = get_script(db, script_id)
        return ScriptWithRelations(
            **script.model_dump(),
            characters=list_characters(db, script_id),
            items=list_items(db, script_id),
        )


def list_scripts(db: Database) -> List[Script]:
    """All scripts, most recently updated first."""
    rows = db.conn.execute("SELECT * FROM scripts ORDER BY updated_at DESC, id").fetchall()
    return [_row_to_script(r) for r in rows]


def update_script(db: Database, script_id: str, fields: Any) -> Script:
    data = validate_script_fields(fields)
    with db.transaction() as conn:
        require_script(conn, script_id)
        conn.execute(
            "UPDATE scripts SET name = ?, description = ?, updated_at = ? WHERE id = ?",
            (data.name, data.description, now_iso(), script_id),
        )
    return get_script(db, script_id)


def delete_script(db: Database, script_id: str) -> None:
    """Delete a script; its characters, items and payloads cascade."""
    with db.transaction() as conn:
        require_script(conn, script_id)
        conn.execute("DELETE FROM scripts WHERE id = ?", (script_id,))
    logger.debug("Deleted script %s", script_id)
