"""Character store: CRUD over the named, colored participants of a script.

Deleting a character never touches the items that reference it; those
references dangle and are resolved by whoever renders the script.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, List

from stagescript.errors import NotFound
from stagescript.models import Character
from stagescript.validation import validate_character

from .db import Database, new_id
from .scripts import require_script

logger = logging.getLogger(__name__)


def _row_to_character(row: sqlite3.Row) -> Character:
    return Character.model_validate(dict(row))


def _owner(conn: sqlite3.Connection, character_id: str) -> str:
    row = conn.execute(
        "SELECT script_id FROM characters WHERE id = ?", (character_id,)
    ).fetchone()
    if row is None:
        raise NotFound("character", character_id)
    return row["script_id"]


def character_in_script(conn: sqlite3.Connection, script_id: str, character_id: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM characters WHERE id = ? AND script_id = ?",
        (character_id, script_id),
    ).fetchone()
    return row is not None


def create_character(db: Database, script_id: str, fields: Any) -> Character:
    """Validate *fields* and add a character to *script_id*.

    Raises:
        ValidationError: a field is empty or the color is not ``#RRGGBB``.
        NotFound: the script does not exist.
    """
    data = validate_character(fields)
    character = Character(id=new_id(), script_id=script_id, **data.model_dump())
    with db.transaction() as conn:
        require_script(conn, script_id)
        conn.execute(
            "INSERT INTO characters (id, script_id, real_name, stage_name, role, color) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (character.id, script_id, character.real_name, character.stage_name,
             character.role, character.color),
        )
    logger.debug("Created character %s (%s) in script %s", character.id, character.stage_name, script_id)
    return character


def get_character(db: Database, character_id: str) -> Character:
    row = db.conn.execute("SELECT * FROM characters WHERE id = ?", (character_id,)).fetchone()
    if row is None:
        raise NotFound("character", character_id)
    return _row_to_character(row)


def list_characters(db: Database, script_id: str) -> List[Character]:
    """Characters of *script_id*, ordered by stage name."""
    rows = db.conn.execute(
        "SELECT * FROM characters WHERE script_id = ? "
        "ORDER BY stage_name COLLATE NOCASE, id",
        (script_id,),
    ).fetchall()
    return [_row_to_character(r) for r in rows]


def update_character(db: Database, character_id: str, fields: Any) -> Character:
    """Replace a character's fields.  The returned record names its script."""
    data = validate_character(fields)
    with db.transaction() as conn:
        script_id = _owner(conn, character_id)
        conn.execute(
            "UPDATE characters SET real_name = ?, stage_name = ?, role = ?, color = ? "
            "WHERE id = ?",
            (data.real_name, data.stage_name, data.role, data.color, character_id),
        )
    logger.debug("Updated character %s in script %s", character_id, script_id)
    return Character(id=character_id, script_id=script_id, **data.model_dump())


def delete_character(db: Database, character_id: str) -> str:
    """Delete one character and return the id of the script it belonged to."""
    with db.transaction() as conn:
        script_id = _owner(conn, character_id)
        conn.execute("DELETE FROM characters WHERE id = ?", (character_id,))
    logger.debug("Deleted character %s from script %s", character_id, script_id)
    return script_id


def delete_all_characters(db: Database, script_id: str) -> int:
    with db.transaction() as conn:
        cur = conn.execute("DELETE FROM characters WHERE script_id = ?", (script_id,))
    return cur.rowcount
