"""Content store: script items and their single variant payload.

Every item is one ``script_items`` row plus exactly one row in the payload
table of its current ``type``.  Both are written inside the same transaction,
so a reader never sees a base row without its payload or with two payloads.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from stagescript.errors import FieldError, NotFound, ValidationError
from stagescript.models import (
    CHARACTER_BOUND_TYPES,
    ITEM_TYPES,
    PAYLOAD_MODELS,
    ItemPayload,
    LightingItem,
    ScriptItem,
    SoundItem,
)
from stagescript.validation import validate_item, validate_position

from .characters import character_in_script
from .db import Database, new_id
from .positions import resolve_position, sort_items
from .scripts import require_script

logger = logging.getLogger(__name__)

PAYLOAD_TABLES: Dict[str, str] = {t: f"{t}_payloads" for t in ITEM_TYPES}


# ---------------------------------------------------------------------------
# Payload rows
# ---------------------------------------------------------------------------

def _columns(item_type: str) -> List[str]:
    return [name for name in PAYLOAD_MODELS[item_type].model_fields if name != "type"]


def _insert_payload(conn: sqlite3.Connection, item_id: str, payload: ItemPayload) -> None:
    cols = _columns(payload.type)
    values = payload.model_dump(exclude={"type"})
    conn.execute(
        f"INSERT INTO {PAYLOAD_TABLES[payload.type]} (script_item_id, {', '.join(cols)}) "
        f"VALUES (?, {', '.join('?' for _ in cols)})",
        (item_id, *(values[c] for c in cols)),
    )


def _update_payload(conn: sqlite3.Connection, item_id: str, payload: ItemPayload) -> None:
    cols = _columns(payload.type)
    values = payload.model_dump(exclude={"type"})
    conn.execute(
        f"UPDATE {PAYLOAD_TABLES[payload.type]} SET {', '.join(f'{c} = ?' for c in cols)} "
        "WHERE script_item_id = ?",
        (*(values[c] for c in cols), item_id),
    )


def _delete_payload(conn: sqlite3.Connection, item_id: str, item_type: str) -> None:
    conn.execute(f"DELETE FROM {PAYLOAD_TABLES[item_type]} WHERE script_item_id = ?", (item_id,))


def _row_to_payload(item_type: str, row: sqlite3.Row) -> ItemPayload:
    return PAYLOAD_MODELS[item_type].model_validate({**dict(row), "type": item_type})


def _check_character_ref(conn: sqlite3.Connection, script_id: str, payload: ItemPayload) -> None:
    """A non-empty character reference must name a character of the same script."""
    if payload.type not in CHARACTER_BOUND_TYPES:
        return
    character_id = payload.character_id
    if character_id and not character_in_script(conn, script_id, character_id):
        raise ValidationError([
            FieldError("characterId", f"character '{character_id}' does not belong to this script")
        ])


def _load_item(conn: sqlite3.Connection, item_id: str) -> ScriptItem:
    base = conn.execute("SELECT * FROM script_items WHERE id = ?", (item_id,)).fetchone()
    if base is None:
        raise NotFound("script item", item_id)
    row = conn.execute(
        f"SELECT * FROM {PAYLOAD_TABLES[base['type']]} WHERE script_item_id = ?", (item_id,)
    ).fetchone()
    return ScriptItem(
        id=base["id"],
        script_id=base["script_id"],
        type=base["type"],
        position=base["position"],
        payload=_row_to_payload(base["type"], row),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_item(db: Database, item_id: str) -> ScriptItem:
    with db.snapshot() as conn:
        return _load_item(conn, item_id)


def list_items(db: Database, script_id: str) -> List[ScriptItem]:
    """All items of *script_id* joined with their payload, in script order.

    Base rows and payload rows are read in one snapshot, so a concurrent
    writer never shows up half-way through the listing.
    """
    payloads: Dict[str, ItemPayload] = {}
    with db.snapshot() as conn:
        bases = conn.execute(
            "SELECT id, type, position FROM script_items WHERE script_id = ?", (script_id,)
        ).fetchall()
        for item_type, table in PAYLOAD_TABLES.items():
            rows = conn.execute(
                f"SELECT p.* FROM {table} p JOIN script_items i ON i.id = p.script_item_id "
                "WHERE i.script_id = ? AND i.type = ?",
                (script_id, item_type),
            )
            for row in rows:
                payloads[row["script_item_id"]] = _row_to_payload(item_type, row)

    items = [
        ScriptItem(
            id=base["id"],
            script_id=script_id,
            type=base["type"],
            position=base["position"],
            payload=payloads[base["id"]],
        )
        for base in bases
    ]
    return sort_items(items)


def create_item(db: Database, script_id: str, data: Any, position: Optional[int] = None) -> ScriptItem:
    """Create an item and its payload row in one transaction.

    Args:
        db:        Open database.
        script_id: Owning script.
        data:      Item input, ``{"type": ..., <variant fields>}``.
        position:  Explicit index; appended after the last item when omitted.

    Raises:
        ValidationError: bad input, bad position, or a character reference
                         outside the script.
        NotFound: the script does not exist.
    """
    payload = validate_item(data)
    if position is not None:
        validate_position(position)

    item_id = new_id()
    with db.transaction() as conn:
        require_script(conn, script_id)
        _check_character_ref(conn, script_id, payload)
        resolved = resolve_position(conn, script_id, position)
        conn.execute(
            "INSERT INTO script_items (id, script_id, type, position) VALUES (?, ?, ?, ?)",
            (item_id, script_id, payload.type, resolved),
        )
        _insert_payload(conn, item_id, payload)

    logger.debug("Created %s item %s at position %d in script %s", payload.type, item_id, resolved, script_id)
    return ScriptItem(id=item_id, script_id=script_id, type=payload.type, position=resolved, payload=payload)


def update_item(db: Database, item_id: str, data: Any) -> ScriptItem:
    """Rewrite an item's payload in place, or swap it when ``type`` changes.

    The position is left untouched.

    Raises:
        ValidationError: bad input.
        NotFound: no item with *item_id*.
    """
    payload = validate_item(data)
    with db.transaction() as conn:
        current = conn.execute(
            "SELECT script_id, type FROM script_items WHERE id = ?", (item_id,)
        ).fetchone()
        if current is None:
            raise NotFound("script item", item_id)
        _check_character_ref(conn, current["script_id"], payload)

        if current["type"] != payload.type:
            _delete_payload(conn, item_id, current["type"])
            conn.execute("UPDATE script_items SET type = ? WHERE id = ?", (payload.type, item_id))
            _insert_payload(conn, item_id, payload)
            logger.debug("Item %s changed type %s -> %s", item_id, current["type"], payload.type)
        else:
            _update_payload(conn, item_id, payload)
        item = _load_item(conn, item_id)
    return item


def delete_item(db: Database, item_id: str) -> str:
    """Delete an item (its payload cascades); returns the owning script id.

    Sibling positions are not renumbered.
    """
    with db.transaction() as conn:
        row = conn.execute("SELECT script_id FROM script_items WHERE id = ?", (item_id,)).fetchone()
        if row is None:
            raise NotFound("script item", item_id)
        conn.execute("DELETE FROM script_items WHERE id = ?", (item_id,))
    logger.debug("Deleted item %s from script %s", item_id, row["script_id"])
    return row["script_id"]


def delete_all_items(db: Database, script_id: str) -> int:
    with db.transaction() as conn:
        cur = conn.execute("DELETE FROM script_items WHERE script_id = ?", (script_id,))
    return cur.rowcount


def list_active_lightings(db: Database, script_id: str) -> List[ScriptItem]:
    """Lighting cues that switch a light on, for "reuse an existing cue" pickers."""
    return [
        item for item in list_items(db, script_id)
        if isinstance(item.payload, LightingItem) and not item.payload.is_off
    ]


def list_active_sounds(db: Database, script_id: str) -> List[ScriptItem]:
    """Sound cues that start playback (stop cues excluded)."""
    return [
        item for item in list_items(db, script_id)
        if isinstance(item.payload, SoundItem) and not item.payload.is_stop
    ]
