"""Position manager: integer ordering of items within a script.

Rules:
  - append: max(position) + 1, or 0 for an empty script.
  - explicit index k: stored as-is; sibling rows are NOT shifted.  Repeated
    inserts can therefore leave gaps or duplicate positions.
  - read order: position ascending, ties broken by item id.
  - reorder: the only operation that rewrites positions to a dense 0..N-1.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from stagescript.errors import FieldError, OwnershipError, ValidationError
from stagescript.validation import validate_position

from .db import Database

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def next_position(conn: sqlite3.Connection, script_id: str) -> int:
    row = conn.execute(
        "SELECT MAX(position) AS top FROM script_items WHERE script_id = ?", (script_id,)
    ).fetchone()
    if row["top"] is None:
        return 0
    return validate_position(row["top"] + 1)


def resolve_position(conn: sqlite3.Connection, script_id: str, requested: Optional[int] = None) -> int:
    """Position for a new item: *requested* if given, otherwise appended."""
    if requested is None:
        return next_position(conn, script_id)
    return validate_position(requested)


def order_key(item) -> Tuple[int, str]:
    return (item.position, item.id)


def sort_items(items: Iterable[_T]) -> List[_T]:
    return sorted(items, key=order_key)


def reorder(db: Database, script_id: str, ordered_ids: Sequence[str]) -> None:
    """Set ``position = index`` for every id in *ordered_ids*.

    Ownership of every id is checked before the first write; a single foreign
    or unknown id aborts the whole call.  Items of the script left out of
    *ordered_ids* keep their old position, which may now collide.

    Raises:
        OwnershipError: an id is not an item of *script_id*.
        ValidationError: *ordered_ids* lists the same id twice.
    """
    ids = [str(i) for i in ordered_ids]
    seen: set = set()
    dupes: List[str] = []
    for item_id in ids:
        if item_id in seen:
            dupes.append(item_id)
        seen.add(item_id)
    if dupes:
        raise ValidationError([FieldError("orderedIds", f"duplicate item id {d!r}") for d in dupes])

    with db.transaction() as conn:
        owned = {
            r["id"]
            for r in conn.execute("SELECT id FROM script_items WHERE script_id = ?", (script_id,))
        }
        foreign = [i for i in ids if i not in owned]
        if foreign:
            raise OwnershipError(script_id, foreign)
        conn.executemany(
            "UPDATE script_items SET position = ? WHERE id = ?",
            [(index, item_id) for index, item_id in enumerate(ids)],
        )

    left_out = len(owned) - len(ids)
    if left_out:
        logger.warning("Reorder of script %s left %d item(s) at their old position", script_id, left_out)
    logger.info("Reordered %d item(s) in script %s", len(ids), script_id)
