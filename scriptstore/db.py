"""SQLite storage for scripts, characters and script items.

Layout:

    scripts               one row per script
    characters            owned by a script (ON DELETE CASCADE)
    script_items          base item rows: type + position (ON DELETE CASCADE)
    <variant>_payloads    one table per item variant, keyed by script_item_id
                          (ON DELETE CASCADE from script_items)

Character references inside payload rows carry no foreign key: deleting a
character leaves them dangling, and readers resolve that at display time.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY
    );

    CREATE TABLE IF NOT EXISTS scripts (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS characters (
        id TEXT PRIMARY KEY,
        script_id TEXT NOT NULL REFERENCES scripts(id) ON DELETE CASCADE,
        real_name TEXT NOT NULL,
        stage_name TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT '',
        color TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_characters_script ON characters(script_id);

    CREATE TABLE IF NOT EXISTS script_items (
        id TEXT PRIMARY KEY,
        script_id TEXT NOT NULL REFERENCES scripts(id) ON DELETE CASCADE,
        type TEXT NOT NULL,
        position INTEGER NOT NULL CHECK (position >= 0)
    );
    CREATE INDEX IF NOT EXISTS idx_script_items_order ON script_items(script_id, position, id);

    CREATE TABLE IF NOT EXISTS dialogue_payloads (
        script_item_id TEXT PRIMARY KEY REFERENCES script_items(id) ON DELETE CASCADE,
        character_id TEXT NOT NULL DEFAULT '',
        text TEXT NOT NULL DEFAULT ''
    );

    CREATE TABLE IF NOT EXISTS narration_payloads (
        script_item_id TEXT PRIMARY KEY REFERENCES script_items(id) ON DELETE CASCADE,
        character_id TEXT,
        text TEXT NOT NULL DEFAULT ''
    );

    CREATE TABLE IF NOT EXISTS lighting_payloads (
        script_item_id TEXT PRIMARY KEY REFERENCES script_items(id) ON DELETE CASCADE,
        position TEXT NOT NULL DEFAULT '',
        color TEXT NOT NULL,
        is_off INTEGER NOT NULL DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS sound_payloads (
        script_item_id TEXT PRIMARY KEY REFERENCES script_items(id) ON DELETE CASCADE,
        kind TEXT NOT NULL DEFAULT 'url',
        name TEXT NOT NULL DEFAULT '',
        url TEXT NOT NULL,
        timecode TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT '',
        is_stop INTEGER NOT NULL DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS image_payloads (
        script_item_id TEXT PRIMARY KEY REFERENCES script_items(id) ON DELETE CASCADE,
        kind TEXT NOT NULL DEFAULT 'url',
        url TEXT NOT NULL,
        width INTEGER NOT NULL DEFAULT 800,
        height INTEGER NOT NULL DEFAULT 600,
        caption TEXT
    );

    CREATE TABLE IF NOT EXISTS staging_payloads (
        script_item_id TEXT PRIMARY KEY REFERENCES script_items(id) ON DELETE CASCADE,
        item TEXT NOT NULL,
        position TEXT NOT NULL DEFAULT '',
        description TEXT
    );

    CREATE TABLE IF NOT EXISTS movement_payloads (
        script_item_id TEXT PRIMARY KEY REFERENCES script_items(id) ON DELETE CASCADE,
        character_id TEXT NOT NULL DEFAULT '',
        from_location TEXT NOT NULL DEFAULT '',
        to_location TEXT NOT NULL DEFAULT '',
        description TEXT
    );
"""


def new_id() -> str:
    return uuid.uuid4().hex


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Database:
    """A single SQLite connection plus a re-entrant transaction helper.

    ``transaction()`` blocks nest: an inner block joins the outermost one, so
    a bulk import that calls the character and content stores still commits
    or rolls back as one unit.
    """

    def __init__(self, path: Union[str, Path] = ":memory:", timeout: float = 5.0):
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        # Autocommit mode; transactions are opened explicitly below.
        self.conn = sqlite3.connect(
            self.path, timeout=timeout, isolation_level=None, check_same_thread=False,
        )
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.RLock()
        self._depth = 0
        self._init_schema()

    def _init_schema(self) -> None:
        # executescript commits on its own; every statement is IF NOT EXISTS.
        self.conn.executescript(_SCHEMA)
        with self.transaction() as conn:
            row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
            if row is None:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        logger.debug("Opened script database at %s (schema v%d)", self.path, SCHEMA_VERSION)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction (``BEGIN IMMEDIATE``)."""
        with self._begin("BEGIN IMMEDIATE") as conn:
            yield conn

    @contextmanager
    def snapshot(self) -> Iterator[sqlite3.Connection]:
        """Read transaction: every SELECT inside sees the same committed state."""
        with self._begin("BEGIN DEFERRED") as conn:
            yield conn

    @contextmanager
    def _begin(self, statement: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self.conn
                finally:
                    self._depth -= 1
                return

            self.conn.execute(statement)
            self._depth = 1
            try:
                yield self.conn
                self.conn.execute("COMMIT")
            except BaseException:
                # Also reached when COMMIT itself fails (e.g. database is locked).
                if self.conn.in_transaction:
                    self.conn.execute("ROLLBACK")
                raise
            finally:
                self._depth = 0

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()
