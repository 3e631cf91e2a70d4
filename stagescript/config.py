"""Runtime configuration, read from the environment (and a local .env)."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

DB_ENV_VAR = "STAGESCRIPT_DB"
DEFAULT_DB_PATH = Path.home() / ".stagescript" / "stagescript.db"


def load_env() -> None:
    """Merge a ``.env`` file from the working directory into os.environ."""
    load_dotenv(find_dotenv(usecwd=True), override=False)


def database_path() -> str:
    """Database location: ``$STAGESCRIPT_DB`` or ``~/.stagescript/stagescript.db``."""
    return os.environ.get(DB_ENV_VAR) or str(DEFAULT_DB_PATH)
