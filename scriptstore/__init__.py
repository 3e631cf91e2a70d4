# Script store: SQLite persistence for scripts, characters and items
from .db import Database
from .transfer import export_script, import_script

__all__ = ["Database", "export_script", "import_script"]
