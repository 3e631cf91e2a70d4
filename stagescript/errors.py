"""Error taxonomy for the script-content engine.

Store functions raise these; ``stagescript.api`` catches them at the operation
boundary and turns them into tagged ``Result`` values.  Every class carries a
stable ``code`` string that callers may switch on.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class FieldError:
    """One field-level violation.  ``field`` uses the JSON (camelCase) name."""

    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class StageScriptError(Exception):
    code = "StageScriptError"

    def details(self) -> Any:
        return None


class ValidationError(StageScriptError):
    """Malformed or missing fields, raised before any write."""

    code = "ValidationError"

    def __init__(self, errors: Sequence[FieldError]):
        self.errors: List[FieldError] = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))

    def fields(self) -> List[str]:
        return [e.field for e in self.errors]

    def details(self) -> List[Dict[str, str]]:
        return [e.to_dict() for e in self.errors]


class NotFound(StageScriptError):
    code = "NotFound"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")

    def details(self) -> Dict[str, str]:
        return {"entity": self.entity, "id": self.entity_id}


class OwnershipError(StageScriptError):
    """Some ids passed to reorder do not belong to the target script."""

    code = "OwnershipError"

    def __init__(self, script_id: str, foreign_ids: Sequence[str]):
        self.script_id = script_id
        self.foreign_ids = list(foreign_ids)
        super().__init__(
            f"{len(self.foreign_ids)} item(s) do not belong to script '{script_id}': "
            + ", ".join(self.foreign_ids)
        )

    def details(self) -> Dict[str, Any]:
        return {"scriptId": self.script_id, "ids": self.foreign_ids}


class DocumentImportError(StageScriptError):
    """An import document was rejected; nothing was written."""

    code = "ImportError"

    def __init__(self, message: str, problems: Optional[Sequence[str]] = None):
        self.problems = list(problems or [])
        super().__init__(message)

    def details(self) -> List[str]:
        return self.problems
