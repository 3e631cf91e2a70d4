"""Script-content engine for theatrical scripts: models, validation, errors.

The operation surface lives in ``stagescript.api``; persistence lives in the
sibling ``scriptstore`` package.
"""

from stagescript.errors import (
    DocumentImportError,
    FieldError,
    NotFound,
    OwnershipError,
    StageScriptError,
    ValidationError,
)
from stagescript.models import (
    Character,
    DialogueItem,
    ImageItem,
    LightingItem,
    MovementItem,
    NarrationItem,
    Script,
    ScriptItem,
    ScriptWithRelations,
    SoundItem,
    StagingItem,
)

__all__ = [
    "Character",
    "DialogueItem",
    "DocumentImportError",
    "FieldError",
    "ImageItem",
    "LightingItem",
    "MovementItem",
    "NarrationItem",
    "NotFound",
    "OwnershipError",
    "Script",
    "ScriptItem",
    "ScriptWithRelations",
    "SoundItem",
    "StageScriptError",
    "StagingItem",
    "ValidationError",
]
