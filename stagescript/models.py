"""Script, Character and ScriptItem data models.

The seven item variants form a discriminated union keyed by ``type``.  JSON
field names are camelCase (``characterId``, ``isOff``, ``from``); python
attributes are snake_case.  extra="ignore" on every model so documents written
by older or newer editors load without tripping on unknown keys.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Type, Union, get_args

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    StringConstraints,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
DEFAULT_CHARACTER_COLOR = "#e2e8f0"

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
HexColor = Annotated[str, StringConstraints(strip_whitespace=True, pattern=COLOR_PATTERN)]

ItemType = Literal["dialogue", "narration", "lighting", "sound", "image", "staging", "movement"]
ITEM_TYPES = ("dialogue", "narration", "lighting", "sound", "image", "staging", "movement")

SoundKind = Literal["url", "youtube", "base64"]
ImageKind = Literal["url", "base64"]


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)


# ── Item variants ─────────────────────────────────────────────────────────────


class DialogueItem(_Record):
    """A spoken line.  ``character_id`` must be present; "" means unassigned."""

    type: Literal["dialogue"] = "dialogue"
    character_id: str = Field(
        validation_alias=AliasChoices("characterId", "character", "character_id"),
    )
    text: str = ""


class NarrationItem(_Record):
    type: Literal["narration"] = "narration"
    character_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("characterId", "character", "character_id"),
    )
    text: str = ""

    @field_validator("character_id", mode="before")
    @classmethod
    def _blank_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class LightingItem(_Record):
    """A lighting cue.  ``position`` is a stage location, not an ordering key."""

    type: Literal["lighting"] = "lighting"
    position: str = ""
    color: HexColor
    is_off: bool = False


class SoundItem(_Record):
    type: Literal["sound"] = "sound"
    kind: SoundKind = "url"
    name: str = ""
    url: NonEmptyStr
    timecode: str = ""
    description: str = ""
    is_stop: bool = False


class ImageItem(_Record):
    type: Literal["image"] = "image"
    kind: ImageKind = "url"
    url: NonEmptyStr
    width: PositiveInt = 800
    height: PositiveInt = 600
    caption: Optional[str] = None


class StagingItem(_Record):
    """A piece of set dressing placed somewhere on stage."""

    type: Literal["staging"] = "staging"
    item: NonEmptyStr
    position: str = ""
    description: Optional[str] = None


class MovementItem(_Record):
    type: Literal["movement"] = "movement"
    character_id: str = Field(
        validation_alias=AliasChoices("characterId", "character_id"),
    )
    from_location: str = Field(default="", alias="from")
    to_location: str = Field(default="", alias="to")
    description: Optional[str] = None


ItemPayload = Annotated[
    Union[
        DialogueItem,
        NarrationItem,
        LightingItem,
        SoundItem,
        ImageItem,
        StagingItem,
        MovementItem,
    ],
    Field(discriminator="type"),
]

ITEM_ADAPTER: TypeAdapter = TypeAdapter(ItemPayload)

PAYLOAD_MODELS: Dict[str, Type[_Record]] = {
    "dialogue": DialogueItem,
    "narration": NarrationItem,
    "lighting": LightingItem,
    "sound": SoundItem,
    "image": ImageItem,
    "staging": StagingItem,
    "movement": MovementItem,
}

# Variants whose payload carries a character reference.
CHARACTER_BOUND_TYPES = frozenset({"dialogue", "narration", "movement"})

# Variants whose payload carries a media ``kind``.
MEDIA_KINDS: Dict[str, frozenset] = {
    "sound": frozenset(get_args(SoundKind)),
    "image": frozenset(get_args(ImageKind)),
}


# ── Characters and scripts ────────────────────────────────────────────────────


class CharacterFields(_Record):
    """Caller-supplied character fields (create/update input)."""

    real_name: NonEmptyStr
    stage_name: NonEmptyStr
    role: str = ""
    color: HexColor = DEFAULT_CHARACTER_COLOR


class Character(CharacterFields):
    id: str
    script_id: str


class ScriptFields(_Record):
    name: NonEmptyStr
    description: Optional[str] = None


class Script(ScriptFields):
    id: str
    created_at: str  # ISO 8601
    updated_at: str  # ISO 8601


class ScriptItem(_Record):
    """A base item joined with its single variant payload."""

    id: str
    script_id: str
    type: ItemType
    position: int
    payload: ItemPayload

    def to_document(self) -> Dict[str, Any]:
        """Export shape: the payload nested under its own type key."""
        return {
            "id": self.id,
            "type": self.type,
            "position": self.position,
            self.type: self.payload.model_dump(by_alias=True, exclude={"type"}),
        }


class ScriptWithRelations(Script):
    characters: List[Character] = []
    items: List[ScriptItem] = []
