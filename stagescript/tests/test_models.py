"""Tests for stagescript/models.py — aliases, defaults, export shape."""
from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from stagescript.models import (
    Character,
    DialogueItem,
    ITEM_TYPES,
    PAYLOAD_MODELS,
    ScriptItem,
    SoundItem,
)


def _item(payload, position: int = 0) -> ScriptItem:
    return ScriptItem(id="i1", script_id="s1", type=payload.type, position=position, payload=payload)


class TestVariants:

    def test_one_model_per_type(self):
        assert set(PAYLOAD_MODELS) == set(ITEM_TYPES)
        for item_type, model in PAYLOAD_MODELS.items():
            assert model.model_fields["type"].default == item_type

    def test_camel_case_dump(self):
        dumped = SoundItem(url="a.mp3", is_stop=True).model_dump(by_alias=True)
        assert dumped["isStop"] is True
        assert "is_stop" not in dumped


class TestScriptItem:

    def test_payload_discriminated_from_dict(self):
        item = ScriptItem.model_validate({
            "id": "i1", "scriptId": "s1", "type": "dialogue", "position": 3,
            "payload": {"type": "dialogue", "characterId": "c1", "text": "Hi"},
        })
        assert isinstance(item.payload, DialogueItem)

    def test_to_document_nests_payload_under_type(self):
        doc = _item(DialogueItem(character_id="c1", text="Hi"), position=2).to_document()
        assert doc == {
            "id": "i1",
            "type": "dialogue",
            "position": 2,
            "dialogue": {"characterId": "c1", "text": "Hi"},
        }

    def test_to_document_is_json_serializable(self):
        doc = _item(SoundItem(url="a.mp3")).to_document()
        assert json.loads(json.dumps(doc)) == doc

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            ScriptItem(id="i1", script_id="s1", type="nope", position=0, payload=SoundItem(url="a"))


class TestCharacter:

    def test_dump_uses_camel_case(self):
        c = Character(id="c1", script_id="s1", real_name="Jean", stage_name="Hamlet", role="lead", color="#1E90FF")
        assert c.model_dump(by_alias=True) == {
            "realName": "Jean", "stageName": "Hamlet", "role": "lead", "color": "#1E90FF",
            "id": "c1", "scriptId": "s1",
        }
