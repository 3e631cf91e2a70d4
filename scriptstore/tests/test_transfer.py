"""Tests for scriptstore/transfer.py — export, import, id remapping."""
from __future__ import annotations

import copy
from pathlib import Path

import pytest

from scriptstore.characters import create_character, list_characters
from scriptstore.db import Database
from scriptstore.items import create_item, list_items
from scriptstore.scripts import create_script
from scriptstore.transfer import export_script, import_script
from stagescript.errors import DocumentImportError, NotFound


@pytest.fixture
def db(tmp_path: Path):
    database = Database(tmp_path / "stage.db")
    yield database
    database.close()


def _populated_script(db: Database) -> str:
    script_id = create_script(db, {"name": "Hamlet"}).id
    hamlet = create_character(
        db, script_id,
        {"realName": "Jean Dupont", "stageName": "Hamlet", "role": "lead", "color": "#1E90FF"},
    )
    ghost = create_character(
        db, script_id,
        {"realName": "Paul Martin", "stageName": "Ghost", "role": "spirit", "color": "#CCCCCC"},
    )
    create_item(db, script_id, {"type": "narration", "text": "Elsinore, midnight."})
    create_item(db, script_id, {"type": "lighting", "position": "battlements", "color": "#112233"})
    create_item(db, script_id, {"type": "dialogue", "characterId": ghost.id, "text": "Remember me."})
    create_item(db, script_id, {"type": "movement", "characterId": hamlet.id, "from": "wings", "to": "centre"})
    create_item(db, script_id, {"type": "sound", "url": "https://example.org/wind.mp3", "name": "Wind"})
    create_item(db, script_id, {"type": "image", "url": "https://example.org/castle.png", "width": 1024})
    create_item(db, script_id, {"type": "staging", "item": "ramparts", "description": "stone wall"})
    create_item(db, script_id, {"type": "dialogue", "characterId": hamlet.id, "text": "Être ou ne pas être"})
    return script_id


def _stage_names(db: Database, script_id: str) -> dict:
    return {c.id: c.stage_name for c in list_characters(db, script_id)}


class TestExport:

    def test_document_shape(self, db: Database):
        script_id = _populated_script(db)
        doc = export_script(db, script_id)
        assert set(doc) == {"characters", "script"}
        assert len(doc["characters"]) == 2
        assert [i["type"] for i in doc["script"]] == [
            "narration", "lighting", "dialogue", "movement", "sound", "image", "staging", "dialogue",
        ]

    def test_payload_nested_under_type_key(self, db: Database):
        doc = export_script(db, _populated_script(db))
        lighting = doc["script"][1]
        assert lighting["position"] == 1
        assert lighting["lighting"] == {"position": "battlements", "color": "#112233", "isOff": False}
        movement = doc["script"][3]
        assert set(movement["movement"]) == {"characterId", "from", "to", "description"}

    def test_character_refs_are_current_ids(self, db: Database):
        script_id = _populated_script(db)
        doc = export_script(db, script_id)
        names = _stage_names(db, script_id)
        assert names[doc["script"][2]["dialogue"]["characterId"]] == "Ghost"

    def test_is_pure_read(self, db: Database):
        script_id = _populated_script(db)
        assert export_script(db, script_id) == export_script(db, script_id)

    def test_unknown_script(self, db: Database):
        with pytest.raises(NotFound):
            export_script(db, "missing")


class TestImportRoundTrip:

    def test_into_fresh_script(self, db: Database):
        source_id = _populated_script(db)
        doc = export_script(db, source_id)
        target_id = create_script(db, {"name": "Copy"}).id

        result = import_script(db, target_id, doc)

        assert len(result.items) == len(doc["script"])
        assert [i.position for i in result.items] == list(range(len(doc["script"])))
        source_chars = {c.stage_name: c for c in list_characters(db, source_id)}
        target_chars = {c.stage_name: c for c in result.characters}
        assert set(source_chars) == set(target_chars)
        for name, c in target_chars.items():
            assert c.id != source_chars[name].id
            assert (c.real_name, c.role, c.color) == (
                source_chars[name].real_name, source_chars[name].role, source_chars[name].color,
            )

        source_names = _stage_names(db, source_id)
        target_names = _stage_names(db, target_id)
        for src, dst in zip(list_items(db, source_id), result.items):
            assert dst.type == src.type
            src_fields = src.payload.model_dump(exclude={"character_id"})
            dst_fields = dst.payload.model_dump(exclude={"character_id"})
            assert dst_fields == src_fields
            if getattr(src.payload, "character_id", None):
                assert target_names[dst.payload.character_id] == source_names[src.payload.character_id]

    def test_replaces_existing_content(self, db: Database):
        source_id = _populated_script(db)
        doc = export_script(db, source_id)
        target_id = _populated_script(db)
        import_script(db, target_id, doc)
        assert len(list_items(db, target_id)) == len(doc["script"])
        assert len(list_characters(db, target_id)) == 2

    def test_source_untouched(self, db: Database):
        source_id = _populated_script(db)
        before = export_script(db, source_id)
        target_id = create_script(db, {"name": "Copy"}).id
        import_script(db, target_id, before)
        assert export_script(db, source_id) == before


class TestImportRemapping:

    def test_unmapped_reference_written_as_empty(self, db: Database):
        target_id = create_script(db, {"name": "T"}).id
        doc = {
            "characters": [],
            "script": [
                {"type": "dialogue", "dialogue": {"characterId": "gone", "text": "Hello?"}},
                {"type": "narration", "narration": {"characterId": "gone", "text": "Silence."}},
                {"type": "movement", "movement": {"characterId": "gone", "from": "a", "to": "b"}},
            ],
        }
        result = import_script(db, target_id, doc)
        dialogue, narration, movement = result.items
        assert dialogue.payload.character_id == ""
        assert narration.payload.character_id is None
        assert movement.payload.character_id == ""

    def test_legacy_editor_shape(self, db: Database):
        target_id = create_script(db, {"name": "T"}).id
        doc = {
            "characters": [
                {"id": "old-1", "realName": "Jean Dupont", "stageName": "Hamlet", "role": "lead", "color": "#1E90FF"},
            ],
            "script": [
                {"id": "i1", "type": "dialogue", "character": "old-1", "text": "Être ou ne pas être"},
                {"id": "i2", "type": "lighting", "lighting": {"position": "apron", "color": "#ffffff", "isOff": True}},
                {"id": "i3", "type": "movement",
                 "movement": {"characterId": "old-1", "from": "left", "to": "right"}},
            ],
        }
        result = import_script(db, target_id, doc)
        new_id = result.characters[0].id
        assert new_id != "old-1"
        assert result.items[0].payload.character_id == new_id
        assert result.items[0].payload.text == "Être ou ne pas être"
        assert result.items[1].payload.is_off is True
        assert result.items[2].payload.character_id == new_id

    def test_legacy_media_kind_under_type_key(self, db: Database):
        target_id = create_script(db, {"name": "T"}).id
        doc = {
            "characters": [],
            "script": [
                {"type": "image", "image": {"url": "data:image/png;base64,iVBORw0KGgo=", "type": "base64"}},
                {"type": "sound", "sound": {"url": "https://youtu.be/abc", "type": "youtube", "name": "Storm"}},
                {"type": "sound", "sound": {"url": "https://example.org/a.mp3", "kind": "url", "type": "base64"}},
            ],
        }
        result = import_script(db, target_id, doc)
        assert [item.type for item in result.items] == ["image", "sound", "sound"]
        assert [item.payload.kind for item in result.items] == ["base64", "youtube", "url"]
        exported = export_script(db, target_id)["script"]
        assert exported[0]["image"]["kind"] == "base64"
        assert exported[1]["sound"]["kind"] == "youtube"

    def test_positions_follow_document_order(self, db: Database):
        target_id = create_script(db, {"name": "T"}).id
        doc = {
            "characters": [],
            "script": [
                {"type": "narration", "position": 9, "narration": {"text": "first"}},
                {"type": "narration", "position": 3, "narration": {"text": "second"}},
            ],
        }
        result = import_script(db, target_id, doc)
        assert [(i.position, i.payload.text) for i in result.items] == [(0, "first"), (1, "second")]


class TestImportFailures:

    def _snapshot(self, db: Database, script_id: str) -> dict:
        return export_script(db, script_id)

    def test_missing_characters_array(self, db: Database):
        script_id = _populated_script(db)
        before = self._snapshot(db, script_id)
        with pytest.raises(DocumentImportError) as info:
            import_script(db, script_id, {"script": []})
        assert info.value.code == "ImportError"
        assert self._snapshot(db, script_id) == before

    @pytest.mark.parametrize("doc", [
        {"characters": {}, "script": []},
        {"characters": [], "script": "nope"},
        {"characters": []},
        [],
        "not a document",
    ])
    def test_bad_top_level_shape(self, db: Database, doc):
        script_id = _populated_script(db)
        before = self._snapshot(db, script_id)
        with pytest.raises(DocumentImportError):
            import_script(db, script_id, doc)
        assert self._snapshot(db, script_id) == before

    def test_invalid_item_aborts_whole_import(self, db: Database):
        script_id = _populated_script(db)
        before = self._snapshot(db, script_id)
        doc = copy.deepcopy(before)
        doc["script"][-1] = {"type": "image", "image": {"url": "", "width": -5}}
        with pytest.raises(DocumentImportError) as info:
            import_script(db, script_id, doc)
        assert any(p.startswith(f"script[{len(doc['script']) - 1}].") for p in info.value.problems)
        assert self._snapshot(db, script_id) == before

    def test_invalid_character_aborts_whole_import(self, db: Database):
        script_id = _populated_script(db)
        before = self._snapshot(db, script_id)
        doc = copy.deepcopy(before)
        doc["characters"][0]["color"] = "blue"
        with pytest.raises(DocumentImportError) as info:
            import_script(db, script_id, doc)
        assert info.value.problems == ["characters[0].color: String should match pattern '^#[0-9A-Fa-f]{6}$'"]
        assert self._snapshot(db, script_id) == before

    def test_unknown_target_script(self, db: Database):
        with pytest.raises(NotFound):
            import_script(db, "missing", {"characters": [], "script": []})
