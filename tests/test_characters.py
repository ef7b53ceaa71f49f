"""
Tests for the character roster.
"""

import base64
import io

import pytest
from PIL import Image

from conftest import make_png
from storycreator.characters import CharacterRoster, detect_mime_type
from storycreator.core.exceptions import CharacterNotFoundError, ImageReadError
from storycreator.generation.models import CharacterRef


class TestDetectMimeType:

    def test_png(self, png_bytes):
        assert detect_mime_type(png_bytes) == "image/png"

    def test_jpeg(self):
        buffer = io.BytesIO()
        Image.new("RGB", (4, 4)).save(buffer, format="JPEG")

        assert detect_mime_type(buffer.getvalue()) == "image/jpeg"

    @pytest.mark.parametrize("data", [b"", b"definitely not an image"])
    def test_unreadable(self, data):
        with pytest.raises(ImageReadError) as exc_info:
            detect_mime_type(data)

        assert exc_info.value.message == "Failed to read image file."


class TestCharacterRoster:

    def test_two_default_slots(self):
        roster = CharacterRoster()

        assert [(c.id, c.name, c.selected, c.has_image) for c in roster] == [
            (1, "Character 1", False, False),
            (2, "Character 2", False, False),
        ]

    def test_add_slot_uses_max_id_plus_one(self):
        roster = CharacterRoster([CharacterRef(id=1, name="a"), CharacterRef(id=9, name="b")])

        character = roster.add_slot()

        assert character.id == 10
        assert character.name == "Character 10"
        assert len(roster) == 3

    def test_add_slot_after_removal_does_not_reuse_live_id(self):
        roster = CharacterRoster()
        roster.remove_slot(1)

        assert roster.add_slot().id == 3

    def test_add_slot_to_empty_roster(self):
        assert CharacterRoster([]).add_slot().id == 1

    def test_unknown_id(self):
        with pytest.raises(CharacterNotFoundError):
            CharacterRoster().rename(42, "Ghost")

    def test_rename_and_toggle(self):
        roster = CharacterRoster()

        roster.rename(2, "Bolt")
        assert roster.toggle_selected(2) is True
        assert roster.toggle_selected(2) is False

        assert roster.get(2).name == "Bolt"

    def test_set_image_detects_mime_type(self, png_bytes):
        roster = CharacterRoster()

        character = roster.set_image(1, png_bytes)

        assert character.mime_type == "image/png"
        assert character.image_bytes == png_bytes
        assert base64.b64decode(character.image_base64) == png_bytes

    def test_set_image_rejects_garbage(self):
        roster = CharacterRoster()

        with pytest.raises(ImageReadError):
            roster.set_image(1, b"garbage")

        assert not roster.get(1).has_image

    def test_load_image_file(self, temp_dir, png_bytes):
        path = temp_dir / "hero.png"
        path.write_bytes(png_bytes)
        roster = CharacterRoster()

        roster.load_image_file(2, path)

        assert roster.get(2).image_bytes == png_bytes

    def test_load_missing_file(self, temp_dir):
        with pytest.raises(ImageReadError):
            CharacterRoster().load_image_file(1, temp_dir / "missing.png")

    def test_selected_references_need_image_and_selection(self, png_bytes):
        roster = CharacterRoster()
        third = roster.add_slot()
        roster.set_image(1, png_bytes)
        roster.set_image(third.id, make_png(color=(0, 0, 255)))
        roster.set_selected(1, True)
        roster.set_selected(2, True)
        roster.set_selected(third.id, True)

        assert [c.id for c in roster.selected_references()] == [1, third.id]

        roster.clear_image(1)
        assert [c.id for c in roster.selected_references()] == [third.id]

    def test_list_round_trip_accepts_data_urls(self, png_bytes):
        encoded = base64.b64encode(png_bytes).decode()
        roster = CharacterRoster.from_list([
            {"id": 4, "name": "Old", "base64": f"data:image/webp;base64,{encoded}", "isSelected": True},
        ])

        character = roster.get(4)
        assert character.image_base64 == encoded
        assert character.mime_type == "image/webp"
        assert character.selected
        assert roster.to_list()[0]["base64"] == encoded
