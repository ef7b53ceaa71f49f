"""
Character Roster - the ordered list of character slots.

Each slot has a name, an optional reference image and a selection flag.
Selected slots that hold an image are the references sent to the generator,
in slot order.
"""

from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from PIL import Image, UnidentifiedImageError

from storycreator.core.constants import DEFAULT_CHARACTER_SLOTS
from storycreator.core.exceptions import CharacterNotFoundError, ImageReadError
from storycreator.core.logging_config import get_logger
from storycreator.generation.models import CharacterRef

logger = get_logger("characters")

# Pillow format name -> mime type for the formats the generator accepts
_FORMAT_MIME_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "HEIF": "image/heic",
}


def detect_mime_type(data: bytes) -> str:
    """Verify image bytes with Pillow and return their mime type."""
    if not data:
        raise ImageReadError("empty file")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            image_format = img.format
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageReadError(str(e))
    mime_type = _FORMAT_MIME_TYPES.get(image_format or "")
    if mime_type is None:
        raise ImageReadError(f"unsupported image format: {image_format}")
    return mime_type


def default_characters() -> List[CharacterRef]:
    return [
        CharacterRef(id=i, name=f"Character {i}")
        for i in range(1, DEFAULT_CHARACTER_SLOTS + 1)
    ]


class CharacterRoster:
    """Ordered, mutable collection of character slots."""

    def __init__(self, characters: Optional[Iterable[CharacterRef]] = None):
        self._characters: List[CharacterRef] = (
            list(characters) if characters is not None else default_characters()
        )

    def __iter__(self) -> Iterator[CharacterRef]:
        return iter(self._characters)

    def __len__(self) -> int:
        return len(self._characters)

    @property
    def characters(self) -> List[CharacterRef]:
        return list(self._characters)

    def get(self, character_id: int) -> CharacterRef:
        for character in self._characters:
            if character.id == character_id:
                return character
        raise CharacterNotFoundError(character_id)

    def add_slot(self) -> CharacterRef:
        new_id = max((c.id for c in self._characters), default=0) + 1
        character = CharacterRef(id=new_id, name=f"Character {new_id}")
        self._characters.append(character)
        return character

    def remove_slot(self, character_id: int) -> None:
        character = self.get(character_id)
        self._characters.remove(character)

    def rename(self, character_id: int, name: str) -> None:
        self.get(character_id).name = name

    def toggle_selected(self, character_id: int) -> bool:
        character = self.get(character_id)
        character.selected = not character.selected
        return character.selected

    def set_selected(self, character_id: int, selected: bool) -> None:
        self.get(character_id).selected = selected

    def set_image(self, character_id: int, data: bytes, mime_type: Optional[str] = None) -> CharacterRef:
        """Attach image bytes to a slot after checking they decode."""
        character = self.get(character_id)
        detected = detect_mime_type(data)
        character.image_base64 = base64.b64encode(data).decode("ascii")
        character.mime_type = mime_type or detected
        logger.debug(f"Set reference image for '{character.name}' ({character.mime_type}, {len(data)} bytes)")
        return character

    def load_image_file(self, character_id: int, path: Path) -> CharacterRef:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ImageReadError(str(e))
        return self.set_image(character_id, data)

    def clear_image(self, character_id: int) -> None:
        character = self.get(character_id)
        character.image_base64 = None

    def selected_references(self) -> List[CharacterRef]:
        """Selected slots holding an image, in slot order."""
        return [c for c in self._characters if c.is_reference]

    def to_list(self) -> List[dict]:
        return [c.to_dict() for c in self._characters]

    @classmethod
    def from_list(cls, data: Iterable[dict]) -> "CharacterRoster":
        return cls(CharacterRef.from_dict(item) for item in data)
