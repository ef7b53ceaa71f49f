"""
Session and preset persistence.

Three namespaces in a KeyValueStore:
- session state: characters, prompts and generation options
- character presets: named rosters
- prompt presets: named prompt lists
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from storycreator.characters import CharacterRoster, default_characters
from storycreator.core.constants import (
    AspectRatio,
    GenerationType,
    SESSION_STATE_KEY,
    CHARACTER_PRESETS_KEY,
    PROMPT_PRESETS_KEY,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_CONSISTENCY_STRENGTH,
    DEFAULT_IMAGES_PER_PROMPT,
    DEFAULT_GENERATION_TYPE,
)
from storycreator.core.logging_config import get_logger
from storycreator.generation.models import CharacterRef, GenerationOptions
from storycreator.generation.prompt_builder import normalize_prompts
from storycreator.storage.key_value_store import KeyValueStore

logger = get_logger("storage.session")


@dataclass
class SessionState:
    """Everything restored when the tool is reopened."""
    characters: List[CharacterRef] = field(default_factory=default_characters)
    prompts: List[str] = field(default_factory=lambda: [""])
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    consistency_strength: float = DEFAULT_CONSISTENCY_STRENGTH
    images_per_prompt: int = DEFAULT_IMAGES_PER_PROMPT
    generation_type: GenerationType = DEFAULT_GENERATION_TYPE

    @property
    def roster(self) -> CharacterRoster:
        return CharacterRoster(self.characters)

    @property
    def options(self) -> GenerationOptions:
        return GenerationOptions(
            generation_type=self.generation_type,
            aspect_ratio=self.aspect_ratio,
            consistency_strength=self.consistency_strength,
            images_per_prompt=self.images_per_prompt,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "characters": [c.to_dict() for c in self.characters],
            "prompts": list(self.prompts),
            "aspectRatio": self.aspect_ratio.value,
            "consistencyStrength": self.consistency_strength,
            "imagesPerPrompt": self.images_per_prompt,
            "generationType": self.generation_type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionState":
        """Build from stored data; absent fields take their defaults."""
        state = cls()
        if data.get("characters"):
            state.characters = [CharacterRef.from_dict(c) for c in data["characters"]]
        if data.get("prompts"):
            state.prompts = [str(p) for p in data["prompts"]]
        if data.get("aspectRatio"):
            state.aspect_ratio = AspectRatio(data["aspectRatio"])
        if data.get("consistencyStrength") is not None:
            state.consistency_strength = float(data["consistencyStrength"])
        if data.get("imagesPerPrompt") is not None:
            state.images_per_prompt = int(data["imagesPerPrompt"])
        if data.get("generationType"):
            state.generation_type = GenerationType(data["generationType"])
        return state


class SessionStore:
    """Reads and writes session state and presets."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    # =========================================================================
    # Session state
    # =========================================================================

    def has_session(self) -> bool:
        return bool(self.store.get(SESSION_STATE_KEY))

    def save_session(self, state: SessionState) -> None:
        self.store.set(SESSION_STATE_KEY, state.to_dict())

    def load_session(self) -> SessionState:
        """Load the saved session, falling back to defaults on any problem."""
        data = self.store.get(SESSION_STATE_KEY)
        if not data:
            return SessionState()
        try:
            return SessionState.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Failed to load session state, using defaults: {e}")
            return SessionState()

    def clear_session(self) -> SessionState:
        state = SessionState()
        self.save_session(state)
        return state

    # =========================================================================
    # Character presets
    # =========================================================================

    def _presets(self, key: str) -> Dict[str, Any]:
        data = self.store.get(key)
        if not isinstance(data, dict):
            if data is not None:
                logger.error(f"Ignoring malformed presets under '{key}'")
            return {}
        return data

    def character_preset_names(self) -> List[str]:
        return sorted(self._presets(CHARACTER_PRESETS_KEY))

    def save_character_preset(self, name: str, roster: CharacterRoster) -> None:
        presets = self._presets(CHARACTER_PRESETS_KEY)
        presets[name] = roster.to_list()
        self.store.set(CHARACTER_PRESETS_KEY, presets)
        logger.info(f"Saved character preset '{name}' ({len(roster)} slot(s))")

    def load_character_preset(self, name: str) -> Optional[CharacterRoster]:
        preset = self._presets(CHARACTER_PRESETS_KEY).get(name)
        if preset is None:
            return None
        return CharacterRoster.from_list(preset)

    def delete_character_preset(self, name: str) -> bool:
        presets = self._presets(CHARACTER_PRESETS_KEY)
        if name not in presets:
            return False
        del presets[name]
        self.store.set(CHARACTER_PRESETS_KEY, presets)
        return True

    # =========================================================================
    # Prompt presets
    # =========================================================================

    def prompt_preset_names(self) -> List[str]:
        return sorted(self._presets(PROMPT_PRESETS_KEY))

    def save_prompt_preset(self, name: str, prompts: List[str]) -> None:
        presets = self._presets(PROMPT_PRESETS_KEY)
        presets[name] = normalize_prompts(prompts)
        self.store.set(PROMPT_PRESETS_KEY, presets)
        logger.info(f"Saved prompt preset '{name}' ({len(presets[name])} prompt(s))")

    def load_prompt_preset(self, name: str) -> Optional[List[str]]:
        preset = self._presets(PROMPT_PRESETS_KEY).get(name)
        if preset is None:
            return None
        return list(preset) if preset else [""]

    def delete_prompt_preset(self, name: str) -> bool:
        presets = self._presets(PROMPT_PRESETS_KEY)
        if name not in presets:
            return False
        del presets[name]
        self.store.set(PROMPT_PRESETS_KEY, presets)
        return True
