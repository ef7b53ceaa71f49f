"""
Tests for Story Creator Configuration

Tests for storycreator/core/config.py
"""

import json
from pathlib import Path

import pytest

from storycreator.core.config import (
    GenerationDefaults,
    ProviderConfig,
    StoryCreatorConfig,
    get_config,
    load_config,
    save_config,
    set_config,
)
from storycreator.core.constants import AspectRatio, GenerationType, DEFAULT_IMAGE_MODEL
from storycreator.core.exceptions import InvalidConfigError


class TestStoryCreatorConfig:
    """Tests for StoryCreatorConfig."""

    def test_defaults(self):
        config = StoryCreatorConfig()

        assert config.generation.aspect_ratio is AspectRatio.SQUARE
        assert config.generation.consistency_strength == 0.8
        assert config.generation.images_per_prompt == 6
        assert config.generation.generation_type is GenerationType.IMAGES
        assert config.provider.image_model == DEFAULT_IMAGE_MODEL
        assert config.export.download_delay == 0.25

    def test_from_dict_partial(self):
        config = StoryCreatorConfig.from_dict({
            "paths": {"state_path": "state/session.json"},
            "generation": {"aspect_ratio": "16:9", "images_per_prompt": 3},
            "provider": {"poll_interval": 2},
            "export": {"output_dir": "out"},
        })

        assert config.state_path == Path("state/session.json")
        assert config.generation.aspect_ratio is AspectRatio.WIDE
        assert config.generation.images_per_prompt == 3
        assert config.generation.consistency_strength == 0.8
        assert config.provider.poll_interval == 2.0
        assert config.export.output_dir == Path("out")

    def test_invalid_generation_defaults(self):
        with pytest.raises(InvalidConfigError):
            GenerationDefaults.from_dict({"aspect_ratio": "5:4"})

    def test_provider_from_dict_keeps_defaults(self):
        provider = ProviderConfig.from_dict({"video_model": "veo-test"})

        assert provider.video_model == "veo-test"
        assert provider.api_key_env == "GEMINI_API_KEY"


class TestLoadConfig:
    """Tests for load_config and save_config."""

    def test_missing_file_returns_defaults(self, temp_dir):
        config = load_config(temp_dir / "nope.json")

        assert isinstance(config, StoryCreatorConfig)

    def test_invalid_json(self, temp_dir):
        path = temp_dir / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InvalidConfigError):
            load_config(path)

    def test_non_object(self, temp_dir):
        path = temp_dir / "list.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")

        with pytest.raises(InvalidConfigError):
            load_config(path)

    def test_save_then_load(self, temp_dir):
        config = StoryCreatorConfig()
        config.generation.images_per_prompt = 2
        config.provider.timeout = 30.0
        path = temp_dir / "config" / "storycreator_config.json"

        save_config(config, path)
        loaded = load_config(path)

        assert loaded.generation.images_per_prompt == 2
        assert loaded.provider.timeout == 30.0
        assert loaded.to_dict() == config.to_dict()


class TestGlobalConfig:

    def test_set_then_get(self):
        config = StoryCreatorConfig()
        config.generation.images_per_prompt = 1

        set_config(config)

        assert get_config() is config
