"""
Story Creator Configuration Management

Centralized configuration system with JSON loading and validation.
"""

import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError, InvalidConfigError
from .constants import (
    AspectRatio,
    GenerationType,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_CONSISTENCY_STRENGTH,
    DEFAULT_IMAGES_PER_PROMPT,
    DEFAULT_GENERATION_TYPE,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_VIDEO_MODEL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_STATE_FILE,
    DOWNLOAD_DELAY_SECONDS,
    GEMINI_BASE_URL,
    VIDEO_POLL_INTERVAL_SECONDS,
)


@dataclass
class GenerationDefaults:
    """Default generation options for new sessions."""
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    consistency_strength: float = DEFAULT_CONSISTENCY_STRENGTH
    images_per_prompt: int = DEFAULT_IMAGES_PER_PROMPT
    generation_type: GenerationType = DEFAULT_GENERATION_TYPE

    @classmethod
    def from_dict(cls, data: dict) -> 'GenerationDefaults':
        try:
            return cls(
                aspect_ratio=AspectRatio(data.get('aspect_ratio', DEFAULT_ASPECT_RATIO.value)),
                consistency_strength=float(data.get('consistency_strength', DEFAULT_CONSISTENCY_STRENGTH)),
                images_per_prompt=int(data.get('images_per_prompt', DEFAULT_IMAGES_PER_PROMPT)),
                generation_type=GenerationType(data.get('generation_type', DEFAULT_GENERATION_TYPE.value)),
            )
        except (TypeError, ValueError) as e:
            raise InvalidConfigError(f"Invalid generation defaults: {e}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'aspect_ratio': self.aspect_ratio.value,
            'consistency_strength': self.consistency_strength,
            'images_per_prompt': self.images_per_prompt,
            'generation_type': self.generation_type.value,
        }


@dataclass
class ProviderConfig:
    """Configuration for the Gemini / Veo endpoints."""
    api_key_env: str = "GEMINI_API_KEY"  # Environment variable name for API key
    base_url: str = GEMINI_BASE_URL
    image_model: str = DEFAULT_IMAGE_MODEL
    video_model: str = DEFAULT_VIDEO_MODEL
    timeout: float = DEFAULT_REQUEST_TIMEOUT
    poll_interval: float = VIDEO_POLL_INTERVAL_SECONDS

    @classmethod
    def from_dict(cls, data: dict) -> 'ProviderConfig':
        defaults = cls()
        return cls(
            api_key_env=data.get('api_key_env', defaults.api_key_env),
            base_url=data.get('base_url', defaults.base_url),
            image_model=data.get('image_model', defaults.image_model),
            video_model=data.get('video_model', defaults.video_model),
            timeout=float(data.get('timeout', defaults.timeout)),
            poll_interval=float(data.get('poll_interval', defaults.poll_interval)),
        )


@dataclass
class ExportConfig:
    """Where and how results are written."""
    output_dir: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_DIR))
    download_delay: float = DOWNLOAD_DELAY_SECONDS


@dataclass
class StoryCreatorConfig:
    """Main configuration class for Story Creator."""

    # Paths
    logs_dir: Path = field(default_factory=lambda: Path("logs"))
    state_path: Path = field(default_factory=lambda: Path(DEFAULT_STATE_FILE))

    # Sub-configurations
    generation: GenerationDefaults = field(default_factory=GenerationDefaults)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Feature flags
    verbose_logging: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'StoryCreatorConfig':
        """Create StoryCreatorConfig from dictionary."""
        config = cls()

        config.verbose_logging = data.get('verbose_logging', config.verbose_logging)

        if 'paths' in data:
            paths = data['paths']
            config.logs_dir = Path(paths.get('logs_dir', config.logs_dir))
            config.state_path = Path(paths.get('state_path', config.state_path))

        if 'generation' in data:
            config.generation = GenerationDefaults.from_dict(data['generation'])

        if 'provider' in data:
            config.provider = ProviderConfig.from_dict(data['provider'])

        if 'export' in data:
            export_data = data['export']
            config.export = ExportConfig(
                output_dir=Path(export_data.get('output_dir', DEFAULT_OUTPUT_DIR)),
                download_delay=float(export_data.get('download_delay', DOWNLOAD_DELAY_SECONDS)),
            )

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            'verbose_logging': self.verbose_logging,
            'paths': {
                'logs_dir': str(self.logs_dir),
                'state_path': str(self.state_path),
            },
            'generation': self.generation.to_dict(),
            'provider': asdict(self.provider),
            'export': {
                'output_dir': str(self.export.output_dir),
                'download_delay': self.export.download_delay,
            },
        }


def load_config(config_path: Path = None) -> StoryCreatorConfig:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file. If None, uses default.

    Returns:
        Loaded StoryCreatorConfig instance
    """
    if config_path is None:
        config_path = Path("config/storycreator_config.json")
    config_path = Path(config_path)

    if not config_path.exists():
        # Return default config if file doesn't exist
        return StoryCreatorConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to load config: {e}")

    if not isinstance(data, dict):
        raise InvalidConfigError("Config file must contain a JSON object")
    return StoryCreatorConfig.from_dict(data)


def save_config(config: StoryCreatorConfig, config_path: Path) -> None:
    """Write configuration to a JSON file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)


# Global config instance
_config: Optional[StoryCreatorConfig] = None


def get_config() -> StoryCreatorConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: StoryCreatorConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
