"""
Story Creator - consistent character image and video sequences

Upload reference character images, write scene prompts, and generate a sequence
of images (several frames per prompt) or short videos that keep the characters
consistent across scenes.

Version: 1.0.0
"""

__version__ = "1.0.0"
__project__ = "Story Creator"

from pathlib import Path

# Load environment variables early - before any client looks up an API key
from storycreator.core.env_loader import ensure_env_loaded
ensure_env_loaded()

# Package root directory
PACKAGE_ROOT = Path(__file__).parent

from .characters import CharacterRoster
from .generation import GenerationPipeline, GenerationOptions, GeneratedItem, GenerationProgress

__all__ = [
    "__version__",
    "__project__",
    "PACKAGE_ROOT",
    "CharacterRoster",
    "GenerationPipeline",
    "GenerationOptions",
    "GeneratedItem",
    "GenerationProgress",
]
