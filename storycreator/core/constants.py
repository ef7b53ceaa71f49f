"""
Story Creator Constants

Global constants used throughout the Story Creator package.
"""

from enum import Enum
from typing import List

# =============================================================================
# VERSION INFO
# =============================================================================
VERSION = "1.0.0"
PROJECT_NAME = "Story Creator"

# =============================================================================
# GENERATION MODES
# =============================================================================

class GenerationType(Enum):
    """What a run produces."""
    IMAGES = "images"
    VIDEOS = "videos"


class AspectRatio(Enum):
    """Aspect ratios offered for generation."""
    WIDE = "16:9"
    TALL = "9:16"
    SQUARE = "1:1"
    CLASSIC = "4:3"


# Veo only renders landscape or portrait
VIDEO_ASPECT_RATIOS = (AspectRatio.WIDE, AspectRatio.TALL)


class ConsistencyLevel(Enum):
    """Qualitative strength of the reference-matching instruction."""
    LOOSE = "loose"
    BALANCED = "balanced"
    STRICT = "strict"


# Thresholds over the 0-1 consistency dial
LOOSE_CONSISTENCY_BELOW = 0.4
BALANCED_CONSISTENCY_BELOW = 0.75

CONSISTENCY_INSTRUCTIONS = {
    ConsistencyLevel.LOOSE: (
        "Use the provided images as loose inspiration for the characters. "
        "Keep their general look recognizable, but feel free to adapt details to fit the scene."
    ),
    ConsistencyLevel.BALANCED: (
        "Recreate the characters from the provided images faithfully. Keep their faces, "
        "hairstyles and clothing recognizable while allowing natural variation in pose and lighting."
    ),
    ConsistencyLevel.STRICT: (
        "Recreate the characters from the provided images with high fidelity. Pay close attention "
        "to specific details like clothing, hairstyle, facial features, and color palette to ensure "
        "strict consistency."
    ),
}

# Reference images are labeled by selection order
REFERENCE_ORDINALS: List[str] = ["first", "second", "third", "fourth", "fifth"]
FALLBACK_ORDINAL = "next"

# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_ASPECT_RATIO = AspectRatio.SQUARE
DEFAULT_CONSISTENCY_STRENGTH = 0.8
DEFAULT_IMAGES_PER_PROMPT = 6
DEFAULT_GENERATION_TYPE = GenerationType.IMAGES
DEFAULT_CHARACTER_SLOTS = 2
DEFAULT_MIME_TYPE = "image/png"

# =============================================================================
# PERSISTENCE NAMESPACES
# =============================================================================

SESSION_STATE_KEY = "bachchaStoryCreatorState"
CHARACTER_PRESETS_KEY = "bachchaStoryCreatorPresets"
PROMPT_PRESETS_KEY = "bachchaStoryCreatorPromptPresets"

DEFAULT_STATE_FILE = "storycreator_state.json"

# =============================================================================
# PROVIDER
# =============================================================================

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_VIDEO_MODEL = "veo-2.0-generate-001"
DEFAULT_REQUEST_TIMEOUT = 120.0
VIDEO_POLL_INTERVAL_SECONDS = 10.0

# Substring marking an authentication/billing failure on video runs
ENTITY_NOT_FOUND_SIGNATURE = "entity was not found"

FATAL_VIDEO_KEY_MESSAGE = (
    "API key error. Select a project with billing enabled for video generation and try again."
)

# =============================================================================
# EXPORT
# =============================================================================

DOWNLOAD_DELAY_SECONDS = 0.25
IMAGE_EXTENSION = ".png"
VIDEO_EXTENSION = ".mp4"
DEFAULT_OUTPUT_DIR = "story_output"
