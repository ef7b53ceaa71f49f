"""
Story Creator Custom Exceptions

Custom exception classes for error handling throughout the Story Creator package.
"""

from typing import Optional


class StoryCreatorError(Exception):
    """Base exception for all Story Creator errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(StoryCreatorError):
    """Raised when there's an issue with configuration."""
    pass


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration is missing."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(StoryCreatorError):
    """Raised when a run is rejected before any item is attempted."""
    pass


class NoReferenceSelectedError(ValidationError):
    """Raised when no selected character has a reference image."""

    def __init__(self):
        super().__init__("Please select at least one character reference image.")


class NoPromptProvidedError(ValidationError):
    """Raised when every prompt is blank."""

    def __init__(self):
        super().__init__("Please enter at least one prompt.")


class InvalidOptionError(ValidationError):
    """Raised when a generation option is out of range."""

    def __init__(self, option: str, value, reason: str):
        message = f"Invalid value for '{option}': {value!r} ({reason})"
        super().__init__(message, {"option": option, "value": value})


# =============================================================================
# CHARACTER ERRORS
# =============================================================================

class CharacterError(StoryCreatorError):
    """Base exception for character roster errors."""
    pass


class CharacterNotFoundError(CharacterError):
    """Raised when a character slot id does not exist."""

    def __init__(self, character_id: int):
        message = f"Character slot not found: {character_id}"
        super().__init__(message, {"character_id": character_id})


class ImageReadError(CharacterError):
    """Raised when an uploaded reference image cannot be decoded."""

    def __init__(self, reason: str = ""):
        details = {"reason": reason} if reason else None
        super().__init__("Failed to read image file.", details)


# =============================================================================
# GENERATION ERRORS
# =============================================================================

class GenerationError(StoryCreatorError):
    """Base exception for generation run errors."""
    pass


class ItemGenerationError(GenerationError):
    """A single image or video failed. Recorded on the item, never aborts a run."""

    def __init__(self, prompt: str, reason: str):
        message = f"Generation failed for prompt '{prompt}': {reason}"
        super().__init__(message, {"prompt": prompt, "reason": reason})
        self.reason = reason


class FatalRunError(GenerationError):
    """Raised when the provider reports an authentication or billing failure."""

    def __init__(self, message: str, cause: Optional[str] = None):
        super().__init__(message, {"cause": cause} if cause else None)
        self.cause = cause


# =============================================================================
# PROVIDER ERRORS
# =============================================================================

class ProviderError(StoryCreatorError):
    """Raised when the generation API returns an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        if status_code is not None:
            message = f"[{status_code}] {message}"
        super().__init__(message)
        self.status_code = status_code


class DownloadLinkMissingError(ProviderError):
    """Raised when a finished video operation carries no download URI."""

    def __init__(self):
        super().__init__("Video generation completed, but no download link was found.")


class PosterExtractionError(ProviderError):
    """Raised when a poster frame cannot be extracted from a video."""
    pass


# =============================================================================
# STORAGE ERRORS
# =============================================================================

class StorageError(StoryCreatorError):
    """Raised when the key-value store cannot be written."""
    pass
