"""
Story Creator Providers

Clients for the external generation services.
"""

from .base import ImageGenerator, VideoGenerator, PosterExtractor
from .gemini_client import GeminiImageClient, VeoVideoClient
from .poster import FfmpegPosterExtractor

__all__ = [
    'ImageGenerator',
    'VideoGenerator',
    'PosterExtractor',
    'GeminiImageClient',
    'VeoVideoClient',
    'FfmpegPosterExtractor',
]
