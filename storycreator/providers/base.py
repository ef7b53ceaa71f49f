"""
Provider interfaces consumed by the generation pipeline.
"""

from typing import Protocol, Sequence, runtime_checkable

from storycreator.core.constants import AspectRatio
from storycreator.generation.models import ReferenceImage


@runtime_checkable
class ImageGenerator(Protocol):
    """Turns reference images plus an instruction into one image."""

    async def generate(self, reference_images: Sequence[ReferenceImage], prompt_text: str) -> bytes:
        ...


@runtime_checkable
class VideoGenerator(Protocol):
    """Long-running text+image to video generation; returns the video bytes."""

    async def generate(
        self,
        prompt_text: str,
        reference_image: ReferenceImage,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        ...


@runtime_checkable
class PosterExtractor(Protocol):
    """Derives a still poster image from a video."""

    async def extract(self, video: bytes) -> bytes:
        ...
