"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import base64
import io
import shutil
import tempfile
from pathlib import Path
from typing import List

import pytest
from PIL import Image

from storycreator.generation.models import CharacterRef


def make_png(color=(200, 30, 30), size=(8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeImageGenerator:
    """Records calls; fails on the 1-based call numbers in ``fail_on``."""

    def __init__(self, fail_on=(), error_message="[500] INTERNAL: backend exploded"):
        self.fail_on = set(fail_on)
        self.error_message = error_message
        self.calls = []

    async def generate(self, reference_images, prompt_text):
        self.calls.append((list(reference_images), prompt_text))
        if len(self.calls) in self.fail_on:
            raise RuntimeError(self.error_message)
        return f"image-{len(self.calls)}".encode()


class FakeVideoGenerator:
    """Records calls; raises the mapped error for 1-based call numbers."""

    def __init__(self, errors=None):
        self.errors = errors or {}
        self.calls = []

    async def generate(self, prompt_text, reference_image, aspect_ratio):
        self.calls.append((prompt_text, reference_image, aspect_ratio))
        error = self.errors.get(len(self.calls))
        if error:
            raise RuntimeError(error)
        return f"video-{len(self.calls)}".encode()


class FakePosterExtractor:
    def __init__(self):
        self.videos = []

    async def extract(self, video):
        self.videos.append(video)
        return b"poster:" + video


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def characters(png_bytes) -> List[CharacterRef]:
    """Three selected characters with images, ids deliberately out of order."""
    encoded = base64.b64encode(png_bytes).decode("ascii")
    return [
        CharacterRef(id=7, name="Mira", image_base64=encoded, selected=True),
        CharacterRef(id=2, name="Bolt", image_base64=encoded, selected=True),
        CharacterRef(id=5, name="Pip", image_base64=encoded, selected=True),
    ]


@pytest.fixture
def image_generator():
    return FakeImageGenerator()


@pytest.fixture
def video_generator():
    return FakeVideoGenerator()


@pytest.fixture
def poster_extractor():
    return FakePosterExtractor()
