"""
Generation data model.

Characters, per-item outcomes and progress snapshots passed between the
pipeline, the providers and whoever renders results.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from storycreator.core.constants import (
    AspectRatio,
    GenerationType,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_CONSISTENCY_STRENGTH,
    DEFAULT_GENERATION_TYPE,
    DEFAULT_IMAGES_PER_PROMPT,
    DEFAULT_MIME_TYPE,
)
from storycreator.core.exceptions import ItemGenerationError


@dataclass
class CharacterRef:
    """A character slot with an optional reference image."""
    id: int
    name: str
    image_base64: Optional[str] = None
    mime_type: str = DEFAULT_MIME_TYPE
    selected: bool = False

    @property
    def has_image(self) -> bool:
        return bool(self.image_base64)

    @property
    def is_reference(self) -> bool:
        """Selected and has an image, so it can be sent to the generator."""
        return self.selected and self.has_image

    @property
    def image_bytes(self) -> Optional[bytes]:
        if not self.image_base64:
            return None
        return base64.b64decode(self.image_base64)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "base64": self.image_base64,
            "mimeType": self.mime_type,
            "isSelected": self.selected,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CharacterRef":
        image = data.get("base64")
        # Browser exports stored full data URLs
        if image and image.startswith("data:") and "," in image:
            header, image = image.split(",", 1)
            mime_type = header[5:].split(";")[0] or DEFAULT_MIME_TYPE
        else:
            mime_type = data.get("mimeType") or DEFAULT_MIME_TYPE
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", f"Character {data['id']}")),
            image_base64=image or None,
            mime_type=mime_type,
            selected=bool(data.get("isSelected", False)),
        )


@dataclass(frozen=True)
class ReferenceImage:
    """Raw image bytes handed to a provider."""
    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    @classmethod
    def from_character(cls, character: CharacterRef) -> "ReferenceImage":
        return cls(data=character.image_bytes or b"", mime_type=character.mime_type)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass(frozen=True)
class Success:
    """Generated payload; ``poster`` is only set for videos."""
    data: bytes
    poster: Optional[bytes] = None


@dataclass(frozen=True)
class Failure:
    """User-facing reason a single item failed; ``cause`` keeps the raw provider error."""
    message: str
    cause: Optional[ItemGenerationError] = field(default=None, compare=False, repr=False)


Outcome = Union[Success, Failure]


@dataclass(frozen=True)
class GeneratedItem:
    """One attempted image or video."""
    id: int
    prompt: str
    outcome: Outcome

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Success)

    @property
    def payload(self) -> Optional[bytes]:
        return self.outcome.data if isinstance(self.outcome, Success) else None

    @property
    def poster(self) -> Optional[bytes]:
        return self.outcome.poster if isinstance(self.outcome, Success) else None

    @property
    def error(self) -> Optional[str]:
        return self.outcome.message if isinstance(self.outcome, Failure) else None


@dataclass(frozen=True)
class GenerationProgress:
    """Progress snapshot; ``current`` counts attempted items."""
    current: int = 0
    total: int = 0
    message: str = ""

    @classmethod
    def idle(cls) -> "GenerationProgress":
        return cls(0, 0, "")

    @property
    def percent(self) -> float:
        if not self.total:
            return 0.0
        return self.current / self.total * 100

    @property
    def finished(self) -> bool:
        return self.total > 0 and self.current >= self.total


@dataclass(frozen=True)
class GenerationRequest:
    """A single provider call, built fresh per item and never persisted."""
    prompt: str
    text: str
    reference_images: Tuple[ReferenceImage, ...]
    aspect_ratio: AspectRatio
    frame_index: Optional[int] = None
    frames_total: Optional[int] = None


@dataclass
class GenerationOptions:
    """User-tunable settings for a run."""
    generation_type: GenerationType = DEFAULT_GENERATION_TYPE
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    consistency_strength: float = DEFAULT_CONSISTENCY_STRENGTH
    images_per_prompt: int = DEFAULT_IMAGES_PER_PROMPT


@dataclass(frozen=True)
class GenerationUpdate:
    """Emitted after every attempted item."""
    item: GeneratedItem
    progress: GenerationProgress
    results: Tuple[GeneratedItem, ...]


class PipelineStatus(Enum):
    """Status of a generation run."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class GenerationRunResult:
    """Everything a drained run produced."""
    status: PipelineStatus
    items: List[GeneratedItem] = field(default_factory=list)
    progress: GenerationProgress = field(default_factory=GenerationProgress.idle)
    fatal_error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == PipelineStatus.COMPLETED

    @property
    def succeeded_items(self) -> List[GeneratedItem]:
        return [item for item in self.items if item.succeeded]

    @property
    def failed_items(self) -> List[GeneratedItem]:
        return [item for item in self.items if not item.succeeded]
