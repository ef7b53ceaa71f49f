"""
Prompt Builder - request text synthesis for generation runs.

Prompt hierarchy for images (mandatory order):
    [SCENE PROMPT] + [FRAME ANNOTATION] + [REFERENCE CLAUSES]
    + [CONSISTENCY INSTRUCTION] + [STYLE/ASPECT SUFFIX]

Videos use a single reference, so they carry one clause and no frame annotation.
"""

import re
from typing import Iterable, List, Sequence

from storycreator.core.constants import (
    AspectRatio,
    ConsistencyLevel,
    CONSISTENCY_INSTRUCTIONS,
    LOOSE_CONSISTENCY_BELOW,
    BALANCED_CONSISTENCY_BELOW,
    REFERENCE_ORDINALS,
    FALLBACK_ORDINAL,
)
from storycreator.core.exceptions import InvalidOptionError
from storycreator.generation.models import CharacterRef, GenerationRequest, ReferenceImage

_PROMPT_SEPARATORS = re.compile(r"[\n,]")


def split_prompt_text(text: str) -> List[str]:
    """Split a free-text block into prompts on newlines and commas.

    Blank pieces are kept; :func:`normalize_prompts` drops them.
    """
    if not text:
        return [""]
    return _PROMPT_SEPARATORS.split(text)


def normalize_prompts(prompts: Iterable[str]) -> List[str]:
    """Strip prompts and drop the blank ones, keeping order."""
    return [p.strip() for p in prompts if p and p.strip()]


def consistency_level(strength: float) -> ConsistencyLevel:
    """Threshold the 0-1 consistency dial into a qualitative level."""
    if strength is None or not 0.0 <= strength <= 1.0:
        raise InvalidOptionError("consistency_strength", strength, "must be between 0 and 1")
    if strength < LOOSE_CONSISTENCY_BELOW:
        return ConsistencyLevel.LOOSE
    if strength < BALANCED_CONSISTENCY_BELOW:
        return ConsistencyLevel.BALANCED
    return ConsistencyLevel.STRICT


def consistency_instruction(strength: float) -> str:
    return CONSISTENCY_INSTRUCTIONS[consistency_level(strength)]


def ordinal(index: int) -> str:
    """'first' .. 'fifth', then 'next' for every later reference."""
    if 0 <= index < len(REFERENCE_ORDINALS):
        return REFERENCE_ORDINALS[index]
    return FALLBACK_ORDINAL


def reference_clauses(characters: Sequence[CharacterRef]) -> str:
    """Label each reference image by its selection order."""
    return " ".join(
        f"The {ordinal(i)} provided image is a reference for the character named '{c.name}'."
        for i, c in enumerate(characters)
    )


def frame_annotation(frame_index: int, frames_total: int) -> str:
    return f"This is frame {frame_index + 1} of {frames_total} in a continuous action sequence."


def build_image_request(
    prompt: str,
    characters: Sequence[CharacterRef],
    frame_index: int,
    frames_total: int,
    consistency_strength: float,
    aspect_ratio: AspectRatio,
) -> GenerationRequest:
    """Build the request for one frame of one prompt."""
    text = (
        f"{prompt}. {frame_annotation(frame_index, frames_total)} "
        f"{reference_clauses(characters)} "
        f"{consistency_instruction(consistency_strength)} "
        f"Generate the image in a style consistent with the reference images "
        f"and a {aspect_ratio.value} aspect ratio."
    )
    return GenerationRequest(
        prompt=prompt,
        text=text,
        reference_images=tuple(ReferenceImage.from_character(c) for c in characters),
        aspect_ratio=aspect_ratio,
        frame_index=frame_index,
        frames_total=frames_total,
    )


def build_video_request(
    prompt: str,
    character: CharacterRef,
    consistency_strength: float,
    aspect_ratio: AspectRatio,
) -> GenerationRequest:
    """Build the request for one video; only one reference image is sent."""
    text = (
        f"{prompt}. The provided image is a reference for the character named "
        f"'{character.name}'. {consistency_instruction(consistency_strength)}"
    )
    return GenerationRequest(
        prompt=prompt,
        text=text,
        reference_images=(ReferenceImage.from_character(character),),
        aspect_ratio=aspect_ratio,
    )
