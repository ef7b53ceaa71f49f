"""
Story Creator Generation

Data model, prompt synthesis and the sequential generation pipeline.
"""

from .models import (
    CharacterRef,
    ReferenceImage,
    Success,
    Failure,
    Outcome,
    GeneratedItem,
    GenerationProgress,
    GenerationRequest,
    GenerationOptions,
    GenerationUpdate,
    GenerationRunResult,
    PipelineStatus,
)
from .prompt_builder import (
    split_prompt_text,
    normalize_prompts,
    consistency_level,
    consistency_instruction,
    reference_clauses,
    build_image_request,
    build_video_request,
)
from .pipeline import GenerationPipeline

__all__ = [
    'CharacterRef',
    'ReferenceImage',
    'Success',
    'Failure',
    'Outcome',
    'GeneratedItem',
    'GenerationProgress',
    'GenerationRequest',
    'GenerationOptions',
    'GenerationUpdate',
    'GenerationRunResult',
    'PipelineStatus',
    'split_prompt_text',
    'normalize_prompts',
    'consistency_level',
    'consistency_instruction',
    'reference_clauses',
    'build_image_request',
    'build_video_request',
    'GenerationPipeline',
]
