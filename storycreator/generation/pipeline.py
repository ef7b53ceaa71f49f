"""
Story Creator Generation Pipeline

Sequential multi-item generation: prompts x frames (images) or one video per
prompt, each item attempted exactly once, one at a time.

Features:
- Validation before any provider call
- Per-item success/failure accumulation (a failed item never stops the run)
- Progress snapshot after every attempted item
- Fatal short-circuit on authentication/billing failures during video runs
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, AsyncIterator, Callable, List, Optional, Sequence, Tuple

from storycreator.core.constants import GenerationType, VIDEO_ASPECT_RATIOS, FATAL_VIDEO_KEY_MESSAGE
from storycreator.core.error_messages import is_entity_not_found, user_facing_message
from storycreator.core.exceptions import (
    FatalRunError,
    InvalidOptionError,
    ItemGenerationError,
    NoPromptProvidedError,
    NoReferenceSelectedError,
    PosterExtractionError,
)
from storycreator.core.logging_config import get_logger
from storycreator.generation.models import (
    CharacterRef,
    Failure,
    GeneratedItem,
    GenerationOptions,
    GenerationProgress,
    GenerationRunResult,
    GenerationUpdate,
    Outcome,
    PipelineStatus,
    Success,
)
from storycreator.generation.prompt_builder import (
    build_image_request,
    build_video_request,
    consistency_level,
    normalize_prompts,
)

if TYPE_CHECKING:
    from storycreator.providers.base import ImageGenerator, PosterExtractor, VideoGenerator

logger = get_logger("generation.pipeline")

ProgressCallback = Callable[[GenerationProgress], None]


class GenerationPipeline:
    """
    Runs one generation at a time against injected providers.

    Usage:
        pipeline = GenerationPipeline(image_generator=GeminiImageClient())
        async for update in pipeline.run(roster.selected_references(), prompts):
            print(update.progress.message)
    """

    def __init__(
        self,
        image_generator: Optional["ImageGenerator"] = None,
        video_generator: Optional["VideoGenerator"] = None,
        poster_extractor: Optional["PosterExtractor"] = None,
        options: Optional[GenerationOptions] = None,
    ):
        self.image_generator = image_generator
        self.video_generator = video_generator
        self.poster_extractor = poster_extractor
        self.options = options or GenerationOptions()
        self._status = PipelineStatus.PENDING
        self._progress = GenerationProgress.idle()
        self._progress_callback: Optional[ProgressCallback] = None
        self._ids = itertools.count(1)

    @property
    def status(self) -> PipelineStatus:
        return self._status

    @property
    def progress(self) -> GenerationProgress:
        return self._progress

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        """Set a callback fired with every progress snapshot."""
        self._progress_callback = callback

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(
        self,
        selected_characters: Sequence[CharacterRef],
        prompts: Sequence[str],
        options: GenerationOptions,
    ) -> Tuple[List[CharacterRef], List[str]]:
        """Check preconditions; returns the usable references and prompts."""
        references = [c for c in selected_characters if c.is_reference]
        if not references:
            raise NoReferenceSelectedError()

        valid_prompts = normalize_prompts(prompts)
        if not valid_prompts:
            raise NoPromptProvidedError()

        consistency_level(options.consistency_strength)

        if options.generation_type is GenerationType.IMAGES:
            if options.images_per_prompt < 1:
                raise InvalidOptionError("images_per_prompt", options.images_per_prompt, "must be at least 1")
            if self.image_generator is None:
                raise InvalidOptionError("image_generator", None, "no image generator configured")
        else:
            if options.aspect_ratio not in VIDEO_ASPECT_RATIOS:
                raise InvalidOptionError(
                    "aspect_ratio", options.aspect_ratio.value, "videos support only 16:9 or 9:16"
                )
            if self.video_generator is None:
                raise InvalidOptionError("video_generator", None, "no video generator configured")

        return references, valid_prompts

    # =========================================================================
    # Run
    # =========================================================================

    async def run(
        self,
        selected_characters: Sequence[CharacterRef],
        prompts: Sequence[str],
        options: Optional[GenerationOptions] = None,
    ) -> AsyncIterator[GenerationUpdate]:
        """
        Generate every item, yielding an update after each attempt.

        Raises:
            ValidationError: before the first item, if the run cannot start
            FatalRunError: after the update for the item that hit an
                authentication/billing failure (videos only)
        """
        options = options or self.options
        references, valid_prompts = self.validate(selected_characters, prompts, options)

        self._status = PipelineStatus.RUNNING
        self._set_progress(GenerationProgress.idle())

        if options.generation_type is GenerationType.IMAGES:
            steps = self._image_steps(references, valid_prompts, options)
            total = len(valid_prompts) * options.images_per_prompt
        else:
            steps = self._video_steps(references, valid_prompts, options)
            total = len(valid_prompts)

        logger.info(
            f"Starting {options.generation_type.value} run: {len(valid_prompts)} prompt(s), "
            f"{len(references)} reference(s), {total} item(s)"
        )

        results: List[GeneratedItem] = []
        try:
            async for prompt, outcome, message in steps:
                item = GeneratedItem(id=next(self._ids), prompt=prompt, outcome=outcome)
                results.append(item)
                progress = GenerationProgress(current=len(results), total=total, message=message)
                self._set_progress(progress)
                yield GenerationUpdate(item=item, progress=progress, results=tuple(results))
        except FatalRunError:
            self._status = PipelineStatus.FAILED
            logger.error(f"Run aborted after {len(results)}/{total} item(s)")
            raise

        self._status = PipelineStatus.COMPLETED
        failed = sum(1 for item in results if not item.succeeded)
        logger.info(f"Run complete: {len(results) - failed} succeeded, {failed} failed")

    async def collect(
        self,
        selected_characters: Sequence[CharacterRef],
        prompts: Sequence[str],
        options: Optional[GenerationOptions] = None,
    ) -> GenerationRunResult:
        """Drain :meth:`run` into a result. Validation errors still propagate."""
        items: List[GeneratedItem] = []
        try:
            async for update in self.run(selected_characters, prompts, options):
                items = list(update.results)
        except FatalRunError as e:
            return GenerationRunResult(
                status=PipelineStatus.FAILED,
                items=items,
                progress=self._progress,
                fatal_error=e.message,
            )
        return GenerationRunResult(status=PipelineStatus.COMPLETED, items=items, progress=self._progress)

    # =========================================================================
    # Steps
    # =========================================================================

    async def _image_steps(self, references, valid_prompts, options):
        frames = options.images_per_prompt
        for i, prompt in enumerate(valid_prompts):
            for j in range(frames):
                request = build_image_request(
                    prompt, references, j, frames,
                    options.consistency_strength, options.aspect_ratio,
                )
                logger.debug(f"Generating image {j + 1}/{frames} for prompt {i + 1}")
                try:
                    data = await self.image_generator.generate(request.reference_images, request.text)
                    outcome: Outcome = Success(data=data)
                except Exception as e:
                    outcome = self._record_failure(prompt, e)
                yield prompt, outcome, f"Generated image {j + 1} for prompt {i + 1}"

    async def _video_steps(self, references, valid_prompts, options):
        character = references[0]
        for i, prompt in enumerate(valid_prompts):
            request = build_video_request(
                prompt, character, options.consistency_strength, options.aspect_ratio
            )
            logger.debug(f"Generating video for prompt {i + 1}")
            try:
                video = await self.video_generator.generate(
                    request.text, request.reference_images[0], options.aspect_ratio
                )
            except Exception as e:
                outcome = self._record_failure(prompt, e)
                yield prompt, outcome, f"Generated video for prompt {i + 1}"
                if is_entity_not_found(str(e)):
                    raise FatalRunError(FATAL_VIDEO_KEY_MESSAGE, cause=str(e))
                continue

            poster = await self._extract_poster(video)
            yield prompt, Success(data=video, poster=poster), f"Generated video for prompt {i + 1}"

    async def _extract_poster(self, video: bytes) -> Optional[bytes]:
        if self.poster_extractor is None:
            return None
        try:
            return await self.poster_extractor.extract(video)
        except PosterExtractionError as e:
            logger.warning(f"Poster extraction failed: {e}")
            return None
        except Exception as e:
            # A missing poster never fails the video
            logger.warning(f"Poster extraction failed unexpectedly: {e!r}", exc_info=True)
            return None

    def _record_failure(self, prompt: str, error: Exception) -> Failure:
        raw = getattr(error, "message", None) or str(error) or error.__class__.__name__
        cause = ItemGenerationError(prompt, raw)
        cause.__cause__ = error
        logger.error(cause.message, exc_info=error)
        return Failure(message=user_facing_message(raw), cause=cause)

    def _set_progress(self, progress: GenerationProgress) -> None:
        self._progress = progress
        if self._progress_callback:
            try:
                self._progress_callback(progress)
            except Exception as e:
                logger.warning(f"Progress callback error: {e}")
