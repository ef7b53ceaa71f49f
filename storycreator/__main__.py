"""
Story Creator Main Entry Point

Run generations and manage presets from the command line.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from storycreator.characters import CharacterRoster
from storycreator.core.config import StoryCreatorConfig, load_config, set_config
from storycreator.core.constants import AspectRatio, GenerationType
from storycreator.core.env_loader import get_google_api_key
from storycreator.core.exceptions import (
    ConfigurationError,
    FatalRunError,
    ImageReadError,
    StorageError,
    ValidationError,
)
from storycreator.core.logging_config import LogLevel, create_session_log, get_logger, setup_logging
from storycreator.export import export_results
from storycreator.generation import GenerationOptions, GenerationPipeline, split_prompt_text
from storycreator.storage import JsonFileStore, SessionState, SessionStore

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NO_API_KEY = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storycreator",
        description="Story Creator - consistent character image and video sequences"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--state",
        type=str,
        help="Path to the session/preset state file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--log-file",
        action="store_true",
        help="Also write a timestamped log file to the configured logs directory"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Generate images or videos")
    gen.add_argument(
        "--character",
        action="append",
        default=[],
        metavar="PATH[=NAME]",
        help="Reference image, optionally with the character's name (repeatable)"
    )
    gen.add_argument(
        "--character-preset",
        metavar="NAME",
        help="Use a saved character preset instead of --character"
    )
    gen.add_argument(
        "--prompt", "-p",
        action="append",
        default=[],
        help="Scene prompt (repeatable)"
    )
    gen.add_argument(
        "--prompts-file",
        type=str,
        help="File with prompts separated by newlines or commas"
    )
    gen.add_argument(
        "--prompt-preset",
        metavar="NAME",
        help="Use a saved prompt preset"
    )
    gen.add_argument(
        "--mode",
        choices=[t.value for t in GenerationType],
        help="Generate images or videos"
    )
    gen.add_argument(
        "--images-per-prompt", "-n",
        type=int,
        help="Frames generated for each prompt (images mode)"
    )
    gen.add_argument(
        "--aspect-ratio",
        choices=[r.value for r in AspectRatio],
        help="Output aspect ratio"
    )
    gen.add_argument(
        "--consistency",
        type=float,
        help="Consistency strength between 0 and 1"
    )
    gen.add_argument(
        "--output", "-o",
        type=str,
        help="Directory to write results to"
    )

    presets = subparsers.add_parser("presets", help="Manage saved presets")
    presets_sub = presets.add_subparsers(dest="presets_command", required=True)
    presets_sub.add_parser("list", help="List saved presets")
    for kind in ("characters", "prompts"):
        save = presets_sub.add_parser(f"save-{kind}", help=f"Save the last session's {kind} as a preset")
        save.add_argument("name")
    delete = presets_sub.add_parser("delete", help="Delete a preset")
    delete.add_argument("kind", choices=["characters", "prompts"])
    delete.add_argument("name")

    return parser


def parse_character_arg(value: str):
    """Split ``PATH[=NAME]``; the name defaults to the file stem."""
    path_str, sep, name = value.partition("=")
    path = Path(path_str)
    return path, (name.strip() if sep and name.strip() else path.stem)


def build_roster(args, sessions: SessionStore, state: SessionState) -> CharacterRoster:
    if args.character:
        roster = CharacterRoster([])
        for value in args.character:
            path, name = parse_character_arg(value)
            character = roster.add_slot()
            roster.rename(character.id, name)
            roster.load_image_file(character.id, path)
            roster.set_selected(character.id, True)
        return roster
    if args.character_preset:
        roster = sessions.load_character_preset(args.character_preset)
        if roster is None:
            raise ValidationError(f"No character preset named '{args.character_preset}'")
        return roster
    return state.roster


def collect_prompts(args, sessions: SessionStore, state: SessionState) -> List[str]:
    prompts: List[str] = list(args.prompt)
    if args.prompts_file:
        prompts.extend(split_prompt_text(Path(args.prompts_file).read_text(encoding="utf-8")))
    if args.prompt_preset:
        preset = sessions.load_prompt_preset(args.prompt_preset)
        if preset is None:
            raise ValidationError(f"No prompt preset named '{args.prompt_preset}'")
        prompts.extend(preset)
    return prompts or list(state.prompts)


def build_options(args, state: SessionState) -> GenerationOptions:
    options = state.options
    if args.mode:
        options.generation_type = GenerationType(args.mode)
    if args.images_per_prompt is not None:
        options.images_per_prompt = args.images_per_prompt
    if args.aspect_ratio:
        options.aspect_ratio = AspectRatio(args.aspect_ratio)
    if args.consistency is not None:
        options.consistency_strength = args.consistency
    return options


def build_pipeline(config: StoryCreatorConfig, api_key: str, options: GenerationOptions) -> GenerationPipeline:
    from storycreator.providers import FfmpegPosterExtractor, GeminiImageClient, VeoVideoClient

    provider = config.provider
    if options.generation_type is GenerationType.IMAGES:
        return GenerationPipeline(
            image_generator=GeminiImageClient(
                api_key, model=provider.image_model, base_url=provider.base_url, timeout=provider.timeout
            ),
            options=options,
        )
    return GenerationPipeline(
        video_generator=VeoVideoClient(
            api_key,
            model=provider.video_model,
            poll_interval=provider.poll_interval,
            base_url=provider.base_url,
            timeout=provider.timeout,
        ),
        poster_extractor=FfmpegPosterExtractor(),
        options=options,
    )


async def run_generate(args, config: StoryCreatorConfig, sessions: SessionStore) -> int:
    logger = get_logger("main")
    state = sessions.load_session()
    if not sessions.has_session():
        # First run: options come from the configured defaults
        defaults = config.generation
        state.aspect_ratio = defaults.aspect_ratio
        state.consistency_strength = defaults.consistency_strength
        state.images_per_prompt = defaults.images_per_prompt
        state.generation_type = defaults.generation_type

    try:
        roster = build_roster(args, sessions, state)
        prompts = collect_prompts(args, sessions, state)
    except (ValidationError, ImageReadError) as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILED
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED
    options = build_options(args, state)

    # Persist what the user entered even if the run fails
    sessions.save_session(SessionState(
        characters=roster.characters,
        prompts=prompts,
        aspect_ratio=options.aspect_ratio,
        consistency_strength=options.consistency_strength,
        images_per_prompt=options.images_per_prompt,
        generation_type=options.generation_type,
    ))

    api_key = get_google_api_key(config.provider.api_key_env)
    if not api_key:
        print("Error: no API key configured. Set GEMINI_API_KEY or GOOGLE_API_KEY.", file=sys.stderr)
        return EXIT_NO_API_KEY

    pipeline = build_pipeline(config, api_key, options)
    results = []
    exit_code = EXIT_OK
    try:
        async for update in pipeline.run(roster.selected_references(), prompts, options):
            progress = update.progress
            line = f"[{progress.current}/{progress.total}] {progress.message}"
            if update.item.error:
                line += f" - FAILED: {update.item.error}"
            print(line, flush=True)
            results = update.results
    except ValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILED
    except FatalRunError as e:
        logger.error(f"Run aborted: {e.cause}")
        print(f"Error: {e.message}", file=sys.stderr)
        exit_code = EXIT_FAILED

    output_dir = Path(args.output) if args.output else config.export.output_dir
    written = await export_results(
        results, output_dir, options.generation_type, delay=config.export.download_delay
    )
    failed = sum(1 for item in results if not item.succeeded)
    print(f"Saved {len(written)} file(s) to {output_dir} ({failed} failed)")
    return exit_code


def run_presets(args, sessions: SessionStore) -> int:
    if args.presets_command == "list":
        print("Character presets:")
        for name in sessions.character_preset_names():
            print(f"  - {name}")
        print("Prompt presets:")
        for name in sessions.prompt_preset_names():
            print(f"  - {name}")
        return EXIT_OK

    if args.presets_command == "save-characters":
        sessions.save_character_preset(args.name, sessions.load_session().roster)
        print(f"Preset \"{args.name}\" saved!")
        return EXIT_OK

    if args.presets_command == "save-prompts":
        sessions.save_prompt_preset(args.name, sessions.load_session().prompts)
        print(f"Prompt preset \"{args.name}\" saved!")
        return EXIT_OK

    if args.kind == "characters":
        deleted = sessions.delete_character_preset(args.name)
    else:
        deleted = sessions.delete_prompt_preset(args.name)
    if not deleted:
        print(f"No {args.kind} preset named '{args.name}'", file=sys.stderr)
        return EXIT_FAILED
    print(f"Deleted {args.kind} preset \"{args.name}\"")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the Story Creator CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(Path(args.config) if args.config else None)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED
    set_config(config)

    if args.debug:
        log_level = LogLevel.DEBUG
    elif args.verbose or config.verbose_logging:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.WARNING
    if args.log_file:
        log_file = create_session_log(
            config.logs_dir, prefix="storycreator", level=log_level, verbose=args.debug
        )
        print(f"Logging to {log_file}", file=sys.stderr)
    else:
        setup_logging(level=log_level, verbose=args.debug)

    logger = get_logger("main")

    state_path = Path(args.state) if args.state else config.state_path
    sessions = SessionStore(JsonFileStore(state_path))
    logger.info(f"Using state file {state_path}")

    try:
        if args.command == "generate":
            return asyncio.run(run_generate(args, config, sessions))
        return run_presets(args, sessions)
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
