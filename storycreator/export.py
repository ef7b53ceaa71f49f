"""
Batch export of generated results ("download all").
"""

import asyncio
from datetime import date as date_type
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from storycreator.core.constants import (
    GenerationType,
    DOWNLOAD_DELAY_SECONDS,
    IMAGE_EXTENSION,
    VIDEO_EXTENSION,
)
from storycreator.core.logging_config import get_logger
from storycreator.generation.models import GeneratedItem

logger = get_logger("export")

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_date_for_filename(day: Optional[date_type] = None) -> str:
    """Format a date like ``19Oct2026``."""
    day = day or datetime.now().date()
    return f"{day.day:02d}{_MONTHS[day.month - 1]}{day.year}"


def result_filename(index: int, date_str: str, generation_type: GenerationType) -> str:
    extension = IMAGE_EXTENSION if generation_type is GenerationType.IMAGES else VIDEO_EXTENSION
    return f"{index:03d}_{date_str}{extension}"


async def export_results(
    items: Sequence[GeneratedItem],
    output_dir: Path,
    generation_type: GenerationType = GenerationType.IMAGES,
    delay: float = DOWNLOAD_DELAY_SECONDS,
    day: Optional[date_type] = None,
) -> List[Path]:
    """
    Write every successful item to ``output_dir``, numbered from 1.

    Failed items are skipped and do not consume a number. Videos also get a
    ``_poster.png`` next to them when a poster was extracted.

    Returns:
        Paths written, in result order (posters follow their video)
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    date_str = format_date_for_filename(day)

    to_write = [item for item in items if item.succeeded]
    written: List[Path] = []

    for n, item in enumerate(to_write, start=1):
        if n > 1 and delay > 0:
            await asyncio.sleep(delay)

        path = output_dir / result_filename(n, date_str, generation_type)
        path.write_bytes(item.payload)
        written.append(path)

        if generation_type is GenerationType.VIDEOS and item.poster:
            poster_path = output_dir / f"{n:03d}_{date_str}_poster{IMAGE_EXTENSION}"
            poster_path.write_bytes(item.poster)
            written.append(poster_path)

        logger.info(f"Saved {path.name}")

    skipped = len(items) - len(to_write)
    if skipped:
        logger.info(f"Skipped {skipped} failed item(s)")
    return written
