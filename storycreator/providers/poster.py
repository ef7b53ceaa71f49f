"""
Poster frame extraction for generated videos.

Uses the ffmpeg binary to grab the very first frame as a PNG.
"""

import asyncio
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from storycreator.core.exceptions import PosterExtractionError
from storycreator.core.logging_config import get_logger

logger = get_logger("providers.poster")


class FfmpegPosterExtractor:
    """Extract a PNG poster from the first frame of a video."""

    def __init__(self, ffmpeg_path: Optional[str] = None, timeout: float = 60.0):
        self.ffmpeg_path = ffmpeg_path or shutil.which("ffmpeg") or "ffmpeg"
        self.timeout = timeout

    def _command(self, video_path: Path) -> list:
        return [
            self.ffmpeg_path,
            "-hide_banner", "-loglevel", "error",
            "-ss", "0",
            "-i", str(video_path),
            "-frames:v", "1",
            "-f", "image2",
            "-c:v", "png",
            "-",
        ]

    def _run_ffmpeg(self, video_path: Path) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                self._command(video_path),
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            raise PosterExtractionError(f"ffmpeg not found at '{self.ffmpeg_path}'")
        except subprocess.TimeoutExpired:
            raise PosterExtractionError(f"ffmpeg timed out after {self.timeout}s")

    def _extract_sync(self, video: bytes) -> bytes:
        try:
            with tempfile.TemporaryDirectory() as tmp:
                video_path = Path(tmp) / "video.mp4"
                video_path.write_bytes(video)
                result = self._run_ffmpeg(video_path)
        except OSError as e:
            raise PosterExtractionError(f"Could not stage video for ffmpeg: {e}")

        if result.returncode != 0 or not result.stdout:
            stderr = result.stderr.decode("utf-8", errors="ignore").strip()
            raise PosterExtractionError(f"ffmpeg failed (exit {result.returncode}): {stderr}")
        return result.stdout

    async def extract(self, video: bytes) -> bytes:
        if not video:
            raise PosterExtractionError("Cannot extract a poster from an empty video")
        poster = await asyncio.to_thread(self._extract_sync, video)
        logger.debug(f"Extracted poster frame ({len(poster)} bytes)")
        return poster
