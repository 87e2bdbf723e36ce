"""Video thumbnail extraction with ffmpeg."""

import asyncio
import logging
from pathlib import Path

from mediaboard.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class ThumbnailGenerator:
    """Grab one frame (1s in, 320px wide) from a video as a JPEG."""

    def __init__(self, ffmpeg_binary: str = "ffmpeg", timeout: float = 60):
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout = timeout

    def _command(self, video_path: Path, thumbnail_path: Path) -> list[str]:
        return [
            self.ffmpeg_binary,
            "-ss", "00:00:01",
            "-i", str(video_path),
            "-vframes", "1",
            "-vf", "scale=320:-1",
            "-y",
            str(thumbnail_path),
        ]

    async def generate(self, video_path: Path, thumbnail_path: Path) -> bool:
        """
        Run ffmpeg against ``video_path``.

        Returns:
            True when a thumbnail file was produced. Never raises for ffmpeg
            problems: a missing binary, a non-zero exit or a timeout all mean
            "no thumbnail".
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command(video_path, thumbnail_path),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.warning(f"Could not start ffmpeg: {e}")
            return False

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.warning(f"ffmpeg timed out after {self.timeout}s on {video_path.name}")
            return False

        if process.returncode != 0:
            tail = stderr.decode(errors="replace").strip().splitlines()[-1:] if stderr else []
            logger.warning(f"ffmpeg exited with {process.returncode}: {' '.join(tail)}")
            return False

        return thumbnail_path.exists()


def get_thumbnail_generator() -> ThumbnailGenerator:
    return ThumbnailGenerator(settings.ffmpeg_binary, settings.thumbnail_timeout_seconds)
