"""Rendition encoding with FFmpeg.

FFmpeg runs as an external process; the coroutine returned by
``FFmpegTranscoder.transcode`` completes exactly once, either returning
after a clean exit or raising TranscodeError.
"""

import asyncio
from pathlib import Path
from typing import Protocol

from aws_lambda_powertools import Logger

from ..shared.exceptions import TranscodeError

logger = Logger(service="transcoder")

DEFAULT_RENDITION_HEIGHT = 360


class Transcoder(Protocol):
    """Produce a rendition of a local source file at a local destination."""

    async def transcode(self, source: Path, destination: Path) -> None: ...


def build_ffmpeg_command(
    source: Path,
    destination: Path,
    height: int = DEFAULT_RENDITION_HEIGHT,
    binary: str = "ffmpeg",
) -> list[str]:
    """Build the FFmpeg argument list for a fixed-height rendition.

    A width of -2 keeps the aspect ratio and rounds to an even number of
    pixels, as required by H.264.
    """
    return [
        binary,
        "-y",
        "-hide_banner",
        "-loglevel", "error",
        "-i", str(source),
        "-vf", f"scale=-2:{height}",
        str(destination),
    ]


class FFmpegTranscoder:
    """Transcoder that shells out to FFmpeg."""

    def __init__(
        self,
        binary: str = "ffmpeg",
        height: int = DEFAULT_RENDITION_HEIGHT,
        timeout_seconds: float | None = None,
    ) -> None:
        self.binary = binary
        self.height = height
        self.timeout_seconds = timeout_seconds

    async def transcode(self, source: Path, destination: Path) -> None:
        """Encode ``source`` into ``destination``.

        Raises:
            TranscodeError: If FFmpeg is missing, exits non-zero or times out.
                The destination may hold a partial file afterwards.
        """
        cmd = build_ffmpeg_command(source, destination, self.height, self.binary)
        logger.info(
            "Starting transcode",
            extra={"source": str(source), "destination": str(destination), "height": self.height},
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TranscodeError(
                f"Could not start {self.binary} - ensure FFmpeg is installed: {e}",
                details={"binary": self.binary},
            ) from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise TranscodeError(
                f"FFmpeg timed out after {self.timeout_seconds}s",
                details={"source": str(source), "timeout_seconds": self.timeout_seconds},
            )

        if process.returncode != 0:
            diagnostic = stderr.decode("utf-8", errors="replace").strip()
            raise TranscodeError(
                f"FFmpeg failed with exit code {process.returncode}",
                returncode=process.returncode,
                stderr=diagnostic,
                details={"source": str(source)},
            )

        logger.info("Transcode finished", extra={"destination": str(destination)})
