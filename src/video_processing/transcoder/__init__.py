"""Transcoder module for the video processing pipeline."""

from .ffmpeg import FFmpegTranscoder, Transcoder, build_ffmpeg_command

__all__ = [
    "FFmpegTranscoder",
    "Transcoder",
    "build_ffmpeg_command",
]
