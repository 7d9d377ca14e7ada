"""Shared utilities for the video processing pipeline."""

from .config import Settings, get_settings
from .exceptions import (
    VideoPipelineError,
    ValidationError,
    DuplicateJobError,
    StoreError,
    TranscodeError,
    ScratchCleanupError,
)
from .models import (
    VideoStatus,
    PipelineStage,
    PushEnvelope,
    PushMessage,
    StorageObjectPayload,
    IngestionJob,
    Video,
    PipelineResult,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "VideoPipelineError",
    "ValidationError",
    "DuplicateJobError",
    "StoreError",
    "TranscodeError",
    "ScratchCleanupError",
    # Models
    "VideoStatus",
    "PipelineStage",
    "PushEnvelope",
    "PushMessage",
    "StorageObjectPayload",
    "IngestionJob",
    "Video",
    "PipelineResult",
]
