"""Pydantic models for data validation and serialization.

This module defines the core data structures used throughout the pipeline:
- Push envelope and ingestion payload models
- The canonical job descriptor derived from an event
- The persisted video (job) record
- Pipeline stages and results

All models use Pydantic v2 for validation and serialization.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Prefix prepended to the source filename for the published rendition
PROCESSED_PREFIX = "processed-"


class VideoStatus(str, Enum):
    """Processing status stored on a video record."""

    PROCESSING = "processing"
    PROCESSED = "processed"


# Statuses that mark a video as taken; anything else may be claimed
CLAIMED_STATUSES = frozenset(s.value for s in VideoStatus)


class PipelineStage(str, Enum):
    """Stages a job moves through in the orchestrator."""

    VALIDATING = "VALIDATING"
    DOWNLOADING = "DOWNLOADING"
    CONVERTING = "CONVERTING"
    UPLOADING = "UPLOADING"
    UPDATING_STATUS = "UPDATING_STATUS"
    CLEANING_UP = "CLEANING_UP"
    DONE = "DONE"
    FAILED = "FAILED"


class PushMessage(BaseModel):
    """Message wrapper inside a push envelope."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    data: str = Field(
        description="Base64-encoded JSON payload",
    )
    message_id: str | None = Field(
        default=None,
        alias="messageId",
        description="Broker-assigned message id",
    )
    attributes: dict[str, str] = Field(
        default_factory=dict,
        description="Message attributes",
    )


class PushEnvelope(BaseModel):
    """Envelope delivered by the push subscription."""

    model_config = ConfigDict(extra="allow")

    message: PushMessage
    subscription: str | None = None


class StorageObjectPayload(BaseModel):
    """Decoded storage notification; only ``name`` is required."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(
        min_length=1,
        description="Object key, formatted as <uid>-<timestamp>.<extension>",
    )
    bucket: str | None = None
    content_type: str | None = Field(default=None, alias="contentType")


class IngestionJob(BaseModel):
    """Canonical job descriptor produced by the event validator."""

    model_config = ConfigDict(frozen=True)

    video_id: str = Field(
        min_length=1,
        description="Source filename without its extension",
    )
    uid: str = Field(
        description="Owner identifier (prefix of video_id before '-')",
    )
    filename: str = Field(
        min_length=1,
        description="Raw object key in the intake bucket",
    )

    @property
    def output_filename(self) -> str:
        """Name of the rendition, locally and in the processed bucket."""
        return f"{PROCESSED_PREFIX}{self.filename}"


class Video(BaseModel):
    """Video record persisted in the metadata store, keyed by ``id``.

    Every field is optional because writes merge into whatever the
    record already holds. ``status`` also accepts values this pipeline
    never writes, since other collaborators share the table.
    """

    model_config = ConfigDict(use_enum_values=True, coerce_numbers_to_str=True)

    id: str | None = None
    uid: str | None = None
    filename: str | None = None
    status: VideoStatus | str | None = None
    title: str | None = None
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_new(self) -> bool:
        """A video is new unless it is already processing or processed."""
        return self.status not in CLAIMED_STATUSES

    def to_item(self) -> dict[str, Any]:
        """Only the fields that are set, for merge writes."""
        return self.model_dump(exclude_none=True)


class PipelineResult(BaseModel):
    """Terminal outcome of one pipeline run."""

    video_id: str | None = None
    stage: PipelineStage
    status_code: int
    message: str
    failed_stage: PipelineStage | None = None
    filename: str | None = None
    error: dict[str, Any] | None = None
    cleanup_error: dict[str, Any] | None = None

    @property
    def is_success(self) -> bool:
        return self.stage == PipelineStage.DONE
