"""Video processing orchestration.

Flow for one ingestion event:
1. Validate the event into a job descriptor
2. Claim the job (duplicate guard)
3. Download the raw video
4. Transcode it to the configured rendition height
5. Upload the rendition and make it public
6. Mark the video record as processed
7. Remove both scratch files, on every path

Each step runs once; the first failure ends the job. Nothing is retried
and nothing is rolled back, so a job that fails after step 2 keeps
status ``processing`` until corrected externally.
"""

from collections.abc import Mapping
from typing import Any

from aws_lambda_powertools import Logger

from ..metadata.duplicate_guard import DuplicateGuard
from ..metadata.video_store import DynamoDBVideoStore, VideoStore
from ..shared.aws_clients import get_dynamodb_resource
from ..shared.config import Settings, get_settings
from ..shared.exceptions import (
    DuplicateJobError,
    ScratchCleanupError,
    StoreError,
    ValidationError,
    VideoPipelineError,
)
from ..shared.models import IngestionJob, PipelineResult, PipelineStage, Video, VideoStatus
from ..storage.object_store import ObjectStore, S3ObjectStore
from ..storage.scratch import ScratchDirectories
from ..transcoder.ffmpeg import FFmpegTranscoder, Transcoder
from .validators import parse_ingestion_event

logger = Logger(service="video-pipeline")


class VideoPipeline:
    """Runs ingestion events through download, transcode, upload and status update."""

    def __init__(
        self,
        object_store: ObjectStore,
        video_store: VideoStore,
        transcoder: Transcoder,
        scratch: ScratchDirectories,
        raw_bucket: str,
        processed_bucket: str,
    ) -> None:
        self.object_store = object_store
        self.video_store = video_store
        self.transcoder = transcoder
        self.scratch = scratch
        self.raw_bucket = raw_bucket
        self.processed_bucket = processed_bucket
        self.guard = DuplicateGuard(video_store)

    async def process(self, body: str | bytes | Mapping[str, Any] | None) -> PipelineResult:
        """Handle one ingestion event end to end.

        Never raises for pipeline errors; the outcome is encoded in the
        returned PipelineResult (200 done, 400 rejected, 500 failed).
        """
        try:
            job = parse_ingestion_event(body)
        except ValidationError as e:
            logger.warning("Rejected invalid event", extra={"error": e.to_dict()})
            return _failure(None, PipelineStage.VALIDATING, e, f"Bad Request: {e.message}")

        try:
            await self.guard.claim(job)
        except DuplicateJobError as e:
            return _failure(
                job.video_id,
                PipelineStage.VALIDATING,
                e,
                "Bad Request: video is already processing or processed.",
            )
        except StoreError as e:
            logger.error(
                "Could not claim video",
                extra={"video_id": job.video_id, "error": e.to_dict()},
            )
            return _failure(
                job.video_id,
                PipelineStage.VALIDATING,
                e,
                "Internal Server Error: video processing failed.",
            )

        return await self.run(job)

    async def run(self, job: IngestionJob) -> PipelineResult:
        """Process an already claimed job and clean up its scratch files.

        ``job_files`` raises ScratchCleanupError only after the body
        completed; when a step fails, that step's error is reported instead.
        """
        log_keys = {"video_id": job.video_id}
        stage = PipelineStage.DOWNLOADING
        try:
            async with self.scratch.job_files(job.filename, job.output_filename) as (_, out_path):
                logger.info("Downloading raw video", extra={**log_keys, "stage": stage.value})
                source = await self.object_store.fetch(self.raw_bucket, job.filename)

                stage = PipelineStage.CONVERTING
                logger.info("Converting video", extra={**log_keys, "stage": stage.value})
                await self.transcoder.transcode(source, out_path)

                stage = PipelineStage.UPLOADING
                logger.info("Uploading rendition", extra={**log_keys, "stage": stage.value})
                await self.object_store.store(out_path, self.processed_bucket, job.output_filename)

                stage = PipelineStage.UPDATING_STATUS
                logger.info("Updating video status", extra={**log_keys, "stage": stage.value})
                await self.video_store.set_video(
                    job.video_id,
                    Video(status=VideoStatus.PROCESSED, filename=job.output_filename),
                )
        except ScratchCleanupError as e:
            logger.error(
                "Scratch cleanup failed after success",
                extra={**log_keys, "error": e.to_dict()},
            )
            return _success(job, cleanup_error=e)
        except VideoPipelineError as e:
            logger.error(
                "Video processing failed",
                extra={**log_keys, "stage": stage.value, "error": e.to_dict()},
            )
            return _failure(
                job.video_id,
                stage,
                e,
                "Internal Server Error: video processing failed.",
            )

        logger.info(
            "Processing finished successfully",
            extra={**log_keys, "output_filename": job.output_filename},
        )
        return _success(job)


def _success(job: IngestionJob, cleanup_error: VideoPipelineError | None = None) -> PipelineResult:
    return PipelineResult(
        video_id=job.video_id,
        stage=PipelineStage.DONE,
        status_code=200,
        message="Processing finished successfully",
        filename=job.output_filename,
        cleanup_error=cleanup_error.to_dict() if cleanup_error else None,
    )


def _failure(
    video_id: str | None,
    failed_stage: PipelineStage,
    error: VideoPipelineError,
    message: str,
) -> PipelineResult:
    return PipelineResult(
        video_id=video_id,
        stage=PipelineStage.FAILED,
        status_code=error.status_code,
        message=message,
        failed_stage=failed_stage,
        error=error.to_dict(),
    )


def build_pipeline(settings: Settings | None = None) -> VideoPipeline:
    """Wire the production pipeline from settings.

    Creates the scratch directories as a side effect.
    """
    settings = settings or get_settings()
    scratch = ScratchDirectories(settings.intake_dir, settings.output_dir)
    scratch.setup()
    return VideoPipeline(
        object_store=S3ObjectStore(scratch),
        video_store=DynamoDBVideoStore(get_dynamodb_resource().Table(settings.videos_table)),
        transcoder=FFmpegTranscoder(
            binary=settings.ffmpeg_binary,
            height=settings.rendition_height,
            timeout_seconds=settings.transcode_timeout_seconds,
        ),
        scratch=scratch,
        raw_bucket=settings.raw_bucket,
        processed_bucket=settings.processed_bucket,
    )
