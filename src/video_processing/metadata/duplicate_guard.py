"""Duplicate-job prevention.

Push subscriptions deliver at least once, so the same upload can arrive
more than once. The guard rejects videos that are already processing or
processed and claims new ones before any bytes are downloaded.
"""

from aws_lambda_powertools import Logger

from ..shared.exceptions import DuplicateJobError
from ..shared.models import IngestionJob, Video
from .video_store import VideoStore

logger = Logger(service="duplicate-guard")


class DuplicateGuard:
    """Check-and-claim step in front of the pipeline."""

    def __init__(self, store: VideoStore) -> None:
        self.store = store

    async def claim(self, job: IngestionJob) -> Video:
        """Claim a job for processing.

        The read rejects known videos without touching the record; the
        conditional claim settles races between concurrent deliveries.

        Args:
            job: Validated job descriptor

        Returns:
            The claimed record (status ``processing``)

        Raises:
            DuplicateJobError: If the video is already processing or processed
            StoreError: If the metadata store is unreachable
        """
        existing = await self.store.get_video(job.video_id)
        if not existing.is_new:
            logger.warning(
                "Rejecting duplicate video",
                extra={"video_id": job.video_id, "status": existing.status},
            )
            raise DuplicateJobError(job.video_id, existing.status)

        return await self.store.claim_video(job.video_id, job.uid)
