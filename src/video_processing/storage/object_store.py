"""Object store access for raw and processed videos.

Blocking boto3 transfers run in worker threads so that concurrently
scheduled jobs keep making progress while bytes are on the wire.
"""

import asyncio
from pathlib import Path
from typing import Any, Protocol

from aws_lambda_powertools import Logger
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from ..shared.aws_clients import get_s3_client
from ..shared.exceptions import StoreError
from .scratch import ScratchDirectories

logger = Logger(service="object-store")

PUBLIC_READ_ACL = "public-read"


class ObjectStore(Protocol):
    """Fetch/store byte blobs in named buckets."""

    async def fetch(self, bucket: str, key: str) -> Path: ...

    async def store(self, local_path: Path, bucket: str, key: str) -> None: ...


class S3ObjectStore:
    """S3-backed ObjectStore that downloads into the intake scratch directory."""

    def __init__(self, scratch: ScratchDirectories, client: Any | None = None) -> None:
        self.scratch = scratch
        self.client = client if client is not None else get_s3_client()

    async def fetch(self, bucket: str, key: str) -> Path:
        """Download ``s3://bucket/key`` to ``intake/<key>``.

        Returns:
            Local path of the downloaded file

        Raises:
            StoreError: If the object cannot be downloaded or written locally
        """
        destination = self.scratch.intake_path(key)
        try:
            await asyncio.to_thread(self.client.download_file, bucket, key, str(destination))
        except (ClientError, BotoCoreError, Boto3Error, OSError) as e:
            raise StoreError(
                f"Failed to download s3://{bucket}/{key}",
                original_error=e,
                details={"bucket": bucket, "key": key},
            ) from e

        logger.info(
            "Downloaded raw video",
            extra={"bucket": bucket, "key": key, "path": str(destination)},
        )
        return destination

    async def store(self, local_path: Path, bucket: str, key: str) -> None:
        """Upload a local file and make the object publicly readable.

        The upload and the ACL change are separate calls: if the second
        fails the object stays in the bucket without public access.

        Raises:
            StoreError: If either the upload or the ACL change fails
        """
        try:
            await asyncio.to_thread(self.client.upload_file, str(local_path), bucket, key)
        except (ClientError, BotoCoreError, Boto3Error, OSError) as e:
            raise StoreError(
                f"Failed to upload {local_path} to s3://{bucket}/{key}",
                original_error=e,
                details={"bucket": bucket, "key": key, "phase": "upload"},
            ) from e

        logger.info(
            "Uploaded processed video",
            extra={"bucket": bucket, "key": key, "path": str(local_path)},
        )

        try:
            await asyncio.to_thread(
                self.client.put_object_acl,
                Bucket=bucket,
                Key=key,
                ACL=PUBLIC_READ_ACL,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Uploaded object left private",
                extra={"bucket": bucket, "key": key, "error": str(e)},
            )
            raise StoreError(
                f"Failed to make s3://{bucket}/{key} public",
                original_error=e,
                details={"bucket": bucket, "key": key, "phase": "make_public"},
            ) from e
