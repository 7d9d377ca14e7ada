"""Pytest configuration and shared fixtures.

This module provides:
- AWS credential mocking for moto
- Mocked S3 buckets and DynamoDB videos table
- Local scratch directories under tmp_path
- In-memory test doubles for the transcoder and video store
- Push envelope builders
"""

import asyncio
import base64
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Generator

import boto3
import pytest
from moto import mock_aws

# Set dummy AWS credentials BEFORE importing any application code
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

# Set application environment variables
os.environ["ENVIRONMENT"] = "dev"
os.environ["RAW_VIDEO_BUCKET"] = "test-raw-videos"
os.environ["PROCESSED_VIDEO_BUCKET"] = "test-processed-videos"
os.environ["VIDEOS_TABLE"] = "test-videos"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["POWERTOOLS_TRACE_DISABLED"] = "true"
os.environ["POWERTOOLS_METRICS_NAMESPACE"] = "VideoProcessing"

from video_processing.shared.aws_clients import clear_client_cache  # noqa: E402
from video_processing.shared.config import clear_settings_cache  # noqa: E402
from video_processing.shared.exceptions import DuplicateJobError, TranscodeError  # noqa: E402
from video_processing.shared.models import CLAIMED_STATUSES, Video, VideoStatus  # noqa: E402
from video_processing.storage.scratch import ScratchDirectories  # noqa: E402

RAW_BUCKET = "test-raw-videos"
PROCESSED_BUCKET = "test-processed-videos"
VIDEOS_TABLE = "test-videos"


# =============================================================================
# AWS Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_caches() -> Generator[None, None, None]:
    """Drop cached settings and clients between tests."""
    clear_settings_cache()
    clear_client_cache()
    yield
    clear_settings_cache()
    clear_client_cache()


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def aws(aws_credentials: None) -> Generator[None, None, None]:
    """Single moto context shared by S3 and DynamoDB fixtures."""
    with mock_aws():
        yield


@pytest.fixture
def s3_client(aws: None) -> Any:
    """Mocked S3 client."""
    return boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def s3_buckets(s3_client: Any) -> dict[str, str]:
    """Create raw and processed buckets that accept object ACLs."""
    for bucket in (RAW_BUCKET, PROCESSED_BUCKET):
        s3_client.create_bucket(Bucket=bucket, ObjectOwnership="ObjectWriter")
    return {
        "raw": RAW_BUCKET,
        "processed": PROCESSED_BUCKET,
    }


@pytest.fixture
def videos_table(aws: None) -> Any:
    """Create the DynamoDB videos table and return the Table resource."""
    dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
    dynamodb.create_table(
        TableName=VIDEOS_TABLE,
        AttributeDefinitions=[
            {"AttributeName": "id", "AttributeType": "S"},
        ],
        KeySchema=[
            {"AttributeName": "id", "KeyType": "HASH"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    return dynamodb.Table(VIDEOS_TABLE)


# =============================================================================
# Local Fixtures
# =============================================================================


@pytest.fixture
def scratch(tmp_path: Path) -> ScratchDirectories:
    """Scratch directories rooted in a temporary directory."""
    directories = ScratchDirectories(tmp_path / "raw-videos", tmp_path / "processed-videos")
    directories.setup()
    return directories


class CopyTranscoder:
    """Transcoder double that writes a fake rendition of the source."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path]] = []

    async def transcode(self, source: Path, destination: Path) -> None:
        self.calls.append((source, destination))
        await asyncio.sleep(0)
        destination.write_bytes(b"360p:" + source.read_bytes())


class FailingTranscoder:
    """Transcoder double that leaves a truncated file and fails."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path]] = []

    async def transcode(self, source: Path, destination: Path) -> None:
        self.calls.append((source, destination))
        destination.write_bytes(b"truncated")
        raise TranscodeError(
            "FFmpeg failed with exit code 1",
            returncode=1,
            stderr="Invalid data found when processing input",
        )


class InMemoryVideoStore:
    """VideoStore double with the same claim semantics as DynamoDB."""

    def __init__(self) -> None:
        self.items: dict[str, dict[str, Any]] = {}

    async def get_video(self, video_id: str) -> Video:
        await asyncio.sleep(0)
        return Video(**self.items.get(video_id, {}))

    async def set_video(self, video_id: str, video: Video) -> None:
        await asyncio.sleep(0)
        self.items.setdefault(video_id, {"id": video_id}).update(video.to_item())

    async def claim_video(self, video_id: str, uid: str) -> Video:
        await asyncio.sleep(0)
        item = self.items.setdefault(video_id, {"id": video_id})
        if item.get("status") in CLAIMED_STATUSES:
            raise DuplicateJobError(video_id, item["status"])
        item.update(uid=uid, status=VideoStatus.PROCESSING.value)
        return Video(**item)


@pytest.fixture
def copy_transcoder() -> CopyTranscoder:
    return CopyTranscoder()


@pytest.fixture
def failing_transcoder() -> FailingTranscoder:
    return FailingTranscoder()


@pytest.fixture
def memory_video_store() -> InMemoryVideoStore:
    return InMemoryVideoStore()


# =============================================================================
# Event Fixtures
# =============================================================================


def encode_payload(payload: Any) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


@pytest.fixture
def make_envelope() -> Callable[..., dict[str, Any]]:
    """Build a push envelope around a storage notification payload."""

    def _make(name: str | None = None, **payload: Any) -> dict[str, Any]:
        if name is not None:
            payload["name"] = name
        return {
            "message": {
                "data": encode_payload(payload),
                "messageId": "1234567890",
                "attributes": {},
            },
            "subscription": "projects/test/subscriptions/raw-video-uploads",
        }

    return _make


@pytest.fixture
def sample_envelope(make_envelope: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    """Envelope for a typical upload."""
    return make_envelope("user123-1700000000.mp4", bucket=RAW_BUCKET, contentType="video/mp4")


# =============================================================================
# Lambda Fixtures
# =============================================================================


@dataclass
class FakeLambdaContext:
    function_name: str = "video-processing"
    memory_limit_in_mb: int = 1024
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:video-processing"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    return FakeLambdaContext()


@pytest.fixture
def api_gateway_event() -> Callable[..., dict[str, Any]]:
    """Build an API Gateway REST proxy event for POST /process-video."""

    def _make(body: Any, base64_encoded: bool = False) -> dict[str, Any]:
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)
        if base64_encoded:
            body = base64.b64encode(body.encode("utf-8")).decode("ascii")
        return {
            "resource": "/process-video",
            "path": "/process-video",
            "httpMethod": "POST",
            "headers": {"Content-Type": "application/json"},
            "multiValueHeaders": {"Content-Type": ["application/json"]},
            "queryStringParameters": None,
            "multiValueQueryStringParameters": None,
            "pathParameters": None,
            "stageVariables": None,
            "requestContext": {
                "resourcePath": "/process-video",
                "httpMethod": "POST",
                "path": "/prod/process-video",
                "stage": "prod",
                "requestId": "c6af9ac6-7b61-11e6-9a41-93e8deadbeef",
                "accountId": "123456789012",
                "identity": {"sourceIp": "127.0.0.1"},
            },
            "body": body,
            "isBase64Encoded": base64_encoded,
        }

    return _make
