"""AWS client factory for S3 and DynamoDB.

This module provides centralized AWS client management with:
- Timeouts and retry attempts taken from Settings
- Optional endpoint override for LocalStack
- Cached clients shared by all jobs in the process
"""

from functools import lru_cache
from typing import Any

import boto3
from botocore.config import Config

from .config import get_settings


def build_aws_config() -> Config:
    """Build botocore configuration from settings.

    ``store_max_attempts`` defaults to 1, so store calls are attempted once
    unless retries are explicitly enabled.
    """
    settings = get_settings()
    return Config(
        retries={
            "max_attempts": settings.store_max_attempts,
            "mode": "standard",
        },
        connect_timeout=settings.store_connect_timeout_seconds,
        read_timeout=settings.store_read_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_s3_client() -> Any:
    """Get cached S3 client.

    Returns:
        boto3 S3 client configured for the current environment
    """
    settings = get_settings()
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
        config=build_aws_config(),
    )


@lru_cache(maxsize=1)
def get_dynamodb_resource() -> Any:
    """Get cached DynamoDB resource (higher-level API).

    Returns:
        boto3 DynamoDB resource
    """
    settings = get_settings()
    return boto3.resource(
        "dynamodb",
        region_name=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
        config=build_aws_config(),
    )


def clear_client_cache() -> None:
    """Clear all cached AWS clients.

    Useful for testing when mocking needs to be reset.
    """
    get_s3_client.cache_clear()
    get_dynamodb_resource.cache_clear()
