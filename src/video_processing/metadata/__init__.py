"""Metadata module for the video processing pipeline.

This module handles per-video status records:
- DynamoDB-backed video store
- Duplicate-job guard
"""

from .duplicate_guard import DuplicateGuard
from .video_store import DynamoDBVideoStore, VideoStore

__all__ = [
    "DuplicateGuard",
    "DynamoDBVideoStore",
    "VideoStore",
]
