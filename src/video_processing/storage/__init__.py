"""Storage module for the video processing pipeline.

This module handles file movement:
- Local scratch directories (intake and output)
- S3 download of raw videos and upload of renditions
"""

from .object_store import ObjectStore, S3ObjectStore
from .scratch import ScratchDirectories

__all__ = [
    "ObjectStore",
    "S3ObjectStore",
    "ScratchDirectories",
]
