"""Ingestion module for the video processing pipeline.

This module handles incoming upload notifications:
- Event validation
- Pipeline orchestration
- Lambda handler
"""

from .pipeline import VideoPipeline, build_pipeline
from .validators import parse_ingestion_event

__all__ = [
    "VideoPipeline",
    "build_pipeline",
    "parse_ingestion_event",
]
