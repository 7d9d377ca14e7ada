"""Video processing pipeline.

Transcodes raw uploads to a 360p rendition, publishes them, and tracks
per-video status.
"""

__version__ = "1.0.0"
