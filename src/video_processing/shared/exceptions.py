"""Custom exception hierarchy for the video processing pipeline.

All pipeline-specific exceptions inherit from VideoPipelineError,
enabling consistent error handling and structured error responses.

Exception hierarchy:
    VideoPipelineError (base)
    ├── ValidationError          (client fault, 400)
    ├── DuplicateJobError        (client fault, 400)
    ├── StoreError               (server fault, 500)
    ├── TranscodeError           (server fault, 500)
    └── ScratchCleanupError      (server fault, 500)
"""

from typing import Any

# Amount of FFmpeg stderr kept on a TranscodeError
STDERR_TAIL_CHARS = 2000


class VideoPipelineError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for metrics/filtering
        details: Additional context as key-value pairs
        status_code: HTTP status reported to the caller
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON serialization.

        Returns:
            Dictionary with error_code, error_message, and details.
            Note: Uses 'error_message' instead of 'message' to avoid conflicts
            with Python's logging module which reserves 'message' internally.
        """
        return {
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code!r}, {self.message!r})"


class ValidationError(VideoPipelineError):
    """Raised when an ingestion event cannot be decoded or is incomplete.

    This covers:
    - Body that is not a push envelope
    - Invalid base64 or UTF-8 in the message data
    - Payload that is not a JSON object
    - Missing or unusable ``name`` field
    """

    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", details)


class DuplicateJobError(VideoPipelineError):
    """Raised when a video is already processing or processed."""

    status_code = 400

    def __init__(self, video_id: str, status: str | None = None) -> None:
        details: dict[str, Any] = {"video_id": video_id}
        if status:
            details["status"] = status
        message = f"Video {video_id} is already processing or processed"
        super().__init__(message, "DUPLICATE_JOB_ERROR", details)
        self.video_id = video_id
        self.status = status


class StoreError(VideoPipelineError):
    """Raised when the object store or metadata store call fails.

    May leave partial state behind, e.g. an uploaded object whose
    public-read ACL was never applied.
    """

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        if original_error:
            error_details["original_error"] = str(original_error)
            error_details["original_error_type"] = type(original_error).__name__

        super().__init__(message, "STORE_ERROR", error_details)
        self.original_error = original_error


class TranscodeError(VideoPipelineError):
    """Raised when FFmpeg fails, times out, or cannot be started.

    A failed run may leave a truncated file at the destination path.
    """

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        if returncode is not None:
            error_details["returncode"] = returncode
        if stderr:
            error_details["stderr"] = stderr[-STDERR_TAIL_CHARS:]

        super().__init__(message, "TRANSCODE_ERROR", error_details)
        self.returncode = returncode
        self.stderr = stderr


class ScratchCleanupError(VideoPipelineError):
    """Raised when a scratch file exists but cannot be removed.

    A file that is already gone is never an error; this only covers
    genuine filesystem failures such as permission errors.
    """

    def __init__(self, failures: dict[str, OSError]) -> None:
        details = {
            "failures": {
                path: f"{type(error).__name__}: {error}" for path, error in failures.items()
            }
        }
        message = f"Failed to remove {len(failures)} scratch file(s)"
        super().__init__(message, "SCRATCH_CLEANUP_ERROR", details)
        self.failures = failures
