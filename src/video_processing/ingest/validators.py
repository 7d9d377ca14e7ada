"""Ingestion event validation.

Turns a push envelope into an IngestionJob:
- Envelope shape check
- Base64 / UTF-8 / JSON decoding of the message data
- Object name checks and id derivation
"""

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..shared.exceptions import ValidationError
from ..shared.models import IngestionJob, PushEnvelope, StorageObjectPayload

# Separates the owner id from the rest of the video id (<uid>-<timestamp>)
UID_SEPARATOR = "-"

# Object names end up as local filenames, so they must be a single path component
FORBIDDEN_NAME_CHARS = ("/", "\\", "\x00")
FORBIDDEN_NAMES = {".", ".."}


def derive_video_id(name: str) -> str:
    """Strip the extension: everything from the first '.' on."""
    return name.split(".", 1)[0]


def derive_uid(video_id: str) -> str:
    """Owner id: everything before the first '-'."""
    return video_id.split(UID_SEPARATOR, 1)[0]


def parse_envelope(body: str | bytes | Mapping[str, Any] | None) -> PushEnvelope:
    """Parse the request body into a PushEnvelope.

    Raises:
        ValidationError: If the body is not a push envelope
    """
    if body is None:
        raise ValidationError("Empty request body")

    try:
        if isinstance(body, Mapping):
            return PushEnvelope.model_validate(body)
        return PushEnvelope.model_validate_json(body)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid push envelope",
            {"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e


def decode_payload(data: str) -> StorageObjectPayload:
    """Decode base64 message data into the storage notification payload.

    Raises:
        ValidationError: If decoding or parsing fails, or ``name`` is missing
    """
    # Accept the URL-safe alphabet and missing padding
    normalized = data.strip().replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        text = base64.b64decode(normalized, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValidationError(f"Message data is not base64-encoded UTF-8: {e}") from e

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Message data is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ValidationError(
            "Message payload must be a JSON object",
            {"payload_type": type(payload).__name__},
        )
    if not payload.get("name"):
        raise ValidationError("Invalid message: missing filename")

    try:
        return StorageObjectPayload.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid message payload",
            {"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e


def validate_object_name(name: str) -> None:
    """Reject names that cannot safely be used as a scratch filename."""
    if name in FORBIDDEN_NAMES or any(char in name for char in FORBIDDEN_NAME_CHARS):
        raise ValidationError(
            "Object name must be a plain filename",
            {"name": name},
        )


def parse_ingestion_event(body: str | bytes | Mapping[str, Any] | None) -> IngestionJob:
    """Validate an ingestion event and build its job descriptor.

    Args:
        body: Push envelope as a mapping or raw JSON text

    Returns:
        IngestionJob for the uploaded object

    Raises:
        ValidationError: If any decoding or validation step fails

    Example:
        >>> job = parse_ingestion_event(envelope)
        >>> job.video_id, job.uid
        ('user123-1700000000', 'user123')
    """
    envelope = parse_envelope(body)
    payload = decode_payload(envelope.message.data)
    validate_object_name(payload.name)

    video_id = derive_video_id(payload.name)
    if not video_id:
        raise ValidationError(
            "Object name has no video id before its extension",
            {"name": payload.name},
        )

    return IngestionJob(
        video_id=video_id,
        uid=derive_uid(video_id),
        filename=payload.name,
    )
