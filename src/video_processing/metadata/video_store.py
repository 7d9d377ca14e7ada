"""Video status records in DynamoDB.

One item per video, keyed by ``id``. Writes use UpdateItem with a SET
clause covering only the supplied fields, so attributes written by other
collaborators (title, description) are never overwritten.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Protocol

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError as PydanticValidationError

from ..shared.aws_clients import get_dynamodb_resource
from ..shared.config import get_settings
from ..shared.exceptions import DuplicateJobError, StoreError
from ..shared.models import CLAIMED_STATUSES, Video, VideoStatus

logger = Logger(service="video-store")


class VideoStore(Protocol):
    """Read/write per-video status records."""

    async def get_video(self, video_id: str) -> Video: ...

    async def set_video(self, video_id: str, video: Video) -> None: ...

    async def claim_video(self, video_id: str, uid: str) -> Video: ...


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_update(fields: dict[str, Any]) -> tuple[str, dict[str, str], dict[str, Any]]:
    """Build a SET update expression for the given attributes.

    Every attribute goes through a name placeholder since ``status`` is a
    DynamoDB reserved word.

    Returns:
        (update_expression, expression_attribute_names, expression_attribute_values)
    """
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    clauses = []
    for field, value in fields.items():
        names[f"#{field}"] = field
        values[f":{field}"] = value
        clauses.append(f"#{field} = :{field}")
    return "SET " + ", ".join(clauses), names, values


def claim_condition(values: dict[str, Any]) -> str:
    """Condition allowing a claim unless the status is already a claimed one.

    Adds one value placeholder per claimed status to ``values``.
    """
    placeholders = []
    for i, status in enumerate(sorted(CLAIMED_STATUSES)):
        values[f":claimed{i}"] = status
        placeholders.append(f":claimed{i}")
    return f"attribute_not_exists(#status) OR NOT #status IN ({', '.join(placeholders)})"


def parse_item(video_id: str, item: dict[str, Any]) -> Video:
    """Build a Video from a stored item.

    Raises:
        StoreError: If the item holds values the record model cannot read
    """
    try:
        return Video.model_validate(item)
    except PydanticValidationError as e:
        raise StoreError(
            f"Unreadable record for video {video_id}",
            original_error=e,
            details={
                "video_id": video_id,
                "errors": e.errors(include_url=False, include_context=False, include_input=False),
            },
        ) from e


class DynamoDBVideoStore:
    """VideoStore backed by a DynamoDB table."""

    def __init__(self, table: Any | None = None) -> None:
        if table is None:
            table = get_dynamodb_resource().Table(get_settings().videos_table)
        self.table = table

    async def get_video(self, video_id: str) -> Video:
        """Fetch a video record.

        Returns:
            The stored record, or an empty Video if none exists

        Raises:
            StoreError: If DynamoDB cannot be read or the record is unreadable
        """
        try:
            response = await asyncio.to_thread(
                self.table.get_item,
                Key={"id": video_id},
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as e:
            raise StoreError(
                f"Failed to read video {video_id}",
                original_error=e,
                details={"video_id": video_id},
            ) from e

        item = response.get("Item")
        if not item:
            logger.info("No video found", extra={"video_id": video_id})
            return Video()
        return parse_item(video_id, item)

    async def set_video(self, video_id: str, video: Video) -> None:
        """Create or merge-update a video record.

        Raises:
            StoreError: If the write fails
        """
        fields = video.to_item()
        fields.pop("id", None)
        fields["updated_at"] = utc_now()
        update_expr, names, values = build_update(fields)

        try:
            await asyncio.to_thread(
                self.table.update_item,
                Key={"id": video_id},
                UpdateExpression=update_expr,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        except (ClientError, BotoCoreError) as e:
            raise StoreError(
                f"Failed to update video {video_id}",
                original_error=e,
                details={"video_id": video_id},
            ) from e

        logger.info(
            "Updated video record",
            extra={"video_id": video_id, "fields": sorted(fields)},
        )

    async def claim_video(self, video_id: str, uid: str) -> Video:
        """Mark a video as processing unless it is already processing or processed.

        Uses a conditional update so that when two events for the same
        video race, exactly one of them wins.

        Raises:
            DuplicateJobError: If the record is already processing or processed
            StoreError: If DynamoDB cannot be written or returns an unreadable record
        """
        now = utc_now()
        update_expr, names, values = build_update(
            {
                "uid": uid,
                "status": VideoStatus.PROCESSING.value,
                "created_at": now,
                "updated_at": now,
            }
        )
        condition = claim_condition(values)

        try:
            response = await asyncio.to_thread(
                self.table.update_item,
                Key={"id": video_id},
                UpdateExpression=update_expr,
                ConditionExpression=condition,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                logger.warning(
                    "Video already claimed",
                    extra={"video_id": video_id},
                )
                raise DuplicateJobError(video_id) from e
            raise StoreError(
                f"Failed to claim video {video_id}",
                original_error=e,
                details={"video_id": video_id},
            ) from e
        except BotoCoreError as e:
            raise StoreError(
                f"Failed to claim video {video_id}",
                original_error=e,
                details={"video_id": video_id},
            ) from e

        logger.info("Claimed video", extra={"video_id": video_id, "uid": uid})
        return parse_item(video_id, response.get("Attributes", {}))
