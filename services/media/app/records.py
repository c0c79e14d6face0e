"""
Game Processing Record — the video lifecycle fields on a Game item.

DynamoDB item (Game table, partition key ``id``):
  videoProcessingStatus  S   PENDING | PROCESSING | COMPLETED | FAILED
  mediaConvertJobId      S   set together with PROCESSING
  processedVideoUrls     S   JSON object {"1080p": url, "720p": url}
  thumbnailUrls          S   JSON array, sorted
  updatedAt              S   ISO-8601 UTC
  videoFileName          S   name of the raw upload, written by the web client

Every write is one UpdateItem conditioned only on the game existing.
There is no check on the current status or job id: last write wins.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from botocore.exceptions import ClientError

from app.constants import VideoProcessingStatus
from app.exceptions import ProcessingRecordNotFound

logger = logging.getLogger(__name__)

# Attributes read back by the status API
RECORD_ATTRIBUTES = (
    "id",
    "videoProcessingStatus",
    "mediaConvertJobId",
    "processedVideoUrls",
    "thumbnailUrls",
    "updatedAt",
    "videoFileName",
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ProcessingRecord:
    game_id: str
    status: VideoProcessingStatus = VideoProcessingStatus.UNSET
    media_convert_job_id: str | None = None
    processed_video_urls: dict[str, str] = field(default_factory=dict)
    thumbnail_urls: list[str] = field(default_factory=list)
    updated_at: str | None = None
    video_file_name: str | None = None

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> ProcessingRecord:
        """Build a record from a low-level DynamoDB item ({"attr": {"S": ...}})."""
        game_id = _string(item, "id") or ""
        raw_status = _string(item, "videoProcessingStatus")
        try:
            status = VideoProcessingStatus(raw_status) if raw_status else VideoProcessingStatus.UNSET
        except ValueError:
            logger.warning("Game %s has unknown processing status %r", game_id, raw_status)
            status = VideoProcessingStatus.UNSET

        urls = _json(item, "processedVideoUrls", game_id)
        thumbs = _json(item, "thumbnailUrls", game_id)
        return cls(
            game_id=game_id,
            status=status,
            media_convert_job_id=_string(item, "mediaConvertJobId"),
            processed_video_urls=_string_map(urls, game_id),
            thumbnail_urls=_string_list(thumbs, game_id),
            updated_at=_string(item, "updatedAt"),
            video_file_name=_string(item, "videoFileName"),
        )


def _string(item: dict[str, Any], name: str) -> str | None:
    value = item.get(name)
    if not value:
        return None
    return value.get("S")


def _json(item: dict[str, Any], name: str, game_id: str) -> Any:
    raw = _string(item, name)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Game %s has malformed %s: %r", game_id, name, raw)
        return None


def _string_map(value: Any, game_id: str) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    urls = {k: v for k, v in value.items() if isinstance(v, str)}
    if len(urls) != len(value):
        logger.warning("Game %s has non-string processedVideoUrls entries: %r", game_id, value)
    return urls


def _string_list(value: Any, game_id: str) -> list[str]:
    if not isinstance(value, list):
        return []
    urls = [v for v in value if isinstance(v, str)]
    if len(urls) != len(value):
        logger.warning("Game %s has non-string thumbnailUrls entries: %r", game_id, value)
    return urls


class GameRecordStore:
    """Writes processing status onto Game items through a boto3 DynamoDB client."""

    def __init__(self, client: Any, table_name: str) -> None:
        self._client = client
        self._table_name = table_name

    def mark_processing(self, game_id: str, job_id: str) -> None:
        self._update(
            game_id,
            "SET videoProcessingStatus = :status, mediaConvertJobId = :jobId, updatedAt = :timestamp",
            {
                ":status": {"S": VideoProcessingStatus.PROCESSING.value},
                ":jobId": {"S": job_id},
                ":timestamp": {"S": _now_iso()},
            },
        )
        logger.info("Game %s processing status -> PROCESSING (job %s)", game_id, job_id)

    def mark_failed(self, game_id: str, *, clear_job_id: bool = False) -> None:
        """Set FAILED. URL fields are left as they are.

        ``clear_job_id`` is used when no job was created for this attempt,
        so a job id from an earlier upload does not linger.
        """
        expression = "SET videoProcessingStatus = :status, updatedAt = :timestamp"
        if clear_job_id:
            expression += " REMOVE mediaConvertJobId"
        self._update(
            game_id,
            expression,
            {
                ":status": {"S": VideoProcessingStatus.FAILED.value},
                ":timestamp": {"S": _now_iso()},
            },
        )
        logger.info("Game %s processing status -> FAILED", game_id)

    def mark_completed(
        self,
        game_id: str,
        processed_urls: dict[str, str],
        thumbnail_urls: list[str],
    ) -> None:
        """Set COMPLETED together with both URL fields in a single update."""
        self._update(
            game_id,
            "SET videoProcessingStatus = :status, processedVideoUrls = :processedUrls, "
            "thumbnailUrls = :thumbnails, updatedAt = :timestamp",
            {
                ":status": {"S": VideoProcessingStatus.COMPLETED.value},
                ":processedUrls": {"S": json.dumps(processed_urls)},
                ":thumbnails": {"S": json.dumps(thumbnail_urls)},
                ":timestamp": {"S": _now_iso()},
            },
        )
        logger.info(
            "Game %s processing status -> COMPLETED (%d renditions, %d thumbnails)",
            game_id,
            len(processed_urls),
            len(thumbnail_urls),
        )

    def _update(self, game_id: str, expression: str, values: dict[str, dict[str, str]]) -> None:
        try:
            self._client.update_item(
                TableName=self._table_name,
                Key={"id": {"S": game_id}},
                UpdateExpression=expression,
                ConditionExpression="attribute_exists(id)",
                ExpressionAttributeValues=values,
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code == "ConditionalCheckFailedException":
                raise ProcessingRecordNotFound(game_id) from exc
            raise
