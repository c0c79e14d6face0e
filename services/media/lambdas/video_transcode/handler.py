"""
AWS Lambda handler — game video upload trigger.

Triggered by S3 ObjectCreated notifications on protected/game-videos/.

Flow:
  1. Filters each record to raw game videos (mp4, mov, avi, mkv, wmv, flv, webm).
  2. Submits an AWS MediaConvert job (1080p + 720p MP4 + thumbnails).
  3. Marks the game PROCESSING with the job id (FAILED if submission fails).

Environment variables:
  STORAGE_BUCKET_NAME     — bucket holding raw uploads and processed output
  GAME_TABLE_NAME         — DynamoDB table of the Game model
  MEDIACONVERT_ROLE_ARN   — IAM role ARN for MediaConvert to access S3
  MEDIACONVERT_ENDPOINT   — MediaConvert API endpoint (discovered when empty)
  MEDIACONVERT_QUEUE_ARN  — optional MediaConvert queue ARN
  AWS_REGION              — AWS region (set by Lambda runtime)
"""
from __future__ import annotations

import logging

import boto3

from app.config import Settings
from app.mediaconvert import TranscodeJobSubmitter, create_mediaconvert_client
from app.records import GameRecordStore
from app.uploads import UploadTrigger

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_trigger: UploadTrigger | None = None


def _get_trigger() -> UploadTrigger:
    """Build clients once per container."""
    global _trigger
    if _trigger is None:
        settings = Settings()
        records = GameRecordStore(
            boto3.client("dynamodb", region_name=settings.aws_region),
            settings.game_table_name,
        )
        submitter = TranscodeJobSubmitter(
            create_mediaconvert_client(settings), records, settings,
        )
        _trigger = UploadTrigger(submitter, settings.storage_bucket_name)
    return _trigger


def handler(event: dict, context: object) -> dict:
    """Lambda entry point — processes S3 event records."""
    records = event.get("Records", [])
    logger.info("Video processing triggered for %d record(s)", len(records))
    results = _get_trigger().handle_records(records)
    return {"statusCode": 200, "results": results}
