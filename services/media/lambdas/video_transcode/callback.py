"""
AWS Lambda handler — MediaConvert Job State Change callback.

Triggered by EventBridge rule:
  source: "aws.mediaconvert"
  detail-type: "MediaConvert Job State Change"
  detail.status: COMPLETE | ERROR

When MediaConvert finishes, this Lambda:
  1. Reads the game id from detail.userMetadata.GameId.
  2. Gathers rendition URLs (1080p, 720p) and thumbnail URLs.
  3. Writes COMPLETED (with URLs) or FAILED onto the game record.
"""
from __future__ import annotations

import logging

import boto3

from app.completion import CompletionListener
from app.config import Settings
from app.records import GameRecordStore

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_listener: CompletionListener | None = None


def _get_listener() -> CompletionListener:
    global _listener
    if _listener is None:
        settings = Settings()
        records = GameRecordStore(
            boto3.client("dynamodb", region_name=settings.aws_region),
            settings.game_table_name,
        )
        _listener = CompletionListener(records, settings.public_url_prefix)
    return _listener


def handler(event: dict, context: object) -> dict:
    """Process MediaConvert job state change event."""
    result = _get_listener().handle(event)
    return {"statusCode": 200, **result}
