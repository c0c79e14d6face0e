"""
Completion listener — applies MediaConvert Job State Change events to the
owning game's processing record.

The game is identified only by detail.userMetadata.GameId, which the
submitter attaches to every job it creates for a known game.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from app.constants import (
    JOB_STATUS_COMPLETE,
    JOB_STATUS_ERROR,
    RENDITION_MARKERS,
    STORAGE_SCHEME,
    THUMBNAIL_DIR,
    THUMBNAIL_MARKER,
)
from app.events import JobStateChangeEvent
from app.exceptions import ProcessingRecordNotFound

if TYPE_CHECKING:
    from app.records import GameRecordStore

logger = logging.getLogger(__name__)


def to_public_url(path: str, public_prefix: str) -> str:
    """Convert s3://bucket/key to {public_prefix}bucket/key. Other paths pass through."""
    if path.startswith(STORAGE_SCHEME):
        return public_prefix + path[len(STORAGE_SCHEME):]
    return path


def extract_processed_urls(paths: Iterable[str], public_prefix: str) -> dict[str, str]:
    """Map rendition label -> URL. A later path for the same rendition wins."""
    urls: dict[str, str] = {}
    for path in paths:
        for rendition, marker in RENDITION_MARKERS.items():
            if marker in path:
                urls[rendition] = to_public_url(path, public_prefix)
                break
    return urls


def extract_thumbnail_urls(paths: Iterable[str], public_prefix: str) -> list[str]:
    """Thumbnail URLs ordered by source path."""
    thumbs = sorted(p for p in paths if THUMBNAIL_DIR in p and THUMBNAIL_MARKER in p)
    return [to_public_url(p, public_prefix) for p in thumbs]


class CompletionListener:
    def __init__(self, records: GameRecordStore, public_url_prefix: str) -> None:
        self._records = records
        self._public_url_prefix = public_url_prefix

    def handle(self, event: dict[str, Any]) -> dict[str, Any]:
        """Apply one job event. Never raises; the event is consumed either way."""
        try:
            detail = JobStateChangeEvent.model_validate(event).detail
        except ValidationError as exc:
            logger.error("Malformed MediaConvert event, discarding: %s", exc)
            return {"outcome": "ignored", "reason": "malformed event"}

        job_id, status = detail.job_id, detail.status
        logger.info("MediaConvert event: job=%s status=%s", job_id, status)

        game_id = detail.game_id
        if not game_id:
            logger.info("No GameId found in metadata for job %s, skipping update", job_id)
            return {"jobId": job_id, "status": status, "outcome": "ignored"}

        try:
            if status == JOB_STATUS_COMPLETE:
                paths = list(detail.output_paths())
                processed_urls = extract_processed_urls(paths, self._public_url_prefix)
                thumbnail_urls = extract_thumbnail_urls(paths, self._public_url_prefix)
                self._records.mark_completed(game_id, processed_urls, thumbnail_urls)
                logger.info("Job %s completed for game %s", job_id, game_id)
                outcome = "completed"

            elif status == JOB_STATUS_ERROR:
                logger.error(
                    "Job %s failed for game %s: %s",
                    job_id,
                    game_id,
                    detail.error_message or "unknown error",
                )
                self._records.mark_failed(game_id)
                outcome = "failed"

            else:
                logger.info("Job %s status %s for game %s, nothing to record", job_id, status, game_id)
                outcome = "ignored"

        except ProcessingRecordNotFound as exc:
            logger.warning("%s", exc)
            outcome = "error"
        except (BotoCoreError, ClientError) as exc:
            logger.error("Error recording MediaConvert completion for game %s: %s", game_id, exc)
            outcome = "error"
        except Exception:
            logger.exception("Unexpected error handling MediaConvert completion for game %s", game_id)
            outcome = "error"

        return {"jobId": job_id, "status": status, "gameId": game_id, "outcome": outcome}
