"""
Upload trigger — turns S3 ObjectCreated records into transcode requests.

Only raw game videos are accepted:
  protected/game-videos/{gameId}/{filename}.{mp4|mov|avi|mkv|wmv|flv|webm}
"""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from app.constants import PROCESSED_VIDEO_PREFIX, RAW_VIDEO_PREFIX, VIDEO_EXTENSIONS
from app.events import S3EventRecord
from app.mediaconvert import TranscodeRequest

if TYPE_CHECKING:
    from app.mediaconvert import TranscodeJobSubmitter

logger = logging.getLogger(__name__)

_GAME_ID_RE = re.compile(r"^" + re.escape(RAW_VIDEO_PREFIX) + r"([^/]+)/")


def is_video_key(key: str) -> bool:
    """Check the final '.'-suffix against the known video extensions (any case)."""
    _, dot, ext = key.rpartition(".")
    return bool(dot) and ext.lower() in VIDEO_EXTENSIONS


def is_raw_game_video(key: str) -> bool:
    return key.startswith(RAW_VIDEO_PREFIX) and is_video_key(key)


def extract_game_id(key: str) -> str | None:
    """Return {gameId} from protected/game-videos/{gameId}/..., else None."""
    match = _GAME_ID_RE.match(key)
    return match.group(1) if match else None


def build_output_prefix(input_key: str) -> str:
    """Derive the output prefix from the raw upload key.

    Input:  protected/game-videos/g1/clip.mp4
    Output: protected/processed-videos/g1/clip
    """
    prefix = input_key
    if prefix.startswith(RAW_VIDEO_PREFIX):
        prefix = PROCESSED_VIDEO_PREFIX + prefix[len(RAW_VIDEO_PREFIX):]
    head, _, filename = prefix.rpartition("/")
    if "." in filename:
        filename = filename.rsplit(".", 1)[0]
    return f"{head}/{filename}" if head else filename


class UploadTrigger:
    def __init__(self, submitter: TranscodeJobSubmitter, storage_bucket: str) -> None:
        self._submitter = submitter
        # Jobs always read from this bucket; records from any other are skipped
        self._storage_bucket = storage_bucket

    def handle_records(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Process every record; one file failing never stops the others."""
        return [self.handle_record(record) for record in records]

    def handle_record(self, record: dict[str, Any]) -> dict[str, Any]:
        try:
            parsed = S3EventRecord.model_validate(record)
            bucket, key = parsed.bucket, parsed.key

            if not bucket or not key:
                logger.error("Missing bucket or key in S3 event: %s", record)
                return {"status": "error", "message": "Missing bucket or key"}

            if bucket != self._storage_bucket:
                logger.warning(
                    "Skipping s3://%s/%s: not the storage bucket %s", bucket, key, self._storage_bucket,
                )
                return {"status": "skipped", "key": key, "reason": "unexpected bucket"}

            if not is_raw_game_video(key):
                logger.info("Skipping non-video file: %s", key)
                return {"status": "skipped", "key": key, "reason": "not a game video"}

            request = TranscodeRequest(
                input_key=key,
                output_prefix=build_output_prefix(key),
                game_id=extract_game_id(key),
            )
            if request.game_id is None:
                logger.warning("No game id in key %s; status will not be tracked", key)

            logger.info("Processing video: s3://%s/%s", bucket, key)
            job_id = self._submitter.submit(request)
            return {
                "status": "submitted",
                "key": key,
                "job_id": job_id,
                "game_id": request.game_id,
            }

        except ValidationError as exc:
            logger.error("Malformed S3 event record: %s", exc)
            return {"status": "error", "message": "Malformed S3 event record"}
        except Exception as exc:
            # Continue processing other files even if one fails
            logger.exception("Error processing S3 record: %s", exc)
            return {"status": "error", "message": str(exc)}
