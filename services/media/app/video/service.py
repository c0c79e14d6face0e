"""
Game video — read side of the processing record.

The Lambdas own every write; this module only reads the Game item and turns
its stored URLs into presigned GET URLs the web player can fetch. Objects
under protected/ are not publicly readable.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.constants import RAW_VIDEO_PREFIX, VideoProcessingStatus
from app.exceptions import RecordStoreUnavailable, VideoUrlSigningError
from app.records import RECORD_ATTRIBUTES, ProcessingRecord
from app.video.schemas import VideoResponse, VideoSources

if TYPE_CHECKING:
    from app.config import Settings

logger = logging.getLogger(__name__)


def _aws_session(settings: Settings) -> aioboto3.Session:
    return aioboto3.Session(
        aws_access_key_id=settings.aws_access_key_id or None,
        aws_secret_access_key=settings.aws_secret_access_key or None,
        region_name=settings.aws_region,
    )


class GameRecordReader:
    def __init__(self, session: aioboto3.Session, table_name: str) -> None:
        self._session = session
        self._table_name = table_name

    @classmethod
    def from_settings(cls, settings: Settings) -> GameRecordReader:
        return cls(_aws_session(settings), settings.game_table_name)

    async def get(self, game_id: str) -> ProcessingRecord | None:
        """Return the game's processing record, or None if the game does not exist."""
        names = {f"#{attr}": attr for attr in RECORD_ATTRIBUTES}
        try:
            async with self._session.client("dynamodb") as ddb:
                response = await ddb.get_item(
                    TableName=self._table_name,
                    Key={"id": {"S": game_id}},
                    ProjectionExpression=", ".join(names),
                    ExpressionAttributeNames=names,
                )
        except (BotoCoreError, ClientError) as exc:
            logger.error("DynamoDB get_item failed for game %s: %s", game_id, exc)
            raise RecordStoreUnavailable()

        item = response.get("Item")
        if not item:
            return None
        return ProcessingRecord.from_item(item)


class VideoUrlSigner:
    """Presigns GET URLs for objects in the storage bucket."""

    def __init__(
        self,
        session: aioboto3.Session,
        bucket: str,
        public_url_prefix: str,
        expiry_seconds: int = 3600,
    ) -> None:
        self._session = session
        self._bucket = bucket
        self._public_url_prefix = public_url_prefix
        self._expiry_seconds = expiry_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> VideoUrlSigner:
        return cls(
            _aws_session(settings),
            settings.storage_bucket_name,
            settings.public_url_prefix,
            settings.video_url_expiry_seconds,
        )

    def storage_location(self, url: str) -> tuple[str, str]:
        """Map a stored URL back to (bucket, key).

        Stored:  https://s3.amazonaws.com/<bucket>/protected/processed-videos/g1/clip/mp4/clip_720p.mp4
        Result:  (<bucket>, "protected/processed-videos/g1/clip/mp4/clip_720p.mp4")

        Anything else is taken as a key in the storage bucket.
        """
        if url.startswith(self._public_url_prefix):
            bucket, _, key = url[len(self._public_url_prefix):].partition("/")
            if bucket and key:
                return bucket, key
        return self._bucket, url

    async def sign(self, locations: list[tuple[str, str]]) -> list[str]:
        """Return one presigned GET URL per (bucket, key), in order."""
        if not locations:
            return []
        try:
            async with self._session.client("s3", config=Config(signature_version="s3v4")) as s3:
                return [
                    await s3.generate_presigned_url(
                        "get_object",
                        Params={"Bucket": bucket, "Key": key},
                        ExpiresIn=self._expiry_seconds,
                    )
                    for bucket, key in locations
                ]
        except (BotoCoreError, ClientError) as exc:
            logger.error("Presigning %d video URL(s) failed: %s", len(locations), exc)
            raise VideoUrlSigningError()


def original_video_key(record: ProcessingRecord) -> str | None:
    """protected/game-videos/{gameId}/{videoFileName}, when the upload name is known."""
    if not record.video_file_name:
        return None
    return f"{RAW_VIDEO_PREFIX}{record.game_id}/{record.video_file_name}"


async def build_video_response(record: ProcessingRecord, signer: VideoUrlSigner) -> VideoResponse:
    """Processed video data with every source presigned.

    The original upload is offered whenever its name is known. Renditions and
    thumbnails only once the status is COMPLETED: a re-upload leaves the
    previous URLs in place until the new job completes.
    """
    completed = record.status is VideoProcessingStatus.COMPLETED
    renditions = record.processed_video_urls if completed else {}
    thumbnails = record.thumbnail_urls if completed else []

    sources: dict[str, tuple[str, str]] = {}
    original_key = original_video_key(record)
    if original_key:
        sources["original"] = signer.storage_location(original_key)
    for rendition in ("1080p", "720p"):
        if rendition in renditions:
            sources[rendition] = signer.storage_location(renditions[rendition])

    signed = await signer.sign(
        [*sources.values(), *(signer.storage_location(url) for url in thumbnails)]
    )
    signed_sources = dict(zip(sources, signed))
    return VideoResponse(
        game_id=record.game_id,
        status=record.status,
        media_convert_job_id=record.media_convert_job_id,
        video_sources=VideoSources(
            original=signed_sources.get("original"),
            p1080=signed_sources.get("1080p"),
            p720=signed_sources.get("720p"),
        ),
        thumbnails=signed[len(sources):],
        updated_at=record.updated_at,
    )
