"""
AWS MediaConvert — job settings and submission for game videos.

Produces two MP4 renditions + periodic thumbnails.

Output structure in S3:
  protected/processed-videos/{gameId}/{file}/mp4/{file}_1080p.mp4
  protected/processed-videos/{gameId}/{file}/mp4/{file}_720p.mp4
  protected/processed-videos/{gameId}/{file}/thumbnails/{file}_thumb.0000000.jpg
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.constants import (
    JOB_TAGS,
    RENDITION_MARKERS,
    RENDITION_PRESETS,
    THUMBNAIL_INTERVAL_SECS,
    THUMBNAIL_MARKER,
    THUMBNAIL_MAX_CAPTURES,
)
from app.exceptions import ProcessingRecordNotFound

if TYPE_CHECKING:
    from app.config import Settings
    from app.records import GameRecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscodeRequest:
    input_key: str
    output_prefix: str
    game_id: str | None = None


def create_mediaconvert_client(settings: Settings) -> Any:
    """Get a MediaConvert client bound to the account-specific endpoint."""
    if settings.mediaconvert_endpoint:
        return boto3.client(
            "mediaconvert",
            region_name=settings.aws_region,
            endpoint_url=settings.mediaconvert_endpoint,
        )
    # Auto-discover endpoint
    mc = boto3.client("mediaconvert", region_name=settings.aws_region)
    endpoints = mc.describe_endpoints()
    endpoint_url = endpoints["Endpoints"][0]["Url"]
    return boto3.client(
        "mediaconvert",
        region_name=settings.aws_region,
        endpoint_url=endpoint_url,
    )


def _aac_audio() -> list[dict]:
    return [
        {
            "CodecSettings": {
                "Codec": "AAC",
                "AacSettings": {
                    "Bitrate": 128000,
                    "SampleRate": 48000,
                },
            },
        }
    ]


def _mp4_output(rendition: str) -> dict:
    """Build an MP4 output for one rendition preset."""
    preset = RENDITION_PRESETS[rendition]
    return {
        "NameModifier": RENDITION_MARKERS[rendition],
        "ContainerSettings": {
            "Container": "MP4",
            "Mp4Settings": {},
        },
        "VideoDescription": {
            "Width": preset["width"],
            "Height": preset["height"],
            "CodecSettings": {
                "Codec": "H_264",
                "H264Settings": {
                    "RateControlMode": "QVBR",
                    "MaxBitrate": preset["max_bitrate"],
                    "QvbrSettings": {"QvbrQualityLevel": preset["quality"]},
                },
            },
        },
        "AudioDescriptions": _aac_audio(),
    }


def build_job_settings(
    request: TranscodeRequest,
    *,
    bucket: str,
    role_arn: str,
    queue_arn: str = "",
    job_template: str = "",
) -> dict:
    """Build the full MediaConvert CreateJob arguments."""
    input_uri = f"s3://{bucket}/{request.input_key}"
    output_base = f"s3://{bucket}/{request.output_prefix}"

    settings: dict = {
        "Role": role_arn,
        "Settings": {
            "Inputs": [
                {
                    "FileInput": input_uri,
                    "AudioSelectors": {
                        "Audio Selector 1": {"DefaultSelection": "DEFAULT"},
                    },
                    "VideoSelector": {},
                }
            ],
            "OutputGroups": [
                # MP4 renditions for web playback
                {
                    "Name": "File Group",
                    "OutputGroupSettings": {
                        "Type": "FILE_GROUP_SETTINGS",
                        "FileGroupSettings": {
                            "Destination": f"{output_base}/mp4/",
                        },
                    },
                    "Outputs": [
                        _mp4_output("1080p"),
                        _mp4_output("720p"),
                    ],
                },
                # Periodic frame captures
                {
                    "Name": "Thumbnail Group",
                    "OutputGroupSettings": {
                        "Type": "FILE_GROUP_SETTINGS",
                        "FileGroupSettings": {
                            "Destination": f"{output_base}/thumbnails/",
                        },
                    },
                    "Outputs": [
                        {
                            "NameModifier": THUMBNAIL_MARKER,
                            "ContainerSettings": {"Container": "RAW"},
                            "VideoDescription": {
                                "Width": 1280,
                                "Height": 720,
                                "CodecSettings": {
                                    "Codec": "FRAME_CAPTURE",
                                    "FrameCaptureSettings": {
                                        "FramerateNumerator": 1,
                                        "FramerateDenominator": THUMBNAIL_INTERVAL_SECS,
                                        "MaxCaptures": THUMBNAIL_MAX_CAPTURES,
                                        "Quality": 80,
                                    },
                                },
                            },
                        }
                    ],
                },
            ],
        },
        "Tags": {**JOB_TAGS, "GameId": request.game_id or "unknown"},
    }
    if request.game_id:
        # Echoed back in the Job State Change event as detail.userMetadata
        settings["UserMetadata"] = {"GameId": request.game_id}
    if queue_arn:
        settings["Queue"] = queue_arn
    if job_template:
        settings["JobTemplate"] = job_template
    return settings


class TranscodeJobSubmitter:
    """Submits a MediaConvert job for an uploaded game video and records PROCESSING/FAILED."""

    def __init__(self, client: Any, records: GameRecordStore, settings: Settings) -> None:
        self._client = client
        self._records = records
        self._settings = settings

    def submit(self, request: TranscodeRequest) -> str:
        """Submit the job and return its id. Submission errors are re-raised."""
        job_params = build_job_settings(
            request,
            bucket=self._settings.storage_bucket_name,
            role_arn=self._settings.mediaconvert_role_arn,
            queue_arn=self._settings.mediaconvert_queue_arn,
            job_template=self._settings.mediaconvert_job_template_name,
        )

        logger.info("Starting MediaConvert job for %s", request.input_key)
        try:
            response = self._client.create_job(**job_params)
            job_id = response["Job"]["Id"]
        except Exception:
            logger.error("Failed to create MediaConvert job for %s", request.input_key)
            if request.game_id:
                self._update_status(request.game_id, failed=True)
            raise

        logger.info("MediaConvert job created: %s for key %s", job_id, request.input_key)
        if request.game_id:
            self._update_status(request.game_id, job_id=job_id)
        return job_id

    def _update_status(self, game_id: str, *, job_id: str | None = None, failed: bool = False) -> None:
        """Record the submission outcome. Store errors are logged, never raised."""
        try:
            if failed:
                self._records.mark_failed(game_id, clear_job_id=True)
            else:
                self._records.mark_processing(game_id, job_id)
        except ProcessingRecordNotFound as exc:
            logger.warning("%s", exc)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to update processing status for game %s: %s", game_id, exc)
