"""
Inbound AWS event payloads — Pydantic V2 models.

Every nested field is optional: S3 and MediaConvert omit keys freely, and the
handlers check for absence instead of assuming presence.
"""
from __future__ import annotations

import urllib.parse
from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field


class _Event(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ── S3 ObjectCreated ─────────────────────────────────────────────────────────

class S3Bucket(_Event):
    name: str = ""


class S3Object(_Event):
    key: str = ""


class S3Entity(_Event):
    bucket: S3Bucket = Field(default_factory=S3Bucket)
    object: S3Object = Field(default_factory=S3Object)


class S3EventRecord(_Event):
    """One record of an S3 notification."""

    s3: S3Entity = Field(default_factory=S3Entity)

    @property
    def bucket(self) -> str:
        return self.s3.bucket.name

    @property
    def key(self) -> str:
        """Object key, URL-decoded with '+' restored to space."""
        return urllib.parse.unquote_plus(self.s3.object.key)


# ── MediaConvert Job State Change (EventBridge) ──────────────────────────────

class UserMetadata(_Event):
    # Case-sensitive: only "GameId" is the correlation key set at submission.
    game_id: str | None = Field(default=None, alias="GameId")


class OutputDetail(_Event):
    output_file_paths: list[str] | None = Field(default=None, alias="outputFilePaths")


class OutputGroupDetail(_Event):
    output_details: list[OutputDetail] | None = Field(default=None, alias="outputDetails")


class JobStateChangeDetail(_Event):
    status: str = ""
    job_id: str = Field(default="", alias="jobId")
    error_message: str | None = Field(default=None, alias="errorMessage")
    user_metadata: UserMetadata | None = Field(default=None, alias="userMetadata")
    output_group_details: list[OutputGroupDetail] | None = Field(
        default=None, alias="outputGroupDetails",
    )

    @property
    def game_id(self) -> str | None:
        if self.user_metadata is None:
            return None
        return self.user_metadata.game_id or None

    def output_paths(self) -> Iterator[str]:
        """Yield every output file path in event order."""
        for group in self.output_group_details or []:
            for output in group.output_details or []:
                yield from output.output_file_paths or []


class JobStateChangeEvent(_Event):
    """EventBridge envelope: source aws.mediaconvert."""

    detail_type: str = Field(default="", alias="detail-type")
    detail: JobStateChangeDetail = Field(default_factory=JobStateChangeDetail)
