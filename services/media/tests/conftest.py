from __future__ import annotations

import json
from collections.abc import Generator
from typing import Any

import aioboto3
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.exceptions import ProcessingRecordNotFound
from app.main import create_app
from app.records import ProcessingRecord
from app.video.router import get_record_reader, get_url_signer
from app.video.service import VideoUrlSigner


BUCKET = "basketball-review-storage-test"
ROLE_ARN = "arn:aws:iam::123456789012:role/MediaConvert_Default_Role"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        storage_bucket_name=BUCKET,
        game_table_name="Game-test",
        mediaconvert_role_arn=ROLE_ARN,
        mediaconvert_endpoint="https://mediaconvert.ap-southeast-2.amazonaws.com",
        public_url_prefix="https://s3.amazonaws.com/",
    )


class FakeMediaConvert:
    """Records create_job calls; raises ``error`` when set."""

    def __init__(self, job_ids: list[str] | None = None, error: Exception | None = None) -> None:
        self.job_ids = list(job_ids or ["job-42"])
        self.error = error
        self.jobs: list[dict[str, Any]] = []

    def create_job(self, **kwargs: Any) -> dict[str, Any]:
        self.jobs.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"Job": {"Id": self.job_ids.pop(0)}}


class InMemoryRecordStore:
    """Same write contract as GameRecordStore, backed by DynamoDB-shaped dicts."""

    def __init__(self, games: tuple[str, ...] = ("g1",)) -> None:
        self.items: dict[str, dict[str, Any]] = {g: {"id": {"S": g}} for g in games}
        self.writes: list[tuple[str, str]] = []
        self.error: Exception | None = None

    def _item(self, game_id: str) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        if game_id not in self.items:
            raise ProcessingRecordNotFound(game_id)
        return self.items[game_id]

    def mark_processing(self, game_id: str, job_id: str) -> None:
        item = self._item(game_id)
        item["videoProcessingStatus"] = {"S": "PROCESSING"}
        item["mediaConvertJobId"] = {"S": job_id}
        item["updatedAt"] = {"S": "2026-10-18T12:00:00+00:00"}
        self.writes.append((game_id, "PROCESSING"))

    def mark_failed(self, game_id: str, *, clear_job_id: bool = False) -> None:
        item = self._item(game_id)
        item["videoProcessingStatus"] = {"S": "FAILED"}
        item["updatedAt"] = {"S": "2026-10-18T12:00:00+00:00"}
        if clear_job_id:
            item.pop("mediaConvertJobId", None)
        self.writes.append((game_id, "FAILED"))

    def mark_completed(self, game_id: str, processed_urls: dict, thumbnail_urls: list) -> None:
        item = self._item(game_id)
        item["videoProcessingStatus"] = {"S": "COMPLETED"}
        item["processedVideoUrls"] = {"S": json.dumps(processed_urls)}
        item["thumbnailUrls"] = {"S": json.dumps(thumbnail_urls)}
        item["updatedAt"] = {"S": "2026-10-18T12:00:00+00:00"}
        self.writes.append((game_id, "COMPLETED"))

    def record(self, game_id: str) -> ProcessingRecord:
        return ProcessingRecord.from_item(self.items[game_id])


@pytest.fixture
def records() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def mediaconvert() -> FakeMediaConvert:
    return FakeMediaConvert()


def s3_event(*keys: str, bucket: str = BUCKET) -> dict[str, Any]:
    return {
        "Records": [
            {
                "eventSource": "aws:s3",
                "eventName": "ObjectCreated:Put",
                "s3": {"bucket": {"name": bucket}, "object": {"key": key, "size": 1024}},
            }
            for key in keys
        ]
    }


def job_event(
    status: str,
    *,
    job_id: str = "job-42",
    user_metadata: dict[str, str] | None = None,
    paths: list[str] | None = None,
) -> dict[str, Any]:
    detail: dict[str, Any] = {"status": status, "jobId": job_id, "queue": "arn:aws:mediaconvert:queue/Default"}
    if user_metadata is not None:
        detail["userMetadata"] = user_metadata
    if paths is not None:
        detail["outputGroupDetails"] = [{"outputDetails": [{"outputFilePaths": [p]} for p in paths]}]
    return {
        "version": "0",
        "source": "aws.mediaconvert",
        "detail-type": "MediaConvert Job State Change",
        "region": "ap-southeast-2",
        "detail": detail,
    }


class FakeRecordReader:
    def __init__(self, items: dict[str, dict[str, Any]]) -> None:
        self.items = items

    async def get(self, game_id: str) -> ProcessingRecord | None:
        item = self.items.get(game_id)
        return ProcessingRecord.from_item(item) if item is not None else None


@pytest.fixture
def api_items() -> dict[str, dict[str, Any]]:
    return {}


@pytest.fixture
def url_signer() -> VideoUrlSigner:
    # Presigning is computed locally; static credentials keep it offline
    session = aioboto3.Session(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name="ap-southeast-2",
    )
    return VideoUrlSigner(session, BUCKET, "https://s3.amazonaws.com/", expiry_seconds=900)


@pytest.fixture
def client(
    api_items: dict[str, dict[str, Any]], url_signer: VideoUrlSigner,
) -> Generator[TestClient, None, None]:
    app = create_app()
    app.dependency_overrides[get_record_reader] = lambda: FakeRecordReader(api_items)
    app.dependency_overrides[get_url_signer] = lambda: url_signer
    with TestClient(app) as c:
        yield c
