from typing import Any

import pytest
from botocore.exceptions import ClientError

from app.constants import VideoProcessingStatus
from app.exceptions import RecordStoreUnavailable, VideoUrlSigningError
from app.records import ProcessingRecord
from app.video.service import GameRecordReader, VideoUrlSigner, build_video_response


class _FakeDynamoDB:
    def __init__(self, response: dict[str, Any] | None, error: Exception | None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def __aenter__(self) -> "_FakeDynamoDB":
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    async def get_item(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response or {}


class FakeSession:
    """Stands in for aioboto3.Session: client() yields an async context manager."""

    def __init__(self, response: dict[str, Any] | None = None, error: Exception | None = None) -> None:
        self.ddb = _FakeDynamoDB(response, error)

    def client(self, service_name: str, **kwargs: Any) -> _FakeDynamoDB:
        assert service_name == "dynamodb"
        return self.ddb


@pytest.mark.asyncio
async def test_get_reads_projected_record() -> None:
    session = FakeSession({"Item": {"id": {"S": "g1"}, "videoProcessingStatus": {"S": "FAILED"}}})

    record = await GameRecordReader(session, "Game-test").get("g1")

    assert record is not None
    assert record.status is VideoProcessingStatus.FAILED
    (call,) = session.ddb.calls
    assert call["TableName"] == "Game-test"
    assert call["Key"] == {"id": {"S": "g1"}}
    assert set(call["ExpressionAttributeNames"].values()) >= {
        "videoProcessingStatus", "mediaConvertJobId", "processedVideoUrls", "thumbnailUrls",
    }


@pytest.mark.asyncio
async def test_get_missing_game_returns_none() -> None:
    record = await GameRecordReader(FakeSession({}), "Game-test").get("nope")
    assert record is None


@pytest.mark.asyncio
async def test_get_store_error_maps_to_http_error() -> None:
    error = ClientError({"Error": {"Code": "InternalServerError", "Message": "boom"}}, "GetItem")
    with pytest.raises(RecordStoreUnavailable):
        await GameRecordReader(FakeSession(error=error), "Game-test").get("g1")


class _FakeS3:
    def __init__(self, error: Exception | None) -> None:
        self.error = error
        self.presigned: list[dict[str, Any]] = []

    async def __aenter__(self) -> "_FakeS3":
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    async def generate_presigned_url(self, operation: str, Params: dict, ExpiresIn: int) -> str:
        if self.error is not None:
            raise self.error
        self.presigned.append(Params)
        return f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}?X-Amz-Signature=sig"


class FakeS3Session:
    def __init__(self, error: Exception | None = None) -> None:
        self.s3 = _FakeS3(error)
        self.opened = 0

    def client(self, service_name: str, **kwargs: Any) -> _FakeS3:
        assert service_name == "s3"
        self.opened += 1
        return self.s3


def _signer(session: FakeS3Session) -> VideoUrlSigner:
    return VideoUrlSigner(session, "storage", "https://s3.amazonaws.com/")


def test_storage_location_strips_public_prefix_and_bucket() -> None:
    signer = _signer(FakeS3Session())
    assert signer.storage_location("https://s3.amazonaws.com/other/protected/processed-videos/g1/a.mp4") == (
        "other",
        "protected/processed-videos/g1/a.mp4",
    )
    assert signer.storage_location("protected/game-videos/g1/a.mp4") == ("storage", "protected/game-videos/g1/a.mp4")


@pytest.mark.asyncio
async def test_build_response_signs_sources_and_thumbnails() -> None:
    session = FakeS3Session()
    record = ProcessingRecord(
        game_id="g1",
        status=VideoProcessingStatus.COMPLETED,
        processed_video_urls={"720p": "https://s3.amazonaws.com/storage/p/g1/clip_720p.mp4"},
        thumbnail_urls=["https://s3.amazonaws.com/storage/p/g1/t0.jpg", "https://s3.amazonaws.com/storage/p/g1/t1.jpg"],
        video_file_name="clip.mp4",
    )

    response = await build_video_response(record, _signer(session))

    assert response.video_sources.original == (
        "https://storage.s3.amazonaws.com/protected/game-videos/g1/clip.mp4?X-Amz-Signature=sig"
    )
    assert response.video_sources.p1080 is None
    assert response.video_sources.p720 == "https://storage.s3.amazonaws.com/p/g1/clip_720p.mp4?X-Amz-Signature=sig"
    assert response.thumbnails == [
        "https://storage.s3.amazonaws.com/p/g1/t0.jpg?X-Amz-Signature=sig",
        "https://storage.s3.amazonaws.com/p/g1/t1.jpg?X-Amz-Signature=sig",
    ]
    assert session.opened == 1


@pytest.mark.asyncio
async def test_build_response_without_sources_skips_s3() -> None:
    session = FakeS3Session()
    response = await build_video_response(
        ProcessingRecord(game_id="g1", status=VideoProcessingStatus.PROCESSING), _signer(session),
    )
    assert response.video_sources.original is None
    assert session.opened == 0


@pytest.mark.asyncio
async def test_presign_error_maps_to_http_error() -> None:
    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GeneratePresignedUrl")
    record = ProcessingRecord(game_id="g1", video_file_name="clip.mp4")
    with pytest.raises(VideoUrlSigningError):
        await build_video_response(record, _signer(FakeS3Session(error=error)))
