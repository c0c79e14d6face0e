"""
Game video — HTTP routes (read-only processing status).
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.config import Settings
from app.exceptions import GameNotFound
from app.video.schemas import VideoResponse, VideoStatusResponse
from app.video.service import GameRecordReader, VideoUrlSigner, build_video_response

router = APIRouter(prefix="/games", tags=["video"])


def _get_settings() -> Settings:
    return Settings()


def get_record_reader(settings: Settings = Depends(_get_settings)) -> GameRecordReader:
    return GameRecordReader.from_settings(settings)


def get_url_signer(settings: Settings = Depends(_get_settings)) -> VideoUrlSigner:
    return VideoUrlSigner.from_settings(settings)


@router.get(
    "/{game_id}/video/status",
    response_model=VideoStatusResponse,
    summary="Get video processing status",
    description="Returns UNSET until a video has been uploaded for the game.",
)
async def get_video_status(
    game_id: str,
    reader: GameRecordReader = Depends(get_record_reader),
) -> VideoStatusResponse:
    record = await reader.get(game_id)
    if record is None:
        raise GameNotFound()
    return VideoStatusResponse(game_id=game_id, status=record.status)


@router.get(
    "/{game_id}/video",
    response_model=VideoResponse,
    summary="Get processed video sources",
    description=(
        "Returns the processing status with presigned source and thumbnail URLs. "
        "The original upload is included when known; rendition and thumbnail "
        "URLs only once the status is COMPLETED."
    ),
)
async def get_video(
    game_id: str,
    reader: GameRecordReader = Depends(get_record_reader),
    signer: VideoUrlSigner = Depends(get_url_signer),
) -> VideoResponse:
    record = await reader.get(game_id)
    if record is None:
        raise GameNotFound()
    return await build_video_response(record, signer)
