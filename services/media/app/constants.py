"""
Game video processing — static constants and enum types.
"""
import enum


class VideoProcessingStatus(str, enum.Enum):
    UNSET = "UNSET"  # attribute absent; never written
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# MediaConvert "Job State Change" statuses the completion listener acts on
JOB_STATUS_COMPLETE = "COMPLETE"
JOB_STATUS_ERROR = "ERROR"

# S3 layout:
#   protected/game-videos/{gameId}/{file}.mp4         (raw upload)
#   protected/processed-videos/{gameId}/{file}/mp4/  (renditions)
#   protected/processed-videos/{gameId}/{file}/thumbnails/
RAW_VIDEO_PREFIX = "protected/game-videos/"
PROCESSED_VIDEO_PREFIX = "protected/processed-videos/"

VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "avi", "mkv", "wmv", "flv", "webm"})

STORAGE_SCHEME = "s3://"

# Rendition label -> NameModifier appended to output file names
RENDITION_MARKERS: dict[str, str] = {
    "1080p": "_1080p",
    "720p": "_720p",
}

THUMBNAIL_DIR = "/thumbnails/"
THUMBNAIL_MARKER = "_thumb"

# MP4 rendition presets (QVBR with a bitrate ceiling)
RENDITION_PRESETS = {
    "1080p": {"width": 1920, "height": 1080, "max_bitrate": 5_000_000, "quality": 8},
    "720p": {"width": 1280, "height": 720, "max_bitrate": 2_500_000, "quality": 7},
}

# One frame every 60 seconds, at most 10 frames
THUMBNAIL_INTERVAL_SECS = 60
THUMBNAIL_MAX_CAPTURES = 10

JOB_TAGS = {
    "Project": "BasketballReview",
    "ProcessedBy": "AutomatedPipeline",
}
