from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_files() -> list[str]:
    """Load .env from repo root (when running from services/media) then local .env."""
    base = Path(__file__).resolve().parent.parent.parent.parent  # repo root
    return [str(base / ".env"), ".env"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── AWS ───────────────────────────────────────────────────────────────────
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "ap-southeast-2"

    # Amplify storage bucket holding both raw uploads and processed output
    storage_bucket_name: str = "basketball-review-storage-dev"

    # DynamoDB table backing the Game model
    game_table_name: str = "Game"

    # MediaConvert
    mediaconvert_endpoint: str = ""
    mediaconvert_role_arn: str = ""
    mediaconvert_queue_arn: str = ""
    mediaconvert_job_template_name: str = ""

    # Prefix that replaces "s3://" in output paths to make them fetchable
    public_url_prefix: str = "https://s3.amazonaws.com/"

    # Lifetime of the presigned GET URLs the status API hands to the player
    video_url_expiry_seconds: int = 3600

    # ── API ───────────────────────────────────────────────────────────────────
    env_name: str = "development"
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        return [x.strip() for x in self.cors_origins.split(",") if x.strip()]
