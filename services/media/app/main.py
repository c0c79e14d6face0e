import logging

from fastapi import FastAPI

# Configure application logging so request logs are visible
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s: %(message)s")
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings
from app.middleware import (
    error_envelope_middleware,
    http_exception_handler,
    request_id_middleware,
)
from app.video.router import router as video_router


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## Basketball Review — Game Video Service

Read-only view of the game video processing pipeline.

* **Upload** — the web client uploads to `protected/game-videos/{gameId}/`;
  an S3 trigger submits an AWS MediaConvert job (1080p + 720p MP4 + thumbnails).
* **Completion** — an EventBridge listener writes the rendition and thumbnail
  URLs back onto the game.
* **Status tracking** — UNSET → PROCESSING → COMPLETED/FAILED.

### Error shape
```json
{ "error": {"code": "...", "message": "..."}, "request_id": "..." }
```
"""

_TAGS_METADATA = [
    {
        "name": "video",
        "description": "Processing status and playable sources for a game's video.",
    },
]


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

def get_settings() -> Settings:
    return Settings()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Basketball Review Video Service",
        version="1.0.0",
        description=_DESCRIPTION,
        openapi_tags=_TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Middleware (applied in reverse-registration order: last added = outermost)
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(video_router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["health"], include_in_schema=True)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="media")

    return app


app = create_app()
