"""
Media service — domain exceptions.

HTTP exceptions use preset status codes and detail messages so that callers
never need to specify these at the call site. app.middleware.http_exception_handler
wraps them in the standard error envelope.
"""
from fastapi import HTTPException, status


# ── Processing record ────────────────────────────────────────────────────────

class ProcessingRecordNotFound(Exception):
    """A status write targeted a game that does not exist in the Game table."""

    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found; processing status not written")


# ── HTTP ─────────────────────────────────────────────────────────────────────

class GameNotFound(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Game not found.",
        )


class RecordStoreUnavailable(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not read video processing status. Please try again.",
        )


class VideoUrlSigningError(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not generate video URLs. Please try again.",
        )
