"""
HTTP mapping for song board errors.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.features.songboard.api.schemas import ErrorResponse
from app.features.songboard.domain import SongboardError, SuggestionLimitError
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_KIND = {
    "validation_error": 422,
    "auth_required": status.HTTP_401_UNAUTHORIZED,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "suggestion_limit": status.HTTP_429_TOO_MANY_REQUESTS,
    "video_search_error": status.HTTP_502_BAD_GATEWAY,
    "storage_error": status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def songboard_error_handler(request: Request, exc: SongboardError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)

    log = logger.warning if status_code < 500 else logger.error
    log(
        "Request failed",
        path=request.url.path,
        kind=exc.kind,
        status_code=status_code,
        error=exc.message,
    )

    body = ErrorResponse(
        error=exc.kind,
        detail=exc.message,
        field=exc.field,
        next_allowed_at=exc.next_allowed_at if isinstance(exc, SuggestionLimitError) else None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SongboardError, songboard_error_handler)
