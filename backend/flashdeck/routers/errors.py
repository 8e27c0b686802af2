"""Translation of domain errors into HTTP errors."""

from fastapi import HTTPException, status

from flashdeck.errors import (
    CardNotFoundError,
    CommitFailedError,
    DeckNotFoundError,
    InvalidRatingError,
    QuotaExceededError,
    SchedulingError,
    StaleStateError,
)

STATUS_BY_ERROR: dict[type[SchedulingError], int] = {
    InvalidRatingError: 422,
    CardNotFoundError: status.HTTP_404_NOT_FOUND,
    DeckNotFoundError: status.HTTP_404_NOT_FOUND,
    QuotaExceededError: status.HTTP_409_CONFLICT,
    StaleStateError: status.HTTP_409_CONFLICT,
    CommitFailedError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error(exc: SchedulingError) -> HTTPException:
    """Build the HTTPException for a declined operation.

    The body is {"detail": {"message": ..., "reason": ...}}.
    """
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail={"message": str(exc), "reason": exc.reason})
