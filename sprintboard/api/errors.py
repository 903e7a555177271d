"""Translation of planning errors into HTTP responses"""
from contextlib import contextmanager

from fastapi import HTTPException, status

from sprintboard.exceptions import (
    ConflictError,
    NotFoundError,
    SprintboardError,
    StateError,
    ValidationError,
)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StateError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
}


def to_http_exception(error: SprintboardError) -> HTTPException:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.reason)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.reason)


@contextmanager
def service_errors():
    """Re-raise planning errors from the wrapped block as ``HTTPException``."""
    try:
        yield
    except SprintboardError as exc:
        raise to_http_exception(exc) from exc
