"""Translate domain failures into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from ..errors import (
    AlreadyAccepted,
    FoodShareError,
    InvalidLocation,
    InvalidTransition,
    NotFound,
    Unauthorized,
)

_STATUS_BY_ERROR: tuple[tuple[type[FoodShareError], int], ...] = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (AlreadyAccepted, status.HTTP_409_CONFLICT),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (InvalidLocation, 422),
)


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, AlreadyAccepted):
        detail = "Someone else already accepted this donation."
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
