"""Translate registry errors into HTTP responses."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse

from appreg.errors import (
    AlreadyApproved,
    AlreadyExists,
    InvalidArgument,
    InvariantViolation,
    NotFound,
    PermissionDenied,
    RegistryError,
)

_STATUS = {
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    InvalidArgument: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    AlreadyExists: status.HTTP_409_CONFLICT,
    AlreadyApproved: status.HTTP_409_CONFLICT,
    InvariantViolation: status.HTTP_409_CONFLICT,
}


def status_for(exc: RegistryError) -> int:
    for cls, code in _STATUS.items():
        if isinstance(exc, cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content={"detail": exc.message, "code": exc.code},
    )
