# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Translation of engine errors to HTTP responses.

Route handlers catch RegistrarError and re-raise it through
to_http_exception so every failure carries the same body:

    {"detail": {"kind": "SECTION_FULL", "message": "...", ...}}
"""

from fastapi import HTTPException, status

from src.core.errors import RegistrarError
from src.models.common import ErrorKind

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT_CLASSROOM: status.HTTP_409_CONFLICT,
    ErrorKind.CONFLICT_TEACHER: status.HTTP_409_CONFLICT,
    ErrorKind.SECTION_FULL: status.HTTP_409_CONFLICT,
    ErrorKind.SUBJECT_DUPLICATE: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.REGISTRATION_CLOSED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.CREDIT_LIMIT_EXCEEDED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
}


def to_http_exception(error: RegistrarError) -> HTTPException:
    """Build the HTTPException for an engine error.

    Args:
        error: Error raised by a domain service.

    Returns:
        HTTPException with the status for the error's kind.
    """
    return HTTPException(
        status_code=STATUS_BY_KIND.get(error.kind, status.HTTP_400_BAD_REQUEST),
        detail=error.to_dict(),
    )
