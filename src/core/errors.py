# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base exception for engine errors.

Every error raised by the domain services derives from RegistrarError and
carries an ErrorKind. Service modules define their own hierarchies on top
of it; the API layer maps kinds to HTTP statuses.
"""

from typing import Any, ClassVar

from src.models.common import ErrorKind


class RegistrarError(Exception):
    """Base exception for all engine errors.

    Attributes:
        kind: Error kind returned to callers.
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an API error body."""
        return {"kind": self.kind.value, "message": self.message, **self.details}
