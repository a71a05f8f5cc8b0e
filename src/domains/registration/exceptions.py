# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions for registration operations.

This module defines the exception hierarchy for the registration domain:
- RegistrationServiceError: Base exception for registration errors
- SectionFullError, RegistrationClosedError, CreditLimitExceededError,
  SubjectDuplicateError: Capacity & credit guard rejections
- InvalidTransitionError, RegistrationForbiddenError: State machine rejections
"""

from src.core.errors import RegistrarError
from src.models.common import ErrorKind


class RegistrationServiceError(RegistrarError):
    """Base exception for registration service errors."""

    kind = ErrorKind.INVALID_REQUEST


class RegistrationNotFoundError(RegistrationServiceError):
    """Raised when registration is not found."""

    kind = ErrorKind.NOT_FOUND


class ReferenceNotFoundError(RegistrationServiceError):
    """Raised when the term, section or student of a request does not exist."""

    kind = ErrorKind.NOT_FOUND


class SectionFullError(RegistrationServiceError):
    """Raised when a section is inactive or has no free seat."""

    kind = ErrorKind.SECTION_FULL


class RegistrationClosedError(RegistrationServiceError):
    """Raised when acting outside the term's registration window."""

    kind = ErrorKind.REGISTRATION_CLOSED


class CreditLimitExceededError(RegistrationServiceError):
    """Raised when a registration would exceed the term's max credits."""

    kind = ErrorKind.CREDIT_LIMIT_EXCEEDED


class SubjectDuplicateError(RegistrationServiceError):
    """Raised when the student already holds an active registration for the subject."""

    kind = ErrorKind.SUBJECT_DUPLICATE


class InvalidTransitionError(RegistrationServiceError):
    """Raised when a status transition is not allowed from the current state."""

    kind = ErrorKind.INVALID_TRANSITION


class RegistrationForbiddenError(RegistrationServiceError):
    """Raised when the actor may not trigger the operation."""

    kind = ErrorKind.FORBIDDEN


class InvalidSwitchError(RegistrationServiceError):
    """Raised when a switch targets the same section or another subject."""

    pass
