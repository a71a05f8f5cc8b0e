# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration domain package.

This package provides the registration lifecycle:
- Capacity & credit guard with atomic seat and credit claims
- Status state machine and actor authorization
- Registration service (register, switch, approve, reject, drop, ...)
"""

from src.domains.registration.exceptions import (
    CreditLimitExceededError,
    InvalidSwitchError,
    InvalidTransitionError,
    ReferenceNotFoundError,
    RegistrationClosedError,
    RegistrationForbiddenError,
    RegistrationNotFoundError,
    RegistrationServiceError,
    SectionFullError,
    SubjectDuplicateError,
)
from src.domains.registration.service import RegistrationService

__all__ = [
    "RegistrationService",
    "RegistrationServiceError",
    "RegistrationNotFoundError",
    "ReferenceNotFoundError",
    "SectionFullError",
    "RegistrationClosedError",
    "CreditLimitExceededError",
    "SubjectDuplicateError",
    "InvalidTransitionError",
    "RegistrationForbiddenError",
    "InvalidSwitchError",
]
