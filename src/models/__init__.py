# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request/response models and shared enumerations."""

from src.models.common import (
    PERIOD_TIMES,
    Actor,
    ActorRole,
    ErrorKind,
    Weekday,
)
from src.models.registration import ACTIVE_STATUSES, RegistrationStatus

__all__ = [
    "ACTIVE_STATUSES",
    "PERIOD_TIMES",
    "Actor",
    "ActorRole",
    "ErrorKind",
    "RegistrationStatus",
    "Weekday",
]
