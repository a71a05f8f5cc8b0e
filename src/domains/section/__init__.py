# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Section domain package.

This package provides section management functionality including:
- Section create/edit with schedule conflict validation
- Calendar expansion of weekly slots
- Section lifecycle sync
"""

from src.domains.section.service import (
    InvalidSectionError,
    SectionCodeExistsError,
    SectionNotFoundError,
    SectionReferenceNotFoundError,
    SectionService,
    SectionServiceError,
    SyncResult,
)

__all__ = [
    "SectionService",
    "SectionServiceError",
    "SectionNotFoundError",
    "SectionReferenceNotFoundError",
    "SectionCodeExistsError",
    "InvalidSectionError",
    "SyncResult",
]
