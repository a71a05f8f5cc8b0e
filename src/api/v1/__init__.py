# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    terms: Term management and credit report endpoints.
    sections: Section management, schedule expansion and lifecycle sync.
    registrations: Registration lifecycle endpoints.
"""

from fastapi import APIRouter

from src.api.v1 import registrations, sections, terms

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(terms.router, prefix="/terms", tags=["Terms"])
router.include_router(sections.router, prefix="/sections", tags=["Sections"])
router.include_router(registrations.router, prefix="/registrations", tags=["Registrations"])

__all__ = ["router"]
