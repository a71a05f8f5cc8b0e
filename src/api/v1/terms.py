# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Term management API endpoints.

This module provides endpoints for academic terms:
- POST / - Create a term
- GET / - List terms
- GET /current - Get the current term
- GET /{term_id} - Get term details
- PUT /{term_id} - Update term
- POST /{term_id}/activate - Make the term current
- GET /{term_id}/credit-report - Per-student credit totals

Writes and the credit report require admin access.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_app_settings, get_db, require_actor, require_admin
from src.api.errors import to_http_exception
from src.core.config import Settings
from src.core.errors import RegistrarError
from src.domains.registration.service import RegistrationService
from src.domains.term.service import TermService
from src.models.common import Actor
from src.models.term import (
    CreditReportResponse,
    TermCreateRequest,
    TermListResponse,
    TermResponse,
    TermUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession, settings: Settings) -> TermService:
    """Get term service instance.

    Args:
        db: Database session.
        settings: Application settings.

    Returns:
        Configured TermService instance.
    """
    return TermService(db=db, settings=settings.registration)


@router.post(
    "",
    response_model=TermResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create term",
)
async def create_term(
    data: TermCreateRequest,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TermResponse:
    """Create a new term."""
    logger.info("Creating term: %s by %s", data.code, actor.id)

    try:
        return await _get_service(db, settings).create_term(data)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.get(
    "",
    response_model=TermListResponse,
    summary="List terms",
)
async def list_terms(
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TermListResponse:
    """List all terms, newest first."""
    return await _get_service(db, settings).list_terms()


@router.get(
    "/current",
    response_model=TermResponse,
    summary="Get current term",
)
async def get_current_term(
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TermResponse:
    """Get the term flagged as current.

    Raises:
        HTTPException: If no term is current.
    """
    term = await _get_service(db, settings).get_current_term()
    if term is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"kind": "NOT_FOUND", "message": "No current term"},
        )
    return term


@router.get(
    "/{term_id}",
    response_model=TermResponse,
    summary="Get term",
)
async def get_term(
    term_id: UUID,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TermResponse:
    """Get term details."""
    try:
        return await _get_service(db, settings).get_term(term_id)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.put(
    "/{term_id}",
    response_model=TermResponse,
    summary="Update term",
)
async def update_term(
    term_id: UUID,
    data: TermUpdateRequest,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TermResponse:
    """Update term dates or credit limits."""
    logger.info("Updating term %s by %s", term_id, actor.id)

    try:
        return await _get_service(db, settings).update_term(term_id, data)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.post(
    "/{term_id}/activate",
    response_model=TermResponse,
    summary="Activate term",
    description="Make this term the current term. The previous current term is unset.",
)
async def activate_term(
    term_id: UUID,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TermResponse:
    """Make a term current."""
    logger.info("Activating term %s by %s", term_id, actor.id)

    try:
        return await _get_service(db, settings).activate_term(term_id)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{term_id}/credit-report",
    response_model=CreditReportResponse,
    summary="Credit report",
    description="Active and completed credits per student, with the minimum-credit advisory.",
)
async def credit_report(
    term_id: UUID,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> CreditReportResponse:
    """Build the per-student credit report for a term."""
    service = RegistrationService(db=db, settings=settings.registration)

    try:
        return await service.credit_report(term_id)
    except RegistrarError as e:
        raise to_http_exception(e) from e
