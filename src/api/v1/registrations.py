# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration API endpoints.

This module provides endpoints for the registration lifecycle:
- POST / - Register a student in a section
- GET / - List registrations visible to the caller
- GET /{registration_id} - Get registration details
- POST /{registration_id}/switch - Move to another section of the subject
- POST /switch - Switch without a prior registration id
- PUT /{registration_id}/approve - Approve (section teacher or admin)
- PUT /{registration_id}/reject - Reject (admin)
- PUT /{registration_id}/rejection-request - Teacher asks admin to reject
- DELETE /{registration_id}/rejection-request - Admin dismisses the request
- PUT /{registration_id}/drop - Drop an approved registration
- PUT /{registration_id}/complete - Mark completed (admin)

Students act on their own registrations; admins may act for any student.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_app_settings, get_db, require_actor
from src.api.errors import to_http_exception
from src.core.config import Settings
from src.core.errors import RegistrarError
from src.domains.registration.service import RegistrationService
from src.models.common import Actor
from src.models.registration import (
    RegisterRequest,
    RegistrationListResponse,
    RegistrationResponse,
    RegistrationStatus,
    RejectionRequestInput,
    RejectRequest,
    SwitchRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession, settings: Settings) -> RegistrationService:
    """Get registration service instance.

    Args:
        db: Database session.
        settings: Application settings.

    Returns:
        Configured RegistrationService instance.
    """
    return RegistrationService(db=db, settings=settings.registration)


@router.post(
    "",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Register a student in a section. The registration starts pending.",
)
async def register(
    data: RegisterRequest,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Register a student in a section.

    Args:
        data: Registration request.
        actor: Authenticated actor.
        db: Database session.
        settings: Application settings.

    Returns:
        Created registration.

    Raises:
        HTTPException: If the section is full, the window is closed, the
            credit limit would be exceeded or the subject is a duplicate.
    """
    logger.info(
        "Registering student %s in section %s by %s",
        data.student_id or actor.id,
        data.section_id,
        actor.id,
    )

    try:
        return await _get_service(db, settings).register(
            student_id=data.student_id,
            section_id=data.section_id,
            term_id=data.term_id,
            actor=actor,
        )
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.get(
    "",
    response_model=RegistrationListResponse,
    summary="List registrations",
    description="Students see their own registrations, teachers those of their sections.",
)
async def list_registrations(
    term_id: Annotated[UUID | None, Query(description="Filter by term")] = None,
    section_id: Annotated[UUID | None, Query(description="Filter by section")] = None,
    student_id: Annotated[UUID | None, Query(description="Filter by student")] = None,
    status_filter: Annotated[
        RegistrationStatus | None,
        Query(alias="status", description="Filter by status"),
    ] = None,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum results")] = 50,
    offset: Annotated[int, Query(ge=0, description="Pagination offset")] = 0,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationListResponse:
    """List registrations visible to the caller."""
    return await _get_service(db, settings).list_registrations(
        actor=actor,
        term_id=term_id,
        section_id=section_id,
        student_id=student_id,
        status=status_filter,
        limit=limit,
        offset=offset,
    )


@router.post(
    "/switch",
    response_model=RegistrationResponse,
    summary="Switch section",
    description=(
        "Switch to another section of a subject. Without an active "
        "registration for the subject this is a plain registration."
    ),
)
async def switch_without_id(
    data: SwitchRequest,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Switch without a prior registration id."""
    try:
        return await _get_service(db, settings).switch_registration(
            registration_id=None,
            new_section_id=data.new_section_id,
            actor=actor,
            student_id=data.student_id,
        )
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{registration_id}",
    response_model=RegistrationResponse,
    summary="Get registration",
)
async def get_registration(
    registration_id: UUID,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Get registration details."""
    try:
        return await _get_service(db, settings).get_registration(registration_id, actor)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.post(
    "/{registration_id}/switch",
    response_model=RegistrationResponse,
    summary="Switch registration",
    description="Drop this registration and register in another section of the same subject, atomically.",
)
async def switch_registration(
    registration_id: UUID,
    data: SwitchRequest,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Switch a registration to another section."""
    logger.info(
        "Switching registration %s to section %s by %s",
        registration_id,
        data.new_section_id,
        actor.id,
    )

    try:
        return await _get_service(db, settings).switch_registration(
            registration_id=registration_id,
            new_section_id=data.new_section_id,
            actor=actor,
        )
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.put(
    "/{registration_id}/approve",
    response_model=RegistrationResponse,
    summary="Approve registration",
)
async def approve(
    registration_id: UUID,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Approve a pending registration."""
    try:
        return await _get_service(db, settings).approve(registration_id, actor)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.put(
    "/{registration_id}/reject",
    response_model=RegistrationResponse,
    summary="Reject registration",
)
async def reject(
    registration_id: UUID,
    data: RejectRequest,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Reject a pending registration."""
    try:
        return await _get_service(db, settings).reject(registration_id, actor, data.reason)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.put(
    "/{registration_id}/rejection-request",
    response_model=RegistrationResponse,
    summary="Request rejection",
    description="The section teacher asks an admin to reject a pending registration.",
)
async def request_rejection(
    registration_id: UUID,
    data: RejectionRequestInput,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Record a teacher's rejection request."""
    try:
        return await _get_service(db, settings).request_rejection(
            registration_id, actor, data.reason
        )
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.delete(
    "/{registration_id}/rejection-request",
    response_model=RegistrationResponse,
    summary="Dismiss rejection request",
)
async def dismiss_rejection_request(
    registration_id: UUID,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Clear an outstanding rejection request."""
    try:
        return await _get_service(db, settings).dismiss_rejection_request(registration_id, actor)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.put(
    "/{registration_id}/drop",
    response_model=RegistrationResponse,
    summary="Drop registration",
)
async def drop(
    registration_id: UUID,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Drop an approved registration."""
    try:
        return await _get_service(db, settings).drop(registration_id, actor)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.put(
    "/{registration_id}/complete",
    response_model=RegistrationResponse,
    summary="Complete registration",
)
async def complete(
    registration_id: UUID,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationResponse:
    """Mark an approved registration completed."""
    try:
        return await _get_service(db, settings).complete(registration_id, actor)
    except RegistrarError as e:
        raise to_http_exception(e) from e
