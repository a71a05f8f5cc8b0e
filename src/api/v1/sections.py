# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Section management API endpoints.

This module provides endpoints for sections and their weekly schedules:
- POST / - Create a section
- GET / - List sections with filtering
- GET /{section_id} - Get section details
- PUT /{section_id} - Edit section
- GET /{section_id}/schedule - Expand weekly slots into dated occurrences
- POST /sync-lifecycle - Deactivate sections without a teacher

Create, edit and sync require admin access.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_actor, require_admin
from src.api.errors import to_http_exception
from src.core.errors import RegistrarError
from src.domains.section.service import SectionService
from src.models.common import Actor
from src.models.section import (
    ExpandedScheduleResponse,
    LifecycleSyncResponse,
    SectionCreateRequest,
    SectionListResponse,
    SectionResponse,
    SectionUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> SectionService:
    """Get section service instance."""
    return SectionService(db=db)


@router.post(
    "",
    response_model=SectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create section",
    description="Create a section with its weekly slots. Classroom and teacher conflicts are rejected.",
)
async def create_section(
    data: SectionCreateRequest,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> SectionResponse:
    """Create a new section.

    Args:
        data: Section creation request.
        actor: Authenticated admin.
        db: Database session.

    Returns:
        Created section.

    Raises:
        HTTPException: If a reference is missing, the code exists or the
            schedule conflicts.
    """
    logger.info(
        "Creating section: %s for subject %s by %s",
        data.class_code,
        data.subject_id,
        actor.id,
    )

    try:
        return await _get_service(db).create_section(data)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.post(
    "/sync-lifecycle",
    response_model=LifecycleSyncResponse,
    summary="Run lifecycle sync",
    description="Deactivate active sections without a teacher in the term (default: current term).",
)
async def sync_lifecycle(
    term_id: Annotated[UUID | None, Query(description="Term to sweep")] = None,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> LifecycleSyncResponse:
    """Run the section lifecycle sync on demand."""
    try:
        result = await _get_service(db).sync_section_lifecycle(term_id)
    except RegistrarError as e:
        raise to_http_exception(e) from e

    return LifecycleSyncResponse(
        term_id=result.term_id,
        changed_count=result.changed_count,
        cancelled_registrations=result.cancelled_registrations,
    )


@router.get(
    "",
    response_model=SectionListResponse,
    summary="List sections",
)
async def list_sections(
    term_id: Annotated[UUID | None, Query(description="Filter by term")] = None,
    subject_id: Annotated[UUID | None, Query(description="Filter by subject")] = None,
    teacher_id: Annotated[UUID | None, Query(description="Filter by teacher")] = None,
    is_active: Annotated[bool | None, Query(description="Filter by active status")] = None,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum results")] = 50,
    offset: Annotated[int, Query(ge=0, description="Pagination offset")] = 0,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
) -> SectionListResponse:
    """List sections with filtering."""
    return await _get_service(db).list_sections(
        term_id=term_id,
        subject_id=subject_id,
        teacher_id=teacher_id,
        is_active=is_active,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{section_id}",
    response_model=SectionResponse,
    summary="Get section",
)
async def get_section(
    section_id: UUID,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
) -> SectionResponse:
    """Get section details."""
    try:
        return await _get_service(db).get_section(section_id)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.put(
    "/{section_id}",
    response_model=SectionResponse,
    summary="Edit section",
    description=(
        "Edit teacher, capacity, slots or active flag. A section that becomes "
        "inactive has its active registrations cancelled."
    ),
)
async def update_section(
    section_id: UUID,
    data: SectionUpdateRequest,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> SectionResponse:
    """Edit a section."""
    logger.info("Updating section %s by %s", section_id, actor.id)

    try:
        return await _get_service(db).update_section(section_id, data)
    except RegistrarError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{section_id}/schedule",
    response_model=ExpandedScheduleResponse,
    summary="Expand schedule",
    description="Every dated occurrence of the section's weekly slots within the term.",
)
async def get_schedule(
    section_id: UUID,
    term_id: Annotated[UUID | None, Query(description="Term (defaults to the section's term)")] = None,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
) -> ExpandedScheduleResponse:
    """Expand a section's weekly slots into dated occurrences."""
    try:
        return await _get_service(db).expand_schedule(section_id, term_id)
    except RegistrarError as e:
        raise to_http_exception(e) from e
