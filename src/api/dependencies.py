# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Resolve the calling actor from gateway headers
- Get settings

Authentication happens upstream. The gateway forwards the authenticated
user as X-Actor-Id and X-Actor-Role headers.

Example:
    @router.get("/registrations")
    async def list_registrations(
        db: AsyncSession = Depends(get_db),
        actor: Actor = Depends(require_actor),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.infrastructure.database.connection import get_session
from src.models.common import Actor, ActorRole
from src.utils.logging import bind_context

logger = logging.getLogger(__name__)

_HEADER_ROLES = {ActorRole.STUDENT, ActorRole.TEACHER, ActorRole.ADMIN}


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession committed on success and rolled back on error.
    """
    async with get_session() as session:
        yield session


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()


def require_actor(
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> Actor:
    """Require an authenticated actor.

    Args:
        x_actor_id: User identifier forwarded by the gateway.
        x_actor_role: User role forwarded by the gateway.

    Returns:
        Actor.

    Raises:
        HTTPException: If the headers are missing or malformed.
    """
    if not x_actor_id or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        actor_id = UUID(x_actor_id)
        role = ActorRole(x_actor_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor headers",
        )

    if role not in _HEADER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor role",
        )

    bind_context(actor_id=str(actor_id), actor_role=role.value)
    return Actor(id=str(actor_id), role=role)


def require_admin(actor: Actor = Depends(require_actor)) -> Actor:
    """Require admin actor.

    Args:
        actor: Authenticated actor.

    Returns:
        Actor.

    Raises:
        HTTPException: If the actor is not an admin.
    """
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor
