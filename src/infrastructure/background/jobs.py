# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduled job bodies.

Each job opens its own database session; it runs outside any request.
"""

import logging
from typing import Any

from src.domains.section.service import SectionService
from src.infrastructure.database.connection import get_session

logger = logging.getLogger(__name__)


async def execute_lifecycle_sync() -> dict[str, Any]:
    """Run the section lifecycle sync for the current term.

    Returns:
        Execution statistics.
    """
    logger.info("Section lifecycle sync job triggered")

    async with get_session() as session:
        result = await SectionService(session).sync_section_lifecycle()

    logger.info(
        "Section lifecycle sync job completed: term=%s changed=%d cancelled=%d",
        result.term_id,
        result.changed_count,
        result.cancelled_registrations,
    )

    return {
        "term_id": result.term_id,
        "changed_count": result.changed_count,
        "cancelled_registrations": result.cancelled_registrations,
    }
