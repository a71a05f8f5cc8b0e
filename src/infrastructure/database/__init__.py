# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure.

This package provides the SQLAlchemy async engine and session management
and the ORM models for terms, sections, schedule slots and registrations.

Example:
    from src.infrastructure.database import get_session

    async with get_session() as session:
        result = await session.execute(select(Section))
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    configure_sqlite_engine,
    create_schema,
    create_sessionmaker,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)

__all__ = [
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "configure_sqlite_engine",
    "create_schema",
    "create_sessionmaker",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
]
