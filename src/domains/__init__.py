# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the Registrar engine.

This package contains domain services that encapsulate business logic.

Domains:
    calendar: Weekly slot expansion to term dates.
    scheduling: Classroom, teacher and student conflict detection.
    term: Term management and current term lookup.
    section: Section management and lifecycle sync.
    registration: Registration lifecycle, capacity and credit guard.
"""
