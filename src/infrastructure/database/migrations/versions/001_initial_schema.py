# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial Registrar schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-06-02

Creates reference tables (users, subjects, classrooms), terms, sections,
schedule slots, registrations and per-student term loads.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_STATUS_SQL = "status IN ('pending', 'approved')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    """Create Registrar tables."""
    # ==========================================================================
    # 1. Reference data
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("credits", sa.Integer, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("code", name="uq_subjects_code"),
    )

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("capacity", sa.Integer, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("code", name="uq_classrooms_code"),
    )

    # ==========================================================================
    # 2. terms
    # ==========================================================================
    op.create_table(
        "terms",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("registration_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("registration_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("withdrawal_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("min_credits_per_student", sa.Integer, nullable=False, server_default="8"),
        sa.Column("max_credits_per_student", sa.Integer, nullable=False, server_default="16"),
        sa.Column("is_current", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("code", name="uq_terms_code"),
        sa.CheckConstraint("end_date > start_date", name="ck_terms_date_range"),
        sa.CheckConstraint(
            "registration_end > registration_start",
            name="ck_terms_registration_window",
        ),
        sa.CheckConstraint(
            "min_credits_per_student <= max_credits_per_student",
            name="ck_terms_credit_range",
        ),
    )
    op.create_index("ix_terms_is_current", "terms", ["is_current"])
    op.create_index(
        "uq_terms_single_current",
        "terms",
        ["is_current"],
        unique=True,
        postgresql_where=sa.text("is_current"),
        sqlite_where=sa.text("is_current = 1"),
    )

    # ==========================================================================
    # 3. sections and schedule_slots
    # ==========================================================================
    op.create_table(
        "sections",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "term_id",
            sa.String(36),
            sa.ForeignKey("terms.id", ondelete="RESTRICT", name="fk_sections_term_id_terms"),
            nullable=False,
        ),
        sa.Column(
            "subject_id",
            sa.String(36),
            sa.ForeignKey(
                "subjects.id", ondelete="RESTRICT", name="fk_sections_subject_id_subjects"
            ),
            nullable=False,
        ),
        sa.Column("class_code", sa.String(20), nullable=False),
        sa.Column(
            "teacher_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="SET NULL", name="fk_sections_teacher_id_users"),
            nullable=True,
        ),
        sa.Column("max_students", sa.Integer, nullable=False),
        sa.Column("current_students", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("status_note", sa.Text, nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        *_timestamps(),
        sa.UniqueConstraint(
            "term_id", "subject_id", "class_code", name="uq_sections_term_subject_code"
        ),
        sa.CheckConstraint("current_students >= 0", name="ck_sections_seats_non_negative"),
        sa.CheckConstraint(
            "current_students <= max_students", name="ck_sections_seats_within_capacity"
        ),
        sa.CheckConstraint("max_students > 0", name="ck_sections_capacity_positive"),
    )
    op.create_index("ix_sections_term_id", "sections", ["term_id"])
    op.create_index("ix_sections_subject_id", "sections", ["subject_id"])
    op.create_index("ix_sections_teacher_id", "sections", ["teacher_id"])

    op.create_table(
        "schedule_slots",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "section_id",
            sa.String(36),
            sa.ForeignKey(
                "sections.id", ondelete="CASCADE", name="fk_schedule_slots_section_id_sections"
            ),
            nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("weekday", sa.Integer, nullable=False),
        sa.Column("period", sa.Integer, nullable=False),
        sa.Column(
            "classroom_id",
            sa.String(36),
            sa.ForeignKey(
                "classrooms.id",
                ondelete="RESTRICT",
                name="fk_schedule_slots_classroom_id_classrooms",
            ),
            nullable=False,
        ),
        sa.CheckConstraint("weekday BETWEEN 2 AND 8", name="ck_schedule_slots_weekday_range"),
        sa.CheckConstraint("period BETWEEN 1 AND 4", name="ck_schedule_slots_period_range"),
    )
    op.create_index("ix_schedule_slots_section_id", "schedule_slots", ["section_id"])
    op.create_index("ix_schedule_slots_classroom_id", "schedule_slots", ["classroom_id"])

    # ==========================================================================
    # 4. registrations and student_term_loads
    # ==========================================================================
    op.create_table(
        "registrations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "student_id",
            sa.String(36),
            sa.ForeignKey(
                "users.id", ondelete="RESTRICT", name="fk_registrations_student_id_users"
            ),
            nullable=False,
        ),
        sa.Column(
            "section_id",
            sa.String(36),
            sa.ForeignKey(
                "sections.id", ondelete="RESTRICT", name="fk_registrations_section_id_sections"
            ),
            nullable=False,
        ),
        sa.Column(
            "term_id",
            sa.String(36),
            sa.ForeignKey("terms.id", ondelete="RESTRICT", name="fk_registrations_term_id_terms"),
            nullable=False,
        ),
        sa.Column(
            "subject_id",
            sa.String(36),
            sa.ForeignKey(
                "subjects.id", ondelete="RESTRICT", name="fk_registrations_subject_id_subjects"
            ),
            nullable=False,
        ),
        sa.Column("credits", sa.Integer, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("approved_by", sa.String(36), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(36), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("dropped_by", sa.String(36), nullable=True),
        sa.Column("dropped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text, nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "rejection_requested", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("rejection_request_reason", sa.Text, nullable=True),
        sa.Column("rejection_requested_by", sa.String(36), nullable=True),
        sa.Column("rejection_requested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "has_schedule_conflict", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("conflict_slots", sa.JSON, nullable=False),
        sa.Column(
            "replaces_registration_id",
            sa.String(36),
            sa.ForeignKey(
                "registrations.id",
                ondelete="SET NULL",
                name="fk_registrations_replaces_registration_id_registrations",
            ),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_registrations_section_id", "registrations", ["section_id"])
    op.create_index("ix_registrations_term_id", "registrations", ["term_id"])
    op.create_index("ix_registrations_status", "registrations", ["status"])
    op.create_index(
        "ix_registrations_student_term", "registrations", ["student_id", "term_id"]
    )
    op.create_index(
        "uq_registrations_active_subject",
        "registrations",
        ["student_id", "term_id", "subject_id"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_STATUS_SQL),
        sqlite_where=sa.text(ACTIVE_STATUS_SQL),
    )

    op.create_table(
        "student_term_loads",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "student_id",
            sa.String(36),
            sa.ForeignKey(
                "users.id", ondelete="RESTRICT", name="fk_student_term_loads_student_id_users"
            ),
            nullable=False,
        ),
        sa.Column(
            "term_id",
            sa.String(36),
            sa.ForeignKey(
                "terms.id", ondelete="RESTRICT", name="fk_student_term_loads_term_id_terms"
            ),
            nullable=False,
        ),
        sa.Column("credits", sa.Integer, nullable=False, server_default="0"),
        sa.Column("dropped_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("dropped_credits", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint(
            "student_id", "term_id", name="uq_student_term_loads_student_term"
        ),
        sa.CheckConstraint("credits >= 0", name="ck_student_term_loads_credits_non_negative"),
    )
    op.create_index("ix_student_term_loads_term_id", "student_term_loads", ["term_id"])


def downgrade() -> None:
    """Drop Registrar tables."""
    op.drop_table("student_term_loads")
    op.drop_table("registrations")
    op.drop_table("schedule_slots")
    op.drop_table("sections")
    op.drop_table("terms")
    op.drop_table("classrooms")
    op.drop_table("subjects")
    op.drop_table("users")
