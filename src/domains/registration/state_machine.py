# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration lifecycle rules.

States: pending (initial), approved, rejected, dropped, completed,
cancelled. The last four are terminal.

    pending  -> approved   section teacher or admin
    pending  -> rejected   admin (a teacher may only request it)
    approved -> dropped    owning student while the window is open, or admin
    approved -> completed  term-close processing (admin/system)
    active   -> cancelled  system, when the section is deactivated
    active   -> dropped    switch to another section of the same subject

The teacher rejection request is a sub-state of pending tracked by
Registration.rejection_requested, not a status of its own.

The functions here are pure: they read the registration, its section and
term and raise when the actor or the current state does not allow the
operation. The service applies the change and the counter side effects.
"""

from datetime import datetime

from src.core.config.settings import RegistrationSettings
from src.domains.registration.exceptions import (
    InvalidTransitionError,
    RegistrationClosedError,
    RegistrationForbiddenError,
)
from src.infrastructure.database.models import Registration, Section, Term
from src.models.common import Actor
from src.models.registration import ACTIVE_STATUSES, RegistrationStatus
from src.utils.datetime import ensure_utc, utc_now

TRANSITIONS: dict[RegistrationStatus, frozenset[RegistrationStatus]] = {
    RegistrationStatus.PENDING: frozenset(
        {
            RegistrationStatus.APPROVED,
            RegistrationStatus.REJECTED,
            RegistrationStatus.CANCELLED,
        }
    ),
    RegistrationStatus.APPROVED: frozenset(
        {
            RegistrationStatus.DROPPED,
            RegistrationStatus.COMPLETED,
            RegistrationStatus.CANCELLED,
        }
    ),
    RegistrationStatus.REJECTED: frozenset(),
    RegistrationStatus.DROPPED: frozenset(),
    RegistrationStatus.COMPLETED: frozenset(),
    RegistrationStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)


def is_terminal(status: RegistrationStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(
    current: RegistrationStatus,
    target: RegistrationStatus,
    via_switch: bool = False,
) -> bool:
    """Check whether current -> target is allowed.

    A switch may drop any active registration, pending ones included.
    """
    if via_switch and target == RegistrationStatus.DROPPED:
        return current in ACTIVE_STATUSES
    return target in TRANSITIONS[current]


def ensure_transition(
    registration: Registration,
    target: RegistrationStatus,
    via_switch: bool = False,
) -> None:
    """Raise if the registration cannot move to target.

    Raises:
        InvalidTransitionError: If the transition is not allowed.
    """
    current = registration.state
    if not can_transition(current, target, via_switch):
        raise InvalidTransitionError(
            f"Cannot move registration from {current.value} to {target.value}",
            {
                "registration_id": registration.id,
                "status": current.value,
                "target": target.value,
            },
        )


def _is_section_teacher(actor: Actor, section: Section) -> bool:
    return actor.is_teacher and section.teacher_id is not None and section.teacher_id == actor.id


def authorize_approve(
    actor: Actor,
    registration: Registration,
    section: Section,
    term: Term,
    settings: RegistrationSettings,
    now: datetime | None = None,
) -> None:
    """Check who may approve a pending registration.

    Admins always may. The section's teacher may once the registration
    window has closed (configurable) and only while no rejection request
    is outstanding.

    Raises:
        InvalidTransitionError: If the registration is not pending or has
            an outstanding rejection request the teacher raised.
        RegistrationForbiddenError: If the actor may not approve.
    """
    ensure_transition(registration, RegistrationStatus.APPROVED)
    if actor.is_admin:
        return
    if not _is_section_teacher(actor, section):
        raise RegistrationForbiddenError("Only the section's teacher or an admin may approve")
    if registration.rejection_requested:
        raise InvalidTransitionError(
            "Registration has an outstanding rejection request awaiting admin decision",
            {"registration_id": registration.id},
        )
    if settings.teacher_approval_requires_closed_window:
        now = ensure_utc(now) if now is not None else utc_now()
        if now <= ensure_utc(term.registration_end):
            raise RegistrationForbiddenError(
                "Teachers may approve registrations only after the registration window closes",
                {"registration_end": ensure_utc(term.registration_end).isoformat()},
            )


def authorize_reject(actor: Actor, registration: Registration) -> None:
    """Only admins finalize a rejection.

    Raises:
        RegistrationForbiddenError: If the actor is not an admin.
        InvalidTransitionError: If the registration is not pending.
    """
    if not actor.is_admin:
        raise RegistrationForbiddenError(
            "Only admins may reject; teachers request a rejection instead"
        )
    ensure_transition(registration, RegistrationStatus.REJECTED)


def authorize_rejection_request(
    actor: Actor,
    registration: Registration,
    section: Section,
) -> None:
    """Only the section's teacher may request rejection of a pending row.

    Raises:
        RegistrationForbiddenError: If the actor is not the section's teacher.
        InvalidTransitionError: If the registration is not pending.
    """
    if not _is_section_teacher(actor, section):
        raise RegistrationForbiddenError("Only the section's teacher may request a rejection")
    if registration.state != RegistrationStatus.PENDING:
        raise InvalidTransitionError(
            "Rejection can only be requested for pending registrations",
            {"registration_id": registration.id, "status": registration.status},
        )


def authorize_dismiss_rejection_request(actor: Actor, registration: Registration) -> None:
    """Only admins clear an outstanding rejection request.

    Raises:
        RegistrationForbiddenError: If the actor is not an admin.
        InvalidTransitionError: If there is no outstanding request.
    """
    if not actor.is_admin:
        raise RegistrationForbiddenError("Only admins may dismiss a rejection request")
    if registration.state != RegistrationStatus.PENDING or not registration.rejection_requested:
        raise InvalidTransitionError(
            "Registration has no outstanding rejection request",
            {"registration_id": registration.id},
        )


def authorize_drop(
    actor: Actor,
    registration: Registration,
    term: Term,
    now: datetime | None = None,
) -> None:
    """Check who may drop an approved registration.

    Admins may at any time; the owning student only while the term's
    registration window is open.

    Raises:
        RegistrationForbiddenError: If the actor is neither admin nor owner.
        InvalidTransitionError: If the registration is not approved.
        RegistrationClosedError: If the student acts outside the window.
    """
    if not actor.is_admin and not (actor.is_student and actor.id == registration.student_id):
        raise RegistrationForbiddenError("Only the registered student or an admin may drop")
    ensure_transition(registration, RegistrationStatus.DROPPED)
    if not actor.is_admin and not term.is_registration_open(now):
        raise RegistrationClosedError(
            f"Registration window for term {term.code} is closed; drops need an admin",
            {"term_id": term.id},
        )


def authorize_complete(actor: Actor, registration: Registration) -> None:
    """Completion is term-close processing, run by an admin or the system.

    Raises:
        RegistrationForbiddenError: If the actor is not an admin.
        InvalidTransitionError: If the registration is not approved.
    """
    if not actor.is_admin:
        raise RegistrationForbiddenError("Only admins may complete registrations")
    ensure_transition(registration, RegistrationStatus.COMPLETED)


def authorize_switch(actor: Actor, registration: Registration) -> None:
    """The owning student or an admin may switch an active registration.

    Raises:
        RegistrationForbiddenError: If the actor is neither admin nor owner.
        InvalidTransitionError: If the registration is not active.
    """
    if not actor.is_admin and not (actor.is_student and actor.id == registration.student_id):
        raise RegistrationForbiddenError("Only the registered student or an admin may switch")
    ensure_transition(registration, RegistrationStatus.DROPPED, via_switch=True)
