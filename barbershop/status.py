"""Appointment status values and the rules for moving between them."""

from datetime import datetime
from enum import Enum

from barbershop.errors import InvalidRequest, InvalidStatusTransition


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CANCELED = "canceled"
    FINALIZED = "finalized"


LEGACY_SYNONYMS = {
    "agendado": AppointmentStatus.SCHEDULED,
    "cancelado": AppointmentStatus.CANCELED,
    "cancelled": AppointmentStatus.CANCELED,
    "finalizado": AppointmentStatus.FINALIZED,
    "completed": AppointmentStatus.FINALIZED,
}

ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CANCELED,
        AppointmentStatus.FINALIZED,
    },
    AppointmentStatus.CANCELED: {AppointmentStatus.CANCELED},
    AppointmentStatus.FINALIZED: {AppointmentStatus.FINALIZED},
}

REMOVABLE_STATUSES = {AppointmentStatus.CANCELED, AppointmentStatus.FINALIZED}


def parse_status(value: str) -> AppointmentStatus:
    normalized = (value or "").strip().lower()
    if normalized in LEGACY_SYNONYMS:
        return LEGACY_SYNONYMS[normalized]
    try:
        return AppointmentStatus(normalized)
    except ValueError:
        raise InvalidRequest(f"Unknown appointment status: {value!r}") from None


def transition(current: AppointmentStatus, target: AppointmentStatus) -> AppointmentStatus:
    """Return ``target`` if ``current`` may move to it.

    Canceled and finalized are terminal; re-applying the same status is
    always allowed, which makes cancellation idempotent.
    """
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(
            f"Cannot change appointment status from {current.value} to {target.value}"
        )
    return target


def effective_status(stored: str, scheduled_at: datetime, now: datetime) -> AppointmentStatus:
    """Status shown to callers.

    A scheduled appointment whose start has passed reads as finalized. The
    stored value is never rewritten.
    """
    status = parse_status(stored)
    if status is AppointmentStatus.SCHEDULED and scheduled_at <= now:
        return AppointmentStatus.FINALIZED
    return status
