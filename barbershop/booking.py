"""Slot availability and appointment lifecycle.

The business day is a fixed grid of half-hour slots from 09:00 to 18:30.
A barber can hold at most one live (non-canceled) appointment per slot; the
check below rejects the common case early and the partial unique index
``uq_appointments_barber_slot`` rejects whatever slips past it under
concurrent writes.
"""

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from barbershop.errors import (
    Conflict,
    Forbidden,
    InvalidRequest,
    InvalidStatusTransition,
    MissingFields,
    NotFound,
    PastDateTime,
    SlotConflict,
)
from barbershop.models import ROLE_ADMIN, Appointment, Barber, Service, User
from barbershop.schemas import AppointmentCreate, AppointmentUpdate
from barbershop.status import (
    REMOVABLE_STATUSES,
    AppointmentStatus,
    effective_status,
    parse_status,
    transition,
)

logger = logging.getLogger(__name__)

OPENING_TIME = time(9, 0)
LAST_SLOT_TIME = time(18, 30)
SLOT_MINUTES = 30

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def generate_slots() -> list[str]:
    slots = []
    current = datetime.combine(date.min, OPENING_TIME)
    last = datetime.combine(date.min, LAST_SLOT_TIME)
    while current <= last:
        slots.append(current.strftime("%H:%M"))
        current += timedelta(minutes=SLOT_MINUTES)
    return slots


def parse_date(value: Optional[str]) -> date:
    if not value or not DATE_PATTERN.match(value):
        raise InvalidRequest("Invalid date format. Use YYYY-MM-DD")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidRequest("Invalid date format. Use YYYY-MM-DD") from None


def parse_time(value: Optional[str]) -> time:
    if not value or not TIME_PATTERN.match(value):
        raise InvalidRequest("Invalid time format. Use HH:MM")
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        raise InvalidRequest("Invalid time format. Use HH:MM") from None


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def _live(query):
    return query.filter(Appointment.status != AppointmentStatus.CANCELED.value)


def _require_service(db: Session, service_id: int) -> Service:
    service = db.get(Service, service_id)
    if service is None or not service.active:
        raise NotFound("Service not found")
    return service


def _require_barber(db: Session, barber_id: int) -> Barber:
    barber = db.get(Barber, barber_id)
    if barber is None or not barber.active:
        raise NotFound("Barber not found")
    return barber


def _ensure_on_grid(scheduled_at: datetime) -> None:
    if scheduled_at.strftime("%H:%M") not in generate_slots():
        raise InvalidRequest("Time must be one of the available slots")


def _ensure_not_past(scheduled_at: datetime, now: datetime) -> None:
    if scheduled_at < now:
        raise PastDateTime()


def compute_availability(
    db: Session,
    service_id: Optional[int],
    on_date: Optional[str],
    barber_id: Optional[int] = None,
) -> dict:
    if not service_id or not on_date:
        raise InvalidRequest("service_id and date are required")
    day = parse_date(on_date)
    _require_service(db, service_id)

    start, end = _day_bounds(day)
    query = _live(db.query(Appointment.scheduled_at)).filter(
        Appointment.scheduled_at >= start,
        Appointment.scheduled_at < end,
    )
    if barber_id is not None:
        query = query.filter(Appointment.barber_id == barber_id)

    occupied = sorted({row.scheduled_at.strftime("%H:%M") for row in query.all()})
    available = [slot for slot in generate_slots() if slot not in occupied]
    logger.debug(
        "availability service_id=%s date=%s barber_id=%s available=%s occupied=%s",
        service_id,
        on_date,
        barber_id,
        len(available),
        len(occupied),
    )
    return {
        "service_id": service_id,
        "date": on_date,
        "barber_id": barber_id,
        "available": available,
        "occupied": occupied,
        "total_available": len(available),
    }


def find_conflict(
    db: Session,
    barber_id: Optional[int],
    scheduled_at: datetime,
    exclude_id: Optional[int] = None,
) -> Optional[Appointment]:
    if barber_id is None:
        return None
    query = _live(db.query(Appointment)).filter(
        Appointment.barber_id == barber_id,
        Appointment.scheduled_at == scheduled_at,
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)
    return query.first()


def _commit_booking(db: Session, appointment: Appointment) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "Slot rejected by storage constraint barber_id=%s scheduled_at=%s",
            appointment.barber_id,
            appointment.scheduled_at,
        )
        raise SlotConflict() from None
    db.refresh(appointment)


def create_appointment(
    db: Session,
    actor: User,
    payload: AppointmentCreate,
    now: Optional[datetime] = None,
) -> Appointment:
    if not payload.service_id or not payload.date or not payload.time:
        raise MissingFields()

    owner_id = payload.user_id if payload.user_id is not None else actor.id
    if owner_id != actor.id:
        if actor.role != ROLE_ADMIN:
            raise Forbidden("Cannot book on behalf of another user")
        if db.get(User, owner_id) is None:
            raise NotFound("User not found")

    scheduled_at = datetime.combine(parse_date(payload.date), parse_time(payload.time))
    _ensure_not_past(scheduled_at, now or datetime.now())
    _ensure_on_grid(scheduled_at)

    _require_service(db, payload.service_id)
    if payload.barber_id is not None:
        _require_barber(db, payload.barber_id)

    if find_conflict(db, payload.barber_id, scheduled_at) is not None:
        raise SlotConflict()

    appointment = Appointment(
        user_id=owner_id,
        barber_id=payload.barber_id,
        service_id=payload.service_id,
        scheduled_at=scheduled_at,
        status=AppointmentStatus.SCHEDULED.value,
        notes=payload.notes or "",
    )
    db.add(appointment)
    _commit_booking(db, appointment)
    logger.info(
        "Appointment booked id=%s user_id=%s barber_id=%s scheduled_at=%s",
        appointment.id,
        appointment.user_id,
        appointment.barber_id,
        appointment.scheduled_at,
    )
    return appointment


def get_manageable_appointment(db: Session, appointment_id: int, actor: User) -> Appointment:
    appointment = db.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound("Appointment not found")
    if actor.role != ROLE_ADMIN and appointment.user_id != actor.id:
        raise Forbidden()
    return appointment


def _current_status(appointment: Appointment, now: datetime) -> AppointmentStatus:
    return effective_status(appointment.status, appointment.scheduled_at, now)


def set_status(
    db: Session,
    appointment_id: int,
    actor: User,
    status_value: Optional[str],
    now: Optional[datetime] = None,
) -> Appointment:
    if not status_value:
        raise InvalidRequest("Status is required")
    target = parse_status(status_value)
    appointment = get_manageable_appointment(db, appointment_id, actor)
    now = now or datetime.now()

    appointment.status = transition(_current_status(appointment, now), target).value
    _commit_booking(db, appointment)
    logger.info(
        "Appointment status changed id=%s status=%s actor_id=%s",
        appointment.id,
        appointment.status,
        actor.id,
    )
    return appointment


def cancel_appointment(
    db: Session,
    appointment_id: int,
    actor: User,
    now: Optional[datetime] = None,
) -> Appointment:
    return set_status(db, appointment_id, actor, AppointmentStatus.CANCELED.value, now=now)


def update_appointment(
    db: Session,
    appointment_id: int,
    actor: User,
    payload: AppointmentUpdate,
    now: Optional[datetime] = None,
) -> Appointment:
    appointment = get_manageable_appointment(db, appointment_id, actor)
    now = now or datetime.now()
    current = _current_status(appointment, now)

    if payload.service_id is not None:
        _require_service(db, payload.service_id)
        appointment.service_id = payload.service_id

    slot_changed = False
    if payload.barber_id is not None and payload.barber_id != appointment.barber_id:
        _require_barber(db, payload.barber_id)
        appointment.barber_id = payload.barber_id
        slot_changed = True

    if payload.date is not None or payload.time is not None:
        new_day = parse_date(payload.date) if payload.date is not None else appointment.scheduled_at.date()
        new_time = parse_time(payload.time) if payload.time is not None else appointment.scheduled_at.time()
        scheduled_at = datetime.combine(new_day, new_time)
        if scheduled_at != appointment.scheduled_at:
            _ensure_not_past(scheduled_at, now)
            _ensure_on_grid(scheduled_at)
            appointment.scheduled_at = scheduled_at
            slot_changed = True

    if slot_changed and current is not AppointmentStatus.SCHEDULED:
        db.rollback()
        raise InvalidStatusTransition(f"Cannot reschedule a {current.value} appointment")

    target = current
    if payload.status is not None:
        target = transition(current, parse_status(payload.status))
        appointment.status = target.value

    if slot_changed and target is not AppointmentStatus.CANCELED:
        if find_conflict(db, appointment.barber_id, appointment.scheduled_at, exclude_id=appointment.id):
            db.rollback()
            raise SlotConflict()

    if payload.notes is not None:
        appointment.notes = payload.notes

    _commit_booking(db, appointment)
    logger.info("Appointment updated id=%s actor_id=%s", appointment.id, actor.id)
    return appointment


def delete_appointment(
    db: Session,
    appointment_id: int,
    actor: User,
    now: Optional[datetime] = None,
) -> None:
    appointment = get_manageable_appointment(db, appointment_id, actor)
    if _current_status(appointment, now or datetime.now()) not in REMOVABLE_STATUSES:
        raise Conflict("Only canceled or finalized appointments can be deleted")
    db.delete(appointment)
    db.commit()
    logger.info("Appointment deleted id=%s actor_id=%s", appointment_id, actor.id)


def list_appointments(db: Session, user_id: Optional[int] = None) -> list[Appointment]:
    query = db.query(Appointment)
    if user_id is not None:
        query = query.filter(Appointment.user_id == user_id)
    return query.order_by(Appointment.scheduled_at.desc(), Appointment.id.desc()).all()


def appointment_view(appointment: Appointment, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()
    service = appointment.service
    barber = appointment.barber
    client = appointment.user
    profile = client.profile if client is not None else None
    return {
        "id": appointment.id,
        "user_id": appointment.user_id,
        "barber_id": appointment.barber_id,
        "service_id": appointment.service_id,
        "date_time": appointment.scheduled_at.strftime("%Y-%m-%d %H:%M:%S"),
        "date": appointment.scheduled_at.strftime("%Y-%m-%d"),
        "time": appointment.scheduled_at.strftime("%H:%M"),
        "status": _current_status(appointment, now).value,
        "stored_status": parse_status(appointment.status).value,
        "notes": appointment.notes or "",
        "service_name": service.name if service is not None else None,
        "service_price": float(service.price) if service is not None else None,
        "service_duration": service.duration_minutes if service is not None else None,
        "barber_name": barber.name if barber is not None else None,
        "client_name": (profile.name if profile is not None and profile.name else None)
        or (client.email if client is not None else None),
        "client_email": client.email if client is not None else None,
        "created_at": appointment.created_at,
    }
