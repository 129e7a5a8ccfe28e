from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from barbershop import booking, schemas
from barbershop.database import get_db
from barbershop.deps import get_current_user, require_admin
from barbershop.errors import Forbidden
from barbershop.models import ROLE_ADMIN, User

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _one(appointment) -> dict:
    return {"appointment": booking.appointment_view(appointment)}


def _many(appointments) -> dict:
    return {"appointments": [booking.appointment_view(item) for item in appointments]}


@router.get("/available-slots", response_model=schemas.AvailabilityOut)
def available_slots(
    service_id: Optional[int] = None,
    date: Optional[str] = None,
    barber_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return booking.compute_availability(db, service_id, date, barber_id)


@router.get("/admin", response_model=schemas.AppointmentListResponse)
def admin_list_appointments(
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return _many(booking.list_appointments(db))


@router.put("/admin/{appointment_id}/status", response_model=schemas.AppointmentResponse)
def admin_set_status(
    appointment_id: int,
    payload: schemas.StatusUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return _one(booking.set_status(db, appointment_id, admin, payload.status))


@router.delete("/admin/{appointment_id}", response_model=schemas.MessageResponse)
def admin_delete_appointment(
    appointment_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    booking.delete_appointment(db, appointment_id, admin)
    return {"message": "Appointment deleted"}


@router.get("", response_model=schemas.AppointmentListResponse)
def list_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_id = None if current_user.role == ROLE_ADMIN else current_user.id
    return _many(booking.list_appointments(db, user_id=user_id))


@router.get("/user/{user_id}", response_model=schemas.AppointmentListResponse)
def list_user_appointments(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if current_user.role != ROLE_ADMIN and current_user.id != user_id:
        raise Forbidden()
    return _many(booking.list_appointments(db, user_id=user_id))


@router.post("", response_model=schemas.AppointmentResponse, status_code=201)
def create_appointment(
    payload: schemas.AppointmentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _one(booking.create_appointment(db, current_user, payload))


@router.put("/{appointment_id}/cancel", response_model=schemas.AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _one(booking.cancel_appointment(db, appointment_id, current_user))


@router.put("/{appointment_id}/status", response_model=schemas.AppointmentResponse)
def set_appointment_status(
    appointment_id: int,
    payload: schemas.StatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _one(booking.set_status(db, appointment_id, current_user, payload.status))


@router.put("/{appointment_id}", response_model=schemas.AppointmentResponse)
def update_appointment(
    appointment_id: int,
    payload: schemas.AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _one(booking.update_appointment(db, appointment_id, current_user, payload))


@router.delete("/{appointment_id}", response_model=schemas.MessageResponse)
def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    booking.delete_appointment(db, appointment_id, current_user)
    return {"message": "Appointment deleted"}
