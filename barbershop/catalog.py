"""Services, barbers and establishments.

Reference data that rarely changes. Public listings only show active rows;
admin "deletes" clear the active flag so existing appointments keep their
links.
"""

import json
import logging
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.orm import Session

from barbershop.errors import InvalidRequest, NotFound
from barbershop.models import Barber, Establishment, Service
from barbershop.schemas import BarberIn, EstablishmentIn, ServiceIn
from barbershop.uploads import absolute_url

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 30
DEFAULT_ICON = "cut"


def reconcile_duration(duration: Optional[int], duration_min: Optional[int]) -> Optional[int]:
    # Older clients send "duration_min", newer ones "duration".
    return duration_min or duration


def parse_specialties(value: Union[list, str, None]) -> list[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = None
    if isinstance(parsed, list):
        return parse_specialties(parsed)
    return [item.strip() for item in value.split(",") if item.strip()]


def _require_name(name: Optional[str]) -> str:
    if not name or not name.strip():
        raise InvalidRequest("Name is required")
    return name.strip()


# Services


def list_services(db: Session, include_inactive: bool = False) -> list[Service]:
    query = db.query(Service)
    if not include_inactive:
        query = query.filter(Service.active.is_(True))
    return query.order_by(Service.name.asc()).all()


def get_service(db: Session, service_id: int) -> Service:
    service = db.get(Service, service_id)
    if service is None:
        raise NotFound("Service not found")
    return service


def create_service(db: Session, payload: ServiceIn) -> Service:
    service = Service(
        name=_require_name(payload.name),
        description=payload.description or "",
        price=payload.price if payload.price is not None else Decimal("0"),
        duration_minutes=reconcile_duration(payload.duration, payload.duration_min)
        or DEFAULT_DURATION_MINUTES,
        icon=payload.icon or DEFAULT_ICON,
        active=True if payload.active is None else payload.active,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info("Service created id=%s name=%s", service.id, service.name)
    return service


def update_service(db: Session, service_id: int, payload: ServiceIn) -> Service:
    service = get_service(db, service_id)
    if payload.name is not None:
        service.name = _require_name(payload.name)
    if payload.description is not None:
        service.description = payload.description
    if payload.price is not None:
        service.price = payload.price
    duration = reconcile_duration(payload.duration, payload.duration_min)
    if duration is not None:
        service.duration_minutes = duration
    if payload.icon:
        service.icon = payload.icon
    if payload.active is not None:
        service.active = payload.active
    db.commit()
    db.refresh(service)
    logger.info("Service updated id=%s", service.id)
    return service


def deactivate_service(db: Session, service_id: int) -> None:
    service = get_service(db, service_id)
    service.active = False
    db.commit()
    logger.info("Service deactivated id=%s", service.id)


def service_view(service: Service) -> dict:
    return {
        "id": service.id,
        "name": service.name,
        "description": service.description,
        "price": float(service.price or 0),
        "duration_minutes": service.duration_minutes,
        "icon": service.icon or DEFAULT_ICON,
        "active": bool(service.active),
    }


# Barbers


def list_barbers(db: Session, include_inactive: bool = False) -> list[Barber]:
    query = db.query(Barber)
    if not include_inactive:
        query = query.filter(Barber.active.is_(True))
    return query.order_by(Barber.name.asc()).all()


def get_barber(db: Session, barber_id: int, active_only: bool = False) -> Barber:
    barber = db.get(Barber, barber_id)
    if barber is None or (active_only and not barber.active):
        raise NotFound("Barber not found")
    return barber


def create_barber(db: Session, payload: BarberIn) -> Barber:
    barber = Barber(
        name=_require_name(payload.name),
        bio=payload.bio,
        photo=payload.photo,
        specialties=parse_specialties(payload.specialties),
        active=True if payload.active is None else payload.active,
    )
    db.add(barber)
    db.commit()
    db.refresh(barber)
    logger.info("Barber created id=%s name=%s", barber.id, barber.name)
    return barber


def update_barber(db: Session, barber_id: int, payload: BarberIn) -> Barber:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise InvalidRequest("Nothing to update")

    barber = get_barber(db, barber_id)
    if "name" in changes:
        barber.name = _require_name(payload.name)
    if "bio" in changes:
        barber.bio = payload.bio
    if "photo" in changes:
        barber.photo = payload.photo
    if "specialties" in changes:
        barber.specialties = parse_specialties(payload.specialties)
    if "active" in changes and payload.active is not None:
        barber.active = payload.active
    db.commit()
    db.refresh(barber)
    logger.info("Barber updated id=%s fields=%s", barber.id, sorted(changes))
    return barber


def deactivate_barber(db: Session, barber_id: int) -> None:
    barber = get_barber(db, barber_id)
    barber.active = False
    db.commit()
    logger.info("Barber deactivated id=%s", barber.id)


def barber_view(barber: Barber, base_url: str) -> dict:
    return {
        "id": barber.id,
        "name": barber.name,
        "bio": barber.bio,
        "photo": absolute_url(base_url, barber.photo),
        "specialties": parse_specialties(barber.specialties),
        "active": bool(barber.active),
    }


# Establishments


def list_establishments(db: Session, include_inactive: bool = False) -> list[Establishment]:
    query = db.query(Establishment)
    if not include_inactive:
        query = query.filter(Establishment.active.is_(True))
    return query.order_by(Establishment.id.asc()).all()


def get_establishment(db: Session, establishment_id: int, active_only: bool = False) -> Establishment:
    establishment = db.get(Establishment, establishment_id)
    if establishment is None or (active_only and not establishment.active):
        raise NotFound("Establishment not found")
    return establishment


def create_establishment(db: Session, payload: EstablishmentIn) -> Establishment:
    establishment = Establishment(
        name=_require_name(payload.name),
        address=payload.address,
        contact=payload.contact,
        active=True if payload.active is None else payload.active,
    )
    db.add(establishment)
    db.commit()
    db.refresh(establishment)
    logger.info("Establishment created id=%s", establishment.id)
    return establishment


def update_establishment(db: Session, establishment_id: int, payload: EstablishmentIn) -> Establishment:
    establishment = get_establishment(db, establishment_id)
    if payload.name is not None:
        establishment.name = _require_name(payload.name)
    if payload.address is not None:
        establishment.address = payload.address
    if payload.contact is not None:
        establishment.contact = payload.contact
    if payload.active is not None:
        establishment.active = payload.active
    db.commit()
    db.refresh(establishment)
    logger.info("Establishment updated id=%s", establishment.id)
    return establishment


def deactivate_establishment(db: Session, establishment_id: int) -> None:
    establishment = get_establishment(db, establishment_id)
    establishment.active = False
    db.commit()
    logger.info("Establishment deactivated id=%s", establishment.id)


def establishment_view(establishment: Establishment) -> dict:
    return {
        "id": establishment.id,
        "name": establishment.name,
        "address": establishment.address,
        "contact": establishment.contact,
        "active": bool(establishment.active),
    }
