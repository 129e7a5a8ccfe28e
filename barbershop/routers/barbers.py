from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from barbershop import catalog, schemas
from barbershop.database import get_db
from barbershop.deps import require_admin
from barbershop.models import User

router = APIRouter(prefix="/barbers", tags=["Barbers"])


def _base_url(request: Request) -> str:
    return str(request.base_url)


@router.get("", response_model=schemas.BarberListResponse)
def list_barbers(request: Request, db: Session = Depends(get_db)):
    base_url = _base_url(request)
    return {"barbers": [catalog.barber_view(item, base_url) for item in catalog.list_barbers(db)]}


@router.get("/admin", response_model=schemas.BarberListResponse)
def admin_list_barbers(
    request: Request,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    base_url = _base_url(request)
    barbers = catalog.list_barbers(db, include_inactive=True)
    return {"barbers": [catalog.barber_view(item, base_url) for item in barbers]}


@router.post("/admin", response_model=schemas.BarberResponse, status_code=201)
def create_barber(
    request: Request,
    payload: schemas.BarberIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    barber = catalog.create_barber(db, payload)
    return {"barber": catalog.barber_view(barber, _base_url(request))}


@router.put("/admin/{barber_id}", response_model=schemas.BarberResponse)
def update_barber(
    request: Request,
    barber_id: int,
    payload: schemas.BarberIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    barber = catalog.update_barber(db, barber_id, payload)
    return {"barber": catalog.barber_view(barber, _base_url(request))}


@router.delete("/admin/{barber_id}", response_model=schemas.MessageResponse)
def delete_barber(
    barber_id: int,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    catalog.deactivate_barber(db, barber_id)
    return {"message": "Barber deactivated"}


@router.get("/{barber_id}", response_model=schemas.BarberResponse)
def get_barber(request: Request, barber_id: int, db: Session = Depends(get_db)):
    barber = catalog.get_barber(db, barber_id, active_only=True)
    return {"barber": catalog.barber_view(barber, _base_url(request))}
