from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from barbershop import catalog, schemas
from barbershop.database import get_db
from barbershop.deps import require_admin
from barbershop.models import User

router = APIRouter(prefix="/establishments", tags=["Establishments"])


@router.get("", response_model=schemas.EstablishmentListResponse)
def list_establishments(db: Session = Depends(get_db)):
    establishments = catalog.list_establishments(db)
    return {"establishments": [catalog.establishment_view(item) for item in establishments]}


@router.get("/admin", response_model=schemas.EstablishmentListResponse)
def admin_list_establishments(
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    establishments = catalog.list_establishments(db, include_inactive=True)
    return {"establishments": [catalog.establishment_view(item) for item in establishments]}


@router.post("/admin", response_model=schemas.EstablishmentResponse, status_code=201)
def create_establishment(
    payload: schemas.EstablishmentIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    establishment = catalog.create_establishment(db, payload)
    return {"establishment": catalog.establishment_view(establishment)}


@router.put("/admin/{establishment_id}", response_model=schemas.EstablishmentResponse)
def update_establishment(
    establishment_id: int,
    payload: schemas.EstablishmentIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    establishment = catalog.update_establishment(db, establishment_id, payload)
    return {"establishment": catalog.establishment_view(establishment)}


@router.delete("/admin/{establishment_id}", response_model=schemas.MessageResponse)
def delete_establishment(
    establishment_id: int,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    catalog.deactivate_establishment(db, establishment_id)
    return {"message": "Establishment deactivated"}


@router.get("/{establishment_id}", response_model=schemas.EstablishmentResponse)
def get_establishment(establishment_id: int, db: Session = Depends(get_db)):
    establishment = catalog.get_establishment(db, establishment_id, active_only=True)
    return {"establishment": catalog.establishment_view(establishment)}
