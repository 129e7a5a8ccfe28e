from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from barbershop import catalog, schemas
from barbershop.database import get_db
from barbershop.deps import require_admin
from barbershop.models import User

router = APIRouter(prefix="/services", tags=["Services"])


@router.get("", response_model=schemas.ServiceListResponse)
def list_services(db: Session = Depends(get_db)):
    return {"services": [catalog.service_view(item) for item in catalog.list_services(db)]}


@router.get("/admin", response_model=schemas.ServiceListResponse)
def admin_list_services(
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    services = catalog.list_services(db, include_inactive=True)
    return {"services": [catalog.service_view(item) for item in services]}


@router.post("/admin", response_model=schemas.ServiceResponse, status_code=201)
def create_service(
    payload: schemas.ServiceIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"service": catalog.service_view(catalog.create_service(db, payload))}


@router.put("/admin/{service_id}", response_model=schemas.ServiceResponse)
def update_service(
    service_id: int,
    payload: schemas.ServiceIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"service": catalog.service_view(catalog.update_service(db, service_id, payload))}


@router.delete("/admin/{service_id}", response_model=schemas.MessageResponse)
def delete_service(
    service_id: int,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    catalog.deactivate_service(db, service_id)
    return {"message": "Service deactivated"}
