# app/api/concesionarios.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_caller
from app.db.deps import get_db
from app.models import VehicleCondition, VehicleStatus
from app.services import concesionario_service
from app.services.access import CallerContext

router = APIRouter(prefix="/concesionarios", tags=["concesionarios"])


# --------- Pydantic models ---------


class ConcesionarioBase(BaseModel):
    name: str = Field(..., min_length=2)
    contact_name: str = Field(..., min_length=2)
    email: str | None = None
    phone: str | None = Field(None, max_length=20)
    address: str = Field(..., min_length=5)


class ConcesionarioCreate(ConcesionarioBase):
    dealer_id: str | None = None


class ConcesionarioUpdate(BaseModel):
    name: str | None = None
    contact_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    dealer_id: str | None = None


class ConcesionarioOut(ConcesionarioBase):
    id: str
    dealer_id: str
    contact_name: str | None
    address: str | None

    class Config:
        from_attributes = True


class ConsignedVehicleOut(BaseModel):
    id: str
    brand: str
    model: str
    year: int
    color: str
    vin: str
    plate: str | None
    price: float
    status: VehicleStatus
    condition: VehicleCondition
    mileage: int | None
    entry_date: date | None

    class Config:
        from_attributes = True


class ConcesionarioDetailOut(ConcesionarioOut):
    vehicles: List[ConsignedVehicleOut]


class BulkFailureOut(BaseModel):
    id: str
    kind: str
    message: str


class BulkResultOut(BaseModel):
    succeeded: List[str]
    failed: List[BulkFailureOut]
    partial: bool


# --------- Endpoints ---------


@router.get("", response_model=List[ConcesionarioOut])
def list_concesionarios(
    q: str | None = Query(None, description="Texto para buscar por nombre, contacto, correo o teléfono"),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return concesionario_service.list_concesionarios(db, caller, q=q)


@router.post("", response_model=ConcesionarioOut, status_code=201)
def create_concesionario(
    data: ConcesionarioCreate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return concesionario_service.create_concesionario(db, caller, data.model_dump())


@router.get("/{concesionario_id}", response_model=ConcesionarioDetailOut)
def get_concesionario(
    concesionario_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return concesionario_service.get_concesionario(db, caller, concesionario_id)


@router.put("/{concesionario_id}", response_model=ConcesionarioOut)
def update_concesionario(
    concesionario_id: str,
    data: ConcesionarioUpdate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return concesionario_service.update_concesionario(
        db, caller, concesionario_id, data.model_dump(exclude_unset=True)
    )


@router.delete("/{concesionario_id}", status_code=204)
def delete_concesionario(
    concesionario_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    concesionario_service.delete_concesionario(db, caller, concesionario_id)


@router.post("/{concesionario_id}/release", response_model=BulkResultOut)
def release_vehicles(
    concesionario_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    result = concesionario_service.release_concesionario_vehicles(db, caller, concesionario_id)
    return result.to_dict()
