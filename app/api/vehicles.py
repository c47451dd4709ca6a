# app/api/vehicles.py
from datetime import date
from typing import List, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.concesionarios import BulkResultOut
from app.api.deps import get_caller
from app.db.deps import get_db
from app.models import VehicleCondition, VehicleStatus
from app.services import vehicle_service
from app.services.access import CallerContext

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


class VehicleCreate(BaseModel):
    brand: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=2050)
    trim: str | None = None
    vehicle_type: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1)
    status: VehicleStatus = VehicleStatus.available
    condition: VehicleCondition = VehicleCondition.new
    images: List[str] = []
    description: str | None = None
    transmission: str = Field(..., min_length=1)
    fuel_type: str = Field(..., min_length=1)
    engine_size: str = Field(..., min_length=1)
    plate: str | None = Field(None, max_length=10)
    vin: str = Field(..., min_length=17, max_length=17)
    mileage: int | None = Field(None, ge=0)
    doors: int = Field(..., ge=1)
    seats: int = Field(..., ge=1)
    price: float = Field(..., gt=0, allow_inf_nan=False)
    has_offer: bool = False
    offer_price: float | None = Field(None, ge=0, allow_inf_nan=False)
    entry_date: date | None = None
    concesionario_id: str | None = None
    dealer_id: str | None = None


class VehicleOut(BaseModel):
    id: str
    dealer_id: str
    concesionario_id: str | None
    brand: str
    model: str
    year: int
    trim: str | None
    vehicle_type: str
    color: str
    status: VehicleStatus
    condition: VehicleCondition
    images: List[str]
    description: str | None
    transmission: str
    fuel_type: str
    engine_size: str
    plate: str | None
    vin: str
    mileage: int | None
    doors: int
    seats: int
    price: float
    has_offer: bool
    offer_price: float | None
    entry_date: date | None

    class Config:
        from_attributes = True


class VehicleStatusUpdate(BaseModel):
    status: VehicleStatus


class BulkStatusUpdate(BaseModel):
    vehicle_ids: List[str] = Field(..., min_length=1)
    status: VehicleStatus


class ConcesionarioAssignment(BaseModel):
    concesionario_id: str | None = None


@router.get("", response_model=List[VehicleOut])
def list_vehicles(
    status: VehicleStatus | None = Query(None),
    condition: VehicleCondition | None = Query(None),
    concesionario_id: str | None = Query(None),
    assignment: Literal["assigned", "unassigned"] | None = Query(None),
    q: str | None = Query(None, description="Texto para buscar por marca, modelo, VIN o placa"),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return vehicle_service.list_vehicles(
        db,
        caller,
        status=status,
        condition=condition,
        concesionario_id=concesionario_id,
        assignment=assignment,
        q=q,
    )


@router.post("", response_model=VehicleOut, status_code=201)
def create_vehicle(
    data: VehicleCreate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return vehicle_service.create_vehicle(db, caller, data.model_dump())


@router.post("/bulk-status", response_model=BulkResultOut)
def bulk_update_status(
    data: BulkStatusUpdate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    result = vehicle_service.bulk_update_vehicle_status(db, caller, data.vehicle_ids, data.status)
    return result.to_dict()


@router.get("/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(
    vehicle_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return vehicle_service.get_vehicle(db, caller, vehicle_id)


@router.put("/{vehicle_id}/status", response_model=VehicleOut)
def update_vehicle_status(
    vehicle_id: str,
    data: VehicleStatusUpdate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return vehicle_service.update_vehicle_status(db, caller, vehicle_id, data.status)


@router.put("/{vehicle_id}/concesionario", response_model=VehicleOut)
def assign_concesionario(
    vehicle_id: str,
    data: ConcesionarioAssignment,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return vehicle_service.assign_concesionario(db, caller, vehicle_id, data.concesionario_id)


@router.delete("/{vehicle_id}", status_code=204)
def delete_vehicle(
    vehicle_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    vehicle_service.delete_vehicle(db, caller, vehicle_id)
