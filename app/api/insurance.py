# app/api/insurance.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_caller
from app.db.deps import get_db
from app.models import CoverageType, Insurance, InsuranceStatus
from app.services import insurance_service
from app.services.access import CallerContext

router = APIRouter(prefix="/insurance", tags=["insurance"])


class InsuranceCreate(BaseModel):
    vehicle_id: str
    client_id: str | None = None
    contract_id: str | None = None
    start_date: date
    # Opcional; si llega debe coincidir con inicio + duración
    expiry_date: date | None = None
    coverage_type: CoverageType
    coverage_duration: int = Field(..., ge=1)
    premium: float = Field(..., ge=0, allow_inf_nan=False)
    dealer_id: str | None = None


class InsuranceOut(BaseModel):
    id: str
    dealer_id: str
    vehicle_id: str
    client_id: str | None
    contract_id: str | None
    start_date: date
    expiry_date: date
    coverage_type: CoverageType
    coverage_duration: int
    premium: float
    status: InsuranceStatus

    class Config:
        from_attributes = True


class InsuranceStatusUpdate(BaseModel):
    status: InsuranceStatus


def _out(insurance: Insurance) -> InsuranceOut:
    out = InsuranceOut.model_validate(insurance)
    return out.model_copy(update={"status": insurance_service.effective_status(insurance)})


@router.get("", response_model=List[InsuranceOut])
def list_insurance(
    status: InsuranceStatus | None = Query(None),
    vehicle_id: str | None = Query(None),
    client_id: str | None = Query(None),
    contract_id: str | None = Query(None),
    coverage_type: CoverageType | None = Query(None),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    rows = insurance_service.list_insurance(
        db,
        caller,
        status=status,
        vehicle_id=vehicle_id,
        client_id=client_id,
        contract_id=contract_id,
        coverage_type=coverage_type,
    )
    return [_out(row) for row in rows]


@router.post("", response_model=InsuranceOut, status_code=201)
def create_insurance(
    data: InsuranceCreate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return _out(insurance_service.create_insurance(db, caller, data.model_dump()))


@router.get("/{insurance_id}", response_model=InsuranceOut)
def get_insurance(
    insurance_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return _out(insurance_service.get_insurance(db, caller, insurance_id))


@router.put("/{insurance_id}/status", response_model=InsuranceOut)
def update_insurance_status(
    insurance_id: str,
    data: InsuranceStatusUpdate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return _out(insurance_service.update_insurance_status(db, caller, insurance_id, data.status))
