# app/api/contracts.py
import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_caller
from app.db.deps import get_db
from app.models import ContractStatus, FinancingType
from app.services import contract_service
from app.services.access import CallerContext

router = APIRouter(prefix="/contracts", tags=["contracts"])


class ContractCreate(BaseModel):
    client_id: str
    vehicle_id: str
    price: float | None = Field(None, gt=0, allow_inf_nan=False)
    date: Optional[dt.date] = None
    financing_type: FinancingType
    down_payment: float | None = Field(None, allow_inf_nan=False)
    months: int | None = None
    monthly_payment: float | None = Field(None, allow_inf_nan=False)
    notes: str | None = None
    status: ContractStatus = ContractStatus.pending
    dealer_id: str | None = None


class ContractOut(BaseModel):
    id: str
    contract_number: str
    dealer_id: str
    client_id: str
    vehicle_id: str
    status: ContractStatus
    price: float
    date: dt.date
    financing_type: FinancingType
    down_payment: Optional[float]
    months: Optional[int]
    monthly_payment: Optional[float]
    notes: str | None

    class Config:
        from_attributes = True


class ContractStatusUpdate(BaseModel):
    status: ContractStatus


@router.get("", response_model=List[ContractOut])
def list_contracts(
    status: ContractStatus | None = Query(None),
    client_id: str | None = Query(None),
    vehicle_id: str | None = Query(None),
    financing_type: FinancingType | None = Query(None),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return contract_service.list_contracts(
        db,
        caller,
        status=status,
        client_id=client_id,
        vehicle_id=vehicle_id,
        financing_type=financing_type,
    )


@router.post("", response_model=ContractOut, status_code=201)
def create_contract(
    data: ContractCreate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return contract_service.create_contract(db, caller, data.model_dump())


@router.get("/{contract_id}", response_model=ContractOut)
def get_contract(
    contract_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return contract_service.get_contract(db, caller, contract_id)


@router.put("/{contract_id}/status", response_model=ContractOut)
def update_contract_status(
    contract_id: str,
    data: ContractStatusUpdate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return contract_service.update_contract_status(db, caller, contract_id, data.status)
