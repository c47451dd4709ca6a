# app/api/clients.py
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_caller
from app.db.deps import get_db
from app.services import client_service
from app.services.access import CallerContext

router = APIRouter(prefix="/clients", tags=["clients"])


class ClientBase(BaseModel):
    cedula: str | None = Field(None, max_length=13)
    name: str = Field(..., min_length=2)
    email: str | None = None
    phone: str | None = Field(None, max_length=20)
    address: str = Field(..., min_length=1)


class ClientCreate(ClientBase):
    dealer_id: str | None = None


class ClientUpdate(BaseModel):
    cedula: str | None = Field(None, max_length=13)
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class ClientOut(ClientBase):
    id: str
    dealer_id: str

    class Config:
        from_attributes = True


@router.get("", response_model=List[ClientOut])
def list_clients(
    q: str | None = Query(None, description="Texto para buscar por nombre, cédula, correo o teléfono"),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return client_service.list_clients(db, caller, q=q)


@router.post("", response_model=ClientOut, status_code=201)
def create_client(
    data: ClientCreate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return client_service.create_client(db, caller, data.model_dump())


@router.get("/{client_id}", response_model=ClientOut)
def get_client(
    client_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return client_service.get_client(db, caller, client_id)


@router.put("/{client_id}", response_model=ClientOut)
def update_client(
    client_id: str,
    data: ClientUpdate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return client_service.update_client(db, caller, client_id, data.model_dump(exclude_unset=True))


@router.delete("/{client_id}", status_code=204)
def delete_client(
    client_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    client_service.delete_client(db, caller, client_id)
