# app/services/client_service.py
import logging
from typing import Any, Mapping

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core import errors
from app.models import Client, Contract, Insurance
from app.services.access import CallerContext, ensure_payload_dealer, get_scoped, scoped_query
from app.services.persistence import commit_or_raise
from app.services.validation import clean_text, require_text

logger = logging.getLogger(__name__)

CEDULA_MAX_LENGTH = 13


def _check_cedula(db: Session, cedula: str | None, *, exclude_id: str | None = None) -> str | None:
    cedula = clean_text(cedula)
    if cedula is None:
        return None
    if len(cedula) > CEDULA_MAX_LENGTH:
        raise errors.ValidationError(f"La cédula no puede exceder {CEDULA_MAX_LENGTH} caracteres.")
    # Unicidad global, no por dealer
    query = db.query(Client.id).filter(Client.cedula == cedula)
    if exclude_id is not None:
        query = query.filter(Client.id != exclude_id)
    if query.first():
        raise errors.UniquenessConflict("Ya existe un cliente con esa cédula.")
    return cedula


def create_client(db: Session, caller: CallerContext, data: Mapping[str, Any]) -> Client:
    ensure_payload_dealer(caller, data.get("dealer_id"))
    client = Client(
        dealer_id=caller.dealer_id,
        cedula=_check_cedula(db, data.get("cedula")),
        name=require_text(data.get("name"), "nombre", min_length=2),
        email=clean_text(data.get("email")),
        phone=clean_text(data.get("phone")),
        address=require_text(data.get("address"), "dirección"),
    )
    db.add(client)
    commit_or_raise(db)
    db.refresh(client)
    logger.info(f"Cliente {client.id} creado en dealer {caller.dealer_id}")
    return client


def list_clients(db: Session, caller: CallerContext, *, q: str | None = None) -> list[Client]:
    query = scoped_query(db, Client, caller)
    if q:
        term = f"%{q.strip()}%"
        query = query.filter(
            or_(
                Client.name.ilike(term),
                Client.cedula.ilike(term),
                Client.email.ilike(term),
                Client.phone.ilike(term),
            )
        )
    return query.order_by(Client.name).all()


def get_client(db: Session, caller: CallerContext, client_id: str) -> Client:
    return get_scoped(db, Client, client_id, caller, label="cliente")


def update_client(db: Session, caller: CallerContext, client_id: str, data: Mapping[str, Any]) -> Client:
    client = get_client(db, caller, client_id)
    ensure_payload_dealer(caller, data.get("dealer_id"))

    if "cedula" in data:
        client.cedula = _check_cedula(db, data["cedula"], exclude_id=client.id)
    if "name" in data:
        client.name = require_text(data["name"], "nombre", min_length=2)
    if "email" in data:
        client.email = clean_text(data["email"])
    if "phone" in data:
        client.phone = clean_text(data["phone"])
    if "address" in data:
        client.address = require_text(data["address"], "dirección")

    commit_or_raise(db)
    db.refresh(client)
    return client


def delete_client(db: Session, caller: CallerContext, client_id: str) -> None:
    """Bloqueado mientras existan contratos del cliente; sus pólizas quedan sin cliente."""
    client = get_client(db, caller, client_id)
    if db.query(Contract.id).filter(Contract.client_id == client.id).first():
        raise errors.InUse("El cliente tiene contratos asociados y no puede eliminarse.")

    db.query(Insurance).filter(Insurance.client_id == client.id).update(
        {Insurance.client_id: None}, synchronize_session="fetch"
    )
    db.delete(client)
    commit_or_raise(db)
    logger.info(f"Cliente {client_id} eliminado del dealer {caller.dealer_id}")
