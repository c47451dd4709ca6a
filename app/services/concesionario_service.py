# app/services/concesionario_service.py
import logging
from typing import Any, Mapping

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.core import errors
from app.models import Concesionario, Vehicle
from app.services.access import (
    CallerContext,
    ensure_payload_dealer,
    get_scoped,
    require_admin,
    scoped_query,
)
from app.services import vehicle_service
from app.services.persistence import BulkResult, commit_or_raise, run_per_row
from app.services.validation import clean_text, require_text

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("name", "contact_name", "email", "phone", "address")


def _apply_fields(concesionario: Concesionario, data: Mapping[str, Any]) -> None:
    if "name" in data:
        concesionario.name = require_text(data["name"], "nombre del concesionario", min_length=2)
    if "contact_name" in data:
        concesionario.contact_name = require_text(data["contact_name"], "nombre del contacto", min_length=2)
    if "email" in data:
        concesionario.email = clean_text(data["email"])
    if "phone" in data:
        concesionario.phone = clean_text(data["phone"])
    if "address" in data:
        concesionario.address = require_text(data["address"], "dirección", min_length=5)


def create_concesionario(db: Session, caller: CallerContext, data: Mapping[str, Any]) -> Concesionario:
    ensure_payload_dealer(caller, data.get("dealer_id"))
    concesionario = Concesionario(dealer_id=caller.dealer_id)
    _apply_fields(
        concesionario,
        {
            "name": data.get("name"),
            "contact_name": data.get("contact_name"),
            "email": data.get("email"),
            "phone": data.get("phone"),
            "address": data.get("address"),
        },
    )
    db.add(concesionario)
    commit_or_raise(db)
    db.refresh(concesionario)
    logger.info(f"Concesionario {concesionario.id} creado en dealer {caller.dealer_id}")
    return concesionario


def list_concesionarios(db: Session, caller: CallerContext, *, q: str | None = None) -> list[Concesionario]:
    query = scoped_query(db, Concesionario, caller)
    if q:
        term = f"%{q.strip()}%"
        query = query.filter(
            or_(
                Concesionario.name.ilike(term),
                Concesionario.contact_name.ilike(term),
                Concesionario.email.ilike(term),
                Concesionario.phone.ilike(term),
            )
        )
    return query.order_by(Concesionario.name).all()


def get_concesionario(db: Session, caller: CallerContext, concesionario_id: str) -> Concesionario:
    """Detalle del socio con sus vehículos en consignación."""
    concesionario = (
        scoped_query(db, Concesionario, caller)
        .options(selectinload(Concesionario.vehicles))
        .filter(Concesionario.id == concesionario_id)
        .first()
    )
    if concesionario is None:
        raise errors.NotFound("Concesionario no encontrado.")
    return concesionario


def update_concesionario(
    db: Session,
    caller: CallerContext,
    concesionario_id: str,
    data: Mapping[str, Any],
) -> Concesionario:
    concesionario = get_scoped(db, Concesionario, concesionario_id, caller, label="concesionario")

    # El dealer del socio es inmutable
    if data.get("dealer_id") is not None and data["dealer_id"] != concesionario.dealer_id:
        raise errors.ValidationError("Un concesionario no puede cambiar de dealer.")

    _apply_fields(concesionario, {k: v for k, v in data.items() if k in _EDITABLE_FIELDS})
    commit_or_raise(db)
    db.refresh(concesionario)
    return concesionario


def delete_concesionario(db: Session, caller: CallerContext, concesionario_id: str) -> None:
    """Borra el socio; sus vehículos quedan sin asignar (set-null), no se borran."""
    require_admin(caller, "eliminar concesionarios")
    concesionario = get_scoped(db, Concesionario, concesionario_id, caller, label="concesionario")

    released = (
        db.query(Vehicle)
        .filter(Vehicle.concesionario_id == concesionario.id)
        .update({Vehicle.concesionario_id: None}, synchronize_session="fetch")
    )
    db.delete(concesionario)
    commit_or_raise(db)
    logger.info(f"Concesionario {concesionario_id} eliminado; {released} vehículos liberados")


def release_concesionario_vehicles(
    db: Session,
    caller: CallerContext,
    concesionario_id: str,
) -> BulkResult:
    """
    Libera todos los vehículos del socio. Cada vehículo va en su propia
    transacción; los fallos parciales se reportan en el resultado.
    """
    require_admin(caller, "liberar vehículos de un concesionario")
    concesionario = get_scoped(db, Concesionario, concesionario_id, caller, label="concesionario")
    vehicle_ids = [
        vid
        for (vid,) in scoped_query(db, Vehicle, caller)
        .with_entities(Vehicle.id)
        .filter(Vehicle.concesionario_id == concesionario.id)
        .order_by(Vehicle.id)
        .all()
    ]

    result = run_per_row(
        db,
        vehicle_ids,
        lambda vid: vehicle_service.assign_concesionario(db, caller, vid, None),
    )
    logger.info(
        f"Liberación de concesionario {concesionario_id}: "
        f"{len(result.succeeded)} ok, {len(result.failed)} con error"
    )
    return result
