# app/services/vehicle_service.py
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core import errors
from app.models import (
    Concesionario,
    Contract,
    ContractStatus,
    Insurance,
    OPEN_CONTRACT_STATUSES,
    Vehicle,
    VehicleCondition,
    VehicleStatus,
)
from app.services.access import (
    CallerContext,
    ensure_payload_dealer,
    ensure_reference,
    get_scoped,
    require_admin,
    scoped_query,
)
from app.services.lifecycle import (
    CONTRACT_DRIVEN_VEHICLE_STATUSES,
    ensure_admin_vehicle_transition,
    transition_vehicle,
)
from app.services.persistence import BulkResult, commit_or_raise, run_per_row
from app.services.validation import clean_text, require_text, to_decimal, to_enum, to_int

logger = logging.getLogger(__name__)

VIN_LENGTH = 17
PLATE_MAX_LENGTH = 10
MIN_YEAR, MAX_YEAR = 1900, 2050

# Estados con los que puede darse de alta un vehículo
INITIAL_STATUSES = (VehicleStatus.available, VehicleStatus.maintenance)


def _check_unique(db: Session, column, value: str | None, message: str, *, exclude_id: str | None = None) -> None:
    if value is None:
        return
    query = db.query(Vehicle.id).filter(column == value)
    if exclude_id is not None:
        query = query.filter(Vehicle.id != exclude_id)
    if query.first():
        raise errors.UniquenessConflict(message)


def has_open_contract(db: Session, vehicle_id: str, *, exclude_contract_id: str | None = None) -> bool:
    query = db.query(Contract.id).filter(
        Contract.vehicle_id == vehicle_id,
        Contract.status.in_(OPEN_CONTRACT_STATUSES),
    )
    if exclude_contract_id is not None:
        query = query.filter(Contract.id != exclude_contract_id)
    return query.first() is not None


def _normalize_payload(data: Mapping[str, Any]) -> dict:
    vin = require_text(data.get("vin"), "VIN")
    if len(vin) != VIN_LENGTH:
        raise errors.ValidationError(f"El VIN debe tener {VIN_LENGTH} caracteres.")
    plate = clean_text(data.get("plate"))
    if plate is not None and len(plate) > PLATE_MAX_LENGTH:
        raise errors.ValidationError(f"La placa no puede exceder {PLATE_MAX_LENGTH} caracteres.")

    year = to_int(data.get("year"), "año")
    if year is None or not (MIN_YEAR <= year <= MAX_YEAR):
        raise errors.ValidationError(f"El año debe estar entre {MIN_YEAR} y {MAX_YEAR}.")

    price = to_decimal(data.get("price"), "precio")
    if price is None or price <= 0:
        raise errors.ValidationError("El precio debe ser mayor a 0.")

    has_offer = bool(data.get("has_offer") or False)
    offer_price = to_decimal(data.get("offer_price"), "precio de oferta")
    if offer_price is not None and offer_price < 0:
        raise errors.ValidationError("El precio de oferta no puede ser negativo.")
    if has_offer and offer_price is None:
        raise errors.ValidationError("Indica el precio de oferta.")

    mileage = to_int(data.get("mileage"), "kilometraje")
    if mileage is not None and mileage < 0:
        raise errors.ValidationError("El kilometraje no puede ser negativo.")

    doors = to_int(data.get("doors"), "puertas")
    seats = to_int(data.get("seats"), "asientos")
    if not doors or doors < 1:
        raise errors.ValidationError("El número de puertas debe ser válido.")
    if not seats or seats < 1:
        raise errors.ValidationError("El número de asientos debe ser válido.")

    entry_date = data.get("entry_date")
    if entry_date is not None and not isinstance(entry_date, date):
        try:
            entry_date = date.fromisoformat(str(entry_date))
        except ValueError:
            raise errors.ValidationError("Fecha de ingreso inválida.")

    return {
        "brand": require_text(data.get("brand"), "marca"),
        "model": require_text(data.get("model"), "modelo"),
        "year": year,
        "trim": clean_text(data.get("trim")),
        "vehicle_type": require_text(data.get("vehicle_type"), "tipo de vehículo"),
        "color": require_text(data.get("color"), "color"),
        "condition": to_enum(VehicleCondition, data.get("condition"), "condición") or VehicleCondition.new,
        "vin": vin,
        "plate": plate,
        "price": price,
        "has_offer": has_offer,
        "offer_price": offer_price,
        "mileage": mileage,
        "transmission": require_text(data.get("transmission"), "transmisión"),
        "fuel_type": require_text(data.get("fuel_type"), "tipo de combustible"),
        "engine_size": require_text(data.get("engine_size"), "tamaño del motor"),
        "doors": doors,
        "seats": seats,
        "description": clean_text(data.get("description")),
        "images": [str(url) for url in (data.get("images") or []) if url],
        "entry_date": entry_date,
    }


def create_vehicle(db: Session, caller: CallerContext, data: Mapping[str, Any]) -> Vehicle:
    ensure_payload_dealer(caller, data.get("dealer_id"))
    fields = _normalize_payload(data)

    status = to_enum(VehicleStatus, data.get("status"), "estado") or VehicleStatus.available
    if status not in INITIAL_STATUSES:
        raise errors.ValidationError("Un vehículo nuevo solo puede registrarse disponible o en mantenimiento.")

    concesionario_id = clean_text(data.get("concesionario_id"))
    if concesionario_id is not None:
        ensure_reference(db, Concesionario, concesionario_id, caller, label="concesionario")

    _check_unique(db, Vehicle.vin, fields["vin"], "Ya existe un vehículo con ese VIN.")
    _check_unique(db, Vehicle.plate, fields["plate"], "Ya existe un vehículo con esa placa.")

    vehicle = Vehicle(
        dealer_id=caller.dealer_id,
        concesionario_id=concesionario_id,
        status=status,
        **fields,
    )
    db.add(vehicle)
    commit_or_raise(db)
    db.refresh(vehicle)
    logger.info(f"Vehículo {vehicle.id} ({vehicle.vin}) registrado en dealer {caller.dealer_id}")
    return vehicle


def list_vehicles(
    db: Session,
    caller: CallerContext,
    *,
    status: VehicleStatus | None = None,
    condition: VehicleCondition | None = None,
    concesionario_id: str | None = None,
    assignment: str | None = None,
    q: str | None = None,
) -> list[Vehicle]:
    query = scoped_query(db, Vehicle, caller)
    if status:
        query = query.filter(Vehicle.status == status)
    if condition:
        query = query.filter(Vehicle.condition == condition)
    if concesionario_id:
        query = query.filter(Vehicle.concesionario_id == concesionario_id)
    if assignment == "assigned":
        query = query.filter(Vehicle.concesionario_id.is_not(None))
    elif assignment == "unassigned":
        query = query.filter(Vehicle.concesionario_id.is_(None))
    if q:
        term = f"%{q.strip()}%"
        query = query.filter(
            or_(
                Vehicle.brand.ilike(term),
                Vehicle.model.ilike(term),
                Vehicle.vin.ilike(term),
                Vehicle.plate.ilike(term),
            )
        )
    return query.order_by(Vehicle.brand, Vehicle.model, Vehicle.year).all()


def get_vehicle(db: Session, caller: CallerContext, vehicle_id: str) -> Vehicle:
    return get_scoped(db, Vehicle, vehicle_id, caller, label="vehículo")


def update_vehicle_status(
    db: Session,
    caller: CallerContext,
    vehicle_id: str,
    new_status: VehicleStatus | str,
) -> Vehicle:
    """
    Cambio administrativo de estado: entrar o salir de mantenimiento.
    Reservado / en proceso / vendido solo los mueve el ciclo de un contrato.
    """
    require_admin(caller, "cambiar el estado de un vehículo")
    target = to_enum(VehicleStatus, new_status, "estado")
    if target is None:
        raise errors.ValidationError("Indica el nuevo estado del vehículo.")
    vehicle = get_scoped(db, Vehicle, vehicle_id, caller, label="vehículo", for_update=True)

    if target in CONTRACT_DRIVEN_VEHICLE_STATUSES:
        raise errors.InvalidStateTransition(
            f"El estado '{target.value}' lo determina el contrato del vehículo, no un cambio directo."
        )
    ensure_admin_vehicle_transition(VehicleStatus(vehicle.status), target)
    if target == VehicleStatus.maintenance:
        active_contract = (
            db.query(Contract.id)
            .filter(Contract.vehicle_id == vehicle.id, Contract.status == ContractStatus.active)
            .first()
        )
        if active_contract:
            raise errors.InvalidStateTransition(
                "El vehículo tiene un contrato activo y no puede pasar a mantenimiento."
            )

    transition_vehicle(db, vehicle, target)
    commit_or_raise(db)
    db.refresh(vehicle)
    return vehicle


def bulk_update_vehicle_status(
    db: Session,
    caller: CallerContext,
    vehicle_ids: Iterable[str],
    new_status: VehicleStatus | str,
) -> BulkResult:
    require_admin(caller, "cambiar el estado de varios vehículos")
    return run_per_row(
        db,
        list(dict.fromkeys(vehicle_ids)),
        lambda vid: update_vehicle_status(db, caller, vid, new_status),
    )


def assign_concesionario(
    db: Session,
    caller: CallerContext,
    vehicle_id: str,
    concesionario_id: str | None,
) -> Vehicle:
    """Asigna o libera el socio de consignación. No toca el estado del vehículo."""
    require_admin(caller, "actualizar la consignación de vehículos")
    vehicle = get_scoped(db, Vehicle, vehicle_id, caller, label="vehículo")
    concesionario_id = clean_text(concesionario_id)
    if concesionario_id is not None:
        ensure_reference(db, Concesionario, concesionario_id, caller, label="concesionario")

    previous = vehicle.concesionario_id
    vehicle.concesionario_id = concesionario_id
    commit_or_raise(db)
    db.refresh(vehicle)
    logger.info(f"Vehículo {vehicle.id}: concesionario {previous} → {concesionario_id}")
    return vehicle


def delete_vehicle(db: Session, caller: CallerContext, vehicle_id: str) -> None:
    require_admin(caller, "eliminar vehículos")
    vehicle = get_vehicle(db, caller, vehicle_id)
    if db.query(Contract.id).filter(Contract.vehicle_id == vehicle.id).first():
        raise errors.InUse("El vehículo tiene contratos asociados y no puede eliminarse.")
    if db.query(Insurance.id).filter(Insurance.vehicle_id == vehicle.id).first():
        raise errors.InUse("El vehículo tiene pólizas de seguro asociadas y no puede eliminarse.")
    db.delete(vehicle)
    commit_or_raise(db)
    logger.info(f"Vehículo {vehicle_id} eliminado del dealer {caller.dealer_id}")


def vehicle_price(vehicle: Vehicle) -> Decimal:
    """Precio vigente: el de oferta si el vehículo la tiene."""
    if vehicle.has_offer and vehicle.offer_price is not None:
        return Decimal(str(vehicle.offer_price))
    return Decimal(str(vehicle.price))
