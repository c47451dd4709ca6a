# app/services/contract_service.py
import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy.orm import Session

from app.core import errors
from app.models import (
    Client,
    Contract,
    ContractStatus,
    FinancingType,
    Vehicle,
    VehicleStatus,
)
from app.services.access import (
    CallerContext,
    ensure_payload_dealer,
    ensure_reference,
    get_scoped,
    scoped_query,
)
from app.services.lifecycle import (
    CONTRACT_VEHICLE_CASCADE,
    ensure_contract_transition,
    transition_vehicle,
)
from app.services.persistence import commit_or_raise
from app.services.validation import clean_text, require_text, to_decimal, to_enum, to_int
from app.services.vehicle_service import has_open_contract, vehicle_price

logger = logging.getLogger(__name__)


def generate_contract_number(on: date) -> str:
    return f"CTR-{on.year}-{uuid.uuid4().hex[:12].upper()}"


def validate_financing(
    financing_type: FinancingType,
    *,
    price: Decimal,
    down_payment: Decimal | None,
    months: int | None,
    monthly_payment: Decimal | None,
) -> dict:
    """
    Reglas de financiamiento al escribir:
    - contado: sin cuota inicial, meses ni pago mensual;
    - financiado: meses >= 1, pago mensual > 0, 0 <= cuota inicial < precio.
    Devuelve los tres campos normalizados.
    """
    if financing_type == FinancingType.cash:
        if down_payment is not None or months is not None or monthly_payment is not None:
            raise errors.ValidationError(
                "Un contrato de contado no lleva cuota inicial, meses ni pago mensual."
            )
        return {"down_payment": None, "months": None, "monthly_payment": None}

    if months is None or months < 1:
        raise errors.ValidationError("El financiamiento requiere al menos 1 mes.")
    if monthly_payment is None or monthly_payment <= 0:
        raise errors.ValidationError("El financiamiento requiere un pago mensual mayor a 0.")
    if down_payment is None:
        down_payment = Decimal("0")
    if down_payment < 0 or down_payment >= price:
        raise errors.ValidationError("La cuota inicial debe ser mayor o igual a 0 y menor al precio.")
    return {"down_payment": down_payment, "months": months, "monthly_payment": monthly_payment}


def create_contract(db: Session, caller: CallerContext, data: Mapping[str, Any]) -> Contract:
    """
    Crea un contrato PENDIENTE y reserva el vehículo en la misma transacción.
    Si el vehículo no está disponible (vendido, en proceso, reservado por otro
    contrato abierto) falla con VehicleNotAvailable y no se persiste nada.
    """
    ensure_payload_dealer(caller, data.get("dealer_id"))

    status = to_enum(ContractStatus, data.get("status"), "estado") or ContractStatus.pending
    if status != ContractStatus.pending:
        raise errors.ValidationError("Los contratos se crean en estado pendiente.")

    financing_type = to_enum(FinancingType, data.get("financing_type"), "tipo de financiamiento")
    if financing_type is None:
        raise errors.ValidationError("El tipo de financiamiento es requerido.")

    contract_date = data.get("date") or date.today()
    if not isinstance(contract_date, date):
        try:
            contract_date = date.fromisoformat(str(contract_date)[:10])
        except ValueError:
            raise errors.ValidationError("La fecha del contrato es inválida.")

    client_id = require_text(data.get("client_id"), "cliente")
    vehicle_id = require_text(data.get("vehicle_id"), "vehículo")

    # Referencias primero: nada se escribe si alguna es de otro dealer
    client = ensure_reference(db, Client, client_id, caller, label="cliente")
    vehicle = ensure_reference(db, Vehicle, vehicle_id, caller, label="vehículo", for_update=True)

    price = to_decimal(data.get("price"), "precio")
    if price is None:
        price = vehicle_price(vehicle)
    if price <= 0:
        raise errors.ValidationError("El precio debe ser mayor a 0.")

    financing = validate_financing(
        financing_type,
        price=price,
        down_payment=to_decimal(data.get("down_payment"), "cuota inicial"),
        months=to_int(data.get("months"), "meses"),
        monthly_payment=to_decimal(data.get("monthly_payment"), "pago mensual"),
    )

    if VehicleStatus(vehicle.status) != VehicleStatus.available or has_open_contract(db, vehicle.id):
        logger.warning(f"Reserva rechazada: vehículo {vehicle.id} en estado {vehicle.status.value}")
        raise errors.VehicleNotAvailable("El vehículo no está disponible para un nuevo contrato.")

    # Compare-and-set: si otro contrato lo reservó en paralelo, no se toca
    transition_vehicle(db, vehicle, VehicleStatus.reserved, conflict_error=errors.VehicleNotAvailable)

    contract = Contract(
        contract_number=generate_contract_number(contract_date),
        dealer_id=caller.dealer_id,
        client_id=client.id,
        vehicle_id=vehicle.id,
        status=ContractStatus.pending,
        price=price,
        date=contract_date,
        financing_type=financing_type,
        notes=clean_text(data.get("notes")),
        **financing,
    )
    db.add(contract)
    commit_or_raise(db)
    db.refresh(contract)
    logger.info(
        f"Contrato {contract.contract_number} creado (cliente {client.id}, vehículo {vehicle.id})"
    )
    return contract


def list_contracts(
    db: Session,
    caller: CallerContext,
    *,
    status: ContractStatus | None = None,
    client_id: str | None = None,
    vehicle_id: str | None = None,
    financing_type: FinancingType | None = None,
) -> list[Contract]:
    query = scoped_query(db, Contract, caller)
    if status:
        query = query.filter(Contract.status == status)
    if client_id:
        query = query.filter(Contract.client_id == client_id)
    if vehicle_id:
        query = query.filter(Contract.vehicle_id == vehicle_id)
    if financing_type:
        query = query.filter(Contract.financing_type == financing_type)
    return query.order_by(Contract.date.desc(), Contract.contract_number).all()


def get_contract(db: Session, caller: CallerContext, contract_id: str) -> Contract:
    return get_scoped(db, Contract, contract_id, caller, label="contrato")


def update_contract_status(
    db: Session,
    caller: CallerContext,
    contract_id: str,
    new_status: ContractStatus | str,
) -> Contract:
    """
    Transición del contrato con su efecto sobre el vehículo, en una transacción:
    activo → vehículo en proceso; completado → vendido; cancelado → disponible
    (si ningún otro contrato abierto lo reclama).
    """
    target = to_enum(ContractStatus, new_status, "estado")
    if target is None:
        raise errors.ValidationError("Indica el nuevo estado del contrato.")

    contract = get_scoped(db, Contract, contract_id, caller, label="contrato", for_update=True)
    current = ContractStatus(contract.status)
    ensure_contract_transition(current, target)

    vehicle = db.query(Vehicle).filter(Vehicle.id == contract.vehicle_id).with_for_update().one()
    vehicle_target = CONTRACT_VEHICLE_CASCADE[target]

    if target == ContractStatus.cancelled:
        still_claimed = has_open_contract(db, vehicle.id, exclude_contract_id=contract.id)
        if VehicleStatus(vehicle.status) == VehicleStatus.reserved and not still_claimed:
            transition_vehicle(db, vehicle, vehicle_target)
        else:
            logger.info(
                f"Contrato {contract.id} cancelado sin liberar vehículo {vehicle.id} "
                f"(estado {vehicle.status.value})"
            )
    else:
        transition_vehicle(db, vehicle, vehicle_target)

    contract.status = target
    commit_or_raise(db)
    db.refresh(contract)
    logger.info(f"Contrato {contract.contract_number}: {current.value} → {target.value}")
    return contract
