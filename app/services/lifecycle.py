# app/services/lifecycle.py
"""Máquinas de estado de vehículos y contratos."""
import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core import errors
from app.models import ContractStatus, Vehicle, VehicleStatus

logger = logging.getLogger(__name__)

VEHICLE_TRANSITIONS: dict[VehicleStatus, frozenset[VehicleStatus]] = {
    VehicleStatus.available: frozenset({VehicleStatus.reserved, VehicleStatus.maintenance}),
    VehicleStatus.reserved: frozenset(
        {VehicleStatus.in_process, VehicleStatus.available, VehicleStatus.maintenance}
    ),
    VehicleStatus.in_process: frozenset({VehicleStatus.sold}),
    VehicleStatus.maintenance: frozenset({VehicleStatus.available}),
    VehicleStatus.sold: frozenset(),
}

# Cambios que un admin puede aplicar directamente (mantenimiento)
ADMIN_VEHICLE_TRANSITIONS: dict[VehicleStatus, frozenset[VehicleStatus]] = {
    VehicleStatus.available: frozenset({VehicleStatus.maintenance}),
    VehicleStatus.reserved: frozenset({VehicleStatus.maintenance}),
    VehicleStatus.maintenance: frozenset({VehicleStatus.available}),
}

# Estados del vehículo que solo se alcanzan por el ciclo de vida de un contrato
CONTRACT_DRIVEN_VEHICLE_STATUSES = frozenset(
    {VehicleStatus.reserved, VehicleStatus.in_process, VehicleStatus.sold}
)

CONTRACT_TRANSITIONS: dict[ContractStatus, frozenset[ContractStatus]] = {
    ContractStatus.pending: frozenset({ContractStatus.active, ContractStatus.cancelled}),
    ContractStatus.active: frozenset({ContractStatus.completed}),
    ContractStatus.completed: frozenset(),
    ContractStatus.cancelled: frozenset(),
}

# Efecto de cada transición de contrato sobre su vehículo
CONTRACT_VEHICLE_CASCADE: dict[ContractStatus, VehicleStatus] = {
    ContractStatus.active: VehicleStatus.in_process,
    ContractStatus.completed: VehicleStatus.sold,
    ContractStatus.cancelled: VehicleStatus.available,
}


def ensure_vehicle_transition(current: VehicleStatus, target: VehicleStatus) -> None:
    if target not in VEHICLE_TRANSITIONS[current]:
        raise errors.InvalidStateTransition(
            f"Transición de vehículo no permitida: {current.value} → {target.value}."
        )


def ensure_admin_vehicle_transition(current: VehicleStatus, target: VehicleStatus) -> None:
    if target not in ADMIN_VEHICLE_TRANSITIONS.get(current, frozenset()):
        raise errors.InvalidStateTransition(
            f"Cambio administrativo no permitido: {current.value} → {target.value}."
        )


def ensure_contract_transition(current: ContractStatus, target: ContractStatus) -> None:
    if target not in CONTRACT_TRANSITIONS[current]:
        raise errors.InvalidStateTransition(
            f"Transición de contrato no permitida: {current.value} → {target.value}."
        )


def transition_vehicle(
    db: Session,
    vehicle: Vehicle,
    target: VehicleStatus,
    *,
    conflict_error: type[errors.DealershipError] = errors.InvalidStateTransition,
) -> None:
    """
    Cambia el estado del vehículo con un compare-and-set sobre el estado leído.
    Si otro escritor lo cambió en medio, no se toca la fila y se lanza
    ``conflict_error``. No confirma: el caller decide el commit.
    """
    current = VehicleStatus(vehicle.status)
    ensure_vehicle_transition(current, target)

    result = db.execute(
        update(Vehicle)
        .where(Vehicle.id == vehicle.id, Vehicle.status == current)
        .values(status=target, updated_at=datetime.utcnow())
    )
    if result.rowcount != 1:
        logger.warning(f"Vehículo {vehicle.id} cambió de estado concurrentemente (esperado {current.value})")
        raise conflict_error("El estado del vehículo cambió mientras se procesaba la operación.")
    logger.info(f"Vehículo {vehicle.id}: {current.value} → {target.value}")
