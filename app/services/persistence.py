# app/services/persistence.py
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import errors

logger = logging.getLogger(__name__)

# (fragmentos del mensaje del motor, error de dominio). Cubre SQLite y Postgres.
KNOWN_CONSTRAINTS: Sequence[tuple[tuple[str, ...], Callable[[], errors.DealershipError]]] = (
    (("vehicles.vin", "ix_vehicles_vin"), lambda: errors.UniquenessConflict("Ya existe un vehículo con ese VIN.")),
    (("vehicles.plate", "ix_vehicles_plate"), lambda: errors.UniquenessConflict("Ya existe un vehículo con esa placa.")),
    (("clients.cedula", "ix_clients_cedula"), lambda: errors.UniquenessConflict("Ya existe un cliente con esa cédula.")),
    (("profiles.username", "ix_profiles_username"), lambda: errors.UniquenessConflict("El nombre de usuario ya está en uso.")),
    (
        ("contracts.contract_number", "ix_contracts_contract_number"),
        lambda: errors.UniquenessConflict("Conflicto al generar el número de contrato. Inténtalo de nuevo."),
    ),
    (
        ("contracts.vehicle_id", "uq_contracts_open_vehicle"),
        lambda: errors.VehicleNotAvailable("El vehículo ya está comprometido en otro contrato abierto."),
    ),
    (
        ("foreign key constraint",),
        lambda: errors.InUse("La operación viola una referencia entre registros."),
    ),
)


def translate_integrity_error(exc: IntegrityError) -> errors.DealershipError:
    message = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    for fragments, factory in KNOWN_CONSTRAINTS:
        if any(fragment in message for fragment in fragments):
            return factory()
    return errors.StorageError("Error de integridad no esperado al guardar.")


def commit_or_raise(db: Session) -> None:
    """
    Confirma la transacción en curso. Ante cualquier fallo hace rollback y
    traduce el error del motor a la taxonomía del núcleo.
    """
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        domain_error = translate_integrity_error(exc)
        logger.warning(f"Commit rechazado ({domain_error.kind}): {exc.orig}")
        raise domain_error from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Fallo de almacenamiento al confirmar: {exc}")
        raise errors.StorageError("Error de almacenamiento; la operación puede reintentarse.") from exc


@dataclass
class BulkResult:
    """Resultado de una operación masiva: cada fila va en su propia transacción."""

    succeeded: list[str] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)

    def to_dict(self) -> dict:
        return {
            "succeeded": list(self.succeeded),
            "failed": list(self.failed),
            "partial": self.partial,
        }


def run_per_row(db: Session, ids: Iterable[str], operation: Callable[[str], object]) -> BulkResult:
    """
    Ejecuta ``operation(id)`` fila por fila. ``operation`` confirma su propia
    transacción; un fallo se registra en el resultado y no detiene el resto.
    """
    result = BulkResult()
    for entity_id in ids:
        try:
            operation(entity_id)
        except errors.DealershipError as exc:
            db.rollback()
            logger.warning(f"Operación masiva: fila {entity_id} falló ({exc.kind}): {exc.message}")
            result.failed.append({"id": entity_id, "kind": exc.kind, "message": exc.message})
        else:
            result.succeeded.append(entity_id)
    return result
