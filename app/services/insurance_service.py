# app/services/insurance_service.py
import logging
from datetime import date, timedelta
from typing import Any, Mapping

from dateutil.relativedelta import relativedelta
from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.core import errors
from app.core.config import get_settings
from app.models import (
    Client,
    Contract,
    CoverageType,
    Insurance,
    InsuranceStatus,
    STORED_INSURANCE_STATUSES,
    Vehicle,
)
from app.services.access import (
    CallerContext,
    ensure_payload_dealer,
    ensure_reference,
    get_scoped,
    scoped_query,
)
from app.services.persistence import commit_or_raise
from app.services.validation import clean_text, require_text, to_decimal, to_enum, to_int

logger = logging.getLogger(__name__)


def compute_expiry_date(start_date: date, coverage_duration: int) -> date:
    """Vencimiento = inicio + N meses de calendario (31/01 + 1 mes = 28 o 29/02)."""
    return start_date + relativedelta(months=coverage_duration)


def _expiring_soon_days() -> int:
    return get_settings().INSURANCE_EXPIRING_SOON_DAYS


def effective_status(insurance: Insurance, today: date | None = None) -> InsuranceStatus:
    """Estado visible de la póliza, calculado al leer a partir del vencimiento."""
    return insurance.effective_status(today or date.today(), _expiring_soon_days())


def _status_condition(status: InsuranceStatus, today: date):
    """Misma regla que ``effective_status``, expresada como filtro SQL."""
    threshold = today + timedelta(days=_expiring_soon_days())
    not_cancelled = Insurance.status != InsuranceStatus.cancelled
    if status == InsuranceStatus.cancelled:
        return Insurance.status == InsuranceStatus.cancelled
    if status == InsuranceStatus.expired:
        return and_(not_cancelled, Insurance.expiry_date < today)
    if status == InsuranceStatus.expiring_soon:
        return and_(not_cancelled, Insurance.expiry_date >= today, Insurance.expiry_date <= threshold)
    return and_(not_cancelled, Insurance.expiry_date > threshold)


def _to_date(value: Any, label: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise errors.ValidationError(f"Fecha inválida para {label}.")


def create_insurance(db: Session, caller: CallerContext, data: Mapping[str, Any]) -> Insurance:
    ensure_payload_dealer(caller, data.get("dealer_id"))

    start_date = _to_date(data.get("start_date"), "fecha de inicio")
    if start_date is None:
        raise errors.ValidationError("Fecha de inicio requerida.")
    coverage_duration = to_int(data.get("coverage_duration"), "duración de cobertura")
    if coverage_duration is None or coverage_duration < 1:
        raise errors.ValidationError("La duración de la cobertura debe ser de al menos 1 mes.")
    coverage_type = to_enum(CoverageType, data.get("coverage_type"), "tipo de cobertura")
    if coverage_type is None:
        raise errors.ValidationError("El tipo de cobertura es requerido.")
    premium = to_decimal(data.get("premium"), "prima")
    if premium is None or premium < 0:
        raise errors.ValidationError("Prima requerida (mayor o igual a 0).")

    expiry_date = compute_expiry_date(start_date, coverage_duration)
    requested_expiry = _to_date(data.get("expiry_date"), "fecha de vencimiento")
    if requested_expiry is not None and requested_expiry != expiry_date:
        raise errors.ValidationError(
            "La fecha de vencimiento se calcula a partir del inicio y la duración de la cobertura."
        )

    status = to_enum(InsuranceStatus, data.get("status"), "estado") or InsuranceStatus.active
    if status != InsuranceStatus.active:
        raise errors.ValidationError("Las pólizas se registran activas.")

    vehicle = ensure_reference(
        db, Vehicle, require_text(data.get("vehicle_id"), "vehículo"), caller, label="vehículo"
    )
    client_id = clean_text(data.get("client_id"))
    contract_id = clean_text(data.get("contract_id"))
    if client_id is not None:
        ensure_reference(db, Client, client_id, caller, label="cliente")

    if contract_id is not None:
        contract = ensure_reference(db, Contract, contract_id, caller, label="contrato")
        # Consistencia del triángulo póliza / contrato / vehículo-cliente
        if contract.vehicle_id != vehicle.id:
            raise errors.ValidationError("El contrato indicado corresponde a otro vehículo.")
        if client_id is None:
            client_id = contract.client_id
        elif contract.client_id != client_id:
            raise errors.ValidationError("El contrato indicado corresponde a otro cliente.")

    insurance = Insurance(
        dealer_id=caller.dealer_id,
        vehicle_id=vehicle.id,
        client_id=client_id,
        contract_id=contract_id,
        start_date=start_date,
        expiry_date=expiry_date,
        coverage_type=coverage_type,
        coverage_duration=coverage_duration,
        premium=premium,
        status=InsuranceStatus.active,
    )
    db.add(insurance)
    commit_or_raise(db)
    db.refresh(insurance)
    logger.info(f"Póliza {insurance.id} emitida para vehículo {vehicle.id} (vence {expiry_date})")
    return insurance


def list_insurance(
    db: Session,
    caller: CallerContext,
    *,
    status: InsuranceStatus | None = None,
    vehicle_id: str | None = None,
    client_id: str | None = None,
    contract_id: str | None = None,
    coverage_type: CoverageType | None = None,
    today: date | None = None,
) -> list[Insurance]:
    query = scoped_query(db, Insurance, caller)
    if status:
        query = query.filter(_status_condition(status, today or date.today()))
    if vehicle_id:
        query = query.filter(Insurance.vehicle_id == vehicle_id)
    if client_id:
        query = query.filter(Insurance.client_id == client_id)
    if contract_id:
        query = query.filter(Insurance.contract_id == contract_id)
    if coverage_type:
        query = query.filter(Insurance.coverage_type == coverage_type)
    return query.order_by(Insurance.expiry_date).all()


def get_insurance(db: Session, caller: CallerContext, insurance_id: str) -> Insurance:
    return get_scoped(db, Insurance, insurance_id, caller, label="seguro")


def update_insurance_status(
    db: Session,
    caller: CallerContext,
    insurance_id: str,
    new_status: InsuranceStatus | str,
) -> Insurance:
    """Solo la cancelación se escribe; vigente / por vencer / vencido se derivan."""
    target = to_enum(InsuranceStatus, new_status, "estado")
    if target is None:
        raise errors.ValidationError("Indica el nuevo estado de la póliza.")
    insurance = get_insurance(db, caller, insurance_id)

    if target not in STORED_INSURANCE_STATUSES:
        raise errors.InvalidStateTransition(
            f"El estado '{target.value}' se calcula por vencimiento y no puede asignarse."
        )
    if target != InsuranceStatus.cancelled:
        raise errors.InvalidStateTransition("Solo puede cancelarse una póliza.")
    if insurance.status == InsuranceStatus.cancelled:
        raise errors.InvalidStateTransition("La póliza ya está cancelada.")

    insurance.status = InsuranceStatus.cancelled
    commit_or_raise(db)
    db.refresh(insurance)
    logger.info(f"Póliza {insurance.id} cancelada")
    return insurance
