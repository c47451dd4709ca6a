# tests/test_contracts.py
import re
import threading
from datetime import date
from decimal import Decimal

import pytest

from app.core import errors
from app.models import Contract, ContractStatus, VehicleStatus
from app.services import contract_service, vehicle_service


def _financed(client, vehicle, **overrides) -> dict:
    data = {
        "client_id": client.id,
        "vehicle_id": vehicle.id,
        "financing_type": "financing",
        "months": 48,
        "monthly_payment": 15833,
        "down_payment": 190000,
    }
    data.update(overrides)
    return data


def test_financed_sale_reserves_then_sells_vehicle(db, admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin, price=950000)
    client = make_client(admin)

    contract = contract_service.create_contract(db, admin, _financed(client, vehicle))

    assert contract.status == ContractStatus.pending
    assert contract.price == Decimal("950000")
    assert contract.date == date.today()
    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.reserved

    contract_service.update_contract_status(db, admin, contract.id, "active")
    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.in_process

    contract = contract_service.update_contract_status(db, admin, contract.id, ContractStatus.completed)
    assert contract.status == ContractStatus.completed
    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.sold


def test_sold_vehicle_cannot_be_reserved_again(db, admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin)
    client = make_client(admin)
    contract = contract_service.create_contract(db, admin, _financed(client, vehicle))
    contract_service.update_contract_status(db, admin, contract.id, "active")
    contract_service.update_contract_status(db, admin, contract.id, "completed")

    with pytest.raises(errors.VehicleNotAvailable):
        contract_service.create_contract(db, admin, _financed(client, vehicle))
    with pytest.raises(errors.InvalidStateTransition):
        vehicle_service.update_vehicle_status(db, admin, vehicle.id, VehicleStatus.available)


def test_contract_number_format(db, admin, make_vehicle, make_client):
    contract = contract_service.create_contract(
        db,
        admin,
        {
            "client_id": make_client(admin).id,
            "vehicle_id": make_vehicle(admin).id,
            "financing_type": "cash",
            "date": "2025-03-14",
        },
    )

    assert re.fullmatch(r"CTR-2025-[0-9A-F]{12}", contract.contract_number)
    assert contract.down_payment is None and contract.months is None


def test_price_defaults_to_offer_price(db, admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin, price=30000, has_offer=True, offer_price=27500)

    contract = contract_service.create_contract(
        db, admin, {"client_id": make_client(admin).id, "vehicle_id": vehicle.id, "financing_type": "cash"}
    )

    assert contract.price == Decimal("27500")


@pytest.mark.parametrize(
    "overrides",
    [
        {"financing_type": "cash"},
        {"months": 0},
        {"monthly_payment": 0},
        {"down_payment": 950000},
        {"down_payment": -1},
    ],
)
def test_financing_rules(db, admin, make_vehicle, make_client, overrides):
    vehicle = make_vehicle(admin, price=950000)

    with pytest.raises(errors.ValidationError):
        contract_service.create_contract(db, admin, _financed(make_client(admin), vehicle, **overrides))

    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.available


def test_validate_financing_defaults_down_payment_to_zero():
    fields = contract_service.validate_financing(
        contract_service.FinancingType.financing,
        price=Decimal("1000"),
        down_payment=None,
        months=12,
        monthly_payment=Decimal("90"),
    )
    assert fields["down_payment"] == Decimal("0")


def test_contracts_are_created_pending(db, admin, make_vehicle, make_client):
    with pytest.raises(errors.ValidationError):
        contract_service.create_contract(
            db, admin, _financed(make_client(admin), make_vehicle(admin), status="active")
        )


def test_vehicle_in_maintenance_is_not_available(db, admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin, status="maintenance")

    with pytest.raises(errors.VehicleNotAvailable):
        contract_service.create_contract(db, admin, _financed(make_client(admin), vehicle))


def test_cancel_releases_vehicle(db, admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin)
    client = make_client(admin)
    contract = contract_service.create_contract(db, admin, _financed(client, vehicle))

    contract_service.update_contract_status(db, admin, contract.id, ContractStatus.cancelled)

    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.available
    again = contract_service.create_contract(db, admin, _financed(client, vehicle))
    assert again.status == ContractStatus.pending


def test_closed_contracts_do_not_move(db, admin, make_vehicle, make_client):
    contract = contract_service.create_contract(db, admin, _financed(make_client(admin), make_vehicle(admin)))
    contract_service.update_contract_status(db, admin, contract.id, "cancelled")

    with pytest.raises(errors.InvalidStateTransition):
        contract_service.update_contract_status(db, admin, contract.id, "active")


def test_pending_cannot_jump_to_completed(db, admin, make_vehicle, make_client):
    contract = contract_service.create_contract(db, admin, _financed(make_client(admin), make_vehicle(admin)))

    with pytest.raises(errors.InvalidStateTransition):
        contract_service.update_contract_status(db, admin, contract.id, "completed")


def test_foreign_client_is_rejected_without_reserving(db, admin, other_admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin)
    foreign_client = make_client(other_admin)

    with pytest.raises(errors.TenantMismatch):
        contract_service.create_contract(db, admin, _financed(foreign_client, vehicle))

    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.available
    assert db.query(Contract).count() == 0


def test_list_contracts_filters(db, admin, make_vehicle, make_client):
    client = make_client(admin)
    cash = contract_service.create_contract(
        db, admin, {"client_id": client.id, "vehicle_id": make_vehicle(admin).id, "financing_type": "cash"}
    )
    financed = contract_service.create_contract(db, admin, _financed(client, make_vehicle(admin)))
    contract_service.update_contract_status(db, admin, financed.id, "active")

    assert [c.id for c in contract_service.list_contracts(db, admin, status=ContractStatus.active)] == [financed.id]
    assert [
        c.id for c in contract_service.list_contracts(db, admin, financing_type=contract_service.FinancingType.cash)
    ] == [cash.id]


def test_concurrent_reservations_only_one_wins(db, session_factory, admin, make_vehicle, make_client):
    vehicle_id = make_vehicle(admin).id
    client_ids = [make_client(admin, name=f"Cliente {i}").id for i in range(2)]
    # Cierra la transacción del fixture antes de lanzar los hilos
    db.rollback()

    barrier = threading.Barrier(2)
    outcomes = []

    def reserve(client_id: str) -> None:
        session = session_factory()
        try:
            barrier.wait()
            contract_service.create_contract(
                session,
                admin,
                {"client_id": client_id, "vehicle_id": vehicle_id, "financing_type": "cash"},
            )
            outcomes.append("ok")
        except errors.DealershipError as exc:
            outcomes.append(exc.kind)
        finally:
            session.close()

    threads = [threading.Thread(target=reserve, args=(cid,)) for cid in client_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(outcomes) == ["ok", "vehicle_not_available"]
    assert db.query(Contract).filter(Contract.vehicle_id == vehicle_id).count() == 1
    assert vehicle_service.get_vehicle(db, admin, vehicle_id).status == VehicleStatus.reserved


@pytest.mark.parametrize("field", ["monthly_payment", "down_payment", "price"])
@pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity", float("nan"), float("inf")])
def test_non_finite_amounts_are_rejected(db, admin, make_vehicle, make_client, field, value):
    vehicle = make_vehicle(admin, price=950000)

    with pytest.raises(errors.ValidationError):
        contract_service.create_contract(db, admin, _financed(make_client(admin), vehicle, **{field: value}))

    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.available
    assert db.query(Contract).count() == 0
