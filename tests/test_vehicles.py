# tests/test_vehicles.py
import pytest

from app.core import errors
from app.models import ContractStatus, VehicleStatus
from app.services import contract_service, vehicle_service

from conftest import vehicle_payload


def test_create_vehicle_defaults_to_available_in_caller_dealer(db, admin, make_vehicle):
    vehicle = make_vehicle(admin, plate="PBA-1234")

    assert vehicle.status == VehicleStatus.available
    assert vehicle.dealer_id == admin.dealer_id
    assert vehicle.concesionario_id is None
    assert vehicle.images == []


def test_vin_must_have_17_characters(db, admin):
    with pytest.raises(errors.ValidationError):
        vehicle_service.create_vehicle(db, admin, vehicle_payload(vin="ABC123"))


@pytest.mark.parametrize("field,value", [("year", 1899), ("year", 2051), ("price", 0), ("plate", "X" * 11)])
def test_rejects_out_of_range_attributes(db, admin, field, value):
    with pytest.raises(errors.ValidationError):
        vehicle_service.create_vehicle(db, admin, vehicle_payload(**{field: value}))


def test_new_vehicle_cannot_start_reserved(db, admin):
    with pytest.raises(errors.ValidationError):
        vehicle_service.create_vehicle(db, admin, vehicle_payload(status="reserved"))


def test_vin_is_unique_across_dealers(db, admin, other_admin, make_vehicle):
    vehicle = make_vehicle(admin)

    with pytest.raises(errors.UniquenessConflict):
        make_vehicle(other_admin, vin=vehicle.vin)


def test_plate_is_unique(db, admin, make_vehicle):
    make_vehicle(admin, plate="PBA-1234")

    with pytest.raises(errors.UniquenessConflict):
        make_vehicle(admin, plate="PBA-1234")


def test_payload_dealer_must_match_session(db, admin, other_dealer):
    with pytest.raises(errors.TenantMismatch):
        vehicle_service.create_vehicle(db, admin, vehicle_payload(dealer_id=other_dealer.id))


def test_maintenance_round_trip(db, admin, make_vehicle):
    vehicle = make_vehicle(admin)

    vehicle = vehicle_service.update_vehicle_status(db, admin, vehicle.id, "maintenance")
    assert vehicle.status == VehicleStatus.maintenance

    vehicle = vehicle_service.update_vehicle_status(db, admin, vehicle.id, VehicleStatus.available)
    assert vehicle.status == VehicleStatus.available


def test_contract_driven_statuses_are_not_set_directly(db, admin, make_vehicle):
    vehicle = make_vehicle(admin)

    with pytest.raises(errors.InvalidStateTransition):
        vehicle_service.update_vehicle_status(db, admin, vehicle.id, VehicleStatus.sold)


def test_status_change_requires_admin(db, admin, seller, make_vehicle):
    vehicle = make_vehicle(admin)

    with pytest.raises(errors.Forbidden):
        vehicle_service.update_vehicle_status(db, seller, vehicle.id, VehicleStatus.maintenance)


def test_bulk_status_reports_partial_success(db, admin, make_vehicle):
    ok = make_vehicle(admin)
    already = make_vehicle(admin, status="maintenance")

    result = vehicle_service.bulk_update_vehicle_status(
        db, admin, [ok.id, already.id, "no-existe"], VehicleStatus.maintenance
    )

    assert result.succeeded == [ok.id]
    assert {f["id"]: f["kind"] for f in result.failed} == {
        already.id: "invalid_state_transition",
        "no-existe": "not_found",
    }
    assert result.partial is True
    assert vehicle_service.get_vehicle(db, admin, ok.id).status == VehicleStatus.maintenance


def test_list_filters_by_status_and_assignment(db, admin, make_vehicle, make_concesionario):
    socio = make_concesionario(admin)
    assigned = make_vehicle(admin, concesionario_id=socio.id, brand="Kia")
    in_shop = make_vehicle(admin, status="maintenance", brand="Mazda")

    assert [v.id for v in vehicle_service.list_vehicles(db, admin, status=VehicleStatus.maintenance)] == [in_shop.id]
    assert [v.id for v in vehicle_service.list_vehicles(db, admin, assignment="assigned")] == [assigned.id]
    assert [v.id for v in vehicle_service.list_vehicles(db, admin, q="maz")] == [in_shop.id]


def test_assign_concesionario_keeps_status(db, admin, make_vehicle, make_concesionario):
    socio = make_concesionario(admin)
    vehicle = make_vehicle(admin, status="maintenance")

    vehicle = vehicle_service.assign_concesionario(db, admin, vehicle.id, socio.id)

    assert vehicle.concesionario_id == socio.id
    assert vehicle.status == VehicleStatus.maintenance


def test_assign_foreign_concesionario_is_tenant_mismatch(db, admin, other_admin, make_vehicle, make_concesionario):
    foreign = make_concesionario(other_admin)
    vehicle = make_vehicle(admin)

    with pytest.raises(errors.TenantMismatch):
        vehicle_service.assign_concesionario(db, admin, vehicle.id, foreign.id)


def test_delete_vehicle_with_contract_is_restricted(db, admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin)
    client = make_client(admin)
    contract_service.create_contract(
        db, admin, {"client_id": client.id, "vehicle_id": vehicle.id, "financing_type": "cash"}
    )

    with pytest.raises(errors.InUse):
        vehicle_service.delete_vehicle(db, admin, vehicle.id)


def test_delete_vehicle(db, admin, make_vehicle):
    vehicle_id = make_vehicle(admin).id

    vehicle_service.delete_vehicle(db, admin, vehicle_id)

    with pytest.raises(errors.NotFound):
        vehicle_service.get_vehicle(db, admin, vehicle_id)


def test_admin_cannot_release_reserved_vehicle(db, admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin)
    contract = contract_service.create_contract(
        db, admin, {"client_id": make_client(admin).id, "vehicle_id": vehicle.id, "financing_type": "cash"}
    )

    with pytest.raises(errors.InvalidStateTransition):
        vehicle_service.update_vehicle_status(db, admin, vehicle.id, VehicleStatus.available)

    db.rollback()
    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.reserved
    contract = contract_service.update_contract_status(db, admin, contract.id, "active")
    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.in_process


def test_active_contract_blocks_maintenance(db, admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin)
    contract = contract_service.create_contract(
        db, admin, {"client_id": make_client(admin).id, "vehicle_id": vehicle.id, "financing_type": "cash"}
    )
    contract_service.update_contract_status(db, admin, contract.id, "active")

    with pytest.raises(errors.InvalidStateTransition):
        vehicle_service.update_vehicle_status(db, admin, vehicle.id, VehicleStatus.maintenance)

    db.rollback()
    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.in_process


def test_reserved_vehicle_with_pending_contract_can_enter_maintenance(db, admin, make_vehicle, make_client):
    vehicle = make_vehicle(admin)
    contract = contract_service.create_contract(
        db, admin, {"client_id": make_client(admin).id, "vehicle_id": vehicle.id, "financing_type": "cash"}
    )

    vehicle = vehicle_service.update_vehicle_status(db, admin, vehicle.id, VehicleStatus.maintenance)
    assert vehicle.status == VehicleStatus.maintenance

    # El contrato pendiente ya no puede activarse; solo cancelarse
    with pytest.raises(errors.InvalidStateTransition):
        contract_service.update_contract_status(db, admin, contract.id, "active")
    db.rollback()

    contract = contract_service.update_contract_status(db, admin, contract.id, "cancelled")
    assert contract.status == ContractStatus.cancelled
    assert vehicle_service.get_vehicle(db, admin, vehicle.id).status == VehicleStatus.maintenance
