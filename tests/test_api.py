# tests/test_api.py
import pytest

from conftest import vehicle_payload

PASSWORD = "clave-segura-1"


def _onboard(client, username: str, business_name: str = "Autos del Norte") -> dict:
    response = client.post(
        "/api/dealers",
        json={
            "business_name": business_name,
            "admin_username": username,
            "admin_password": PASSWORD,
            "admin_full_name": "Admin Prueba",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def _login(client, username: str, password: str = PASSWORD):
    return client.post("/api/auth/login", json={"username": username, "password": password})


@pytest.fixture
def logged_admin(api_client):
    onboarded = _onboard(api_client, "admin_norte")
    assert _login(api_client, "admin_norte").status_code == 200
    return onboarded


def test_healthz(api_client):
    response = api_client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_requires_session(api_client):
    response = api_client.get("/api/vehicles")
    assert response.status_code == 401


def test_login_rejects_bad_password(api_client):
    _onboard(api_client, "admin_norte")
    assert _login(api_client, "admin_norte", "incorrecta").status_code == 401


def test_me_and_logout(api_client, logged_admin):
    me = api_client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["role"] == "admin"
    assert me.json()["dealer_id"] == logged_admin["dealer"]["id"]

    assert api_client.get("/api/dealers/me").json()["business_name"] == "Autos del Norte"

    assert api_client.post("/api/auth/logout").status_code == 204
    assert api_client.get("/api/auth/me").status_code == 401


def test_duplicate_username_on_onboarding(api_client):
    _onboard(api_client, "admin_norte")
    response = api_client.post(
        "/api/dealers",
        json={"business_name": "Otro", "admin_username": "admin_norte", "admin_password": PASSWORD},
    )
    assert response.status_code == 409
    assert response.json()["error"]["kind"] == "uniqueness_conflict"


def test_domain_errors_use_error_envelope(api_client, logged_admin):
    response = api_client.get("/api/vehicles/no-existe")

    assert response.status_code == 404
    body = response.json()
    assert body["error"]["kind"] == "not_found"
    assert body["error"]["message"]


def test_sale_flow_over_http(api_client, logged_admin):
    vehicle = api_client.post("/api/vehicles", json=vehicle_payload(price=950000))
    assert vehicle.status_code == 201, vehicle.text
    vehicle_id = vehicle.json()["id"]

    client = api_client.post("/api/clients", json={"name": "Ana Torres", "address": "Av. Amazonas 123"})
    assert client.status_code == 201, client.text

    contract = api_client.post(
        "/api/contracts",
        json={
            "client_id": client.json()["id"],
            "vehicle_id": vehicle_id,
            "financing_type": "financing",
            "down_payment": 190000,
            "months": 48,
            "monthly_payment": 15833,
        },
    )
    assert contract.status_code == 201, contract.text
    assert api_client.get(f"/api/vehicles/{vehicle_id}").json()["status"] == "reserved"

    second = api_client.post(
        "/api/contracts",
        json={"client_id": client.json()["id"], "vehicle_id": vehicle_id, "financing_type": "cash"},
    )
    assert second.status_code == 409
    assert second.json()["error"]["kind"] == "vehicle_not_available"

    contract_id = contract.json()["id"]
    assert api_client.put(f"/api/contracts/{contract_id}/status", json={"status": "active"}).status_code == 200
    done = api_client.put(f"/api/contracts/{contract_id}/status", json={"status": "completed"})
    assert done.json()["status"] == "completed"
    assert api_client.get(f"/api/vehicles/{vehicle_id}").json()["status"] == "sold"


def test_duplicate_vin_over_http(api_client, logged_admin):
    payload = vehicle_payload()
    assert api_client.post("/api/vehicles", json=payload).status_code == 201

    response = api_client.post("/api/vehicles", json=payload)
    assert response.status_code == 409
    assert response.json()["error"]["kind"] == "uniqueness_conflict"


def test_other_dealer_cannot_see_vehicles(api_client, logged_admin):
    vehicle_id = api_client.post("/api/vehicles", json=vehicle_payload()).json()["id"]
    api_client.post("/api/auth/logout")

    _onboard(api_client, "admin_sur", business_name="Motores del Sur")
    assert _login(api_client, "admin_sur").status_code == 200

    assert api_client.get("/api/vehicles").json() == []
    assert api_client.get(f"/api/vehicles/{vehicle_id}").status_code == 404


def test_non_admin_cannot_change_vehicle_status(api_client, logged_admin):
    vehicle_id = api_client.post("/api/vehicles", json=vehicle_payload()).json()["id"]
    created = api_client.post(
        "/api/auth/profiles",
        json={"username": "vendedor", "password": PASSWORD, "role": "user"},
    )
    assert created.status_code == 201, created.text
    api_client.post("/api/auth/logout")
    assert _login(api_client, "vendedor").status_code == 200

    response = api_client.put(f"/api/vehicles/{vehicle_id}/status", json={"status": "maintenance"})

    assert response.status_code == 403
    assert response.json()["error"]["kind"] == "forbidden"


def test_insurance_reports_derived_status(api_client, logged_admin):
    vehicle_id = api_client.post("/api/vehicles", json=vehicle_payload()).json()["id"]

    response = api_client.post(
        "/api/insurance",
        json={
            "vehicle_id": vehicle_id,
            "start_date": "2020-01-01",
            "coverage_type": "motor_transmission",
            "coverage_duration": 12,
            "premium": 800,
        },
    )

    assert response.status_code == 201, response.text
    assert response.json()["expiry_date"] == "2021-01-01"
    assert response.json()["status"] == "expired"


@pytest.mark.parametrize("amount", ["NaN", "Infinity"])
def test_non_finite_json_amounts_are_rejected(api_client, logged_admin, amount):
    vehicle_id = api_client.post("/api/vehicles", json=vehicle_payload()).json()["id"]
    client_id = api_client.post(
        "/api/clients", json={"name": "Ana Torres", "address": "Av. Amazonas 123"}
    ).json()["id"]

    body = (
        f'{{"client_id": "{client_id}", "vehicle_id": "{vehicle_id}", '
        f'"financing_type": "financing", "months": 12, "monthly_payment": {amount}}}'
    )
    response = api_client.post(
        "/api/contracts", content=body, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 422
    assert api_client.get(f"/api/vehicles/{vehicle_id}").json()["status"] == "available"
    assert api_client.get("/api/contracts").json() == []
