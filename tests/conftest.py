# tests/conftest.py
import itertools
import os

# La configuración se lee al importar app.*; fijarla antes
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_dealer_backoffice.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.db.deps import get_db
from app.db.session import build_engine
from app.main import app as fastapi_app
from app.models import ProfileRole
from app.services import client_service, concesionario_service, dealer_service, vehicle_service
from app.services.access import CallerContext

_seq = itertools.count(1)


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'dealer_test.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _admin_for(dealer) -> CallerContext:
    return CallerContext(dealer_id=dealer.id, role=ProfileRole.admin)


@pytest.fixture
def dealer(db):
    return dealer_service.create_dealer(db, business_name="Autos del Norte")


@pytest.fixture
def other_dealer(db):
    return dealer_service.create_dealer(db, business_name="Motores del Sur")


@pytest.fixture
def admin(dealer) -> CallerContext:
    return _admin_for(dealer)


@pytest.fixture
def seller(dealer) -> CallerContext:
    return CallerContext(dealer_id=dealer.id, role=ProfileRole.user)


@pytest.fixture
def other_admin(other_dealer) -> CallerContext:
    return _admin_for(other_dealer)


def unique_vin() -> str:
    return f"VIN{next(_seq):014d}"


def vehicle_payload(**overrides) -> dict:
    data = {
        "brand": "Toyota",
        "model": "Hilux",
        "year": 2023,
        "vehicle_type": "pickup",
        "color": "blanco",
        "transmission": "manual",
        "fuel_type": "diesel",
        "engine_size": "2.4L",
        "doors": 4,
        "seats": 5,
        "price": 950000,
        "vin": unique_vin(),
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_vehicle(db):
    def _make(caller: CallerContext, **overrides):
        return vehicle_service.create_vehicle(db, caller, vehicle_payload(**overrides))

    return _make


@pytest.fixture
def make_client(db):
    def _make(caller: CallerContext, **overrides):
        data = {"name": "Ana Torres", "address": "Av. Amazonas 123"}
        data.update(overrides)
        return client_service.create_client(db, caller, data)

    return _make


@pytest.fixture
def make_concesionario(db):
    def _make(caller: CallerContext, **overrides):
        data = {
            "name": "Socio Centro",
            "contact_name": "Luis Pérez",
            "address": "Calle Principal 45",
        }
        data.update(overrides)
        return concesionario_service.create_concesionario(db, caller, data)

    return _make


@pytest.fixture
def api_client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    with TestClient(fastapi_app) as client:
        yield client
    fastapi_app.dependency_overrides.clear()
