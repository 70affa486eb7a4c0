"""
Pytest fixtures for the rentals backend tests.

Provides an application backed by an in-memory record store, the services
container, an admin actor, and factories for clients, items and orders.
"""

import pytest

from rentals import create_app
from rentals.services.record_store import MemoryRecordStore
from rentals.services.user_service import SYSTEM_ACTOR

VALID_CPF = "529.982.247-25"
OTHER_CPF = "111.444.777-35"
VALID_CNPJ = "11.222.333/0001-81"


@pytest.fixture(scope='function')
def record_store():
    return MemoryRecordStore()


@pytest.fixture(scope='function')
def app(record_store):
    """Create application for testing."""
    app = create_app(
        config_overrides={
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
            'RECORD_STORE_BACKEND': 'memory',
            'MIRROR_URL': None,
            'BCRYPT_ROUNDS': 4,
        },
        record_store=record_store,
    )
    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def services(app):
    return app.extensions["rentals"]


@pytest.fixture(scope='function')
def admin(services):
    """Admin user created through the user service."""
    return services.users.create(
        {"name": "Admin", "email": "admin@test.local", "role": "admin", "password": "secret"},
        SYSTEM_ACTOR,
    )


@pytest.fixture(scope='function')
def operator(services, admin):
    return services.users.create(
        {"name": "Operator", "email": "operator@test.local", "role": "operator", "password": "secret"},
        admin,
    )


@pytest.fixture(scope='function')
def headers(admin):
    return {"X-User-Id": admin.id}


@pytest.fixture(scope='function')
def make_client(services, admin):
    def _make(full_name="Maria Silva", cpf=VALID_CPF, **extra):
        return services.clients.create({"full_name": full_name, "cpf": cpf, **extra}, admin)
    return _make


@pytest.fixture(scope='function')
def make_item(services, admin):
    def _make(name="Prato raso", quantity_total=10, **extra):
        data = {"name": name, "category": "LOUÇAS", "quantity_total": quantity_total, **extra}
        return services.items.create(data, admin)
    return _make


@pytest.fixture(scope='function')
def make_order(services, admin, make_client):
    """
    Create an order for one or more (item, quantity) lines.

    Defaults to a confirmed order over 2024-01-01..2024-01-03.
    """
    state = {}

    def _make(lines, status="CONFIRMED_PAID", pickup_date="2024-01-01", return_date="2024-01-03", **extra):
        if "client" not in state:
            state["client"] = make_client()
        data = {
            "client_id": state["client"].id,
            "payment_method": "PIX",
            "status": status,
            "pickup_date": pickup_date,
            "return_date": return_date,
            "items": [
                {"item_id": item.id, "quantity": qty, "unit_value": item.rental_value}
                for item, qty in lines
            ],
            **extra,
        }
        return services.orders.create(data, admin)
    return _make
