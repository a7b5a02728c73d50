import pathlib
import sys
from datetime import date

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pytest

from car_rental import create_app
from car_rental.config import TestConfig
from car_rental.models.store import Store
from car_rental.services.auth_service import AuthService
from car_rental.services.car_service import CarService
from car_rental.services.customer_service import CustomerService
from car_rental.services.rental_service import RentalService

TODAY = date(2025, 5, 20)
ADMIN_EMAIL = "admin@rental.local"
ADMIN_PASSWORD = "Admin123"


@pytest.fixture
def store():
    """Fresh in-memory store for each test."""
    return Store()


@pytest.fixture
def today():
    return lambda: TODAY


@pytest.fixture
def cars(store, today):
    return CarService(store, today=today)


@pytest.fixture
def customers(store):
    return CustomerService(store)


@pytest.fixture
def rentals(store, today):
    return RentalService(store, today=today)


@pytest.fixture
def auth(store):
    return AuthService(store)


@pytest.fixture
def make_car(cars):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "brand": "Dacia", "model": "Logan", "year": 2022,
            "license_plate": f"B{100 + counter['n']}TST", "category": "Sedan",
            "daily_rate": "40.00",
        }
        data.update(overrides)
        return cars.create_car(data)

    return _make


@pytest.fixture
def make_customer(customers):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "first_name": "Ion", "last_name": f"Test{counter['n']}",
            "email": f"ion{counter['n']}@example.com", "phone": "0700000000",
        }
        data.update(overrides)
        return customers.create_customer(data)

    return _make


@pytest.fixture
def book(rentals):
    """Create a rental with a sensible default cost."""

    def _book(car, customer, start, end, **extra):
        data = {
            "car_id": car["id"], "customer_id": customer["id"],
            "start_date": start, "end_date": end, "total_cost": "100.00",
        }
        data.update(extra)
        return rentals.create_rental(data)

    return _book


@pytest.fixture
def app(store, today, auth):
    auth.create_admin(ADMIN_EMAIL, ADMIN_PASSWORD, name="Test Admin")
    app = create_app(TestConfig, store=store, today=today)
    return app


@pytest.fixture
def anon_client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def client(app):
    """Test client with an admin logged in."""
    with app.test_client() as c:
        resp = c.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        assert resp.status_code == 200
        yield c
