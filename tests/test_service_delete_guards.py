"""
Deletion guards:
- A car or customer referenced by a pending/active rental cannot be deleted.
- Deletion is allowed once only finished rentals remain; those go with it.
"""

import pytest

from car_rental.exceptions import HasActiveRentalsError, InvalidStateError, NotFoundError


def test_customer_with_pending_rental(store, customers, rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, "2025-06-01", "2025-06-03")

    with pytest.raises(InvalidStateError) as exc:
        customers.delete_customer(cu["id"])
    assert [x["id"] for x in exc.value.rentals] == [r["id"]]

    rentals.update_rental_status(r["id"], "cancelled")
    customers.delete_customer(cu["id"])
    assert store.get_customer(cu["id"]) is None
    assert store.get_rental(r["id"]) is None


def test_car_with_active_rental(store, cars, rentals, make_car, make_customer, book):
    car_c, cu = make_car(), make_customer()
    r4 = book(car_c, cu, "2025-05-20", "2025-05-22")
    rentals.update_rental_status(r4["id"], "active")

    with pytest.raises(HasActiveRentalsError) as exc:
        cars.delete_car(car_c["id"])
    assert exc.value.payload()["rentals"][0]["id"] == r4["id"]

    rentals.update_rental_status(r4["id"], "completed")
    cars.delete_car(car_c["id"])
    assert store.get_car(car_c["id"]) is None
    assert store.rentals_for_car(car_c["id"]) == []


def test_car_delete_removes_technical_history(store, cars, make_car):
    car = make_car()
    cars.update_technical(car["id"], {"kilometers": 1000})
    assert store.history_for_car(car["id"])
    cars.delete_car(car["id"])
    assert store.history_for_car(car["id"]) == []


def test_delete_missing(cars, customers, rentals):
    with pytest.raises(NotFoundError):
        cars.delete_car(42)
    with pytest.raises(NotFoundError):
        customers.delete_customer(42)
    with pytest.raises(NotFoundError):
        rentals.delete_rental(42)
