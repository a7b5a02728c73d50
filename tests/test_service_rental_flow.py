"""
Rental lifecycle through RentalService: booking checks, status side effects
on the car, edits, deletes and the dashboard read views.
"""

import threading
from datetime import timedelta
from decimal import Decimal

import pytest

from car_rental.exceptions import (
    CarUnavailableError,
    CompletedRentalUpdateError,
    ConflictError,
    CustomerInactiveError,
    InvalidDateRangeError,
    InvalidStateError,
    InvalidTransitionError,
    MissingFieldError,
    NotFoundError,
    RentalConflictError,
    ValidationError,
)
from car_rental.services.rental_service import RentalService

from conftest import TODAY


def d(offset):
    return (TODAY + timedelta(days=offset)).isoformat()


def test_future_rental_leaves_car_available(store, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, d(5), d(8))
    assert r["status"] == "pending"
    assert r["payment_status"] == "unpaid"
    assert store.get_car(car["id"])["status"] == "available"


def test_today_rental_marks_car_rented_then_completion_frees_it(store, rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r1 = book(car, cu, d(0), d(3))
    assert store.get_car(car["id"])["status"] == "rented"

    rentals.update_rental_status(r1["id"], "active")
    done = rentals.update_rental_status(r1["id"], "completed")
    assert done["status"] == "completed"
    assert store.get_car(car["id"])["status"] == "available"


def test_shared_boundary_day_conflicts(make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    first = book(car, cu, "2025-06-01", "2025-06-05")
    with pytest.raises(RentalConflictError) as exc:
        book(car, cu, "2025-06-05", "2025-06-10")
    assert [r["id"] for r in exc.value.conflicts] == [first["id"]]


def test_overlap_lists_conflicting_rental(store, make_car, make_customer, book):
    car_b, cu = make_car(), make_customer()
    r2 = book(car_b, cu, "2025-07-01", "2025-07-05")
    with pytest.raises(ConflictError) as exc:
        book(car_b, cu, "2025-07-03", "2025-07-04")
    assert exc.value.payload()["conflictingRentals"][0]["id"] == r2["id"]
    assert len(store.rentals_for_car(car_b["id"])) == 1


def test_same_day_turnover_policy(store, make_car, make_customer, today):
    svc = RentalService(store, today=today, allow_same_day_turnover=True)
    car, cu = make_car(), make_customer()
    base = {"car_id": car["id"], "customer_id": cu["id"], "total_cost": 50}
    svc.create_rental({**base, "start_date": "2025-06-01", "end_date": "2025-06-05"})
    second = svc.create_rental({**base, "start_date": "2025-06-05", "end_date": "2025-06-10"})
    assert second["status"] == "pending"


def test_cancelled_rental_frees_dates(rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, d(10), d(12))
    rentals.update_rental_status(r["id"], "cancelled")
    again = book(car, cu, d(10), d(12))
    assert again["id"] != r["id"]


def test_create_validations(rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    with pytest.raises(MissingFieldError) as exc:
        rentals.create_rental({"car_id": car["id"]})
    assert "start_date" in exc.value.fields

    with pytest.raises(InvalidDateRangeError):
        book(car, cu, d(5), d(4))
    with pytest.raises(ValidationError):
        book(car, cu, d(5), d(6), total_cost="0")
    with pytest.raises(ValidationError):
        book(car, cu, d(5), d(6), start_fuel_level=150)
    with pytest.raises(NotFoundError):
        book({"id": 999}, cu, d(5), d(6))
    with pytest.raises(NotFoundError):
        book(car, {"id": 999}, d(5), d(6))


def test_unavailable_car_and_inactive_customer(cars, customers, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    cars.set_status(car["id"], "maintenance")
    with pytest.raises(CarUnavailableError):
        book(car, cu, d(5), d(6))

    other = make_car()
    customers.update_customer(cu["id"], {"status": "inactive"})
    with pytest.raises(CustomerInactiveError):
        book(other, cu, d(5), d(6))


def test_repeating_status_is_noop(store, rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, d(2), d(4))
    rentals.update_rental_status(r["id"], "active")
    store.update_car_status(car["id"], "maintenance")

    again = rentals.update_rental_status(r["id"], "active")
    assert again["status"] == "active"
    # no second side effect on the car
    assert store.get_car(car["id"])["status"] == "maintenance"


def test_invalid_transition_rejected(rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, d(2), d(4))
    with pytest.raises(InvalidTransitionError):
        rentals.update_rental_status(r["id"], "completed")
    with pytest.raises(ValidationError):
        rentals.update_rental_status(r["id"], "returned")


def test_active_rental_can_be_cancelled_but_not_deleted(store, rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, d(0), d(2))
    rentals.update_rental_status(r["id"], "active")
    with pytest.raises(InvalidStateError):
        rentals.delete_rental(r["id"])

    rentals.update_rental_status(r["id"], "cancelled")
    assert store.get_car(car["id"])["status"] == "available"
    rentals.delete_rental(r["id"])
    assert store.get_rental(r["id"]) is None


def test_deleting_pending_rental_frees_car(store, rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, d(0), d(1))
    assert store.get_car(car["id"])["status"] == "rented"
    rentals.delete_rental(r["id"])
    assert store.get_car(car["id"])["status"] == "available"


def test_activation_records_readings(rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, d(0), d(2))
    out = rentals.update_rental_status(r["id"], "active", {"start_kilometers": "12000", "start_fuel_level": 90})
    assert out["start_kilometers"] == 12000
    assert out["start_fuel_level"] == 90


def test_update_dates_rechecks_overlap_excluding_self(rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    a = book(car, cu, "2025-06-01", "2025-06-05")
    b = book(car, cu, "2025-06-10", "2025-06-12")

    moved = rentals.update_rental(a["id"], {"start_date": "2025-06-02", "end_date": "2025-06-06"})
    assert (moved["start_date"], moved["end_date"]) == ("2025-06-02", "2025-06-06")

    with pytest.raises(RentalConflictError) as exc:
        rentals.update_rental(a["id"], {"end_date": "2025-06-10"})
    assert [r["id"] for r in exc.value.conflicts] == [b["id"]]
    assert rentals.get_rental(a["id"])["end_date"] == "2025-06-06"


def test_completed_rental_accepts_only_notes(rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, d(-3), d(-1))
    rentals.update_rental_status(r["id"], "active")
    rentals.update_rental_status(r["id"], "completed")

    out = rentals.update_rental(r["id"], {"notes": "Returned clean", "start_date": r["start_date"]})
    assert out["notes"] == "Returned clean"
    with pytest.raises(CompletedRentalUpdateError):
        rentals.update_rental(r["id"], {"total_cost": "999"})


def test_payment_status(rentals, make_car, make_customer, book):
    car, cu = make_car(), make_customer()
    r = book(car, cu, d(3), d(4))
    assert rentals.update_payment_status(r["id"], "PAID")["payment_status"] == "paid"
    with pytest.raises(ValidationError):
        rentals.update_payment_status(r["id"], "refunded")


def test_rows_are_enriched(rentals, make_car, make_customer, book):
    car, cu = make_car(brand="Audi", model="A4"), make_customer(first_name="Maria", last_name="Ionescu")
    r = rentals.get_rental(book(car, cu, d(3), d(4))["id"])
    assert (r["brand"], r["model"]) == ("Audi", "A4")
    assert r["customer_name"] == "Maria Ionescu"
    assert r["total_cost"] == Decimal("100.00")


def test_dashboard_views(rentals, make_car, make_customer, book):
    cu = make_customer()
    running = book(make_car(), cu, d(-1), d(2))
    late = book(make_car(), cu, d(-6), d(-2))
    soon = book(make_car(), cu, d(3), d(5))
    book(make_car(), cu, d(20), d(22))
    rentals.update_rental_status(running["id"], "active")
    rentals.update_rental_status(late["id"], "active")

    assert [r["id"] for r in rentals.current_active()] == [running["id"]]
    assert [r["id"] for r in rentals.upcoming_week()] == [soon["id"]]
    overdue = rentals.overdue()
    assert [r["id"] for r in overdue] == [late["id"]]
    assert overdue[0]["days_overdue"] == 2
    assert {r["id"] for r in rentals.list_rentals("active")} == {running["id"], late["id"]}
    assert len(rentals.rentals_for_customer(cu["id"])) == 4


def test_quote_counts_both_end_days(rentals, make_car):
    car = make_car(daily_rate="45.50")
    q = rentals.quote(car["id"], "2025-06-01", "2025-06-03")
    assert q["days"] == 3
    assert q["total_cost"] == Decimal("136.50")


def test_concurrent_overlapping_bookings_admit_one(store, rentals, make_car, make_customer):
    car = make_car()
    customers = [make_customer() for _ in range(8)]
    barrier = threading.Barrier(len(customers))
    created, failed = [], []

    def attempt(cu, offset):
        barrier.wait()
        try:
            created.append(rentals.create_rental({
                "car_id": car["id"], "customer_id": cu["id"],
                "start_date": d(10 + offset), "end_date": d(20), "total_cost": "100",
            }))
        except RentalConflictError as e:
            failed.append(e)

    threads = [threading.Thread(target=attempt, args=(cu, i)) for i, cu in enumerate(customers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(created) == 1
    assert len(failed) == len(customers) - 1
    assert len(store.rentals_for_car(car["id"])) == 1


def test_fractional_reading_rejected(rentals, make_car, make_customer, book):
    r = book(make_car(), make_customer(), d(0), d(1))
    with pytest.raises(ValidationError):
        rentals.update_rental_status(r["id"], "active", {"start_kilometers": 12000.5})
