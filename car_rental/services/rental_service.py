"""Rental-related service layer: booking, editing, status changes and read views."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from ..exceptions import (
    ActiveRentalDeletionError,
    CarNotFoundError,
    CarUnavailableError,
    CompletedRentalUpdateError,
    CustomerInactiveError,
    CustomerNotFoundError,
    RentalConflictError,
    RentalNotFoundError,
    ValidationError,
)
from ..models.period import RentalPeriod
from ..models.store import Store
from ..utils.constants import (
    CarStatus,
    CustomerStatus,
    OPEN_RENTAL_STATES,
    PaymentStatus,
    READING_FIELDS,
    RentalStatus,
    UPCOMING_WINDOW_DAYS,
)
from .common import _today, check_choice, is_blank, parse_date, parse_period, require, to_int, to_money
from .lifecycle import car_status_after, car_status_on_create, check_transition, find_conflicts

logger = logging.getLogger(__name__)


class RentalService:
    """
    Create, edit, transition and delete rentals.

    Owns two invariants: no two pending/active rentals of one car overlap, and
    the car's stored status follows its rentals' lifecycle. Each command runs
    inside one store transaction so the check and the writes that follow it
    happen together.
    """

    def __init__(self, store: Store, today=None, allow_same_day_turnover: bool = False):
        self.store = store
        self._today = today or _today
        self.allow_same_day_turnover = allow_same_day_turnover

    def today(self):
        return self._today()

    # --------------- Queries ---------------
    def _require(self, rental_id) -> dict:
        rental = self.store.get_rental(rental_id)
        if rental is None:
            raise RentalNotFoundError(f"Rental {rental_id} not found")
        return rental

    def _enrich(self, rental: dict) -> dict:
        """Attach car and customer columns for list/detail views."""
        car = self.store.get_car(rental.get("car_id")) or {}
        customer = self.store.get_customer(rental.get("customer_id")) or {}
        out = dict(rental)
        out.update({
            "brand": car.get("brand"),
            "model": car.get("model"),
            "license_plate": car.get("license_plate"),
            "image_url": car.get("image_url"),
            "daily_rate": car.get("daily_rate"),
            "customer_name": f"{customer.get('first_name', '')} {customer.get('last_name', '')}".strip() or None,
            "customer_email": customer.get("email"),
            "customer_phone": customer.get("phone"),
        })
        return out

    def get_rental(self, rental_id) -> dict:
        return self._enrich(self._require(rental_id))

    def list_rentals(self, status: str | None = None) -> list[dict]:
        """All rentals newest first, or rentals in one status ordered by start."""
        if status is None:
            rows = self.store.list_rentals()
            rows.sort(key=lambda r: r.get("start_date") or "", reverse=True)
        else:
            rows = self.store.list_rentals(check_choice(status, RentalStatus.ALL))
            rows.sort(key=lambda r: r.get("start_date") or "")
        return [self._enrich(r) for r in rows]

    def rentals_for_customer(self, customer_id) -> list[dict]:
        if self.store.get_customer(customer_id) is None:
            raise CustomerNotFoundError(f"Customer {customer_id} not found")
        rows = self.store.rentals_for_customer(customer_id)
        rows.sort(key=lambda r: r.get("start_date") or "", reverse=True)
        return [self._enrich(r) for r in rows]

    def rentals_for_car(self, car_id) -> list[dict]:
        if self.store.get_car(car_id) is None:
            raise CarNotFoundError(f"Car {car_id} not found")
        rows = self.store.rentals_for_car(car_id)
        rows.sort(key=lambda r: r.get("start_date") or "", reverse=True)
        return [self._enrich(r) for r in rows]

    def current_active(self) -> list[dict]:
        """Active rentals whose range contains today, ending soonest first."""
        today = self.today()
        rows = [
            r for r in self.store.list_rentals(RentalStatus.ACTIVE)
            if RentalPeriod.of(r).contains(today)
        ]
        rows.sort(key=lambda r: r.get("end_date") or "")
        return [self._enrich(r) for r in rows]

    def upcoming_week(self) -> list[dict]:
        """Pending/active rentals starting between today and a week from now."""
        today = self.today()
        horizon = today + timedelta(days=UPCOMING_WINDOW_DAYS)
        rows = [
            r for r in self.store.list_rentals()
            if r.get("status") in OPEN_RENTAL_STATES
            and today <= RentalPeriod.of(r).start <= horizon
        ]
        rows.sort(key=lambda r: r.get("start_date") or "")
        return [self._enrich(r) for r in rows]

    def overdue(self) -> list[dict]:
        """Active rentals past their end date, with `days_overdue`."""
        today = self.today()
        out = []
        for r in self.store.list_rentals(RentalStatus.ACTIVE):
            end = RentalPeriod.of(r).end
            if end < today:
                row = self._enrich(r)
                row["days_overdue"] = (today - end).days
                out.append(row)
        out.sort(key=lambda r: r.get("end_date") or "")
        return out

    def quote(self, car_id, start, end) -> dict:
        """Price a range at the car's daily rate, both end days included."""
        car = self.store.get_car(car_id)
        if car is None:
            raise CarNotFoundError(f"Car {car_id} not found")
        period = parse_period(start, end)
        rate = to_money(car.get("daily_rate") or 0, "daily_rate")
        return {
            "car_id": car["id"],
            "start_date": period.start.isoformat(),
            "end_date": period.end.isoformat(),
            "days": period.days,
            "daily_rate": rate,
            "total_cost": to_money(rate * period.days, "total_cost"),
        }

    # --------------- Commands ---------------
    def create_rental(self, data: dict) -> dict:
        """
        Book a car for a customer as a `pending` rental.

        Requires an available car, an active customer and a range that does
        not overlap any pending/active rental of the car. A rental starting
        today marks the car rented straight away.
        """
        require(data, "car_id", "customer_id", "start_date", "end_date", "total_cost")
        car_id = to_int(data["car_id"], "car_id")
        customer_id = to_int(data["customer_id"], "customer_id")
        period = parse_period(data["start_date"], data["end_date"])
        total = to_money(data["total_cost"], "total_cost")
        if total <= 0:
            raise ValidationError("Total cost must be greater than zero")
        payment_status = check_choice(data.get("payment_status") or PaymentStatus.UNPAID, PaymentStatus.ALL)
        readings = _readings(data)

        with self.store.transaction():
            car = self.store.get_car(car_id)
            if car is None:
                raise CarNotFoundError(f"Car {car_id} not found")
            if car.get("status") != CarStatus.AVAILABLE:
                raise CarUnavailableError()

            customer = self.store.get_customer(customer_id)
            if customer is None:
                raise CustomerNotFoundError(f"Customer {customer_id} not found")
            if customer.get("status") != CustomerStatus.ACTIVE:
                raise CustomerInactiveError()

            self._check_overlap(car_id, period)

            rid = self.store.create_rental({
                "car_id": car_id,
                "customer_id": customer_id,
                "start_date": period.start.isoformat(),
                "end_date": period.end.isoformat(),
                "status": RentalStatus.PENDING,
                "total_cost": total,
                "payment_status": payment_status,
                "notes": data.get("notes"),
                **readings,
            })

            new_car_status = car_status_on_create(period.start, self.today())
            if new_car_status:
                self.store.update_car_status(car_id, new_car_status)
                logger.info("Car %s -> %s (rental %s starts today)", car_id, new_car_status, rid)

        logger.info("Rental %s created for car %s (%s..%s)", rid, car_id, period.start, period.end)
        return self.get_rental(rid)

    def update_rental(self, rental_id, data: dict) -> dict:
        """
        Edit dates, cost, notes and odometer/fuel readings.
        A completed rental only accepts a new note. Changing the dates of a
        pending/active rental re-runs the overlap check against the car's
        other rentals.
        """
        with self.store.transaction():
            rental = self._require(rental_id)

            if rental.get("status") == RentalStatus.COMPLETED:
                changed = [f for f in ("start_date", "end_date", "total_cost", *READING_FIELDS)
                           if f in data and _differs(f, data[f], rental.get(f))]
                if changed:
                    raise CompletedRentalUpdateError()
                updates = {"notes": data["notes"]} if "notes" in data else {}
            else:
                updates = {}
                period = parse_period(
                    data.get("start_date") or rental["start_date"],
                    data.get("end_date") or rental["end_date"],
                )
                if period != RentalPeriod.of(rental):
                    if rental.get("status") in OPEN_RENTAL_STATES:
                        self._check_overlap(rental["car_id"], period, exclude_id=rental["id"])
                    updates["start_date"] = period.start.isoformat()
                    updates["end_date"] = period.end.isoformat()

                if data.get("total_cost") is not None:
                    total = to_money(data["total_cost"], "total_cost")
                    if total < 0:
                        raise ValidationError("Total cost cannot be negative")
                    updates["total_cost"] = total

                if "notes" in data:
                    updates["notes"] = data["notes"]
                updates.update(_readings(data))

            if updates:
                self.store.update_rental(rental["id"], updates)

        return self.get_rental(rental_id)

    def update_rental_status(self, rental_id, status: str, readings: Optional[dict] = None) -> dict:
        """
        Move a rental along pending -> active -> completed, or cancel it.
        The car follows: active marks it rented, completed/cancelled free it.
        Repeating the current status changes nothing.
        """
        target = check_choice(status, RentalStatus.ALL)
        extra = _readings(readings or {})

        with self.store.transaction():
            rental = self._require(rental_id)
            if not check_transition(rental["status"], target):
                return self._enrich(rental)

            if target == RentalStatus.ACTIVE:
                customer = self.store.get_customer(rental["customer_id"])
                if customer is not None and customer.get("status") != CustomerStatus.ACTIVE:
                    raise CustomerInactiveError("Cannot activate a rental for an inactive customer")

            self.store.update_rental(rental["id"], {"status": target, **extra})

            new_car_status = car_status_after(target)
            if new_car_status:
                self.store.update_car_status(rental["car_id"], new_car_status)
                logger.info("Car %s -> %s (rental %s %s)", rental["car_id"], new_car_status, rental["id"], target)

        logger.info("Rental %s: %s -> %s", rental_id, rental["status"], target)
        return self.get_rental(rental_id)

    def update_payment_status(self, rental_id, payment_status: str) -> dict:
        value = check_choice(payment_status, PaymentStatus.ALL)
        with self.store.transaction():
            rental = self._require(rental_id)
            self.store.update_rental(rental["id"], {"payment_status": value})
        return self.get_rental(rental_id)

    def delete_rental(self, rental_id) -> None:
        """Delete a non-active rental; removing a pending one frees the car."""
        with self.store.transaction():
            rental = self._require(rental_id)
            if rental.get("status") == RentalStatus.ACTIVE:
                raise ActiveRentalDeletionError()

            self.store.delete_rental(rental["id"])
            if rental.get("status") == RentalStatus.PENDING:
                self.store.update_car_status(rental["car_id"], CarStatus.AVAILABLE)
                logger.info("Car %s -> available (pending rental %s deleted)", rental["car_id"], rental["id"])

        logger.info("Rental %s deleted", rental_id)

    # --------------- helpers ---------------
    def _check_overlap(self, car_id, period: RentalPeriod, exclude_id=None) -> None:
        candidates = self.store.rentals_for_car(car_id, OPEN_RENTAL_STATES, exclude_id=exclude_id)
        conflict, rows = find_conflicts(
            period, candidates,
            exclude_id=exclude_id,
            allow_same_day_turnover=self.allow_same_day_turnover,
        )
        if conflict:
            logger.info("Overlap for car %s %s..%s: rentals %s",
                        car_id, period.start, period.end, [r["id"] for r in rows])
            raise RentalConflictError(rows)


def _readings(data: dict) -> dict:
    """Validate optional odometer (km >= 0) and fuel (0-100 %) snapshots."""
    out = {}
    for field in READING_FIELDS:
        value = data.get(field)
        if value is None or value == "":
            continue
        if field.endswith("kilometers"):
            out[field] = to_int(value, field, minimum=0)
        else:
            out[field] = to_int(value, field, minimum=0, maximum=100)
    return out


def _differs(field: str, new, old) -> bool:
    if is_blank(new):
        return False
    if field in ("start_date", "end_date"):
        return parse_date(new, field).isoformat() != old
    if field == "total_cost":
        return old is None or to_money(new, field) != to_money(old, field)
    return str(new) != str(old)
