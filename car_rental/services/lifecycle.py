"""
Rental lifecycle rules: the date-overlap check and the car-status sync policy.

Everything here is a pure function over plain rental/car dicts; the services
call these inside a store transaction and persist whatever they decide.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..exceptions import InvalidTransitionError
from ..models.period import RentalPeriod
from ..utils.constants import CarStatus, OPEN_RENTAL_STATES, RENTAL_TRANSITIONS, RentalStatus


# ------------------------- overlap checker -------------------------
def find_conflicts(
        period: RentalPeriod,
        rentals: Iterable[dict],
        exclude_id=None,
        allow_same_day_turnover: bool = False,
) -> tuple[bool, list[dict]]:
    """
    Compare a proposed range against existing rentals of the same car.

    Only pending/active rentals take part; `exclude_id` drops the rental
    being edited. Returns (conflict?, conflicting rentals sorted by start).
    """
    conflicts = []
    for r in rentals:
        if exclude_id is not None and r.get("id") == exclude_id:
            continue
        if r.get("status") not in OPEN_RENTAL_STATES:
            continue
        if period.overlaps(RentalPeriod.of(r), allow_same_day_turnover=allow_same_day_turnover):
            conflicts.append(r)
    conflicts.sort(key=lambda r: (r.get("start_date") or "", r.get("id") or 0))
    return bool(conflicts), conflicts


# ------------------------- status-sync policy -------------------------
def check_transition(current: str, target: str) -> bool:
    """
    Validate a rental status change.
    Returns False for a same-state request (nothing to do), True when the
    transition should be applied, and raises InvalidTransitionError otherwise.
    """
    if current == target:
        return False
    if target not in RENTAL_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(current, target)
    return True


def car_status_after(target: str) -> Optional[str]:
    """Car status implied by a rental entering `target`, or None to leave it alone."""
    if target == RentalStatus.ACTIVE:
        return CarStatus.RENTED
    if target in (RentalStatus.COMPLETED, RentalStatus.CANCELLED):
        return CarStatus.AVAILABLE
    return None


def car_status_on_create(start: date, today: date) -> Optional[str]:
    """A pending rental starting today already occupies the car."""
    return CarStatus.RENTED if start == today else None


# ------------------------- read-side projection -------------------------
def relevant_rental(rentals: Iterable[dict]) -> Optional[dict]:
    """
    Pick the rental that explains a car's state: an active rental wins,
    otherwise the pending rental starting first.
    """
    active = [r for r in rentals if r.get("status") == RentalStatus.ACTIVE]
    if active:
        return min(active, key=lambda r: r.get("start_date") or "")
    pending = [r for r in rentals if r.get("status") == RentalStatus.PENDING]
    if pending:
        return min(pending, key=lambda r: r.get("start_date") or "")
    return None


def display_status(car: dict, rental: Optional[dict], today: date) -> str:
    """
    Presentation-only car status. Never persisted.

    A car whose relevant rental is pending, or active but not yet started,
    shows as "pending". A manual "maintenance" status always wins.
    """
    stored = car.get("status") or CarStatus.AVAILABLE
    if stored == CarStatus.MAINTENANCE or rental is None:
        return stored
    if rental.get("status") == RentalStatus.PENDING:
        return CarStatus.PENDING
    if rental.get("status") == RentalStatus.ACTIVE and RentalPeriod.of(rental).start > today:
        return CarStatus.PENDING
    return stored
