from __future__ import annotations

import logging

from ..exceptions import CustomerNotFoundError, DuplicateEmailError, HasActiveRentalsError, ValidationError
from ..models.store import Store
from ..utils.constants import CUSTOMER_FIELDS, CustomerStatus, OPEN_RENTAL_STATES, RentalStatus
from .common import _lc, check_choice, is_blank, require, to_bool

logger = logging.getLogger(__name__)

_SEARCH_FIELDS = ("first_name", "last_name", "email", "phone", "driver_license")


class CustomerService:
    """Customer records, license verification and per-customer rental views."""

    def __init__(self, store: Store):
        self.store = store

    def _require(self, customer_id) -> dict:
        customer = self.store.get_customer(customer_id)
        if customer is None:
            raise CustomerNotFoundError(f"Customer {customer_id} not found")
        return customer

    # --------------- Queries ---------------
    def list_customers(self, status=None) -> list[dict]:
        rows = self.store.list_customers()
        if status:
            st = check_choice(status, CustomerStatus.ALL)
            rows = [c for c in rows if c.get("status") == st]
        rows.sort(key=lambda c: (_lc(c.get("last_name")), _lc(c.get("first_name")), c["id"]))
        return rows

    def get_customer(self, customer_id) -> dict:
        return self._require(customer_id)

    def search(self, query) -> list[dict]:
        """Case-insensitive partial match on name, email, phone and license number."""
        kw = _lc(query).strip()
        if not kw:
            return []
        rows = [c for c in self.list_customers()
                if any(kw in _lc(str(c.get(f) or "")) for f in _SEARCH_FIELDS)
                or kw in _lc(f"{c.get('first_name') or ''} {c.get('last_name') or ''}")]
        return rows

    def verified_licenses(self) -> list[dict]:
        return [c for c in self.list_customers() if c.get("license_verified")]

    def unverified_licenses(self) -> list[dict]:
        """License image uploaded but not yet checked."""
        return [c for c in self.list_customers()
                if c.get("license_image_url") and not c.get("license_verified")]

    def with_current_rentals(self) -> list[dict]:
        """Customers holding at least one active rental, with the count attached."""
        out = []
        for c in self.list_customers():
            active = self.store.rentals_for_customer(c["id"], (RentalStatus.ACTIVE,))
            if active:
                row = dict(c)
                row["active_rentals"] = len(active)
                out.append(row)
        return out

    # --------------- Commands ---------------
    def create_customer(self, data: dict) -> dict:
        require(data, "first_name", "last_name", "email")
        values = self._values(data)
        values.setdefault("status", CustomerStatus.ACTIVE)
        values.setdefault("license_verified", False)

        with self.store.transaction():
            if self.store.find_customer_by_email(values["email"]):
                raise DuplicateEmailError()
            cid = self.store.create_customer(values)

        logger.info("Customer %s created", cid)
        return self._require(cid)

    def update_customer(self, customer_id, data: dict) -> dict:
        values = self._values(data)
        if not values:
            raise ValidationError("No valid fields to update")

        with self.store.transaction():
            self._require(customer_id)
            email = values.get("email")
            if email and self.store.find_customer_by_email(email, exclude_id=customer_id):
                raise DuplicateEmailError()
            self.store.update_customer(customer_id, **values)

        return self._require(customer_id)

    def verify_license(self, customer_id, verified=True) -> dict:
        with self.store.transaction():
            self._require(customer_id)
            self.store.update_customer(customer_id, license_verified=to_bool(verified))
        return self._require(customer_id)

    def delete_customer(self, customer_id) -> None:
        """Refuse while the customer has pending/active rentals; otherwise delete with its history."""
        with self.store.transaction():
            self._require(customer_id)
            blocking = self.store.rentals_for_customer(customer_id, OPEN_RENTAL_STATES)
            if blocking:
                raise HasActiveRentalsError(blocking, "Cannot delete customer with active rentals")
            self.store.delete_customer(customer_id)
        logger.info("Customer %s deleted", customer_id)

    @staticmethod
    def _values(data: dict) -> dict:
        values = {}
        for field in CUSTOMER_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field in ("first_name", "last_name", "email"):
                if is_blank(value):
                    raise ValidationError(f"{field} cannot be empty")
                value = str(value).strip()
                if field == "email":
                    if "@" not in value:
                        raise ValidationError(f"Invalid email: {value!r}")
                    value = value.lower()
            elif field == "status":
                value = check_choice(value, CustomerStatus.ALL)
            elif field == "license_verified":
                value = to_bool(value)
            values[field] = value
        return values
