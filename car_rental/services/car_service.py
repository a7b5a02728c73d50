from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import CarNotFoundError, DuplicateLicensePlateError, HasActiveRentalsError, ValidationError
from ..models.store import Store
from ..utils.constants import CAR_FIELDS, CarStatus, OPEN_RENTAL_STATES, TECHNICAL_DATE_FIELDS, TECHNICAL_FIELDS
from .common import _lc, _today, check_choice, is_blank, parse_date, require, to_float_safe, to_int, to_money
from .lifecycle import display_status, relevant_rental

logger = logging.getLogger(__name__)

_INT_TECH_FIELDS = {"kilometers": (0, None), "fuel_level": (0, 100), "seats_count": (0, None),
                    "doors_count": (0, None), "last_service_km": (0, None), "next_service_km": (0, None)}


class CarService:
    """Car catalogue: filter, create, edit, delete, manual status and technical sheet."""

    def __init__(self, store: Store, today=None):
        self.store = store
        self._today = today or _today

    def _require(self, car_id) -> dict:
        car = self.store.get_car(car_id)
        if car is None:
            raise CarNotFoundError(f"Car {car_id} not found")
        return car

    # --------------- Queries ---------------
    def list_cars(self, status=None, category=None, brand=None, min_rate=None, max_rate=None) -> list[dict]:
        """
        Filter cars by status, category, brand/model, and daily-rate range.
        Empty filters are ignored; invalid min/max values are ignored too.
        """
        res = self.store.list_cars()

        if status:
            st = check_choice(status, CarStatus.ALL)
            res = [c for c in res if c.get("status") == st]

        if category:
            cat = _lc(category).strip()
            res = [c for c in res if _lc(c.get("category")) == cat]

        # Brand/model filter (case-insensitive, partial match)
        if brand:
            kw = _lc(brand).strip()
            if kw:
                res = [c for c in res if kw in _lc(c.get("brand")) or kw in _lc(c.get("model"))]

        min_val = to_float_safe(min_rate)
        max_val = to_float_safe(max_rate)
        if (min_val is not None) and (max_val is not None) and (min_val > max_val):
            min_val, max_val = max_val, min_val

        if (min_val is not None) or (max_val is not None):
            def within(c):
                r = to_float_safe(c.get("daily_rate"))
                if r is None:
                    return False
                if (min_val is not None) and (r < min_val):
                    return False
                if (max_val is not None) and (r > max_val):
                    return False
                return True

            res = [c for c in res if within(c)]

        res.sort(key=lambda c: c["id"])
        return res

    def get_car(self, car_id) -> dict:
        return self._require(car_id)

    def fleet_view(self) -> list[dict]:
        """Every car with its read-time `display_status`; nothing is written."""
        today = self._today()
        out = []
        for car in self.list_cars():
            rental = relevant_rental(self.store.rentals_for_car(car["id"], OPEN_RENTAL_STATES))
            row = dict(car)
            row["display_status"] = display_status(car, rental, today)
            row["current_rental_id"] = rental["id"] if rental else None
            out.append(row)
        return out

    # --------------- Commands ---------------
    def create_car(self, data: dict) -> dict:
        require(data, "brand", "model", "year")
        values = self._car_values(data)
        values.update(self._technical_values(data))
        values.setdefault("status", CarStatus.AVAILABLE)
        values.setdefault("daily_rate", to_money(0))

        with self.store.transaction():
            plate = values.get("license_plate")
            if plate and self.store.find_car_by_plate(plate):
                raise DuplicateLicensePlateError()
            car_id = self.store.create_car(values)

        logger.info("Car %s created (%s %s)", car_id, values["brand"], values["model"])
        return self._require(car_id)

    def update_car(self, car_id, data: dict) -> dict:
        """Update only the provided fields. A status given here is a manual override."""
        values = self._car_values(data)
        if not values:
            raise ValidationError("No valid fields to update")

        with self.store.transaction():
            self._require(car_id)
            plate = values.get("license_plate")
            if plate and self.store.find_car_by_plate(plate, exclude_id=car_id):
                raise DuplicateLicensePlateError()
            self.store.update_car(car_id, **values)

        return self._require(car_id)

    def set_status(self, car_id, status: str) -> dict:
        """
        Manual status override (e.g. maintenance). Rentals are not consulted
        and the status is not reconciled against them afterwards.
        """
        value = check_choice(status, CarStatus.ALL)
        with self.store.transaction():
            self._require(car_id)
            self.store.update_car_status(car_id, value)
        logger.info("Car %s status manually set to %s", car_id, value)
        return self._require(car_id)

    def update_similar_images(self, brand, model, year, image_url) -> int:
        """Point every car of the same brand/model/year at one image."""
        require({"brand": brand, "model": model, "year": year, "image_url": image_url},
                "brand", "model", "year", "image_url")
        year = to_int(year, "year")
        affected = 0
        with self.store.transaction():
            for car in self.store.list_cars():
                if car.get("brand") == brand and car.get("model") == model and car.get("year") == year:
                    self.store.update_car(car["id"], image_url=image_url)
                    affected += 1
        return affected

    def delete_car(self, car_id) -> None:
        """
        Delete a car if no pending/active rental references it.
        Its technical history and finished rentals go with it.
        """
        with self.store.transaction():
            self._require(car_id)
            blocking = self.store.rentals_for_car(car_id, OPEN_RENTAL_STATES)
            if blocking:
                raise HasActiveRentalsError(blocking, "Cannot delete car with active rentals")
            self.store.delete_car(car_id)
        logger.info("Car %s deleted", car_id)

    # --------------- Technical sheet ---------------
    def technical_sheet(self, car_id) -> dict:
        car = self._require(car_id)
        today = self._today()
        sheet = {f: car.get(f) for f in ("id", "brand", "model", "year", "license_plate")}
        sheet.update({f: car.get(f) for f in TECHNICAL_FIELDS})
        sheet["total_rentals"] = len(self.store.rentals_for_car(car_id))

        for field in ("insurance_expiry", "itp_expiry"):
            value = car.get(field)
            sheet[f"{field}_days_left"] = (parse_date(value, field) - today).days if value else None

        km, next_km = car.get("kilometers"), car.get("next_service_km")
        sheet["km_to_service"] = max(0, next_km - km) if km is not None and next_km is not None else None
        return sheet

    def technical_history(self, car_id) -> list[dict]:
        """Odometer/fuel audit trail, newest first."""
        self._require(car_id)
        rows = self.store.history_for_car(car_id)
        for row in rows:
            admin = self.store.get_admin(row.get("updated_by")) if row.get("updated_by") else None
            row["updated_by_name"] = admin.get("name") if admin else None
        rows.sort(key=lambda h: (h.get("created_at") or "", h["id"]), reverse=True)
        return rows

    def update_technical(self, car_id, fields: dict, admin_id=None, notes: Optional[str] = None) -> dict:
        """
        Persist technical fields. When the odometer or fuel level is part of
        the update, a history entry is appended afterwards; that append is
        best-effort and a failure only shows up in `warnings`.
        """
        values = self._technical_values(fields)
        if not values:
            raise ValidationError("No valid fields to update")

        with self.store.transaction():
            car = self._require(car_id)
            self.store.update_car(car_id, **values)

        warnings = []
        history_id = None
        if "kilometers" in values or "fuel_level" in values:
            try:
                history_id = self.store.append_history({
                    "car_id": car["id"],
                    "kilometers": values.get("kilometers", car.get("kilometers")),
                    "fuel_level": values.get("fuel_level", car.get("fuel_level")),
                    "notes": notes,
                    "updated_by": admin_id,
                })
            except Exception:
                logger.warning("Could not record technical history for car %s", car_id, exc_info=True)
                warnings.append("Technical history could not be recorded")

        return {"car": self.technical_sheet(car_id), "history_id": history_id, "warnings": warnings}

    # --------------- validation ---------------
    @staticmethod
    def _car_values(data: dict) -> dict:
        values = {}
        for field in CAR_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field == "year":
                values[field] = to_int(value, "year", minimum=1900, maximum=2100)
            elif field == "daily_rate":
                rate = to_money(0 if is_blank(value) else value, "daily_rate")
                if rate < 0:
                    raise ValidationError("Daily rate cannot be negative")
                values[field] = rate
            elif field == "status":
                values[field] = check_choice(value, CarStatus.ALL)
            elif field in ("brand", "model"):
                if is_blank(value):
                    raise ValidationError(f"{field} cannot be empty")
                values[field] = str(value).strip()
            elif field == "license_plate":
                values[field] = None if is_blank(value) else str(value).strip().upper()
            else:
                values[field] = value
        return values

    @staticmethod
    def _technical_values(data: dict) -> dict:
        values = {}
        for field in TECHNICAL_FIELDS:
            if field not in data or data[field] is None or data[field] == "":
                continue
            value = data[field]
            if field in _INT_TECH_FIELDS:
                lo, hi = _INT_TECH_FIELDS[field]
                values[field] = to_int(value, field, minimum=lo, maximum=hi)
            elif field in TECHNICAL_DATE_FIELDS:
                values[field] = parse_date(value, field).isoformat()
            elif field == "tank_capacity":
                cap = to_float_safe(value)
                if cap is None or cap < 0:
                    raise ValidationError(f"Invalid tank_capacity: {value!r}")
                values[field] = cap
            else:
                values[field] = str(value).strip()
        return values
