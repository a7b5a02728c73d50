# car_rental/utils/constants.py

"""
Global constants for statuses and field groups.
These constants are imported by models, services and controllers.
"""

# Date format (used for rental start/end and technical dates)
DATE_FMT = "%Y-%m-%d"


class CarStatus:
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"
    PENDING = "pending"

    ALL = (AVAILABLE, RENTED, MAINTENANCE, PENDING)


class RentalStatus:
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = (PENDING, ACTIVE, COMPLETED, CANCELLED)


class PaymentStatus:
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"

    ALL = (UNPAID, PARTIAL, PAID)


class CustomerStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"

    ALL = (ACTIVE, INACTIVE)


# Rentals in these states hold the car and block deletes.
OPEN_RENTAL_STATES = frozenset({RentalStatus.PENDING, RentalStatus.ACTIVE})

# pending -> active | cancelled, active -> completed | cancelled
RENTAL_TRANSITIONS = {
    RentalStatus.PENDING: frozenset({RentalStatus.ACTIVE, RentalStatus.CANCELLED}),
    RentalStatus.ACTIVE: frozenset({RentalStatus.COMPLETED, RentalStatus.CANCELLED}),
    RentalStatus.COMPLETED: frozenset(),
    RentalStatus.CANCELLED: frozenset(),
}

# --- Field groups ---
CAR_FIELDS = (
    "brand", "model", "year", "license_plate", "color",
    "category", "daily_rate", "status", "image_url", "features",
)

TECHNICAL_FIELDS = (
    "kilometers", "fuel_level", "fuel_type", "tank_capacity", "engine_size",
    "transmission_type", "seats_count", "doors_count", "vin_number",
    "registration_date", "last_service_date", "last_service_km",
    "next_service_km", "insurance_expiry", "itp_expiry",
)

TECHNICAL_DATE_FIELDS = ("registration_date", "last_service_date", "insurance_expiry", "itp_expiry")

CUSTOMER_FIELDS = (
    "first_name", "last_name", "email", "phone", "address",
    "driver_license", "license_image_url", "license_verified", "status",
)

READING_FIELDS = ("start_kilometers", "end_kilometers", "start_fuel_level", "end_fuel_level")

# --- Misc ---
UPCOMING_WINDOW_DAYS = 7
