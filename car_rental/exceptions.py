"""
Custom exception classes for the car rental dashboard.

Services raise these instead of returning status tuples. The base classes
(NotFoundError, ConflictError, InvalidStateError, ValidationError,
AuthenticationError) are what the HTTP layer maps to status codes; the
subclasses keep the message precise and can carry the records that caused
the failure so the caller can display them.
"""


class RentalAppError(Exception):
    """Base class for every error raised by the services."""

    default_message = "Error: request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    def payload(self) -> dict:
        """Extra fields merged into the error response body."""
        return {}


# ------------------------- 404 -------------------------
class NotFoundError(RentalAppError):
    """Raised when a referenced record does not exist."""

    default_message = "Error: record not found"


class CarNotFoundError(NotFoundError):
    """Raised when a car ID cannot be found in the system."""

    default_message = "Car not found"


class CustomerNotFoundError(NotFoundError):
    """Raised when a customer ID cannot be found in the system."""

    default_message = "Customer not found"


class RentalNotFoundError(NotFoundError):
    """Raised when a rental record cannot be found in the system."""

    default_message = "Rental not found"


# ------------------------- 409 -------------------------
class ConflictError(RentalAppError):
    """Raised on a date overlap or a uniqueness violation."""

    default_message = "Error: conflicting record"


class RentalConflictError(ConflictError):
    """Raised when a car is already booked for part of the requested range."""

    default_message = "Car is already booked during this period"

    def __init__(self, conflicts: list[dict] | None = None, message: str | None = None) -> None:
        self.conflicts = list(conflicts or [])
        super().__init__(message)

    def payload(self) -> dict:
        return {"conflictingRentals": self.conflicts}


class DuplicateLicensePlateError(ConflictError):
    default_message = "License plate already exists"


class DuplicateEmailError(ConflictError):
    default_message = "Email address already exists"


# ------------------------- 400 (state) -------------------------
class InvalidStateError(RentalAppError):
    """Raised when the target record's current state forbids the operation."""

    default_message = "Error: operation not allowed in the current state"


class CarUnavailableError(InvalidStateError):
    default_message = "Car is not available for rent"


class CustomerInactiveError(InvalidStateError):
    default_message = "Customer is not active"


class InvalidTransitionError(InvalidStateError):
    """Raised when a rental status change is not reachable from its current status."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot change rental status from '{current}' to '{target}'")


class ActiveRentalDeletionError(InvalidStateError):
    default_message = "Cannot delete an active rental. Cancel it first."


class CompletedRentalUpdateError(InvalidStateError):
    default_message = "Only notes can be changed on a completed rental"


class HasActiveRentalsError(InvalidStateError):
    """Raised when a car or customer is still referenced by pending/active rentals."""

    default_message = "Cannot delete while pending or active rentals exist"

    def __init__(self, rentals: list[dict] | None = None, message: str | None = None) -> None:
        self.rentals = list(rentals or [])
        super().__init__(message)

    def payload(self) -> dict:
        return {"rentals": self.rentals}


# ------------------------- 400 (input) -------------------------
class ValidationError(RentalAppError):
    """Raised when required fields are missing or malformed."""

    default_message = "Error: invalid input"


class MissingFieldError(ValidationError):
    def __init__(self, fields) -> None:
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")

    def payload(self) -> dict:
        return {"fields": self.fields}


class InvalidDateRangeError(ValidationError):
    """Raised when end date is before start date or a date cannot be parsed."""

    default_message = "Error: invalid date range"


class InvalidStatusError(ValidationError):
    def __init__(self, value, allowed) -> None:
        self.value = value
        self.allowed = tuple(allowed)
        super().__init__(f"Invalid status '{value}'. Must be one of: {', '.join(self.allowed)}")


# ------------------------- 401 -------------------------
class AuthenticationError(RentalAppError):
    default_message = "Invalid credentials"
