"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Booking
  3xxx: Box / Availability
  4xxx: Payment
  9xxx: System

Refund ineligibility is NOT an error: it is a RefundCalculation with eligible=False.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


# --- 2xxx: Booking ---

class BookingNotFoundError(AppError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(2001, f"Booking not found: {booking_id}", 404)


class BookingAccessDeniedError(AppError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(2002, f"You do not own booking {booking_id}", 403)


class InvalidDateRangeError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2003, f"Invalid date range: {detail}", 422)


class BookingNotReturnableError(AppError):
    def __init__(self, booking_id: str, status: str) -> None:
        super().__init__(2004, f"Booking {booking_id} in status {status} cannot be returned", 422)


class ReturnNotConfirmedError(AppError):
    def __init__(self) -> None:
        super().__init__(2005, "Box return must be confirmed in good status", 422)


# --- 3xxx: Box / Availability ---

class BoxNotFoundError(AppError):
    def __init__(self, box_id: str) -> None:
        super().__init__(3001, f"Box not found: {box_id}", 404)


class BoxUnavailableError(AppError):
    def __init__(self, box_id: str) -> None:
        super().__init__(3002, f"Box {box_id} is already booked for the requested dates", 409)


class StandNotFoundError(AppError):
    def __init__(self, stand_id: str) -> None:
        super().__init__(3003, f"Stand not found: {stand_id}", 404)


class LocationNotFoundError(AppError):
    def __init__(self, location_id: str) -> None:
        super().__init__(3004, f"Location not found: {location_id}", 404)


# --- 4xxx: Payment ---

class UnsupportedChargeReferenceError(AppError):
    def __init__(self, charge_ref: str) -> None:
        super().__init__(
            4001,
            f"Unsupported charge reference: {charge_ref}. Expected ch_, py_ or pi_ prefix",
            422,
        )


class PaymentProcessorUnavailableError(AppError):
    """Processor unreachable or timed out. Safe to retry: nothing was committed."""

    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Payment processor unavailable: {detail}", 503)


class RefundFailedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4003, f"Refund failed: {detail}", 502)


class CriticalInconsistencyError(AppError):
    """Refund issued but local state failed to commit. Needs manual reconciliation."""

    def __init__(self, booking_id: str, refund_id: str) -> None:
        self.booking_id = booking_id
        self.refund_id = refund_id
        super().__init__(
            4099,
            "Refund was processed but booking status update failed. "
            f"Please contact support with refund ID: {refund_id}",
            500,
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
