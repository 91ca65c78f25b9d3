"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    UPCOMING = "UPCOMING"
    ACTIVE = "ACTIVE"
    OVERDUE = "OVERDUE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Statuses that hold a box; COMPLETED and CANCELLED never block.
BLOCKING_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.PENDING,
    BookingStatus.UPCOMING,
    BookingStatus.ACTIVE,
    BookingStatus.OVERDUE,
})

TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
})


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class BoxModel(str, Enum):
    CLASSIC = "CLASSIC"
    PRO = "PRO"


class BoxStatus(str, Enum):
    ACTIVE = "ACTIVE"
    MAINTENANCE = "MAINTENANCE"
    INACTIVE = "INACTIVE"


class NotificationRecipient(str, Enum):
    CUSTOMER = "CUSTOMER"
    OPERATOR = "OPERATOR"
