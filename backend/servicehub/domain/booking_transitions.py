# backend/servicehub/domain/booking_transitions.py
"""Allowed booking status transitions."""

from typing import Dict, FrozenSet

from ..core.enums import BookingStatus
from ..core.exceptions import InvalidTransitionException, ValidationException

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES: FrozenSet[BookingStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def parse_status(value: object) -> BookingStatus:
    try:
        return BookingStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationException(
            f"Unknown booking status: {value}",
            code="INVALID_STATUS",
            details={"allowed": [status.value for status in BookingStatus]},
        )


def can_transition(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_transition(current: BookingStatus, requested: BookingStatus) -> None:
    """Raise InvalidTransitionException unless `current -> requested` is allowed."""
    if not can_transition(current, requested):
        raise InvalidTransitionException(current.value, requested.value)
