# backend/servicehub/services/booking_lifecycle_service.py
"""
Booking lifecycle for the ServiceHub platform.

Every status change is validated against the transition table and applied
with a single conditional UPDATE keyed on the status that was validated, so two
actors racing on the same booking cannot both win. Emails and in-app
notifications are dispatched after commit; their failures are logged and never
undo the transition.
"""

from datetime import date, datetime, time, timezone
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DEFAULT_CANCELLATION_REASON, DEFAULT_RESCHEDULE_REASON
from ..core.enums import BookingStatus
from ..core.exceptions import (
    BusinessRuleException,
    ConcurrentModificationException,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from ..domain.booking_transitions import parse_status, validate_transition
from ..models.booking import Booking, BookingProviderNote, BookingReschedule, BookingStatusLog
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .email_service import EmailService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

OwnershipPredicate = Callable[[Booking], bool]


class BookingLifecycleService(BaseService):
    """
    Service layer for booking status transitions, reschedules and provider notes.

    Collaborators (email, notification sink) are injected so tests and other
    transports can replace them.
    """

    def __init__(
        self,
        db: Session,
        email_service: Optional[EmailService] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.email_service = email_service or EmailService(db)
        self.notification_service = notification_service or NotificationService(db)

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException(f"Booking {booking_id} not found", code="BOOKING_NOT_FOUND")
        return booking

    def _get_authorized_booking(
        self, booking_id: str, is_owner: Optional[OwnershipPredicate]
    ) -> Booking:
        booking = self.get_booking(booking_id)
        if is_owner is not None and not is_owner(booking):
            raise ForbiddenException(
                "You do not have permission to manage this booking",
                code="BOOKING_ACCESS_DENIED",
            )
        return booking

    def _raise_lost_write(self, booking_id: str, expected: BookingStatus) -> None:
        """A conditional write matched nothing: either the row is gone or someone beat us."""
        if not self.booking_repository.exists(id=booking_id):
            raise NotFoundException(f"Booking {booking_id} not found", code="BOOKING_NOT_FOUND")
        raise ConcurrentModificationException(
            f"Booking {booking_id} changed while it was being updated",
            details={"booking_id": booking_id, "expected_status": expected.value},
        )

    @BaseService.measure_operation("transition_booking")
    def transition(
        self,
        booking_id: str,
        requested_status: Union[BookingStatus, str],
        actor_id: str,
        *,
        is_owner: Optional[OwnershipPredicate] = None,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to `requested_status`.

        Raises:
            NotFoundException: booking does not exist
            ForbiddenException: ownership predicate rejected the actor
            InvalidTransitionException: requested status not reachable from current
            ConcurrentModificationException: status changed between read and write
        """
        requested = (
            requested_status
            if isinstance(requested_status, BookingStatus)
            else parse_status(requested_status)
        )
        booking = self._get_authorized_booking(booking_id, is_owner)
        current = BookingStatus(booking.status)

        try:
            validate_transition(current, requested)
        except InvalidTransitionException:
            prometheus_metrics.record_booking_transition(current.value, requested.value, "invalid")
            raise

        now = datetime.now(timezone.utc)
        extra_fields: Dict[str, Any] = {}
        log_reason: Optional[str] = None
        if requested == BookingStatus.CANCELLED:
            log_reason = (reason or "").strip() or DEFAULT_CANCELLATION_REASON
            extra_fields.update(cancellation_reason=log_reason, cancelled_at=now)
        elif requested == BookingStatus.COMPLETED:
            extra_fields["completed_at"] = now
        elif requested == BookingStatus.CONFIRMED:
            extra_fields["confirmed_at"] = now

        try:
            with self.transaction():
                applied = self.booking_repository.compare_and_set_status(
                    booking_id,
                    current,
                    requested,
                    updated_by=actor_id,
                    updated_at=now,
                    extra_fields=extra_fields,
                )
                if not applied:
                    self._raise_lost_write(booking_id, current)
                if settings.audit_enabled:
                    self.booking_repository.append_status_log(
                        booking_id, current, requested, actor_id, now, reason=log_reason
                    )
        except ConcurrentModificationException:
            prometheus_metrics.record_booking_transition(current.value, requested.value, "conflict")
            raise

        prometheus_metrics.record_booking_transition(current.value, requested.value, "applied")
        self.logger.info(
            f"Booking {booking_id} moved {current.value} -> {requested.value}",
            extra={"booking_id": booking_id, "actor_id": actor_id},
        )

        updated = self.booking_repository.get_fresh(booking_id) or booking
        self._dispatch_transition_side_effects(updated, current, requested)
        return updated

    def _dispatch_transition_side_effects(
        self, booking: Booking, previous: BookingStatus, new: BookingStatus
    ) -> None:
        if new == BookingStatus.CONFIRMED and previous != BookingStatus.CONFIRMED:
            self._run_side_effect(
                "booking confirmation email", self.email_service.send_booking_confirmation, booking
            )
        elif new == BookingStatus.CANCELLED:
            self._run_side_effect(
                "booking cancellation email",
                self.email_service.send_booking_cancellation,
                booking,
                booking.cancellation_reason or DEFAULT_CANCELLATION_REASON,
            )
        self._run_side_effect(
            "status change notification",
            self.notification_service.notify_status_change,
            booking,
            previous.value,
            new.value,
        )

    @BaseService.measure_operation("reschedule_booking")
    def reschedule(
        self,
        booking_id: str,
        new_date: date,
        new_time: time,
        actor_id: str,
        *,
        reason: Optional[str] = None,
        is_owner: Optional[OwnershipPredicate] = None,
        today: Optional[date] = None,
    ) -> Booking:
        """
        Move a CONFIRMED booking to a new date/time and record the change.

        The status is not changed. Dates before today are rejected.
        """
        booking = self._get_authorized_booking(booking_id, is_owner)
        if booking.status != BookingStatus.CONFIRMED.value:
            raise BusinessRuleException(
                "Only confirmed bookings can be rescheduled",
                code="RESCHEDULE_NOT_ALLOWED",
                details={"current_status": booking.status},
            )

        today = today or datetime.now(timezone.utc).date()
        if new_date < today:
            raise ValidationException(
                "Cannot reschedule to a past date",
                code="PAST_DATE",
                details={"new_date": new_date.isoformat(), "today": today.isoformat()},
            )

        reason_text = (reason or "").strip() or DEFAULT_RESCHEDULE_REASON
        now = datetime.now(timezone.utc)
        original_date, original_time = booking.booking_date, booking.booking_time

        with self.transaction():
            entry = self.booking_repository.append_reschedule(
                booking, new_date, new_time, reason_text, actor_id, now
            )
            applied = self.booking_repository.compare_and_set_schedule(
                booking_id,
                BookingStatus.CONFIRMED,
                original_date,
                original_time,
                new_date,
                new_time,
                updated_by=actor_id,
                updated_at=now,
            )
            if not applied:
                self._raise_lost_write(booking_id, BookingStatus.CONFIRMED)

        self.log_operation("reschedule_booking", booking_id=booking_id, actor_id=actor_id)
        updated = self.booking_repository.get_fresh(booking_id) or booking
        self._run_side_effect(
            "reschedule notification", self.notification_service.notify_rescheduled, updated, entry
        )
        self._run_side_effect(
            "reschedule email", self.email_service.send_reschedule_notice, updated, entry
        )
        return updated

    @BaseService.measure_operation("add_provider_note")
    def add_note(
        self,
        booking_id: str,
        text: str,
        actor_id: str,
        *,
        is_owner: Optional[OwnershipPredicate] = None,
    ) -> BookingProviderNote:
        cleaned = (text or "").strip()
        if not cleaned:
            raise ValidationException("Note text is required", code="EMPTY_NOTE")
        self._get_authorized_booking(booking_id, is_owner)

        with self.transaction():
            return self.booking_repository.append_provider_note(
                booking_id, cleaned, actor_id, datetime.now(timezone.utc)
            )

    @BaseService.measure_operation("get_booking_history")
    def get_status_history(
        self, booking_id: str, *, is_owner: Optional[OwnershipPredicate] = None
    ) -> List[BookingStatusLog]:
        self._get_authorized_booking(booking_id, is_owner)
        return self.booking_repository.list_status_log(booking_id)
