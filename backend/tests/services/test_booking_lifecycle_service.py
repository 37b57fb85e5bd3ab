"""BookingLifecycleService against a real session."""

from datetime import date, time, timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from servicehub.core.constants import DEFAULT_CANCELLATION_REASON, DEFAULT_RESCHEDULE_REASON
from servicehub.core.enums import BookingStatus
from servicehub.core.exceptions import (
    BusinessRuleException,
    ConcurrentModificationException,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    StoreUnavailableException,
    ValidationException,
)
from servicehub.models.booking import Booking, BookingReschedule
from servicehub.models.notification import NOTIFICATION_TYPE_BOOKING_STATUS, Notification
from servicehub.services.booking_lifecycle_service import BookingLifecycleService
from servicehub.services.email_service import EmailService
from servicehub.services.notification_service import NotificationService

ACTOR_ID = "01HACTOR000000000000000000"


@pytest.fixture
def email_service():
    return MagicMock(spec=EmailService)


@pytest.fixture
def service(db, email_service):
    return BookingLifecycleService(
        db, email_service=email_service, notification_service=NotificationService(db)
    )


def _stored_status(db, booking_id: str) -> str:
    db.expire_all()
    return db.get(Booking, booking_id).status


def _connection_timeout() -> OperationalError:
    return OperationalError("SELECT bookings.id", {}, Exception("connection timed out"))


class TestTransition:
    def test_confirm_pending_booking(self, db, service, email_service, pending_booking):
        updated = service.transition(pending_booking.id, BookingStatus.CONFIRMED, ACTOR_ID)

        assert updated.status == BookingStatus.CONFIRMED.value
        assert updated.confirmed_at is not None
        assert updated.updated_by == ACTOR_ID
        email_service.send_booking_confirmation.assert_called_once()

        log = service.get_status_history(pending_booking.id)
        assert [(e.previous_status, e.new_status) for e in log] == [("PENDING", "CONFIRMED")]

        notification = db.query(Notification).filter_by(booking_id=pending_booking.id).one()
        assert notification.type == NOTIFICATION_TYPE_BOOKING_STATUS
        assert notification.user_id == pending_booking.customer_id

    def test_accepts_status_strings(self, service, pending_booking):
        updated = service.transition(pending_booking.id, "confirmed", ACTOR_ID)
        assert updated.status == "CONFIRMED"

    def test_skipping_ahead_is_rejected_and_nothing_changes(self, db, service, pending_booking):
        with pytest.raises(InvalidTransitionException):
            service.transition(pending_booking.id, BookingStatus.COMPLETED, ACTOR_ID)

        assert _stored_status(db, pending_booking.id) == "PENDING"
        assert service.get_status_history(pending_booking.id) == []

    def test_full_lifecycle_to_completed(self, service, pending_booking):
        for status in (
            BookingStatus.CONFIRMED,
            BookingStatus.IN_PROGRESS,
            BookingStatus.COMPLETED,
        ):
            booking = service.transition(pending_booking.id, status, ACTOR_ID)

        assert booking.status == "COMPLETED"
        assert booking.completed_at is not None
        assert len(service.get_status_history(pending_booking.id)) == 3

    @pytest.mark.parametrize("terminal", [BookingStatus.COMPLETED, BookingStatus.CANCELLED])
    def test_terminal_bookings_are_immutable(self, service, make_booking, business, terminal):
        booking = make_booking(business, status=terminal.value)

        for target in BookingStatus:
            with pytest.raises(InvalidTransitionException):
                service.transition(booking.id, target, ACTOR_ID)

    def test_cancel_uses_default_reason(self, service, email_service, pending_booking):
        updated = service.transition(pending_booking.id, BookingStatus.CANCELLED, ACTOR_ID)

        assert updated.cancellation_reason == DEFAULT_CANCELLATION_REASON
        assert updated.cancelled_at is not None
        email_service.send_booking_cancellation.assert_called_once()
        assert service.get_status_history(pending_booking.id)[0].reason == (
            DEFAULT_CANCELLATION_REASON
        )

    def test_cancel_records_given_reason(self, service, pending_booking):
        updated = service.transition(
            pending_booking.id, BookingStatus.CANCELLED, ACTOR_ID, reason="Customer no-show"
        )
        assert updated.cancellation_reason == "Customer no-show"

    def test_unknown_booking(self, service):
        with pytest.raises(NotFoundException):
            service.transition("01HMISSING0000000000000000", BookingStatus.CONFIRMED, ACTOR_ID)

    def test_ownership_predicate_rejects(self, db, service, pending_booking):
        with pytest.raises(ForbiddenException):
            service.transition(
                pending_booking.id,
                BookingStatus.CONFIRMED,
                ACTOR_ID,
                is_owner=lambda booking: False,
            )
        assert _stored_status(db, pending_booking.id) == "PENDING"

    def test_email_failure_does_not_undo_transition(
        self, db, service, email_service, pending_booking
    ):
        email_service.send_booking_confirmation.side_effect = RuntimeError("smtp down")

        updated = service.transition(pending_booking.id, BookingStatus.CONFIRMED, ACTOR_ID)

        assert updated.status == "CONFIRMED"
        assert _stored_status(db, pending_booking.id) == "CONFIRMED"

    def test_status_log_skipped_when_audit_disabled(self, service, pending_booking):
        with patch("servicehub.services.booking_lifecycle_service.settings") as mock_settings:
            mock_settings.audit_enabled = False
            service.transition(pending_booking.id, BookingStatus.CONFIRMED, ACTOR_ID)

        assert service.get_status_history(pending_booking.id) == []


class TestConcurrentTransitions:
    def test_second_writer_with_stale_read_gets_conflict(self, db, service, pending_booking):
        # What actor B read before actor A's write landed
        stale = Booking(
            id=pending_booking.id,
            business_id=pending_booking.business_id,
            customer_id=pending_booking.customer_id,
            booking_date=pending_booking.booking_date,
            booking_time=pending_booking.booking_time,
            status=BookingStatus.PENDING.value,
        )

        service.transition(pending_booking.id, BookingStatus.CONFIRMED, "actor-a")

        with patch.object(service.booking_repository, "get_by_id", return_value=stale):
            with pytest.raises(ConcurrentModificationException):
                service.transition(pending_booking.id, BookingStatus.CANCELLED, "actor-b")

        assert _stored_status(db, pending_booking.id) == "CONFIRMED"
        log = service.get_status_history(pending_booking.id)
        assert [e.changed_by for e in log] == ["actor-a"]

    def test_lost_write_on_missing_row_is_not_found(self, service, pending_booking):
        with patch.object(
            service.booking_repository, "compare_and_set_status", return_value=False
        ), patch.object(service.booking_repository, "exists", return_value=False):
            with pytest.raises(NotFoundException):
                service.transition(pending_booking.id, BookingStatus.CONFIRMED, ACTOR_ID)


class TestStoreUnavailable:
    def test_timeout_reading_the_booking(self, db, service, email_service, pending_booking):
        with patch.object(db, "query", side_effect=_connection_timeout()):
            with pytest.raises(StoreUnavailableException) as exc_info:
                service.transition(pending_booking.id, BookingStatus.CONFIRMED, ACTOR_ID)

        assert exc_info.value.code == "STORE_UNAVAILABLE"
        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert _stored_status(db, pending_booking.id) == "PENDING"
        email_service.send_booking_confirmation.assert_not_called()

    def test_timeout_inside_transaction_rolls_back(
        self, db, service, email_service, pending_booking
    ):
        # The guarded UPDATE lands, then the status log insert fails
        with patch.object(db, "add", side_effect=_connection_timeout()):
            with pytest.raises(StoreUnavailableException):
                service.transition(pending_booking.id, BookingStatus.CONFIRMED, ACTOR_ID)

        assert _stored_status(db, pending_booking.id) == "PENDING"
        assert service.get_status_history(pending_booking.id) == []
        email_service.send_booking_confirmation.assert_not_called()

    def test_timeout_reading_history(self, db, service, pending_booking):
        with patch.object(db, "query", side_effect=_connection_timeout()):
            with pytest.raises(StoreUnavailableException):
                service.get_status_history(pending_booking.id)


class TestReschedule:
    @pytest.fixture
    def confirmed_booking(self, make_booking, business):
        return make_booking(business, status=BookingStatus.CONFIRMED.value)

    def test_moves_booking_and_records_history(self, db, service, confirmed_booking):
        original_date = confirmed_booking.booking_date
        new_date = original_date + timedelta(days=3)

        updated = service.reschedule(confirmed_booking.id, new_date, time(14, 30), ACTOR_ID)

        assert updated.booking_date == new_date
        assert updated.booking_time == time(14, 30)
        assert updated.status == "CONFIRMED"
        assert len(updated.reschedule_history) == 1
        entry = updated.reschedule_history[0]
        assert entry.original_date == original_date
        assert entry.original_time == time(10, 0)
        assert entry.reason == DEFAULT_RESCHEDULE_REASON
        assert entry.changed_by == ACTOR_ID

    def test_reschedule_notifies_customer(self, db, service, email_service, confirmed_booking):
        service.reschedule(
            confirmed_booking.id,
            confirmed_booking.booking_date + timedelta(days=1),
            time(9, 0),
            ACTOR_ID,
            reason="Staff shortage",
        )

        email_service.send_reschedule_notice.assert_called_once()
        assert db.query(Notification).filter_by(booking_id=confirmed_booking.id).count() == 1

    def test_only_confirmed_bookings(self, service, pending_booking):
        with pytest.raises(BusinessRuleException) as exc_info:
            service.reschedule(
                pending_booking.id, date.today() + timedelta(days=10), time(9, 0), ACTOR_ID
            )
        assert exc_info.value.code == "RESCHEDULE_NOT_ALLOWED"

    def test_past_dates_rejected(self, service, confirmed_booking):
        with pytest.raises(ValidationException) as exc_info:
            service.reschedule(
                confirmed_booking.id,
                date(2026, 1, 1),
                time(9, 0),
                ACTOR_ID,
                today=date(2026, 1, 2),
            )
        assert exc_info.value.code == "PAST_DATE"

    def test_second_reschedule_with_stale_read_gets_conflict(
        self, db, service, confirmed_booking
    ):
        # What actor B read before actor A moved the booking
        stale = Booking(
            id=confirmed_booking.id,
            business_id=confirmed_booking.business_id,
            customer_id=confirmed_booking.customer_id,
            booking_date=confirmed_booking.booking_date,
            booking_time=confirmed_booking.booking_time,
            status=BookingStatus.CONFIRMED.value,
        )
        first_date = confirmed_booking.booking_date + timedelta(days=1)
        second_date = confirmed_booking.booking_date + timedelta(days=2)

        service.reschedule(confirmed_booking.id, first_date, time(9, 0), "actor-a")

        with patch.object(service.booking_repository, "get_by_id", return_value=stale):
            with pytest.raises(ConcurrentModificationException):
                service.reschedule(confirmed_booking.id, second_date, time(16, 0), "actor-b")

        db.expire_all()
        stored = db.get(Booking, confirmed_booking.id)
        assert (stored.booking_date, stored.booking_time) == (first_date, time(9, 0))
        history = db.query(BookingReschedule).filter_by(booking_id=confirmed_booking.id).all()
        assert [entry.changed_by for entry in history] == ["actor-a"]


class TestProviderNotes:
    def test_add_note(self, service, pending_booking):
        note = service.add_note(pending_booking.id, "  Bring ladder  ", ACTOR_ID)

        assert note.text == "Bring ladder"
        assert note.added_by == ACTOR_ID
        assert note.booking_id == pending_booking.id

    def test_blank_note_rejected(self, service, pending_booking):
        with pytest.raises(ValidationException) as exc_info:
            service.add_note(pending_booking.id, "   ", ACTOR_ID)
        assert exc_info.value.code == "EMPTY_NOTE"
