# backend/servicehub/repositories/booking_repository.py
"""
Booking Repository for the ServiceHub platform

Handles:
- Booking reads with satellite tables eager loaded
- The compare-and-set status update used by every lifecycle transition
- Append-only inserts into reschedule history, provider notes and status log
- Booking counts feeding tier evaluation and revenue growth
"""

from datetime import date, datetime, time
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Query, Session, selectinload

from ..core.enums import BookingStatus
from ..models.booking import Booking, BookingProviderNote, BookingReschedule, BookingStatusLog
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(Booking.reschedule_history),
            selectinload(Booking.provider_notes),
        )

    # Conditional writes

    def compare_and_set_status(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        new_status: BookingStatus,
        *,
        updated_by: str,
        updated_at: datetime,
        extra_fields: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Set status to `new_status` only if the row still holds `expected_status`.

        Issues a single UPDATE ... WHERE id = :id AND status = :expected.
        Returns False when no row matched.
        """
        values: Dict[str, Any] = {
            "status": new_status.value,
            "updated_at": updated_at,
            "updated_by": updated_by,
        }
        if extra_fields:
            values.update(extra_fields)
        return self._guarded_update(booking_id, Booking.status == expected_status.value, values)

    def compare_and_set_schedule(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        expected_date: date,
        expected_time: time,
        new_date: date,
        new_time: time,
        *,
        updated_by: str,
        updated_at: datetime,
    ) -> bool:
        """
        Move the booking to a new slot.

        Guarded by status and by the slot the caller read, so of two concurrent
        reschedules only the first matches and history never records a stale
        original slot.
        """
        return self._guarded_update(
            booking_id,
            and_(
                Booking.status == expected_status.value,
                Booking.booking_date == expected_date,
                Booking.booking_time == expected_time,
            ),
            {
                "booking_date": new_date,
                "booking_time": new_time,
                "updated_at": updated_at,
                "updated_by": updated_by,
            },
        )

    # Append-only satellite rows

    def append_status_log(
        self,
        booking_id: str,
        previous_status: BookingStatus,
        new_status: BookingStatus,
        changed_by: str,
        changed_at: datetime,
        reason: Optional[str] = None,
    ) -> BookingStatusLog:
        return self._append(
            BookingStatusLog(
                booking_id=booking_id,
                previous_status=previous_status.value,
                new_status=new_status.value,
                changed_by=changed_by,
                changed_at=changed_at,
                reason=reason,
            )
        )

    def append_reschedule(
        self,
        booking: Booking,
        new_date: date,
        new_time: time,
        reason: str,
        changed_by: str,
        changed_at: datetime,
    ) -> BookingReschedule:
        return self._append(
            BookingReschedule(
                booking_id=booking.id,
                original_date=booking.booking_date,
                original_time=booking.booking_time,
                new_date=new_date,
                new_time=new_time,
                reason=reason,
                changed_by=changed_by,
                changed_at=changed_at,
            )
        )

    def append_provider_note(
        self, booking_id: str, text: str, added_by: str, added_at: datetime
    ) -> BookingProviderNote:
        return self._append(
            BookingProviderNote(booking_id=booking_id, text=text, added_by=added_by, added_at=added_at)
        )

    def list_status_log(self, booking_id: str) -> List[BookingStatusLog]:
        query = (
            self.db.query(BookingStatusLog)
            .filter(BookingStatusLog.booking_id == booking_id)
            .order_by(BookingStatusLog.changed_at.asc(), BookingStatusLog.id.asc())
        )
        return self._execute_query(query)

    # Aggregates

    def count_completed_for_business(self, business_id: str) -> int:
        query = (
            self.db.query(func.count(Booking.id))
            .filter(Booking.business_id == business_id)
            .filter(Booking.status == BookingStatus.COMPLETED.value)
        )
        return int(self._execute_scalar(query) or 0)

    def count_created_between(self, start: datetime, end: datetime) -> int:
        query = (
            self.db.query(func.count(Booking.id))
            .filter(Booking.created_at >= start)
            .filter(Booking.created_at < end)
        )
        return int(self._execute_scalar(query) or 0)
