# backend/servicehub/services/notification_service.py
"""
In-app notification sink.

Each call records one notification row in its own transaction so a failure
here never touches the booking write that triggered it.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..models.booking import Booking, BookingReschedule
from ..models.notification import (
    NOTIFICATION_TYPE_BOOKING_RESCHEDULED,
    NOTIFICATION_TYPE_BOOKING_STATUS,
    Notification,
)
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.notification_repository = RepositoryFactory.create_notification_repository(db)

    @BaseService.measure_operation("record_notification")
    def record(
        self,
        user_id: str,
        type: str,
        title: str,
        body: Optional[str] = None,
        booking_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        with self.transaction():
            return self.notification_repository.create(
                user_id=user_id,
                type=type,
                title=title,
                body=body,
                booking_id=booking_id,
                data=data,
            )

    def notify_status_change(
        self, booking: Booking, previous_status: str, new_status: str
    ) -> Notification:
        return self.record(
            user_id=booking.customer_id,
            type=NOTIFICATION_TYPE_BOOKING_STATUS,
            title=f"Booking {new_status.replace('_', ' ').lower()}",
            body=f"Your booking on {booking.booking_date} is now {new_status}.",
            booking_id=booking.id,
            data={"previousStatus": previous_status, "newStatus": new_status},
        )

    def notify_rescheduled(self, booking: Booking, reschedule: BookingReschedule) -> Notification:
        return self.record(
            user_id=booking.customer_id,
            type=NOTIFICATION_TYPE_BOOKING_RESCHEDULED,
            title="Booking rescheduled",
            body=(
                f"Your booking has moved to {reschedule.new_date} at "
                f"{reschedule.new_time.strftime('%H:%M')}."
            ),
            booking_id=booking.id,
            data={
                "originalDate": reschedule.original_date.isoformat(),
                "originalTime": reschedule.original_time.strftime("%H:%M"),
                "newDate": reschedule.new_date.isoformat(),
                "newTime": reschedule.new_time.strftime("%H:%M"),
                "reason": reschedule.reason,
            },
        )
