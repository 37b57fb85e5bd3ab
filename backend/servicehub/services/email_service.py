# backend/servicehub/services/email_service.py
"""
Booking email requests.

Delivery transport lives outside this service. Messages are rendered here and
handed to the console transport (the application log); with EMAILS_ENABLED
off every send is skipped.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import BRAND_NAME
from ..models.booking import Booking, BookingReschedule
from .base import BaseService

logger = logging.getLogger(__name__)


class EmailSubject:
    """Static builders for booking email subjects."""

    @staticmethod
    def booking_confirmed() -> str:
        return f"Your {BRAND_NAME} booking is confirmed"

    @staticmethod
    def booking_cancelled() -> str:
        return f"Your {BRAND_NAME} booking was cancelled"

    @staticmethod
    def booking_rescheduled() -> str:
        return f"Your {BRAND_NAME} booking has a new time"


class EmailService(BaseService):
    """Builds booking emails and hands them to the configured transport."""

    def __init__(self, db: Session, enabled: Optional[bool] = None):
        super().__init__(db)
        self.enabled = settings.emails_enabled if enabled is None else enabled

    @BaseService.measure_operation("send_email")
    def send_email(self, to_email: Optional[str], subject: str, body: str) -> Dict[str, Any]:
        """
        Send a plain-text email.

        Returns:
            Dict describing what happened: {"sent": bool, "reason"?: str}
        """
        if not self.enabled:
            return {"sent": False, "reason": "disabled"}
        if not to_email:
            self.logger.warning("Skipping email without recipient", extra={"subject": subject})
            return {"sent": False, "reason": "no_recipient"}

        self.logger.info(
            f"Email to {to_email}: {subject}",
            extra={"to_email": to_email, "subject": subject, "body_length": len(body)},
        )
        return {"sent": True}

    def send_booking_confirmation(self, booking: Booking) -> Dict[str, Any]:
        body = (
            f"Hi {booking.customer_name or 'there'},\n\n"
            f"Your booking for {booking.service_name or 'your service'} on "
            f"{booking.booking_date} at {booking.booking_time} has been confirmed."
        )
        return self.send_email(booking.customer_email, EmailSubject.booking_confirmed(), body)

    def send_booking_cancellation(self, booking: Booking, reason: str) -> Dict[str, Any]:
        body = (
            f"Hi {booking.customer_name or 'there'},\n\n"
            f"Your booking on {booking.booking_date} at {booking.booking_time} was cancelled.\n"
            f"Reason: {reason}"
        )
        return self.send_email(booking.customer_email, EmailSubject.booking_cancelled(), body)

    def send_reschedule_notice(
        self, booking: Booking, reschedule: BookingReschedule
    ) -> Dict[str, Any]:
        body = (
            f"Hi {booking.customer_name or 'there'},\n\n"
            f"Your booking has moved from {reschedule.original_date} at "
            f"{reschedule.original_time} to {reschedule.new_date} at {reschedule.new_time}.\n"
            f"Reason: {reschedule.reason}"
        )
        return self.send_email(booking.customer_email, EmailSubject.booking_rescheduled(), body)
