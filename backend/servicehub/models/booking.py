# backend/servicehub/models/booking.py
"""
Booking models for the ServiceHub platform.

A booking is created PENDING by the customer-facing flow and from then on only
moves through the lifecycle service. Bookings are never deleted; the reschedule,
provider-note and status-log satellite tables are append-only.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, String, Text, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import BookingStatus
from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    """Booking between a customer and a provider business."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    customer_id = Column(String(26), nullable=False, index=True)
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    business_id = Column(String(26), ForeignKey("businesses.id"), nullable=False, index=True)

    booking_date = Column(Date, nullable=False, index=True)
    booking_time = Column(Time, nullable=False)
    service_name = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), nullable=True)
    updated_by = Column(String(26), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    business = relationship("Business", back_populates="bookings")
    reschedule_history = relationship(
        "BookingReschedule",
        back_populates="booking",
        order_by="BookingReschedule.changed_at",
        cascade="all, delete-orphan",
    )
    provider_notes = relationship(
        "BookingProviderNote",
        back_populates="booking",
        order_by="BookingProviderNote.added_at",
        cascade="all, delete-orphan",
    )
    status_log = relationship(
        "BookingStatusLog",
        back_populates="booking",
        order_by="BookingStatusLog.changed_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED')",
            name="ck_bookings_status",
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value

    @property
    def is_terminal(self) -> bool:
        return self.status in (BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value)

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: customer={self.customer_id}, business={self.business_id}, "
            f"date={self.booking_date}, time={self.booking_time}, status={self.status}>"
        )


class BookingReschedule(Base):
    """One entry of a booking's reschedule history."""

    __tablename__ = "booking_reschedules"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    original_date = Column(Date, nullable=False)
    original_time = Column(Time, nullable=False)
    new_date = Column(Date, nullable=False)
    new_time = Column(Time, nullable=False)
    reason = Column(Text, nullable=False)
    changed_by = Column(String(26), nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    booking = relationship("Booking", back_populates="reschedule_history")

    def __repr__(self) -> str:
        return f"<BookingReschedule booking={self.booking_id} {self.original_date}->{self.new_date}>"


class BookingProviderNote(Base):
    """Free-text note a provider attached to a booking."""

    __tablename__ = "booking_provider_notes"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text = Column(Text, nullable=False)
    added_by = Column(String(26), nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    booking = relationship("Booking", back_populates="provider_notes")


class BookingStatusLog(Base):
    """Audit trail of status transitions."""

    __tablename__ = "booking_status_log"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    previous_status = Column(String(20), nullable=False)
    new_status = Column(String(20), nullable=False)
    changed_by = Column(String(26), nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    reason = Column(Text, nullable=True)

    booking = relationship("Booking", back_populates="status_log")

    def __repr__(self) -> str:
        return (
            f"<BookingStatusLog booking={self.booking_id} "
            f"{self.previous_status}->{self.new_status}>"
        )


__all__ = ["Booking", "BookingProviderNote", "BookingReschedule", "BookingStatusLog"]
