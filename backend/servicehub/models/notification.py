"""
In-app notification model.

Rows are written by the notification sink when a booking event needs to reach a
customer; delivery to devices is handled elsewhere.
"""

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from ..database import Base

NOTIFICATION_TYPE_BOOKING_RESCHEDULED = "booking_rescheduled"
NOTIFICATION_TYPE_BOOKING_STATUS = "booking_status_changed"


class Notification(Base):
    """In-app notification inbox entries."""

    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), nullable=False)
    type = Column(String(100), nullable=False)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=True)
    booking_id = Column(String(26), nullable=True, index=True)
    data = Column(JSON, nullable=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_notifications_user_read_at", "user_id", "read_at"),
        Index("ix_notifications_user_created_at", "user_id", created_at.desc()),
    )
