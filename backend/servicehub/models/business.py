# backend/servicehub/models/business.py
"""
Business model for the ServiceHub platform.

A business is the provider-side entity customers book. Its profile, category and
approval workflow are owned by the onboarding system; this service reads the
rating and approval status and owns the tier state columns
(provider_tier, performance_metrics, tier_assigned_at).
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import ApprovalStatus
from ..database import Base


class Business(Base):
    """Provider business record carrying the provider tier state."""

    __tablename__ = "businesses"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    owner_id = Column(String(26), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True, index=True)
    contact_email = Column(String(255), nullable=True)

    # Maintained by the review system
    rating = Column(Numeric(3, 2), nullable=False, default=0)
    approval_status = Column(String(20), nullable=False, default=ApprovalStatus.PENDING.value)

    # Tier state, written wholesale by recompute
    provider_tier = Column(String(20), nullable=True, index=True)
    performance_metrics = Column(JSON(none_as_null=True), nullable=True)
    tier_assigned_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    bookings = relationship("Booking", back_populates="business")

    @property
    def needs_tier_migration(self) -> bool:
        return (
            self.provider_tier is None
            or self.performance_metrics is None
            or self.tier_assigned_at is None
        )

    def __repr__(self) -> str:
        return f"<Business {self.id}: {self.name} tier={self.provider_tier}>"


__all__ = ["Business"]
