# backend/servicehub/models/payment.py
"""
Payment transaction model.

A transaction is written once per completed booking. The commission figures,
the rate and the provider tier are snapshotted at creation and never
recalculated; only payment_status and the commission collection state change
afterwards.
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.constants import CURRENCY
from ..core.enums import CommissionStatus, PaymentStatus
from ..database import Base


class PaymentTransaction(Base):
    """Money movement for one completed booking."""

    __tablename__ = "payment_transactions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=False, unique=True)
    business_id = Column(String(26), ForeignKey("businesses.id"), nullable=False, index=True)
    customer_id = Column(String(26), nullable=False)

    total_amount = Column(Numeric(12, 2), nullable=False)
    platform_commission = Column(Numeric(12, 2), nullable=False)
    provider_payout = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default=CURRENCY)

    # Snapshot of the rate source at creation time
    provider_tier = Column(String(20), nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False)
    service_category = Column(String(100), nullable=True)

    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)

    # Cash payments leave the whole amount with the provider
    commission_owed = Column(Numeric(12, 2), nullable=False, default=0)
    commission_status = Column(
        String(20), nullable=False, default=CommissionStatus.COLLECTED.value, index=True
    )
    commission_collected_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    booking = relationship("Booking")
    business = relationship("Business")

    __table_args__ = (
        CheckConstraint("total_amount > 0", name="ck_payment_amount_positive"),
        CheckConstraint(
            "payment_status IN ('PENDING', 'COMPLETED', 'FAILED', 'REFUNDED')",
            name="ck_payment_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<PaymentTransaction {self.id}: booking={self.booking_id} "
            f"amount={self.total_amount} status={self.payment_status}>"
        )


__all__ = ["PaymentTransaction"]
