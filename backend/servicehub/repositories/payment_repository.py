# backend/servicehub/repositories/payment_repository.py
"""
Payment transaction repository.

Transactions are inserted once and afterwards only their payment status and
commission collection state change, each through a guarded UPDATE.
"""

from datetime import datetime
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ..core.enums import CommissionStatus, PaymentMethod, PaymentStatus
from ..models.payment import PaymentTransaction
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

OUTSTANDING_COMMISSION_STATUSES = (CommissionStatus.PENDING.value, CommissionStatus.OVERDUE.value)


class PaymentRepository(BaseRepository[PaymentTransaction]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentTransaction)

    def get_by_booking_id(self, booking_id: str) -> Optional[PaymentTransaction]:
        query = self.db.query(PaymentTransaction).filter(PaymentTransaction.booking_id == booking_id)
        rows = self._execute_query(query.limit(1))
        return rows[0] if rows else None

    def sum_completed_revenue(self, business_id: str) -> Decimal:
        query = (
            self.db.query(func.coalesce(func.sum(PaymentTransaction.total_amount), 0))
            .filter(PaymentTransaction.business_id == business_id)
            .filter(PaymentTransaction.payment_status == PaymentStatus.COMPLETED.value)
        )
        return Decimal(str(self._execute_scalar(query) or 0))

    def list_created_between(
        self,
        start: datetime,
        end: datetime,
        payment_status: Optional[PaymentStatus] = None,
    ) -> List[PaymentTransaction]:
        query = (
            self.db.query(PaymentTransaction)
            .filter(PaymentTransaction.created_at >= start)
            .filter(PaymentTransaction.created_at < end)
        )
        if payment_status is not None:
            query = query.filter(PaymentTransaction.payment_status == payment_status.value)
        return self._execute_query(query.order_by(PaymentTransaction.created_at.asc()))

    def compare_and_set_payment_status(
        self, transaction_id: str, expected: PaymentStatus, new: PaymentStatus
    ) -> bool:
        return self._guarded_update(
            transaction_id,
            PaymentTransaction.payment_status == expected.value,
            {"payment_status": new.value},
        )

    def mark_commission_collected(self, transaction_id: str, collected_at: datetime) -> bool:
        return self._guarded_update(
            transaction_id,
            PaymentTransaction.commission_status.in_(OUTSTANDING_COMMISSION_STATUSES),
            {
                "commission_status": CommissionStatus.COLLECTED.value,
                "commission_collected_at": collected_at,
            },
        )

    def list_outstanding_commission(self, business_id: str) -> List[PaymentTransaction]:
        query = (
            self.db.query(PaymentTransaction)
            .filter(PaymentTransaction.business_id == business_id)
            .filter(PaymentTransaction.payment_method == PaymentMethod.CASH.value)
            .filter(PaymentTransaction.commission_status.in_(OUTSTANDING_COMMISSION_STATUSES))
            .order_by(PaymentTransaction.created_at.asc())
        )
        return self._execute_query(query)

    def commission_summary_rows(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Per payment method: count, volume, commission earned and commission still owed."""
        owed = case(
            (
                PaymentTransaction.commission_status.in_(OUTSTANDING_COMMISSION_STATUSES),
                PaymentTransaction.commission_owed,
            ),
            else_=0,
        )
        query = (
            self.db.query(
                PaymentTransaction.payment_method,
                func.count(PaymentTransaction.id),
                func.coalesce(func.sum(PaymentTransaction.total_amount), 0),
                func.coalesce(func.sum(PaymentTransaction.platform_commission), 0),
                func.coalesce(func.sum(owed), 0),
            )
            .filter(PaymentTransaction.payment_status == PaymentStatus.COMPLETED.value)
            .group_by(PaymentTransaction.payment_method)
        )
        if start is not None:
            query = query.filter(PaymentTransaction.created_at >= start)
        if end is not None:
            query = query.filter(PaymentTransaction.created_at < end)
        return [
            {
                "payment_method": method,
                "count": int(count),
                "volume": Decimal(str(volume)),
                "commission": Decimal(str(commission)),
                "owed": Decimal(str(owed_total)),
            }
            for method, count, volume, commission, owed_total in self._execute_query(query)
        ]
