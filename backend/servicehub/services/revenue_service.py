# backend/servicehub/services/revenue_service.py
"""
Revenue reporting over payment transactions.

Loads COMPLETED transactions for the requested window and the window of the
same length just before it, and folds both through the revenue aggregator.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import PaymentStatus
from ..core.exceptions import ValidationException
from ..domain.revenue import (
    Bucketing,
    RevenueReport,
    RevenueTransaction,
    aggregate_transactions,
    bucket_keys,
    growth_rate,
)
from ..models.payment import PaymentTransaction
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

TIMEFRAME_DAYS: Dict[str, int] = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
MAX_DAILY_BUCKET_DAYS = 90


def to_revenue_transaction(row: PaymentTransaction) -> RevenueTransaction:
    return RevenueTransaction(
        business_id=row.business_id,
        total_amount=Decimal(str(row.total_amount)),
        platform_commission=Decimal(str(row.platform_commission)),
        provider_payout=Decimal(str(row.provider_payout)),
        payment_status=row.payment_status,
        payment_method=row.payment_method,
        created_at=row.created_at,
        service_category=row.service_category,
        provider_tier=row.provider_tier,
    )


def _resolve_previous_period(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    duration = end - start
    return start - duration, start


class RevenueService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.business_repository = RepositoryFactory.create_business_repository(db)

    def _load(self, start: datetime, end: datetime) -> Iterable[RevenueTransaction]:
        rows = self.payment_repository.list_created_between(
            start, end, payment_status=PaymentStatus.COMPLETED
        )
        return [to_revenue_transaction(row) for row in rows]

    @BaseService.measure_operation("revenue_report")
    def revenue_report(
        self,
        timeframe: str = "30d",
        bucketing: Optional[Union[Bucketing, str]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        days = TIMEFRAME_DAYS.get(timeframe)
        if days is None:
            raise ValidationException(
                f"Unsupported timeframe: {timeframe}",
                code="INVALID_TIMEFRAME",
                details={"allowed": list(TIMEFRAME_DAYS)},
            )
        if bucketing is None:
            bucket = Bucketing.DAY if days <= MAX_DAILY_BUCKET_DAYS else Bucketing.MONTH
        else:
            try:
                bucket = Bucketing(bucketing)
            except ValueError:
                raise ValidationException(
                    f"Unsupported bucketing: {bucketing}",
                    code="INVALID_BUCKETING",
                    details={"allowed": [item.value for item in Bucketing]},
                )

        end = now or datetime.now(timezone.utc)
        start = end - timedelta(days=days)
        previous_start, previous_end = _resolve_previous_period(start, end)

        report = aggregate_transactions(self._load(start, end), bucket)
        previous = aggregate_transactions(self._load(previous_start, previous_end), bucket)

        bookings_current = self.booking_repository.count_created_between(start, end)
        bookings_previous = self.booking_repository.count_created_between(
            previous_start, previous_end
        )

        totals = report.totals
        return {
            "timeframe": timeframe,
            "bucketing": bucket.value,
            "period": {"days": days, "startDate": start, "endDate": end},
            "summary": {
                "totalRevenue": float(totals.total_amount),
                "platformCommission": float(totals.platform_commission),
                "providerPayout": float(totals.provider_payout),
                "transactionCount": totals.transaction_count,
                "avgTransactionValue": float(totals.avg_transaction_value),
                "averageCommissionRate": float(report.average_commission_rate),
                "averageDailyRevenue": float(
                    (totals.total_amount / Decimal(days)).quantize(Decimal("0.01"))
                ),
                "totalBookings": bookings_current,
                "revenueGrowth": float(
                    growth_rate(totals.total_amount, previous.totals.total_amount)
                ),
                "commissionGrowth": float(
                    growth_rate(totals.platform_commission, previous.totals.platform_commission)
                ),
                "transactionGrowth": float(
                    growth_rate(totals.transaction_count, previous.totals.transaction_count)
                ),
                "bookingGrowth": float(growth_rate(bookings_current, bookings_previous)),
            },
            "series": report.series(bucket_keys(start.date(), end.date(), bucket)),
            "byPaymentMethod": report.breakdown(report.by_payment_method),
            "byCategory": report.breakdown(report.by_category),
            "commissionByTier": report.breakdown(report.by_tier),
            "topProviders": self._top_providers(report),
        }

    def _top_providers(self, report: RevenueReport) -> List[Dict[str, Any]]:
        rows = []
        for business_id, totals in report.top_providers(settings.revenue_top_providers_limit):
            business = self.business_repository.get_by_id(business_id, load_relationships=False)
            rows.append(
                {
                    "providerId": business_id,
                    "name": business.name if business else None,
                    "revenue": float(totals.total_amount),
                    "commission": float(totals.platform_commission),
                    "transactionCount": totals.transaction_count,
                }
            )
        return rows
