"""Revenue report DTOs."""

from datetime import datetime
from typing import List, Optional

from ._strict_base import StrictModel


class ReportPeriod(StrictModel):
    days: int
    start_date: datetime
    end_date: datetime


class RevenueSummary(StrictModel):
    total_revenue: float
    platform_commission: float
    provider_payout: float
    transaction_count: int
    avg_transaction_value: float
    average_commission_rate: float
    average_daily_revenue: float
    total_bookings: int
    revenue_growth: float
    commission_growth: float
    transaction_growth: float
    booking_growth: float


class RevenueBucket(StrictModel):
    period: str
    total_amount: float
    platform_commission: float
    provider_payout: float
    transaction_count: int
    avg_transaction_value: float


class BreakdownEntry(StrictModel):
    key: str
    amount: float
    commission: float
    count: int
    percentage: float


class TopProviderEntry(StrictModel):
    provider_id: str
    name: Optional[str] = None
    revenue: float
    commission: float
    transaction_count: int


class RevenueReportResponse(StrictModel):
    timeframe: str
    bucketing: str
    period: ReportPeriod
    summary: RevenueSummary
    series: List[RevenueBucket]
    by_payment_method: List[BreakdownEntry]
    by_category: List[BreakdownEntry]
    commission_by_tier: List[BreakdownEntry]
    top_providers: List[TopProviderEntry]
