# backend/servicehub/domain/revenue.py
"""
Revenue aggregation over immutable transaction records.

Aggregation is a pure fold over its input: the same transactions always give
the same report, and aggregating two disjoint sets separately then adding
their totals and buckets gives the same figures as aggregating their union.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.enums import PaymentStatus
from .commission import CENT, HUNDRED, to_decimal
from .tiers import normalize_tier

UNCATEGORIZED = "Uncategorized"


class Bucketing(str, Enum):
    DAY = "day"
    MONTH = "month"


@dataclass(frozen=True)
class RevenueTransaction:
    """The fields of a payment transaction that reporting reads."""

    business_id: str
    total_amount: Decimal
    platform_commission: Decimal
    provider_payout: Decimal
    payment_status: str
    payment_method: str
    created_at: datetime
    service_category: Optional[str] = None
    provider_tier: Optional[str] = None


@dataclass(frozen=True)
class RevenueTotals:
    total_amount: Decimal = Decimal("0")
    platform_commission: Decimal = Decimal("0")
    provider_payout: Decimal = Decimal("0")
    transaction_count: int = 0

    def __add__(self, other: "RevenueTotals") -> "RevenueTotals":
        return RevenueTotals(
            total_amount=self.total_amount + other.total_amount,
            platform_commission=self.platform_commission + other.platform_commission,
            provider_payout=self.provider_payout + other.provider_payout,
            transaction_count=self.transaction_count + other.transaction_count,
        )

    def add(self, tx: RevenueTransaction) -> "RevenueTotals":
        return self + RevenueTotals(
            total_amount=to_decimal(tx.total_amount),
            platform_commission=to_decimal(tx.platform_commission),
            provider_payout=to_decimal(tx.provider_payout),
            transaction_count=1,
        )

    @property
    def avg_transaction_value(self) -> Decimal:
        return _quantize(_safe_div(self.total_amount, Decimal(self.transaction_count)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalAmount": float(_quantize(self.total_amount)),
            "platformCommission": float(_quantize(self.platform_commission)),
            "providerPayout": float(_quantize(self.provider_payout)),
            "transactionCount": self.transaction_count,
            "avgTransactionValue": float(self.avg_transaction_value),
        }


@dataclass
class RevenueReport:
    bucketing: Bucketing
    totals: RevenueTotals = field(default_factory=RevenueTotals)
    buckets: Dict[str, RevenueTotals] = field(default_factory=dict)
    by_payment_method: Dict[str, RevenueTotals] = field(default_factory=dict)
    by_category: Dict[str, RevenueTotals] = field(default_factory=dict)
    by_tier: Dict[str, RevenueTotals] = field(default_factory=dict)
    by_provider: Dict[str, RevenueTotals] = field(default_factory=dict)

    def series(self, keys: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """Bucket rows in key order; `keys` pads empty periods with zeros."""
        ordered = sorted(self.buckets) if keys is None else list(keys)
        rows = []
        for key in ordered:
            totals = self.buckets.get(key, RevenueTotals())
            rows.append({"period": key, **totals.to_dict()})
        return rows

    def breakdown(self, dimension: Dict[str, RevenueTotals]) -> List[Dict[str, Any]]:
        """Rows with absolute figures and share of total amount, largest first."""
        rows = []
        for key, totals in sorted(
            dimension.items(), key=lambda item: (-item[1].total_amount, item[0])
        ):
            rows.append(
                {
                    "key": key,
                    "amount": float(_quantize(totals.total_amount)),
                    "commission": float(_quantize(totals.platform_commission)),
                    "count": totals.transaction_count,
                    "percentage": float(
                        _quantize(_percentage(totals.total_amount, self.totals.total_amount))
                    ),
                }
            )
        return rows

    def top_providers(self, limit: int) -> List[Tuple[str, RevenueTotals]]:
        ranked = sorted(
            self.by_provider.items(), key=lambda item: (-item[1].total_amount, item[0])
        )
        return ranked[:limit]

    @property
    def average_commission_rate(self) -> Decimal:
        return _quantize(_percentage(self.totals.platform_commission, self.totals.total_amount))


def bucket_key(moment: datetime, bucketing: Bucketing) -> str:
    day = moment.date() if isinstance(moment, datetime) else moment
    if bucketing == Bucketing.MONTH:
        return f"{day.year:04d}-{day.month:02d}"
    return day.isoformat()


def bucket_keys(start: date, end: date, bucketing: Bucketing) -> List[str]:
    """Every bucket key from `start` through `end` inclusive."""
    keys: List[str] = []
    current = start
    while current <= end:
        key = bucket_key(datetime(current.year, current.month, current.day), bucketing)
        if not keys or keys[-1] != key:
            keys.append(key)
        current += timedelta(days=1)
    return keys


def _bump(bucket: Dict[str, RevenueTotals], key: str, tx: RevenueTransaction) -> None:
    bucket[key] = bucket.get(key, RevenueTotals()).add(tx)


def aggregate_transactions(
    transactions: Iterable[RevenueTransaction],
    bucketing: Bucketing = Bucketing.DAY,
) -> RevenueReport:
    """Fold COMPLETED transactions into totals, time buckets and breakdowns."""
    report = RevenueReport(bucketing=bucketing)
    for tx in transactions:
        if tx.payment_status != PaymentStatus.COMPLETED.value:
            continue
        report.totals = report.totals.add(tx)
        _bump(report.buckets, bucket_key(tx.created_at, bucketing), tx)
        _bump(report.by_payment_method, tx.payment_method, tx)
        _bump(report.by_category, tx.service_category or UNCATEGORIZED, tx)
        _bump(report.by_tier, normalize_tier(tx.provider_tier).value, tx)
        _bump(report.by_provider, tx.business_id, tx)
    return report


def growth_rate(current: Any, previous: Any) -> Decimal:
    """
    Period-over-period growth in percent.

    0 when both periods are empty, 100 when growing from nothing.
    """
    current_value = to_decimal(current)
    previous_value = to_decimal(previous)
    if previous_value == 0:
        return Decimal("100.00") if current_value > 0 else Decimal("0.00")
    return _quantize((current_value - previous_value) / previous_value * HUNDRED)


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT)


def _safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return Decimal("0")
    return numerator / denominator


def _percentage(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return Decimal("0")
    return (numerator / denominator) * HUNDRED
