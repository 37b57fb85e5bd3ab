# backend/servicehub/domain/tiers.py
"""
Provider tier policy.

Tiers are evaluated from the highest down and the first tier whose thresholds
are all met wins, so a provider that qualifies for ENTERPRISE is never
assigned PREMIUM.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..core.enums import ProviderTier

LEGACY_TIER_ALIASES = {"STANDARD": ProviderTier.NEW}

# Ascending order; index + 1 is the next tier up
TIER_ORDER: List[ProviderTier] = [
    ProviderTier.NEW,
    ProviderTier.VERIFIED,
    ProviderTier.PREMIUM,
    ProviderTier.ENTERPRISE,
]


@dataclass(frozen=True)
class TierThreshold:
    min_completed_bookings: int
    min_average_rating: Decimal
    min_total_revenue: Decimal
    requires_verification: bool = True


TIER_THRESHOLDS: Dict[ProviderTier, TierThreshold] = {
    ProviderTier.ENTERPRISE: TierThreshold(100, Decimal("4.8"), Decimal("20000")),
    ProviderTier.PREMIUM: TierThreshold(50, Decimal("4.5"), Decimal("10000")),
    ProviderTier.VERIFIED: TierThreshold(10, Decimal("4.0"), Decimal("0")),
}


@dataclass(frozen=True)
class TierMetrics:
    """Performance inputs the tier policy reads."""

    completed_bookings: int
    average_rating: Decimal
    total_revenue: Decimal
    account_age_months: int
    is_verified: bool

    def to_dict(self, last_updated: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            "completedBookings": self.completed_bookings,
            "averageRating": float(self.average_rating),
            "totalRevenue": float(self.total_revenue),
            "accountAgeMonths": self.account_age_months,
            "isVerified": self.is_verified,
            "lastUpdated": last_updated.isoformat() if last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TierMetrics":
        data = data or {}
        return cls(
            completed_bookings=int(data.get("completedBookings") or 0),
            average_rating=Decimal(str(data.get("averageRating") or 0)),
            total_revenue=Decimal(str(data.get("totalRevenue") or 0)),
            account_age_months=int(data.get("accountAgeMonths") or 0),
            is_verified=bool(data.get("isVerified", False)),
        )


def meets_threshold(metrics: TierMetrics, threshold: TierThreshold) -> bool:
    if threshold.requires_verification and not metrics.is_verified:
        return False
    return (
        metrics.completed_bookings >= threshold.min_completed_bookings
        and metrics.average_rating >= threshold.min_average_rating
        and metrics.total_revenue >= threshold.min_total_revenue
    )


def evaluate_tier(metrics: TierMetrics) -> ProviderTier:
    """Return the highest tier whose thresholds the metrics satisfy."""
    for tier in reversed(TIER_ORDER):
        threshold = TIER_THRESHOLDS.get(tier)
        if threshold is None:
            continue
        if meets_threshold(metrics, threshold):
            return tier
    return ProviderTier.NEW


def normalize_tier(value: Any) -> ProviderTier:
    """
    Map a stored tier string onto a canonical tier.

    Legacy "STANDARD", blanks and unrecognised values read as NEW.
    """
    if isinstance(value, ProviderTier):
        return value
    key = str(value or "").strip().upper()
    if key in LEGACY_TIER_ALIASES:
        return LEGACY_TIER_ALIASES[key]
    try:
        return ProviderTier(key)
    except ValueError:
        return ProviderTier.NEW


def parse_tier(value: Any) -> Optional[ProviderTier]:
    """Strict lookup: only the four canonical names are accepted."""
    key = str(value or "").strip().upper()
    try:
        return ProviderTier(key)
    except ValueError:
        return None


def next_tier(tier: ProviderTier) -> Optional[ProviderTier]:
    index = TIER_ORDER.index(tier)
    if index + 1 >= len(TIER_ORDER):
        return None
    return TIER_ORDER[index + 1]


def threshold_progress(tier: ProviderTier, metrics: TierMetrics) -> Optional[Dict[str, Any]]:
    """Describe what the provider still needs for the tier above `tier`."""
    target = next_tier(tier)
    if target is None:
        return None
    threshold = TIER_THRESHOLDS[target]
    requirements = {
        "completedBookings": {
            "required": threshold.min_completed_bookings,
            "current": metrics.completed_bookings,
            "met": metrics.completed_bookings >= threshold.min_completed_bookings,
        },
        "averageRating": {
            "required": float(threshold.min_average_rating),
            "current": float(metrics.average_rating),
            "met": metrics.average_rating >= threshold.min_average_rating,
        },
        "totalRevenue": {
            "required": float(threshold.min_total_revenue),
            "current": float(metrics.total_revenue),
            "met": metrics.total_revenue >= threshold.min_total_revenue,
        },
        "isVerified": {
            "required": threshold.requires_verification,
            "current": metrics.is_verified,
            "met": metrics.is_verified or not threshold.requires_verification,
        },
    }
    return {
        "tier": target.value,
        "requirements": requirements,
        "eligible": all(item["met"] for item in requirements.values()),
    }
