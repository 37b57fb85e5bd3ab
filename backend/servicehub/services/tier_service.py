# backend/servicehub/services/tier_service.py
"""
Provider tier evaluation.

A recompute reads completed bookings, completed revenue, rating, account age and
verification, runs the tier policy and overwrites the stored tier state in full.
There is no hysteresis: a provider whose numbers drop is moved down.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.enums import ApprovalStatus, ProviderTier
from ..core.exceptions import NotFoundException
from ..domain.commission import round2
from ..domain.tiers import TierMetrics, evaluate_tier, normalize_tier, threshold_progress
from ..models.business import Business
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class TierEvaluation:
    old_tier: Optional[ProviderTier]
    new_tier: ProviderTier
    metrics: TierMetrics
    evaluated_at: datetime

    @property
    def tier_changed(self) -> bool:
        return self.old_tier != self.new_tier

    def to_dict(self) -> Dict[str, Any]:
        return {
            "oldTier": self.old_tier.value if self.old_tier else None,
            "newTier": self.new_tier.value,
            "tierChanged": self.tier_changed,
            "performanceMetrics": self.metrics.to_dict(self.evaluated_at),
        }


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TierService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.business_repository = RepositoryFactory.create_business_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)

    def get_business(self, business_id: str) -> Business:
        business = self.business_repository.get_by_id(business_id, load_relationships=False)
        if not business:
            raise NotFoundException(f"Provider {business_id} not found", code="PROVIDER_NOT_FOUND")
        return business

    def collect_metrics(self, business: Business, now: Optional[datetime] = None) -> TierMetrics:
        now = now or datetime.now(timezone.utc)
        created_at = _as_utc(business.created_at) if business.created_at else now
        return TierMetrics(
            completed_bookings=self.booking_repository.count_completed_for_business(business.id),
            average_rating=round2(Decimal(str(business.rating or 0))),
            total_revenue=round2(self.payment_repository.sum_completed_revenue(business.id)),
            account_age_months=max((now - created_at).days // DAYS_PER_MONTH, 0),
            is_verified=business.approval_status == ApprovalStatus.APPROVED.value,
        )

    def evaluate(self, business: Business, now: Optional[datetime] = None) -> TierEvaluation:
        """Compute metrics and tier without writing anything."""
        now = now or datetime.now(timezone.utc)
        metrics = self.collect_metrics(business, now)
        old_tier = normalize_tier(business.provider_tier) if business.provider_tier else None
        return TierEvaluation(
            old_tier=old_tier,
            new_tier=evaluate_tier(metrics),
            metrics=metrics,
            evaluated_at=now,
        )

    def apply_recompute(self, business: Business, now: Optional[datetime] = None) -> TierEvaluation:
        """Evaluate and overwrite the tier state. Caller owns the transaction."""
        evaluation = self.evaluate(business, now)
        self.business_repository.save_tier_state(
            business,
            evaluation.new_tier.value,
            evaluation.metrics.to_dict(evaluation.evaluated_at),
            evaluation.evaluated_at,
        )
        return evaluation

    @BaseService.measure_operation("recompute_tier")
    def recompute(self, business_id: str) -> TierEvaluation:
        business = self.get_business(business_id)
        with self.transaction():
            evaluation = self.apply_recompute(business)

        if evaluation.tier_changed:
            self.logger.info(
                f"Provider tier updated: {business_id} "
                f"{evaluation.old_tier.value if evaluation.old_tier else None} -> "
                f"{evaluation.new_tier.value}",
                extra={"business_id": business_id},
            )
        return evaluation

    @BaseService.measure_operation("get_provider_tier")
    def get_tier(self, business_id: str) -> Dict[str, Any]:
        """
        Current tier, metrics and progress toward the next tier.

        Providers never evaluated report NEW with live metrics and `migrated: False`.
        """
        business = self.get_business(business_id)
        migrated = not business.needs_tier_migration
        if migrated:
            tier = normalize_tier(business.provider_tier)
            metrics = TierMetrics.from_dict(business.performance_metrics)
            metrics_payload = dict(business.performance_metrics)
        else:
            tier = ProviderTier.NEW
            metrics = self.collect_metrics(business)
            metrics_payload = metrics.to_dict()

        return {
            "providerId": business.id,
            "tier": tier.value,
            "performanceMetrics": metrics_payload,
            "tierAssignedAt": business.tier_assigned_at,
            "migrated": migrated,
            "nextTier": threshold_progress(tier, metrics),
        }
