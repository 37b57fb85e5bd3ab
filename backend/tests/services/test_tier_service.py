"""TierService: metric collection, recompute and the tier read model."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from servicehub.core.enums import ApprovalStatus, BookingStatus, PaymentMethod, ProviderTier
from servicehub.core.exceptions import NotFoundException
from servicehub.services.commission_service import CommissionService
from servicehub.services.tier_service import TierService


@pytest.fixture
def service(db):
    return TierService(db)


@pytest.fixture
def seed_activity(make_booking, make_payment):
    """Give `business` n completed bookings, each paid `amount`."""

    def _seed(business, completed: int, amount: str = "0") -> None:
        for _ in range(completed):
            booking = make_booking(business, status=BookingStatus.COMPLETED.value)
            if Decimal(amount) > 0:
                make_payment(booking, total_amount=Decimal(amount))

    return _seed


class TestRecompute:
    def test_premium_candidate_short_on_rating_becomes_verified(
        self, service, make_business, seed_activity
    ):
        business = make_business(rating=Decimal("4.40"))
        seed_activity(business, completed=60, amount="200.00")

        evaluation = service.recompute(business.id)

        assert evaluation.new_tier == ProviderTier.VERIFIED
        assert evaluation.old_tier is None
        assert evaluation.metrics.completed_bookings == 60
        assert evaluation.metrics.total_revenue == Decimal("12000.00")

    def test_writes_full_tier_state(self, db, service, make_business, seed_activity):
        business = make_business(rating=Decimal("4.10"))
        seed_activity(business, completed=10)

        service.recompute(business.id)

        db.expire_all()
        stored = service.get_business(business.id)
        assert stored.provider_tier == "VERIFIED"
        assert stored.performance_metrics["completedBookings"] == 10
        assert stored.performance_metrics["isVerified"] is True
        assert stored.tier_assigned_at is not None
        assert not stored.needs_tier_migration

    def test_recompute_is_idempotent(self, db, service, make_business, seed_activity):
        business = make_business(rating=Decimal("4.10"))
        seed_activity(business, completed=10)

        first = service.recompute(business.id)
        db.expire_all()
        first_stored = dict(service.get_business(business.id).performance_metrics)

        second = service.recompute(business.id)
        db.expire_all()
        second_stored = dict(service.get_business(business.id).performance_metrics)

        assert second.new_tier == first.new_tier == ProviderTier.VERIFIED
        assert second.metrics == first.metrics
        assert second.old_tier == first.new_tier
        assert not second.tier_changed
        first_stored.pop("lastUpdated")
        second_stored.pop("lastUpdated")
        assert second_stored == first_stored

    def test_drops_tier_when_rating_falls(self, db, service, make_business, seed_activity):
        business = make_business(rating=Decimal("4.10"))
        seed_activity(business, completed=10)
        service.recompute(business.id)

        business.rating = Decimal("3.50")
        db.commit()
        evaluation = service.recompute(business.id)

        assert evaluation.old_tier == ProviderTier.VERIFIED
        assert evaluation.new_tier == ProviderTier.NEW
        assert evaluation.tier_changed

    def test_pending_approval_is_not_verified(self, service, make_business, seed_activity):
        business = make_business(rating=Decimal("5.00"), approval_status=ApprovalStatus.PENDING.value)
        seed_activity(business, completed=20)

        assert service.recompute(business.id).new_tier == ProviderTier.NEW

    def test_only_completed_bookings_count(self, service, make_business, make_booking):
        business = make_business()
        make_booking(business, status=BookingStatus.COMPLETED.value)
        make_booking(business, status=BookingStatus.CANCELLED.value)
        make_booking(business, status=BookingStatus.CONFIRMED.value)

        assert service.recompute(business.id).metrics.completed_bookings == 1

    def test_account_age_in_whole_months(self, service, make_business):
        business = make_business(created_at=datetime.now(timezone.utc) - timedelta(days=95))
        assert service.recompute(business.id).metrics.account_age_months == 3

    def test_existing_transactions_keep_their_tier(
        self, db, service, make_business, make_booking
    ):
        business = make_business(provider_tier=ProviderTier.NEW.value, rating=Decimal("4.20"))
        first = make_booking(business, status=BookingStatus.COMPLETED.value)
        tx = CommissionService(db).record_payment(first.id, Decimal("100"), PaymentMethod.CARD)
        for _ in range(10):
            make_booking(business, status=BookingStatus.COMPLETED.value)

        assert service.recompute(business.id).new_tier == ProviderTier.VERIFIED

        db.expire_all()
        assert CommissionService(db).get_transaction(tx.id).provider_tier == "NEW"

    def test_unknown_provider(self, service):
        with pytest.raises(NotFoundException) as exc_info:
            service.recompute("01HMISSING0000000000000000")
        assert exc_info.value.code == "PROVIDER_NOT_FOUND"


class TestGetTier:
    def test_unmigrated_provider_reads_as_new(self, service, make_business, seed_activity):
        business = make_business(rating=Decimal("4.60"))
        seed_activity(business, completed=12)

        result = service.get_tier(business.id)

        assert result["tier"] == "NEW"
        assert result["migrated"] is False
        assert result["performanceMetrics"]["completedBookings"] == 12
        assert result["nextTier"]["tier"] == "VERIFIED"
        assert result["nextTier"]["eligible"] is True

    def test_migrated_provider_reads_stored_state(self, service, make_business, seed_activity):
        business = make_business(rating=Decimal("4.60"))
        seed_activity(business, completed=12)
        service.recompute(business.id)

        result = service.get_tier(business.id)

        assert result["tier"] == "VERIFIED"
        assert result["migrated"] is True
        assert result["tierAssignedAt"] is not None
        assert result["nextTier"]["tier"] == "PREMIUM"
        assert result["nextTier"]["requirements"]["completedBookings"]["current"] == 12

    def test_legacy_standard_reads_as_new(self, service, make_business):
        business = make_business(
            provider_tier="STANDARD",
            performance_metrics={"completedBookings": 0},
            tier_assigned_at=datetime.now(timezone.utc),
        )
        assert service.get_tier(business.id)["tier"] == "NEW"
