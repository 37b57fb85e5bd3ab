"""BusinessRepository migration queries and PaymentRepository guarded updates."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from servicehub.core.enums import BookingStatus, CommissionStatus, PaymentMethod, PaymentStatus
from servicehub.repositories.factory import RepositoryFactory


@pytest.fixture
def business_repo(db):
    return RepositoryFactory.create_business_repository(db)


@pytest.fixture
def payment_repo(db):
    return RepositoryFactory.create_payment_repository(db)


@pytest.fixture
def completed_booking(make_booking, business):
    return make_booking(business, status=BookingStatus.COMPLETED.value)


class TestBusinessRepository:
    def test_find_needing_tier_migration_pages_by_id(self, business_repo, make_business):
        created = sorted(make_business(name=f"P{i}").id for i in range(3))

        first_page = business_repo.find_needing_tier_migration(2)
        second_page = business_repo.find_needing_tier_migration(2, after_id=first_page[-1].id)

        assert [b.id for b in first_page] == created[:2]
        assert [b.id for b in second_page] == created[2:]

    def test_counts_and_distribution(self, db, business_repo, make_business):
        migrated = make_business()
        make_business()
        business_repo.save_tier_state(
            migrated, "PREMIUM", {"completedBookings": 55}, datetime.now(timezone.utc)
        )
        db.commit()

        assert business_repo.count_needing_tier_migration() == 1
        assert business_repo.tier_counts() == {"PREMIUM": 1}

    def test_ids_owned_by(self, business_repo, make_business):
        owned = make_business(owner_id="owner-a")
        make_business(owner_id="owner-b")

        assert business_repo.ids_owned_by("owner-a") == [owned.id]


class TestPaymentRepository:
    def test_get_by_booking_id(self, payment_repo, make_payment, completed_booking):
        tx = make_payment(completed_booking)
        assert payment_repo.get_by_booking_id(completed_booking.id).id == tx.id
        assert payment_repo.get_by_booking_id("missing") is None

    def test_sum_completed_revenue_ignores_other_statuses(
        self, payment_repo, make_payment, make_booking, business
    ):
        make_payment(make_booking(business), total_amount=Decimal("120.00"))
        make_payment(
            make_booking(business),
            total_amount=Decimal("80.00"),
            payment_status=PaymentStatus.REFUNDED.value,
        )

        assert payment_repo.sum_completed_revenue(business.id) == Decimal("120.00")

    def test_payment_status_guard(self, payment_repo, make_payment, completed_booking):
        tx = make_payment(completed_booking)

        assert payment_repo.compare_and_set_payment_status(
            tx.id, PaymentStatus.PENDING, PaymentStatus.COMPLETED
        ) is False
        assert payment_repo.compare_and_set_payment_status(
            tx.id, PaymentStatus.COMPLETED, PaymentStatus.REFUNDED
        ) is True
        assert payment_repo.get_fresh(tx.id).payment_status == "REFUNDED"

    def test_outstanding_lists_only_uncollected_cash(
        self, payment_repo, make_payment, make_booking, business
    ):
        cash = make_payment(
            make_booking(business),
            payment_method=PaymentMethod.CASH.value,
            commission_owed=Decimal("20.00"),
            commission_status=CommissionStatus.PENDING.value,
        )
        make_payment(make_booking(business))

        assert [tx.id for tx in payment_repo.list_outstanding_commission(business.id)] == [cash.id]

        assert payment_repo.mark_commission_collected(cash.id, datetime.now(timezone.utc))
        assert payment_repo.list_outstanding_commission(business.id) == []
