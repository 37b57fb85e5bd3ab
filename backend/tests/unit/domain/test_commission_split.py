"""Commission split, rate validation and the rate table."""

from decimal import Decimal

from hypothesis import given, strategies as st
import pytest

from servicehub.core.enums import CommissionStatus, PaymentMethod, ProviderTier
from servicehub.core.exceptions import InvalidAmountException, InvalidRateException
from servicehub.domain.commission import (
    DEFAULT_COMMISSION_RATES,
    CommissionTable,
    round2,
    split_amount,
    validate_rates,
)

MIN_RATE = Decimal("5")
MAX_RATE = Decimal("50")


class TestSplitAmount:
    def test_premium_split(self):
        split = split_amount(Decimal("250.00"), Decimal("15"))

        assert split.commission == Decimal("37.50")
        assert split.payout == Decimal("212.50")

    def test_commission_rounds_half_up(self):
        # 0.125 rounds up to 0.13
        split = split_amount(Decimal("1.25"), Decimal("10"))
        assert split.commission == Decimal("0.13")
        assert split.payout == Decimal("1.12")

    @pytest.mark.parametrize("amount", [0, -1, "-0.01", "abc", "NaN", "Infinity"])
    def test_rejects_non_positive_or_invalid_amounts(self, amount):
        with pytest.raises(InvalidAmountException):
            split_amount(amount, Decimal("20"))

    @pytest.mark.parametrize("amount", ["10.005", "0.001", Decimal("99.999")])
    def test_rejects_fractions_of_a_cent(self, amount):
        with pytest.raises(InvalidAmountException) as exc_info:
            split_amount(amount, Decimal("20"))

        assert "fractions of a cent" in exc_info.value.message

    def test_accepts_whole_cents_with_trailing_zeros(self):
        split = split_amount(Decimal("10.500"), Decimal("20"))
        assert split.commission + split.payout == Decimal("10.50")

    @given(
        amount=st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000000"), places=2),
        rate=st.decimals(min_value=Decimal("5"), max_value=Decimal("50"), places=2),
    )
    def test_commission_plus_payout_equals_amount(self, amount, rate):
        split = split_amount(amount, rate)

        assert split.commission + split.payout == amount
        assert split.commission == round2(split.commission)
        assert Decimal("0") <= split.commission <= amount


class TestSettlement:
    def test_cash_leaves_commission_owed(self):
        split = split_amount(Decimal("100"), Decimal("20"))
        assert split.settlement(PaymentMethod.CASH) == (Decimal("20.00"), CommissionStatus.PENDING)

    @pytest.mark.parametrize(
        "method", [PaymentMethod.PAYSTACK, PaymentMethod.MOBILE_MONEY, PaymentMethod.CARD]
    )
    def test_digital_payments_are_collected_at_source(self, method):
        split = split_amount(Decimal("100"), Decimal("20"))
        assert split.settlement(method) == (Decimal("0.00"), CommissionStatus.COLLECTED)


class TestValidateRates:
    def test_rate_above_ceiling_rejected(self):
        with pytest.raises(InvalidRateException) as exc_info:
            validate_rates({"NEW": 55}, MIN_RATE, MAX_RATE)
        assert exc_info.value.code == "INVALID_RATE"
        assert exc_info.value.details["tier"] == "NEW"

    def test_rate_below_floor_rejected(self):
        with pytest.raises(InvalidRateException):
            validate_rates({"PREMIUM": "4.99"}, MIN_RATE, MAX_RATE)

    def test_bounds_are_inclusive(self):
        assert validate_rates({"NEW": 5, "ENTERPRISE": 50}, MIN_RATE, MAX_RATE) == {
            ProviderTier.NEW: Decimal("5.00"),
            ProviderTier.ENTERPRISE: Decimal("50.00"),
        }

    @pytest.mark.parametrize("key", ["STANDARD", "GOLD", ""])
    def test_unknown_tier_rejected(self, key):
        with pytest.raises(InvalidRateException):
            validate_rates({key: 10}, MIN_RATE, MAX_RATE)

    @pytest.mark.parametrize("value", ["ten", True, None])
    def test_non_numeric_rate_rejected(self, value):
        with pytest.raises(InvalidRateException):
            validate_rates({"NEW": value}, MIN_RATE, MAX_RATE)

    def test_empty_update_rejected(self):
        with pytest.raises(InvalidRateException):
            validate_rates({}, MIN_RATE, MAX_RATE)


class TestCommissionTable:
    def test_defaults_when_nothing_stored(self):
        table = CommissionTable.from_storage(None)
        assert table.as_dict() == {
            tier.value: float(rate) for tier, rate in DEFAULT_COMMISSION_RATES.items()
        }

    def test_legacy_tier_uses_new_rate(self):
        table = CommissionTable.from_storage({"NEW": "22.50"})
        assert table.rate_for("STANDARD") == Decimal("22.50")

    def test_diff_lists_only_changed_tiers(self):
        current = CommissionTable()
        updated = current.with_rates({ProviderTier.PREMIUM: Decimal("14.00")})

        assert current.diff(updated) == [
            (ProviderTier.PREMIUM, Decimal("15.00"), Decimal("14.00"))
        ]
        assert current.diff(current) == []

    def test_storage_round_trip(self):
        table = CommissionTable().with_rates({ProviderTier.NEW: Decimal("19.5")})
        assert CommissionTable.from_storage(table.to_storage()) == table
