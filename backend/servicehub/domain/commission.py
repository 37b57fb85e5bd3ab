# backend/servicehub/domain/commission.py
"""
Commission table and the commission/payout split.

Commission is rounded half-up to cents and the payout is derived by
subtraction, so commission + payout always equals the amount exactly.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..core.enums import CommissionStatus, PaymentMethod, ProviderTier
from ..core.exceptions import InvalidAmountException, InvalidRateException
from .tiers import TIER_ORDER, normalize_tier, parse_tier

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

DEFAULT_COMMISSION_RATES: Dict[ProviderTier, Decimal] = {
    ProviderTier.NEW: Decimal("20.00"),
    ProviderTier.VERIFIED: Decimal("18.00"),
    ProviderTier.PREMIUM: Decimal("15.00"),
    ProviderTier.ENTERPRISE: Decimal("12.00"),
}


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CommissionSplit:
    amount: Decimal
    rate: Decimal
    commission: Decimal
    payout: Decimal

    def settlement(self, method: PaymentMethod) -> Tuple[Decimal, CommissionStatus]:
        """
        Return (commission_owed, commission_status) for a payment method.

        Cash is paid straight to the provider, who then owes the platform its cut.
        Every other method deducts the commission before payout.
        """
        if method == PaymentMethod.CASH:
            return self.commission, CommissionStatus.PENDING
        return Decimal("0.00"), CommissionStatus.COLLECTED


def split_amount(amount: Any, rate: Any) -> CommissionSplit:
    """
    Split `amount` at `rate` percent.

    Raises InvalidAmountException for amount <= 0 and for fractions of a cent,
    which would leave a payout the ledger cannot store.
    """
    try:
        value = to_decimal(amount)
    except (InvalidOperation, ValueError):
        raise InvalidAmountException(amount)
    if not value.is_finite() or value <= 0:
        raise InvalidAmountException(amount)
    if value != value.quantize(CENT):
        raise InvalidAmountException(
            amount, "Transaction amount cannot include fractions of a cent"
        )
    rate_value = to_decimal(rate)
    commission = round2(value * rate_value / HUNDRED)
    return CommissionSplit(
        amount=value,
        rate=rate_value,
        commission=commission,
        payout=value - commission,
    )


def validate_rates(
    raw: Mapping[str, Any],
    min_rate: Decimal,
    max_rate: Decimal,
) -> Dict[ProviderTier, Decimal]:
    """
    Validate an admin rate update.

    Every key must be a canonical tier name and every value a number within
    [min_rate, max_rate]. The whole update is rejected on the first problem.
    """
    if not raw:
        raise InvalidRateException("At least one tier rate is required")

    validated: Dict[ProviderTier, Decimal] = {}
    for key, value in raw.items():
        tier = parse_tier(key)
        if tier is None:
            raise InvalidRateException(
                f"Unknown provider tier: {key}",
                details={"tier": key, "allowed": [t.value for t in TIER_ORDER]},
            )
        if isinstance(value, bool):
            raise InvalidRateException(f"Invalid rate for {tier.value}", details={"tier": tier.value})
        try:
            rate = to_decimal(value)
        except (InvalidOperation, ValueError):
            raise InvalidRateException(
                f"Invalid rate for {tier.value}", details={"tier": tier.value, "rate": str(value)}
            )
        if not rate.is_finite() or rate < min_rate or rate > max_rate:
            raise InvalidRateException(
                f"Rate for {tier.value} must be between {min_rate}% and {max_rate}%",
                details={
                    "tier": tier.value,
                    "rate": str(value),
                    "min": str(min_rate),
                    "max": str(max_rate),
                },
            )
        validated[tier] = round2(rate)
    return validated


class CommissionTable:
    """Immutable tier -> rate mapping."""

    def __init__(self, rates: Optional[Mapping[ProviderTier, Decimal]] = None):
        merged = dict(DEFAULT_COMMISSION_RATES)
        if rates:
            merged.update(rates)
        self._rates: Dict[ProviderTier, Decimal] = {tier: round2(merged[tier]) for tier in TIER_ORDER}

    @classmethod
    def from_storage(cls, stored: Optional[Mapping[str, Any]]) -> "CommissionTable":
        rates: Dict[ProviderTier, Decimal] = {}
        for key, value in (stored or {}).items():
            tier = parse_tier(key)
            if tier is not None and value is not None:
                rates[tier] = to_decimal(value)
        return cls(rates)

    def to_storage(self) -> Dict[str, str]:
        return {tier.value: str(rate) for tier, rate in self._rates.items()}

    def as_dict(self) -> Dict[str, float]:
        return {tier.value: float(rate) for tier, rate in self._rates.items()}

    def rate_for(self, tier: Any) -> Decimal:
        return self._rates[normalize_tier(tier)]

    def split(self, amount: Any, tier: Any) -> CommissionSplit:
        return split_amount(amount, self.rate_for(tier))

    def with_rates(self, updates: Mapping[ProviderTier, Decimal]) -> "CommissionTable":
        merged = dict(self._rates)
        merged.update(updates)
        return CommissionTable(merged)

    def diff(self, other: "CommissionTable") -> List[Tuple[ProviderTier, Decimal, Decimal]]:
        """(tier, old_rate, new_rate) for each tier whose rate differs in `other`."""
        return [
            (tier, self._rates[tier], other._rates[tier])
            for tier in TIER_ORDER
            if self._rates[tier] != other._rates[tier]
        ]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommissionTable):
            return NotImplemented
        return self._rates == other._rates

    def __repr__(self) -> str:
        return f"CommissionTable({self.to_storage()})"
