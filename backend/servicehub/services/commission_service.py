# backend/servicehub/services/commission_service.py
"""
Commission rates, payment recording and commission collection.

The rate table is a single versioned row. Rate edits are serialised by a
process-wide lock and, across processes, by a version-guarded UPDATE; each
tier whose rate changes gets one history entry.

Payment transactions snapshot the provider tier and rate at creation. Later
tier or rate changes never touch existing transactions.
"""

from datetime import datetime, timezone
from decimal import Decimal
import logging
from threading import Lock
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import COMMISSION_CONFIG_KEY, CURRENCY, DEFAULT_RATE_CHANGE_REASON
from ..core.enums import BookingStatus, CommissionStatus, PaymentMethod, PaymentStatus
from ..core.exceptions import (
    BusinessRuleException,
    ConcurrentModificationException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    RepositoryException,
    ServiceException,
    ValidationException,
)
from ..domain.commission import CommissionSplit, CommissionTable, round2, validate_rates
from ..domain.tiers import normalize_tier, parse_tier
from ..models.booking import Booking
from ..models.commission import CommissionRateHistory
from ..models.payment import PaymentTransaction
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

PAYMENT_STATUS_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}

OwnershipCheck = Callable[[Booking], bool]


def _enum_value(enum_cls: Any, value: Any, field: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise ValidationException(
            f"Invalid {field}: {value}",
            code=f"INVALID_{field.upper()}",
            details={"allowed": [item.value for item in enum_cls]},
        )


class CommissionService(BaseService):
    """Service layer for the commission table and payment transactions."""

    # One rate edit at a time within this process
    _rates_lock = Lock()

    def __init__(self, db: Session):
        super().__init__(db)
        self.commission_repository = RepositoryFactory.create_commission_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.business_repository = RepositoryFactory.create_business_repository(db)

    # Rate table

    def get_commission_table(self) -> CommissionTable:
        config = self.commission_repository.get_config()
        return CommissionTable.from_storage(config.rates if config else None)

    @BaseService.measure_operation("get_commission_rates")
    def get_rates(self) -> Dict[str, Any]:
        config = self.commission_repository.get_config()
        table = CommissionTable.from_storage(config.rates if config else None)
        return {
            "rates": table.as_dict(),
            "lastUpdated": config.updated_at if config else None,
            "updatedBy": config.updated_by if config else None,
            "reason": config.reason if config else None,
            "version": config.version if config else 0,
        }

    def split(self, amount: Any, tier: Any) -> CommissionSplit:
        """Commission/payout split for `amount` at the current rate of `tier`."""
        return self.get_commission_table().split(amount, tier)

    @BaseService.measure_operation("set_commission_rates")
    def set_rates(
        self, new_rates: Mapping[str, Any], reason: Optional[str], actor_id: str
    ) -> Dict[str, Any]:
        """
        Validate and apply a partial or full rate update.

        Raises:
            InvalidRateException: unknown tier key or rate outside the configured bounds;
                nothing is written
            ConcurrentModificationException: another writer updated the table first
        """
        validated = validate_rates(
            new_rates,
            Decimal(str(settings.commission_rate_min)),
            Decimal(str(settings.commission_rate_max)),
        )
        reason_text = (reason or "").strip() or DEFAULT_RATE_CHANGE_REASON

        with CommissionService._rates_lock:
            now = datetime.now(timezone.utc)
            with self.transaction():
                config = self.commission_repository.get_config()
                current = CommissionTable.from_storage(config.rates if config else None)
                updated = current.with_rates(validated)
                changes = current.diff(updated)

                if changes:
                    if config is None:
                        try:
                            self.commission_repository.create_config(
                                updated.to_storage(), actor_id, reason_text, now
                            )
                        except RepositoryException as exc:
                            if isinstance(exc.__cause__, IntegrityError):
                                raise ConcurrentModificationException(
                                    "Commission rates were created concurrently"
                                ) from exc
                            raise
                    elif not self.commission_repository.update_config_if_version(
                        config.version, updated.to_storage(), actor_id, reason_text, now
                    ):
                        raise ConcurrentModificationException(
                            "Commission rates were changed by another administrator",
                            details={"expected_version": config.version},
                        )

                    for tier, old_rate, new_rate in changes:
                        self.commission_repository.append_history(
                            tier.value, old_rate, new_rate, actor_id, now, reason_text
                        )

            if changes:
                # Conditional UPDATE bypassed the identity map
                self.commission_repository.get_fresh(COMMISSION_CONFIG_KEY)

        for tier, old_rate, new_rate in changes:
            prometheus_metrics.inc_commission_rate_change(tier.value)
            self.logger.info(
                f"Commission rate for {tier.value} changed {old_rate}% -> {new_rate}%",
                extra={"tier": tier.value, "actor_id": actor_id},
            )

        return {
            "rates": updated.as_dict(),
            "changes": [
                {"tier": tier.value, "oldRate": float(old_rate), "newRate": float(new_rate)}
                for tier, old_rate, new_rate in changes
            ],
            "lastUpdated": now,
            "updatedBy": actor_id,
            "reason": reason_text,
        }

    @BaseService.measure_operation("get_rate_history")
    def get_rate_history(
        self, tier: Optional[str] = None, limit: int = 50
    ) -> List[CommissionRateHistory]:
        tier_filter = None
        if tier:
            parsed = parse_tier(tier)
            if parsed is None:
                raise ValidationException(f"Unknown provider tier: {tier}", code="INVALID_TIER")
            tier_filter = parsed.value
        return self.commission_repository.list_history(tier_filter, limit=limit)

    # Payment transactions

    @BaseService.measure_operation("record_payment")
    def record_payment(
        self,
        booking_id: str,
        amount: Any,
        payment_method: Union[PaymentMethod, str],
        *,
        payment_status: Union[PaymentStatus, str] = PaymentStatus.COMPLETED,
        is_owner: Optional[OwnershipCheck] = None,
    ) -> PaymentTransaction:
        """
        Create the single payment transaction for a completed booking.

        The commission split uses the provider's tier and the rate table as
        they are right now, and both are stored on the transaction.
        """
        method = _enum_value(PaymentMethod, payment_method, "payment_method")
        initial_status = _enum_value(PaymentStatus, payment_status, "payment_status")
        if initial_status not in (PaymentStatus.PENDING, PaymentStatus.COMPLETED):
            raise ValidationException(
                "A payment can only be recorded as PENDING or COMPLETED",
                code="INVALID_PAYMENT_STATUS",
            )

        booking = self._get_booking(booking_id, is_owner)
        if booking.status != BookingStatus.COMPLETED.value:
            raise BusinessRuleException(
                "Payments can only be recorded for completed bookings",
                code="BOOKING_NOT_COMPLETED",
                details={"current_status": booking.status},
            )
        if self.payment_repository.get_by_booking_id(booking_id):
            raise ConflictException(
                f"A payment is already recorded for booking {booking_id}",
                code="PAYMENT_EXISTS",
            )

        business = booking.business
        tier = normalize_tier(business.provider_tier if business else None)
        split = self.split(amount, tier)
        commission_owed, commission_status = split.settlement(method)

        try:
            with self.transaction():
                transaction = self.payment_repository.create(
                    booking_id=booking.id,
                    business_id=booking.business_id,
                    customer_id=booking.customer_id,
                    total_amount=split.amount,
                    platform_commission=split.commission,
                    provider_payout=split.payout,
                    currency=CURRENCY,
                    provider_tier=tier.value,
                    commission_rate=split.rate,
                    service_category=business.category if business else None,
                    payment_method=method.value,
                    payment_status=initial_status.value,
                    commission_owed=commission_owed,
                    commission_status=commission_status.value,
                )
        except ServiceException as exc:
            if isinstance(exc.__cause__, RepositoryException) and isinstance(
                exc.__cause__.__cause__, IntegrityError
            ):
                raise ConflictException(
                    f"A payment is already recorded for booking {booking_id}",
                    code="PAYMENT_EXISTS",
                ) from exc
            raise

        prometheus_metrics.inc_payment_recorded(method.value, tier.value)
        self.log_operation(
            "record_payment",
            booking_id=booking_id,
            transaction_id=transaction.id,
            provider_tier=tier.value,
        )
        return transaction

    def _get_booking(self, booking_id: str, is_owner: Optional[OwnershipCheck]) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id, load_relationships=False)
        if not booking:
            raise NotFoundException(f"Booking {booking_id} not found", code="BOOKING_NOT_FOUND")
        if is_owner is not None and not is_owner(booking):
            raise ForbiddenException(
                "You do not have permission to manage this booking",
                code="BOOKING_ACCESS_DENIED",
            )
        return booking

    def get_transaction(self, transaction_id: str) -> PaymentTransaction:
        transaction = self.payment_repository.get_by_id(transaction_id, load_relationships=False)
        if not transaction:
            raise NotFoundException(
                f"Payment transaction {transaction_id} not found", code="PAYMENT_NOT_FOUND"
            )
        return transaction

    @BaseService.measure_operation("update_payment_status")
    def update_payment_status(
        self, transaction_id: str, new_status: Union[PaymentStatus, str]
    ) -> PaymentTransaction:
        """Correct a transaction's payment status. Commission figures are never changed."""
        target = _enum_value(PaymentStatus, new_status, "payment_status")
        transaction = self.get_transaction(transaction_id)
        current = PaymentStatus(transaction.payment_status)
        if target not in PAYMENT_STATUS_TRANSITIONS[current]:
            raise BusinessRuleException(
                f"Cannot change payment status from {current.value} to {target.value}",
                code="INVALID_PAYMENT_TRANSITION",
                details={"current_status": current.value, "requested_status": target.value},
            )

        with self.transaction():
            if not self.payment_repository.compare_and_set_payment_status(
                transaction_id, current, target
            ):
                raise ConcurrentModificationException(
                    f"Payment transaction {transaction_id} changed while it was being updated",
                    details={"expected_status": current.value},
                )

        return self.payment_repository.get_fresh(transaction_id) or transaction

    @BaseService.measure_operation("mark_commission_collected")
    def mark_commission_collected(self, transaction_id: str) -> PaymentTransaction:
        transaction = self.get_transaction(transaction_id)
        if transaction.commission_status == CommissionStatus.COLLECTED.value:
            raise ConflictException(
                "Commission already collected for this transaction",
                code="COMMISSION_ALREADY_COLLECTED",
            )

        with self.transaction():
            if not self.payment_repository.mark_commission_collected(
                transaction_id, datetime.now(timezone.utc)
            ):
                raise ConcurrentModificationException(
                    f"Payment transaction {transaction_id} changed while it was being updated"
                )

        return self.payment_repository.get_fresh(transaction_id) or transaction

    # Reporting

    @BaseService.measure_operation("commission_summary")
    def commission_summary(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Dict[str, Any]:
        rows = self.payment_repository.commission_summary_rows(start, end)
        earned = sum((row["commission"] for row in rows), Decimal("0"))
        owed = sum((row["owed"] for row in rows), Decimal("0"))
        volume = sum((row["volume"] for row in rows), Decimal("0"))
        return {
            "totalCommissionEarned": float(round2(earned)),
            "totalCommissionOwed": float(round2(owed)),
            "totalVolume": float(round2(volume)),
            "transactionCount": sum(row["count"] for row in rows),
            "byPaymentMethod": {
                row["payment_method"]: {
                    "count": row["count"],
                    "volume": float(round2(row["volume"])),
                    "commission": float(round2(row["commission"])),
                    "owed": float(round2(row["owed"])),
                }
                for row in rows
            },
            "period": {"startDate": start, "endDate": end},
        }

    @BaseService.measure_operation("outstanding_commission")
    def outstanding_commission(self, business_id: str) -> Dict[str, Any]:
        if not self.business_repository.get_by_id(business_id, load_relationships=False):
            raise NotFoundException(f"Provider {business_id} not found", code="PROVIDER_NOT_FOUND")
        transactions = self.payment_repository.list_outstanding_commission(business_id)
        total = sum((Decimal(str(tx.commission_owed)) for tx in transactions), Decimal("0"))
        return {
            "providerId": business_id,
            "totalOwed": float(round2(total)),
            "transactions": transactions,
        }
