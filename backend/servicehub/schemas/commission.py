"""Commission rate, rate history and payment transaction DTOs."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field

from ..core.enums import CommissionStatus, PaymentMethod, PaymentStatus, ProviderTier
from ._strict_base import StrictModel, StrictRequestModel


class CommissionRatesResponse(StrictModel):
    rates: Dict[str, float]
    last_updated: Optional[datetime] = None
    updated_by: Optional[str] = None
    reason: Optional[str] = None
    version: int = 0


class CommissionRatesUpdateRequest(StrictRequestModel):
    # Keys and bounds are checked by the service so the error carries the rate context
    rates: Dict[str, Decimal]
    reason: Optional[str] = Field(None, max_length=500)


class RateChange(StrictModel):
    tier: ProviderTier
    old_rate: float
    new_rate: float


class CommissionRatesUpdateResponse(StrictModel):
    rates: Dict[str, float]
    changes: List[RateChange]
    last_updated: datetime
    updated_by: str
    reason: str


class RateHistoryEntry(StrictModel):
    id: str
    tier: ProviderTier
    old_rate: float
    new_rate: float
    changed_by: str
    changed_at: datetime
    reason: str


class RateHistoryResponse(StrictModel):
    entries: List[RateHistoryEntry]
    count: int


class RecordPaymentRequest(StrictRequestModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.COMPLETED


class PaymentStatusUpdateRequest(StrictRequestModel):
    status: PaymentStatus


class PaymentTransactionResponse(StrictModel):
    id: str
    booking_id: str
    business_id: str
    customer_id: str
    total_amount: float
    platform_commission: float
    provider_payout: float
    currency: str
    provider_tier: ProviderTier
    commission_rate: float
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    commission_owed: float
    commission_status: CommissionStatus
    commission_collected_at: Optional[datetime] = None
    created_at: datetime


class PaymentMethodSummary(StrictModel):
    count: int
    volume: float
    commission: float
    owed: float


class SummaryPeriod(StrictModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class CommissionSummaryResponse(StrictModel):
    total_commission_earned: float
    total_commission_owed: float
    total_volume: float
    transaction_count: int
    by_payment_method: Dict[str, PaymentMethodSummary]
    period: SummaryPeriod


class OutstandingCommissionResponse(StrictModel):
    provider_id: str
    total_owed: float
    transactions: List[PaymentTransactionResponse]
