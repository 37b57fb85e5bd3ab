# backend/servicehub/routes/v1/payments.py
"""
Payment transaction routes - API v1

Endpoints (admin only):
    PATCH /{transaction_id}/status               → Correct a payment status
    POST /{transaction_id}/commission/collect    → Mark owed commission as collected
"""

from fastapi import APIRouter, Body, Depends

from ...api.dependencies.auth import AuthContext, require_admin
from ...api.dependencies.services import get_commission_service
from ...core.exceptions import DomainException
from ...schemas.commission import PaymentStatusUpdateRequest, PaymentTransactionResponse
from ...services.commission_service import CommissionService
from . import handle_domain_exception

router = APIRouter(tags=["payments-v1"])


@router.patch("/{transaction_id}/status", response_model=PaymentTransactionResponse)
def update_payment_status(
    transaction_id: str,
    payload: PaymentStatusUpdateRequest = Body(...),
    _: AuthContext = Depends(require_admin),
    service: CommissionService = Depends(get_commission_service),
) -> PaymentTransactionResponse:
    try:
        transaction = service.update_payment_status(transaction_id, payload.status)
        return PaymentTransactionResponse.model_validate(transaction)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post(
    "/{transaction_id}/commission/collect", response_model=PaymentTransactionResponse
)
def collect_commission(
    transaction_id: str,
    _: AuthContext = Depends(require_admin),
    service: CommissionService = Depends(get_commission_service),
) -> PaymentTransactionResponse:
    try:
        transaction = service.mark_commission_collected(transaction_id)
        return PaymentTransactionResponse.model_validate(transaction)
    except DomainException as exc:
        handle_domain_exception(exc)
