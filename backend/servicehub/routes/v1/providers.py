# backend/servicehub/routes/v1/providers.py
"""
Provider tier routes - API v1

Endpoints (owning provider or admin):
    GET /{provider_id}/tier                     → Current tier, metrics and next-tier progress
    POST /{provider_id}/tier/recompute          → Re-evaluate the tier from live metrics
    GET /{provider_id}/commission/outstanding   → Cash commission still owed to the platform
"""

import logging

from fastapi import APIRouter, Depends

from ...api.dependencies.auth import AuthContext, get_auth_context, require_business_access
from ...api.dependencies.services import get_commission_service, get_tier_service
from ...core.exceptions import DomainException
from ...schemas.commission import OutstandingCommissionResponse, PaymentTransactionResponse
from ...schemas.provider_tier import ProviderTierResponse, TierRecomputeResponse
from ...services.commission_service import CommissionService
from ...services.tier_service import TierService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["providers-v1"])


@router.get("/{provider_id}/tier", response_model=ProviderTierResponse)
def get_provider_tier(
    provider_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: TierService = Depends(get_tier_service),
) -> ProviderTierResponse:
    try:
        require_business_access(provider_id, auth)
        return ProviderTierResponse.model_validate(service.get_tier(provider_id))
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{provider_id}/tier/recompute", response_model=TierRecomputeResponse)
def recompute_provider_tier(
    provider_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: TierService = Depends(get_tier_service),
) -> TierRecomputeResponse:
    """
    Recompute a provider's tier from completed bookings, rating, revenue and age.

    Existing payment transactions keep the tier they were recorded with.
    """
    try:
        require_business_access(provider_id, auth)
        evaluation = service.recompute(provider_id)
        return TierRecomputeResponse.model_validate(evaluation.to_dict())
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get(
    "/{provider_id}/commission/outstanding", response_model=OutstandingCommissionResponse
)
def get_outstanding_commission(
    provider_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: CommissionService = Depends(get_commission_service),
) -> OutstandingCommissionResponse:
    try:
        require_business_access(provider_id, auth)
        result = service.outstanding_commission(provider_id)
        return OutstandingCommissionResponse(
            provider_id=result["providerId"],
            total_owed=result["totalOwed"],
            transactions=[
                PaymentTransactionResponse.model_validate(tx) for tx in result["transactions"]
            ],
        )
    except DomainException as exc:
        handle_domain_exception(exc)
