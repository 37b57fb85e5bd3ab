# backend/servicehub/routes/v1/commission.py
"""
Commission routes - API v1

Versioned commission endpoints under /api/v1/commission.

Endpoints:
    GET /rates     → Current commission rate per tier (any authenticated actor)
    PUT /rates     → Update one or more tier rates (admin)
    GET /history   → Rate change history, newest first (admin)
    GET /summary   → Commission earned/owed by payment method (admin)
"""

from datetime import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies.auth import AuthContext, get_auth_context, require_admin
from ...api.dependencies.services import get_commission_service
from ...core.exceptions import DomainException
from ...schemas.commission import (
    CommissionRatesResponse,
    CommissionRatesUpdateRequest,
    CommissionRatesUpdateResponse,
    CommissionSummaryResponse,
    RateHistoryEntry,
    RateHistoryResponse,
)
from ...services.commission_service import CommissionService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["commission-v1"])


@router.get("/rates", response_model=CommissionRatesResponse)
def get_commission_rates(
    _: AuthContext = Depends(get_auth_context),
    service: CommissionService = Depends(get_commission_service),
) -> CommissionRatesResponse:
    try:
        return CommissionRatesResponse.model_validate(service.get_rates())
    except DomainException as exc:
        handle_domain_exception(exc)


@router.put("/rates", response_model=CommissionRatesUpdateResponse)
def update_commission_rates(
    payload: CommissionRatesUpdateRequest = Body(...),
    admin: AuthContext = Depends(require_admin),
    service: CommissionService = Depends(get_commission_service),
) -> CommissionRatesUpdateResponse:
    """
    Update commission rates.

    Tiers missing from the payload keep their current rate. Every rate must
    fall within the configured bounds or nothing is written.
    """
    try:
        result = service.set_rates(payload.rates, payload.reason, admin.actor_id)
        return CommissionRatesUpdateResponse.model_validate(result)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/history", response_model=RateHistoryResponse)
def get_commission_rate_history(
    tier: Optional[str] = Query(None, description="Filter by provider tier"),
    limit: int = Query(50, ge=1, le=500),
    _: AuthContext = Depends(require_admin),
    service: CommissionService = Depends(get_commission_service),
) -> RateHistoryResponse:
    try:
        entries = service.get_rate_history(tier, limit=limit)
        return RateHistoryResponse(
            entries=[RateHistoryEntry.model_validate(entry) for entry in entries],
            count=len(entries),
        )
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/summary", response_model=CommissionSummaryResponse)
def get_commission_summary(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    _: AuthContext = Depends(require_admin),
    service: CommissionService = Depends(get_commission_service),
) -> CommissionSummaryResponse:
    try:
        return CommissionSummaryResponse.model_validate(
            service.commission_summary(start_date, end_date)
        )
    except DomainException as exc:
        handle_domain_exception(exc)
