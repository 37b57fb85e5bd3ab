# backend/servicehub/routes/v1/reports.py
"""
Reporting routes - API v1

Endpoints (admin only):
    GET /revenue   → Platform revenue analytics for a timeframe
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.auth import AuthContext, require_admin
from ...api.dependencies.services import get_revenue_service
from ...core.exceptions import DomainException
from ...schemas.reports import RevenueReportResponse
from ...services.revenue_service import RevenueService
from . import handle_domain_exception

router = APIRouter(tags=["reports-v1"])


@router.get("/revenue", response_model=RevenueReportResponse)
def get_revenue_report(
    timeframe: str = Query("30d", description="One of 7d, 30d, 90d, 1y"),
    bucketing: Optional[str] = Query(None, description="day or month; defaults by timeframe"),
    _: AuthContext = Depends(require_admin),
    service: RevenueService = Depends(get_revenue_service),
) -> RevenueReportResponse:
    """
    Revenue summary, time series and breakdowns.

    Only COMPLETED transactions are counted. Growth figures compare against the
    immediately preceding period of the same length.
    """
    try:
        return RevenueReportResponse.model_validate(
            service.revenue_report(timeframe=timeframe, bucketing=bucketing)
        )
    except DomainException as exc:
        handle_domain_exception(exc)
