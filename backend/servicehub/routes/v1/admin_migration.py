# backend/servicehub/routes/v1/admin_migration.py
"""
Provider tier migration routes - API v1

Endpoints (admin only):
    GET /migrate-provider-tiers   → How many providers still lack a tier
    POST /migrate-provider-tiers  → Backfill tiers for legacy providers
"""

import logging

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.auth import AuthContext, require_admin
from ...api.dependencies.services import get_tier_migration_service
from ...core.exceptions import DomainException
from ...schemas.migration import MigrationRunResponse, MigrationStatusResponse
from ...services.tier_migration_service import TierMigrationService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-v1"])


@router.get("/migrate-provider-tiers", response_model=MigrationStatusResponse)
def get_migration_status(
    _: AuthContext = Depends(require_admin),
    service: TierMigrationService = Depends(get_tier_migration_service),
) -> MigrationStatusResponse:
    try:
        return MigrationStatusResponse.model_validate(service.migration_status())
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/migrate-provider-tiers", response_model=MigrationRunResponse)
def run_tier_migration(
    dry_run: bool = Query(False, description="Evaluate without writing"),
    admin: AuthContext = Depends(require_admin),
    service: TierMigrationService = Depends(get_tier_migration_service),
) -> MigrationRunResponse:
    """
    Assign tiers to providers that have never been evaluated.

    Safe to re-run: providers that already carry a tier are skipped, and a
    failure on one provider does not stop the others.
    """
    logger.info(f"Provider tier migration requested by {admin.actor_id} (dry_run={dry_run})")
    try:
        return MigrationRunResponse.model_validate(
            service.migrate_legacy_providers(dry_run=dry_run)
        )
    except DomainException as exc:
        handle_domain_exception(exc)
