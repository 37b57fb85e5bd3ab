# backend/servicehub/services/tier_migration_service.py
"""
Backfill tier state for providers that predate tiering.

Selects businesses missing any of provider_tier, performance_metrics or
tier_assigned_at, pages through them by id, and recomputes each one in its own
transaction. A failing provider is logged and reported; the batch carries on.
Migrated providers drop out of the selection, so a second run is a no-op.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ProviderTier
from ..domain.tiers import normalize_tier
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .tier_service import TierService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationError:
    provider_id: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {"providerId": self.provider_id, "error": self.error}


class TierMigrationService(BaseService):
    def __init__(self, db: Session, tier_service: Optional[TierService] = None):
        super().__init__(db)
        self.business_repository = RepositoryFactory.create_business_repository(db)
        self.tier_service = tier_service or TierService(db)

    @BaseService.measure_operation("migrate_provider_tiers")
    def migrate_legacy_providers(
        self, dry_run: bool = False, batch_size: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Run the backfill.

        Returns:
            {"total", "migrated", "errors": [...], "details": [...], "dryRun"}
        """
        batch_size = batch_size or settings.migration_batch_size
        total = 0
        migrated = 0
        errors: List[MigrationError] = []
        details: List[Dict[str, Any]] = []
        last_id: Optional[str] = None

        while True:
            batch = self.business_repository.find_needing_tier_migration(batch_size, after_id=last_id)
            if not batch:
                break
            # Capture ids up front; a rollback expires every loaded row
            provider_ids = [business.id for business in batch]
            last_id = provider_ids[-1]

            for provider_id, business in zip(provider_ids, batch):
                total += 1
                now = datetime.now(timezone.utc)
                try:
                    with self.transaction():
                        if dry_run:
                            evaluation = self.tier_service.evaluate(business, now)
                        else:
                            evaluation = self.tier_service.apply_recompute(business, now)
                except Exception as exc:
                    self.logger.error(
                        f"Tier migration failed for provider {provider_id}: {str(exc)}",
                        extra={"provider_id": provider_id},
                    )
                    errors.append(MigrationError(provider_id=provider_id, error=str(exc)))
                    continue

                if not dry_run:
                    migrated += 1
                details.append(
                    {
                        "providerId": provider_id,
                        "assignedTier": evaluation.new_tier.value,
                        "metrics": evaluation.metrics.to_dict(evaluation.evaluated_at),
                    }
                )

            if len(batch) < batch_size:
                break

        self.logger.info(
            f"Tier migration finished: {migrated}/{total} migrated, {len(errors)} errors",
            extra={"dry_run": dry_run},
        )
        return {
            "total": total,
            "migrated": migrated,
            "errors": [error.to_dict() for error in errors],
            "details": details,
            "dryRun": dry_run,
        }

    @BaseService.measure_operation("tier_migration_status")
    def migration_status(self) -> Dict[str, Any]:
        total = self.business_repository.count()
        needs_migration = self.business_repository.count_needing_tier_migration()

        distribution = {tier.value: 0 for tier in ProviderTier}
        for raw_tier, count in self.business_repository.tier_counts().items():
            distribution[normalize_tier(raw_tier).value] += count

        return {
            "totalProviders": total,
            "migratedProviders": total - needs_migration,
            "needsMigration": needs_migration,
            "migrationComplete": needs_migration == 0,
            "tierDistribution": distribution,
        }
