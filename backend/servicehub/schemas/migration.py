"""Provider tier migration DTOs."""

from typing import Any, Dict, List

from ..core.enums import ProviderTier
from ._strict_base import StrictModel


class MigrationErrorEntry(StrictModel):
    provider_id: str
    error: str


class MigrationDetail(StrictModel):
    provider_id: str
    assigned_tier: ProviderTier
    metrics: Dict[str, Any]


class MigrationRunResponse(StrictModel):
    total: int
    migrated: int
    errors: List[MigrationErrorEntry]
    details: List[MigrationDetail]
    dry_run: bool


class MigrationStatusResponse(StrictModel):
    total_providers: int
    migrated_providers: int
    needs_migration: int
    migration_complete: bool
    tier_distribution: Dict[str, int]
