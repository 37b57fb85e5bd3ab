# backend/servicehub/repositories/business_repository.py
"""Business reads and tier state writes."""

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..models.business import Business
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BusinessRepository(BaseRepository[Business]):
    def __init__(self, db: Session):
        super().__init__(db, Business)

    def _needs_migration_filter(self) -> Any:
        return or_(
            Business.provider_tier.is_(None),
            Business.performance_metrics.is_(None),
            Business.tier_assigned_at.is_(None),
        )

    def find_needing_tier_migration(
        self, limit: int, after_id: Optional[str] = None
    ) -> List[Business]:
        """Page through businesses missing any tier state column, ordered by id."""
        query = self.db.query(Business).filter(self._needs_migration_filter())
        if after_id is not None:
            query = query.filter(Business.id > after_id)
        return self._execute_query(query.order_by(Business.id.asc()).limit(limit))

    def count_needing_tier_migration(self) -> int:
        query = self.db.query(func.count(Business.id)).filter(self._needs_migration_filter())
        return int(self._execute_scalar(query) or 0)

    def tier_counts(self) -> Dict[Optional[str], int]:
        """Raw provider_tier value -> count for businesses that have tier state."""
        query = (
            self.db.query(Business.provider_tier, func.count(Business.id))
            .filter(Business.provider_tier.isnot(None))
            .group_by(Business.provider_tier)
        )
        return {tier: int(count) for tier, count in self._execute_query(query)}

    def ids_owned_by(self, owner_id: str) -> List[str]:
        query = self.db.query(Business.id).filter(Business.owner_id == owner_id)
        return [row[0] for row in self._execute_query(query)]

    def save_tier_state(
        self,
        business: Business,
        tier: str,
        metrics: Dict[str, Any],
        assigned_at: datetime,
    ) -> Business:
        """Overwrite all three tier state columns together."""
        business.provider_tier = tier
        business.performance_metrics = metrics
        business.tier_assigned_at = assigned_at
        self.db.flush()
        return business
