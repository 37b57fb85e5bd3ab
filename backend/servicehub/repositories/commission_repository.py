# backend/servicehub/repositories/commission_repository.py
"""Commission config singleton and rate history."""

from datetime import datetime
from decimal import Decimal
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import COMMISSION_CONFIG_KEY
from ..models.commission import CommissionConfig, CommissionRateHistory
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CommissionRepository(BaseRepository[CommissionConfig]):
    def __init__(self, db: Session):
        super().__init__(db, CommissionConfig)

    def get_config(self) -> Optional[CommissionConfig]:
        return self.get_by_id(COMMISSION_CONFIG_KEY, load_relationships=False)

    def create_config(
        self, rates: Dict[str, str], updated_by: str, reason: str, updated_at: datetime
    ) -> CommissionConfig:
        return self.create(
            id=COMMISSION_CONFIG_KEY,
            rates=rates,
            version=1,
            updated_by=updated_by,
            reason=reason,
            updated_at=updated_at,
        )

    def update_config_if_version(
        self,
        expected_version: int,
        rates: Dict[str, str],
        updated_by: str,
        reason: str,
        updated_at: datetime,
    ) -> bool:
        """Write the table and bump the version only if nobody else wrote first."""
        return self._guarded_update(
            COMMISSION_CONFIG_KEY,
            CommissionConfig.version == expected_version,
            {
                "rates": rates,
                "version": expected_version + 1,
                "updated_by": updated_by,
                "reason": reason,
                "updated_at": updated_at,
            },
        )

    def append_history(
        self,
        tier: str,
        old_rate: Decimal,
        new_rate: Decimal,
        changed_by: str,
        changed_at: datetime,
        reason: str,
    ) -> CommissionRateHistory:
        return self._append(
            CommissionRateHistory(
                tier=tier,
                old_rate=old_rate,
                new_rate=new_rate,
                changed_by=changed_by,
                changed_at=changed_at,
                reason=reason,
            )
        )

    def list_history(self, tier: Optional[str] = None, limit: int = 50) -> List[CommissionRateHistory]:
        query = self.db.query(CommissionRateHistory)
        if tier:
            query = query.filter(CommissionRateHistory.tier == tier)
        query = query.order_by(
            CommissionRateHistory.changed_at.desc(), CommissionRateHistory.id.desc()
        ).limit(limit)
        return self._execute_query(query)
