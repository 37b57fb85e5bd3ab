# backend/servicehub/models/commission.py
"""Commission rate table and its append-only change history."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


class CommissionConfig(Base):
    """
    Singleton tier -> rate table.

    Rates are stored as decimal strings keyed by tier name. `version` is bumped on
    every write and used as the optimistic concurrency guard.
    """

    __tablename__ = "commission_config"

    id = Column(String(50), primary_key=True)
    rates = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    reason = Column(Text, nullable=True)
    updated_by = Column(String(26), nullable=True)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<CommissionConfig id={self.id} version={self.version}>"


class CommissionRateHistory(Base):
    """One rate change for one tier. Never updated or deleted."""

    __tablename__ = "commission_rate_history"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    tier = Column(String(20), nullable=False, index=True)
    old_rate = Column(Numeric(5, 2), nullable=False)
    new_rate = Column(Numeric(5, 2), nullable=False)
    changed_by = Column(String(26), nullable=False)
    changed_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True
    )
    reason = Column(Text, nullable=False)


__all__ = ["CommissionConfig", "CommissionRateHistory"]
