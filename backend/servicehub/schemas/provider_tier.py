"""Provider tier DTOs."""

from datetime import datetime
from typing import Any, Dict, Optional

from ..core.enums import ProviderTier
from ._strict_base import StrictModel


class ThresholdRequirement(StrictModel):
    required: Any
    current: Any
    met: bool


class NextTierProgress(StrictModel):
    tier: ProviderTier
    requirements: Dict[str, ThresholdRequirement]
    eligible: bool


class ProviderTierResponse(StrictModel):
    provider_id: str
    tier: ProviderTier
    performance_metrics: Dict[str, Any]
    tier_assigned_at: Optional[datetime] = None
    migrated: bool
    next_tier: Optional[NextTierProgress] = None


class TierRecomputeResponse(StrictModel):
    old_tier: Optional[ProviderTier] = None
    new_tier: ProviderTier
    tier_changed: bool
    performance_metrics: Dict[str, Any]
