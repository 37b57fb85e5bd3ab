# backend/servicehub/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import AuthContext, get_auth_context, require_admin
from .database import get_db
from .services import (
    get_booking_lifecycle_service,
    get_commission_service,
    get_revenue_service,
    get_tier_migration_service,
    get_tier_service,
)

__all__ = [
    # Auth
    "AuthContext",
    "get_auth_context",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_booking_lifecycle_service",
    "get_commission_service",
    "get_revenue_service",
    "get_tier_migration_service",
    "get_tier_service",
]
