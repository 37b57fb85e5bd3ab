# backend/servicehub/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_lifecycle_service import BookingLifecycleService
from ...services.commission_service import CommissionService
from ...services.email_service import EmailService
from ...services.notification_service import NotificationService
from ...services.revenue_service import RevenueService
from ...services.tier_migration_service import TierMigrationService
from ...services.tier_service import TierService
from .database import get_db


def get_email_service(db: Session = Depends(get_db)) -> EmailService:
    return EmailService(db)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_booking_lifecycle_service(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingLifecycleService:
    return BookingLifecycleService(
        db, email_service=email_service, notification_service=notification_service
    )


def get_commission_service(db: Session = Depends(get_db)) -> CommissionService:
    return CommissionService(db)


def get_tier_service(db: Session = Depends(get_db)) -> TierService:
    return TierService(db)


def get_revenue_service(db: Session = Depends(get_db)) -> RevenueService:
    return RevenueService(db)


def get_tier_migration_service(
    db: Session = Depends(get_db), tier_service: TierService = Depends(get_tier_service)
) -> TierMigrationService:
    return TierMigrationService(db, tier_service=tier_service)
