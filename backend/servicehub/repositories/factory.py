# backend/servicehub/repositories/factory.py
"""
Repository Factory for the ServiceHub platform

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .business_repository import BusinessRepository
    from .commission_repository import CommissionRepository
    from .notification_repository import NotificationRepository
    from .payment_repository import PaymentRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_business_repository(db: Session) -> "BusinessRepository":
        """Create repository for business and tier state operations."""
        from .business_repository import BusinessRepository

        return BusinessRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        """Create repository for payment transactions."""
        from .payment_repository import PaymentRepository

        return PaymentRepository(db)

    @staticmethod
    def create_commission_repository(db: Session) -> "CommissionRepository":
        """Create repository for commission config and history."""
        from .commission_repository import CommissionRepository

        return CommissionRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        """Create repository for in-app notifications."""
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)
