"""
Repository layer for the ServiceHub platform.

Repositories are the data access seam for services: conditional updates,
aggregate queries and append-only inserts. They never commit.
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .business_repository import BusinessRepository
from .commission_repository import CommissionRepository
from .factory import RepositoryFactory
from .notification_repository import NotificationRepository
from .payment_repository import PaymentRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "BusinessRepository",
    "CommissionRepository",
    "NotificationRepository",
    "PaymentRepository",
    "RepositoryFactory",
]
