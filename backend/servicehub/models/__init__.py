"""
Database models for the ServiceHub platform.

Importing this package registers every table on the shared metadata.
"""

from .booking import Booking, BookingProviderNote, BookingReschedule, BookingStatusLog
from .business import Business
from .commission import CommissionConfig, CommissionRateHistory
from .notification import Notification
from .payment import PaymentTransaction

__all__ = [
    "Booking",
    "BookingProviderNote",
    "BookingReschedule",
    "BookingStatusLog",
    "Business",
    "CommissionConfig",
    "CommissionRateHistory",
    "Notification",
    "PaymentTransaction",
]
