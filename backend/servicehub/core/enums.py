# backend/servicehub/core/enums.py
"""
Core enums for the ServiceHub platform.

Role names are resolved by the external authentication layer and only used
here for authorization gating.
"""

from enum import Enum


class RoleName(str, Enum):
    """Standard role names carried by the resolved actor."""

    ADMIN = "admin"
    PROVIDER = "provider"
    CUSTOMER = "customer"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "PENDING"  # Created by the customer, awaiting the provider
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"  # Terminal
    CANCELLED = "CANCELLED"  # Terminal


class ProviderTier(str, Enum):
    """Provider classification driving the commission rate."""

    NEW = "NEW"
    VERIFIED = "VERIFIED"
    PREMIUM = "PREMIUM"
    ENTERPRISE = "ENTERPRISE"


class ApprovalStatus(str, Enum):
    """Business approval states owned by the external onboarding workflow."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    PAYSTACK = "PAYSTACK"
    MOBILE_MONEY = "MOBILE_MONEY"
    CARD = "CARD"


class CommissionStatus(str, Enum):
    """Collection state of the platform's cut; only cash payments start PENDING."""

    PENDING = "PENDING"
    COLLECTED = "COLLECTED"
    OVERDUE = "OVERDUE"
