# backend/tests/conftest.py
"""
Pytest configuration.

Every test gets a fresh in-memory SQLite schema. The engine uses a StaticPool so
the TestClient threadpool and the test body share one connection.
"""

import os

# Set BEFORE any servicehub imports so Settings picks them up
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from servicehub.api.dependencies.database import get_db
from servicehub.core.enums import (
    ApprovalStatus,
    BookingStatus,
    CommissionStatus,
    PaymentMethod,
    PaymentStatus,
    ProviderTier,
)
from servicehub.database import Base
from servicehub.main import app
from servicehub.models.booking import Booking
from servicehub.models.business import Business
from servicehub.models.payment import PaymentTransaction

ADMIN_ID = "01HADMIN000000000000000000"
OWNER_ID = "01HOWNER000000000000000000"
OTHER_OWNER_ID = "01HOTHER000000000000000000"
CUSTOMER_ID = "01HCUSTOMER000000000000000"

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
)


@pytest.fixture(scope="function")
def db():
    """Create a new database session on a fresh schema for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db: Session):
    """Create a test client bound to the test session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


# ============================================================================
# Builders
# ============================================================================


@pytest.fixture
def make_business(db: Session) -> Callable[..., Business]:
    def _make(**overrides: Any) -> Business:
        values: Dict[str, Any] = {
            "owner_id": OWNER_ID,
            "name": "Accra Home Cleaning",
            "category": "Cleaning",
            "contact_email": "hello@accraclean.test",
            "rating": Decimal("4.20"),
            "approval_status": ApprovalStatus.APPROVED.value,
        }
        values.update(overrides)
        business = Business(**values)
        db.add(business)
        db.commit()
        return business

    return _make


@pytest.fixture
def make_booking(db: Session) -> Callable[..., Booking]:
    def _make(business: Business, **overrides: Any) -> Booking:
        values: Dict[str, Any] = {
            "customer_id": CUSTOMER_ID,
            "customer_name": "Ama Mensah",
            "customer_email": "ama@example.test",
            "business_id": business.id,
            "booking_date": date.today() + timedelta(days=7),
            "booking_time": time(10, 0),
            "service_name": "Deep clean",
            "status": BookingStatus.PENDING.value,
        }
        values.update(overrides)
        booking = Booking(**values)
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def make_payment(db: Session) -> Callable[..., PaymentTransaction]:
    """Insert a transaction directly, bypassing the service's booking checks."""

    def _make(booking: Booking, **overrides: Any) -> PaymentTransaction:
        values: Dict[str, Any] = {
            "booking_id": booking.id,
            "business_id": booking.business_id,
            "customer_id": booking.customer_id,
            "total_amount": Decimal("100.00"),
            "platform_commission": Decimal("20.00"),
            "provider_payout": Decimal("80.00"),
            "provider_tier": ProviderTier.NEW.value,
            "commission_rate": Decimal("20.00"),
            "service_category": "Cleaning",
            "payment_method": PaymentMethod.PAYSTACK.value,
            "payment_status": PaymentStatus.COMPLETED.value,
            "commission_owed": Decimal("0.00"),
            "commission_status": CommissionStatus.COLLECTED.value,
            "created_at": datetime.now(timezone.utc),
        }
        values.update(overrides)
        transaction = PaymentTransaction(**values)
        db.add(transaction)
        db.commit()
        return transaction

    return _make


@pytest.fixture
def business(make_business) -> Business:
    return make_business()


@pytest.fixture
def pending_booking(make_booking, business) -> Booking:
    return make_booking(business)


# ============================================================================
# Actor headers
# ============================================================================


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Actor-Id": ADMIN_ID, "X-Actor-Role": "admin"}


@pytest.fixture
def owner_headers() -> dict:
    return {"X-Actor-Id": OWNER_ID, "X-Actor-Role": "provider"}


@pytest.fixture
def other_provider_headers() -> dict:
    return {"X-Actor-Id": OTHER_OWNER_ID, "X-Actor-Role": "provider"}


@pytest.fixture
def customer_headers() -> dict:
    return {"X-Actor-Id": CUSTOMER_ID, "X-Actor-Role": "customer"}
