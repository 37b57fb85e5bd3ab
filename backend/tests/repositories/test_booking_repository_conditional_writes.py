"""Conditional writes and aggregates on BookingRepository."""

from datetime import datetime, time, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from servicehub.core.enums import BookingStatus
from servicehub.core.exceptions import RepositoryException, StoreUnavailableException
from servicehub.models.booking import Booking
from servicehub.repositories.factory import RepositoryFactory

NOW = datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo(db):
    return RepositoryFactory.create_booking_repository(db)


def test_compare_and_set_applies_when_status_matches(db, repo, pending_booking):
    applied = repo.compare_and_set_status(
        pending_booking.id,
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        updated_by="actor",
        updated_at=NOW,
        extra_fields={"confirmed_at": NOW},
    )

    assert applied is True
    fresh = repo.get_fresh(pending_booking.id)
    assert fresh.status == "CONFIRMED"
    assert fresh.updated_by == "actor"


def test_compare_and_set_matches_nothing_on_stale_status(repo, pending_booking):
    applied = repo.compare_and_set_status(
        pending_booking.id,
        BookingStatus.CONFIRMED,
        BookingStatus.IN_PROGRESS,
        updated_by="actor",
        updated_at=NOW,
    )

    assert applied is False
    assert repo.get_fresh(pending_booking.id).status == "PENDING"


def test_get_fresh_overwrites_identity_map(db, repo, pending_booking):
    repo.compare_and_set_status(
        pending_booking.id,
        BookingStatus.PENDING,
        BookingStatus.CANCELLED,
        updated_by="actor",
        updated_at=NOW,
    )
    # Conditional UPDATE bypasses the session; the loaded object is stale
    assert pending_booking.status == "PENDING"

    repo.get_fresh(pending_booking.id)

    assert pending_booking.status == "CANCELLED"


def test_schedule_update_is_status_guarded(repo, pending_booking):
    moved = repo.compare_and_set_schedule(
        pending_booking.id,
        BookingStatus.CONFIRMED,
        pending_booking.booking_date,
        pending_booking.booking_time,
        pending_booking.booking_date + timedelta(days=1),
        time(8, 0),
        updated_by="actor",
        updated_at=NOW,
    )
    assert moved is False


def test_schedule_update_is_slot_guarded(repo, make_booking, business):
    booking = make_booking(business, status=BookingStatus.CONFIRMED.value)
    read_date, read_time = booking.booking_date, booking.booking_time

    first = repo.compare_and_set_schedule(
        booking.id,
        BookingStatus.CONFIRMED,
        read_date,
        read_time,
        read_date + timedelta(days=1),
        time(8, 0),
        updated_by="actor-a",
        updated_at=NOW,
    )
    # Same read, landing after the first move
    second = repo.compare_and_set_schedule(
        booking.id,
        BookingStatus.CONFIRMED,
        read_date,
        read_time,
        read_date + timedelta(days=2),
        time(16, 0),
        updated_by="actor-b",
        updated_at=NOW,
    )

    assert first is True
    assert second is False
    fresh = repo.get_fresh(booking.id)
    assert fresh.booking_date == read_date + timedelta(days=1)
    assert fresh.booking_time == time(8, 0)
    assert fresh.updated_by == "actor-a"


def test_status_log_in_chronological_order(db, repo, pending_booking):
    repo.append_status_log(
        pending_booking.id, BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS, "b", NOW
    )
    repo.append_status_log(
        pending_booking.id,
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        "a",
        NOW - timedelta(hours=1),
    )
    db.commit()

    log = repo.list_status_log(pending_booking.id)
    assert [entry.changed_by for entry in log] == ["a", "b"]


def test_count_completed_for_business(repo, make_booking, business):
    make_booking(business, status=BookingStatus.COMPLETED.value)
    make_booking(business, status=BookingStatus.COMPLETED.value)
    make_booking(business, status=BookingStatus.CANCELLED.value)

    assert repo.count_completed_for_business(business.id) == 2


def test_count_created_between(repo, make_booking, business):
    make_booking(business, created_at=NOW - timedelta(days=1))
    make_booking(business, created_at=NOW - timedelta(days=10))

    assert repo.count_created_between(NOW - timedelta(days=7), NOW) == 1


def test_transient_failures_raise_store_unavailable(db, repo, pending_booking):
    timeout = OperationalError("SELECT 1", {}, Exception("connection timed out"))

    with patch.object(db, "query", side_effect=timeout):
        with pytest.raises(StoreUnavailableException):
            repo.get_by_id(pending_booking.id)


def test_other_failures_raise_repository_exception(db, repo, pending_booking):
    broken = ProgrammingError("SELECT nope", {}, Exception("no such column: nope"))

    with patch.object(db, "query", side_effect=broken):
        with pytest.raises(RepositoryException):
            repo.get_by_id(pending_booking.id)
