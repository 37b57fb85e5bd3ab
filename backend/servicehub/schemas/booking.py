"""Request and response models for booking lifecycle endpoints."""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import Field

from ..core.enums import BookingStatus
from ._strict_base import StrictModel, StrictRequestModel


class BookingStatusUpdateRequest(StrictRequestModel):
    status: BookingStatus
    reason: Optional[str] = Field(None, max_length=500, description="Recorded on cancellation")


class BookingRescheduleRequest(StrictRequestModel):
    new_date: date
    new_time: time
    reason: Optional[str] = Field(None, max_length=500)


class BookingNoteRequest(StrictRequestModel):
    text: str = Field(..., min_length=1, max_length=2000)


class BookingSummary(StrictModel):
    id: str
    status: BookingStatus
    business_id: str
    customer_id: str
    booking_date: date
    booking_time: time
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None


class BookingStatusResponse(StrictModel):
    success: bool = True
    booking: BookingSummary


class RescheduleEntryResponse(StrictModel):
    original_date: date
    original_time: time
    new_date: date
    new_time: time
    reason: str
    changed_by: str
    changed_at: datetime


class BookingRescheduleResponse(StrictModel):
    success: bool = True
    booking: BookingSummary
    reschedule_history: List[RescheduleEntryResponse]


class ProviderNoteResponse(StrictModel):
    id: str
    booking_id: str
    text: str
    added_by: str
    added_at: datetime


class StatusLogEntryResponse(StrictModel):
    previous_status: BookingStatus
    new_status: BookingStatus
    changed_by: str
    changed_at: datetime
    reason: Optional[str] = None


class BookingHistoryResponse(StrictModel):
    booking_id: str
    entries: List[StatusLogEntryResponse]
