# backend/servicehub/routes/v1/bookings.py
"""
Booking lifecycle routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingLifecycleService and CommissionService.

Endpoints:
    POST /{booking_id}/status      → Move a booking through its lifecycle (owner/admin)
    POST /{booking_id}/reschedule  → Move a confirmed booking to a new slot (owner/admin)
    POST /{booking_id}/notes       → Attach a provider note (owner/admin)
    GET /{booking_id}/history      → Status change audit trail (owner/admin)
    POST /{booking_id}/payment     → Record the payment for a completed booking (owner/admin)
"""

import logging

from fastapi import APIRouter, Body, Depends, status

from ...api.dependencies.auth import AuthContext, get_auth_context
from ...api.dependencies.services import (
    get_booking_lifecycle_service,
    get_commission_service,
)
from ...core.exceptions import DomainException
from ...schemas.booking import (
    BookingHistoryResponse,
    BookingNoteRequest,
    BookingRescheduleRequest,
    BookingRescheduleResponse,
    BookingStatusResponse,
    BookingStatusUpdateRequest,
    BookingSummary,
    ProviderNoteResponse,
    RescheduleEntryResponse,
    StatusLogEntryResponse,
)
from ...schemas.commission import PaymentTransactionResponse, RecordPaymentRequest
from ...services.booking_lifecycle_service import BookingLifecycleService
from ...services.commission_service import CommissionService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


@router.post("/{booking_id}/status", response_model=BookingStatusResponse)
def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdateRequest = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingStatusResponse:
    """
    Transition a booking to a new status.

    Only transitions allowed by the lifecycle are accepted; a concurrent change
    by another actor returns 409 and the caller should re-read the booking.
    """
    try:
        booking = service.transition(
            booking_id,
            payload.status,
            auth.actor_id,
            is_owner=auth.can_manage_booking,
            reason=payload.reason,
        )
        return BookingStatusResponse(booking=BookingSummary.model_validate(booking))
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{booking_id}/reschedule", response_model=BookingRescheduleResponse)
def reschedule_booking(
    booking_id: str,
    payload: BookingRescheduleRequest = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingRescheduleResponse:
    try:
        booking = service.reschedule(
            booking_id,
            payload.new_date,
            payload.new_time,
            auth.actor_id,
            reason=payload.reason,
            is_owner=auth.can_manage_booking,
        )
        return BookingRescheduleResponse(
            booking=BookingSummary.model_validate(booking),
            reschedule_history=[
                RescheduleEntryResponse.model_validate(entry)
                for entry in booking.reschedule_history
            ],
        )
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post(
    "/{booking_id}/notes",
    response_model=ProviderNoteResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_provider_note(
    booking_id: str,
    payload: BookingNoteRequest = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> ProviderNoteResponse:
    try:
        note = service.add_note(
            booking_id, payload.text, auth.actor_id, is_owner=auth.can_manage_booking
        )
        return ProviderNoteResponse.model_validate(note)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/{booking_id}/history", response_model=BookingHistoryResponse)
def get_booking_history(
    booking_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingHistoryResponse:
    try:
        entries = service.get_status_history(booking_id, is_owner=auth.can_manage_booking)
        return BookingHistoryResponse(
            booking_id=booking_id,
            entries=[StatusLogEntryResponse.model_validate(entry) for entry in entries],
        )
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post(
    "/{booking_id}/payment",
    response_model=PaymentTransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_booking_payment(
    booking_id: str,
    payload: RecordPaymentRequest = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    service: CommissionService = Depends(get_commission_service),
) -> PaymentTransactionResponse:
    """
    Record the payment for a completed booking.

    The provider's current tier and commission rate are snapshotted onto the
    transaction. Cash payments leave the commission owed by the provider.
    """
    try:
        transaction = service.record_payment(
            booking_id,
            payload.amount,
            payload.payment_method,
            payment_status=payload.payment_status,
            is_owner=auth.can_manage_booking,
        )
        return PaymentTransactionResponse.model_validate(transaction)
    except DomainException as exc:
        handle_domain_exception(exc)
