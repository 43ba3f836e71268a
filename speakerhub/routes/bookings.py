"""
SpeakerHub Backend — Booking Route Handlers
=============================================

What:  Booking creation, booking lists, the speaker income summary and the
       ticket lookup.

    POST /api/bookings                   ATTENDEE
    GET  /api/bookings/my                any authenticated identity
    GET  /api/bookings/speaker           SPEAKER
    GET  /api/bookings/speaker/income    SPEAKER
    GET  /api/bookings/{id}/qr           owner of the booking

After a booking commits, calendar and e-mail notifications run as a
background task; their outcome never changes the 201 response.
"""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from speakerhub.access import Identity, get_current_identity, require_roles
from speakerhub.database import get_db_session
from speakerhub.models.profile import Role
from speakerhub.schemas.booking import (
    BookingCreate,
    BookingResponse,
    QRCodeResponse,
    SpeakerIncomeResponse,
)
from speakerhub.schemas.common import MAX_ROW_ID, ErrorResponse
from speakerhub.services.booking_service import booking_service
from speakerhub.services.post_booking import notify_booking_created

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Caller is not an attendee", "model": ErrorResponse},
        404: {"description": "Slot not found", "model": ErrorResponse},
        409: {"description": "Slot already booked", "model": ErrorResponse},
        500: {"description": "Ticket generation failed; nothing was booked", "model": ErrorResponse},
    },
    summary="Book a slot",
    description=(
        "Atomically reserves the slot, records the booking and issues its QR ticket. "
        "Of two concurrent requests for one slot exactly one succeeds."
    ),
)
async def create_booking(
    body: BookingCreate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_roles(Role.ATTENDEE)),
    db: AsyncSession = Depends(get_db_session),
) -> BookingResponse:
    booking = await booking_service.create_booking(db, identity, body.slot_id)
    background_tasks.add_task(notify_booking_created, booking.id)
    return booking


@router.get(
    "/my",
    response_model=List[BookingResponse],
    summary="The caller's bookings, newest first",
)
async def my_bookings(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> List[BookingResponse]:
    return await booking_service.my_bookings(db, identity)


# Declared before /{booking_id}/qr so "speaker" is never read as a booking id
@router.get(
    "/speaker",
    response_model=List[BookingResponse],
    responses={403: {"description": "Caller is not a speaker", "model": ErrorResponse}},
    summary="Bookings on the caller's slots",
)
async def speaker_bookings(
    identity: Identity = Depends(require_roles(Role.SPEAKER)),
    db: AsyncSession = Depends(get_db_session),
) -> List[BookingResponse]:
    return await booking_service.speaker_bookings(db, identity)


@router.get(
    "/speaker/income",
    response_model=SpeakerIncomeResponse,
    responses={403: {"description": "Caller is not a speaker", "model": ErrorResponse}},
    summary="Income summary for the calling speaker",
    description="Totals, current-month income, a monthly breakdown and a per-attendee breakdown.",
)
async def speaker_income(
    identity: Identity = Depends(require_roles(Role.SPEAKER)),
    db: AsyncSession = Depends(get_db_session),
) -> SpeakerIncomeResponse:
    return await booking_service.income_summary(db, identity)


@router.get(
    "/{booking_id}/qr",
    response_model=QRCodeResponse,
    responses={
        403: {"description": "Booking belongs to someone else", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
    },
    summary="QR ticket of one of the caller's bookings",
)
async def booking_qr(
    booking_id: int = Path(ge=1, le=MAX_ROW_ID),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> QRCodeResponse:
    return await booking_service.get_qr(db, identity, booking_id)
