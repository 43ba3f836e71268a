"""
SpeakerHub Backend — Admin Service
====================================

What:  Venue check-in from a scanned QR ticket, and booking statistics.
Who:   Called by the /api/admin route handlers.

Check-in order of checks:
    1. payload parses            else 400
    2. booking exists            else 404
    3. payload matches booking   else 400 (attendee, speaker, date, hour)
    4. not yet checked in        else 409
    The flag flips with `UPDATE ... WHERE checked_in IS false`, so two
    simultaneous scans of one ticket cannot both succeed.
"""

import logging
import math

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from speakerhub.config import settings
from speakerhub.exceptions import ConflictError, NotFoundError, ValidationError
from speakerhub.models.booking import Booking
from speakerhub.models.profile import Profile
from speakerhub.models.slot import SessionSlot
from speakerhub.schemas.admin import CheckInResponse, SpeakerStat, StatsResponse
from speakerhub.services.booking_service import BOOKING_DETAIL, booking_to_response
from speakerhub.services.ticket_service import TicketService, ticket_service

logger = logging.getLogger(__name__)


class AdminService:

    def __init__(self, tickets: TicketService = ticket_service):
        self.tickets = tickets

    async def check_in(self, db: AsyncSession, raw_payload: str) -> CheckInResponse:
        payload = self.tickets.parse_payload(raw_payload)

        result = await db.execute(
            select(Booking).options(*BOOKING_DETAIL).where(Booking.id == payload.booking_id)
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError(resource="booking", resource_id=str(payload.booking_id))

        slot = booking.slot
        mismatched = [
            name
            for name, scanned, stored in (
                ("userId", payload.user_id, booking.user_id),
                ("speakerId", payload.speaker_id, slot.speaker_id),
                ("date", payload.session_date, slot.session_date),
                ("hour", payload.hour, slot.hour),
            )
            if scanned != stored
        ]
        if mismatched:
            logger.warning("QR for booking %s disagrees on %s", booking.id, ", ".join(mismatched))
            raise ValidationError(
                "QR code does not match the booking record.",
                field="qrPayload",
                context={"mismatched": mismatched},
            )

        if booking.checked_in:
            raise ConflictError("Booking already checked in.", context={"booking_id": booking.id})

        flipped = await db.execute(
            update(Booking)
            .where(Booking.id == booking.id, Booking.checked_in.is_(False))
            .values(checked_in=True)
            .execution_options(synchronize_session=False)
        )
        if flipped.rowcount == 0:
            raise ConflictError("Booking already checked in.", context={"booking_id": booking.id})
        booking.checked_in = True
        await db.flush()

        logger.info("Checked in booking %s (user=%s)", booking.id, booking.user_id)
        return CheckInResponse(message="Check-in successful.", booking=booking_to_response(booking))

    async def stats(self, db: AsyncSession) -> StatsResponse:
        total = await db.scalar(select(func.count(Booking.id))) or 0
        checked_in = await db.scalar(
            select(func.count(Booking.id)).where(Booking.checked_in.is_(True))
        ) or 0
        # Half-up rounding
        percentage = math.floor(checked_in * 100 / total + 0.5) if total else 0

        booking_count = func.count(Booking.id).label("count")
        result = await db.execute(
            select(SessionSlot.speaker_id, Profile.full_name, booking_count)
            .select_from(Booking)
            .join(SessionSlot, Booking.slot_id == SessionSlot.id)
            .join(Profile, Profile.id == SessionSlot.speaker_id)
            .group_by(SessionSlot.speaker_id, Profile.full_name)
            .order_by(booking_count.desc(), Profile.full_name)
            .limit(settings.top_speakers_limit)
        )

        return StatsResponse(
            total_bookings=total,
            checked_in_bookings=checked_in,
            checked_in_percentage=percentage,
            top_speakers=[
                SpeakerStat(speaker_id=speaker_id, speaker_name=name, count=count)
                for speaker_id, name, count in result.all()
            ],
        )


# Singleton
admin_service = AdminService()
