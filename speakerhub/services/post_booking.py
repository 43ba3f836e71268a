"""
SpeakerHub Backend — Post-Booking Notifications
=================================================

What:  Best-effort follow-up once a booking has committed: create the calendar
       event (recording its id on the booking) and send the confirmation
       e-mail with the QR ticket.
How:   Scheduled by the bookings route as a FastAPI background task. Opens
       its own session; the request session is already finished.
When:  After the booking response has been produced.

Nothing here can affect the booking. Every failure is logged and dropped.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from speakerhub.database import async_session_factory
from speakerhub.exceptions import IntegrationError
from speakerhub.models.booking import Booking
from speakerhub.models.profile import SpeakerProfile
from speakerhub.models.slot import SessionSlot
from speakerhub.services.calendar_service import CalendarEvent, calendar_service
from speakerhub.services.email_service import email_service

logger = logging.getLogger(__name__)


async def notify_booking_created(booking_id: int) -> None:
    try:
        async with async_session_factory() as db:
            result = await db.execute(
                select(Booking)
                .options(
                    joinedload(Booking.user),
                    joinedload(Booking.slot)
                    .joinedload(SessionSlot.speaker)
                    .joinedload(SpeakerProfile.profile),
                )
                .where(Booking.id == booking_id)
            )
            booking = result.scalar_one_or_none()
            if booking is None:
                logger.warning("Post-booking: booking %s vanished before notification", booking_id)
                return

            attendee = booking.user
            slot = booking.slot
            speaker = slot.speaker.profile

            # ── Calendar ──────────────────────────────────────────────────
            event = CalendarEvent.for_session(
                speaker_name=speaker.full_name,
                speaker_email=speaker.email,
                attendee_name=attendee.full_name,
                attendee_email=attendee.email,
                session_date=slot.session_date,
                hour=slot.hour,
            )
            try:
                event_id = await calendar_service.create_event(event)
            except IntegrationError as e:
                logger.warning("Post-booking: calendar event for booking %s failed: %s", booking_id, e.message)
            else:
                booking.calendar_event_id = event_id
                await db.commit()
                logger.info("Post-booking: booking %s linked to calendar event %s", booking_id, event_id)

            # ── Confirmation e-mail ───────────────────────────────────────
            try:
                await email_service.send_booking_confirmation(
                    to=attendee.email,
                    attendee_name=attendee.full_name,
                    speaker_name=speaker.full_name,
                    session_date=slot.session_date,
                    hour=slot.hour,
                    qr_code_url=booking.qr_code_url,
                )
            except IntegrationError as e:
                logger.warning("Post-booking: confirmation e-mail for booking %s failed: %s", booking_id, e.message)

    except SQLAlchemyError as e:
        logger.error("Post-booking: database error for booking %s: %s", booking_id, e, exc_info=True)
