"""
SpeakerHub Backend — Booking Service
======================================

What:  The booking transaction, booking reads, ticket lookup and the speaker
       income summary.
Who:   Called by the /api/bookings route handlers; AdminService reuses the
       response builder.

Booking transaction (one database transaction, committed here):

    ┌──────────────────┐   ┌──────────────┐   ┌──────────────┐   ┌────────┐
    │ UPDATE slot      │──▶│ INSERT       │──▶│ QR payload + │──▶│ COMMIT │
    │ SET is_booked    │   │ booking      │   │ PNG render   │   │        │
    │ WHERE not booked │   │ (slot unique)│   │ (thread)     │   │        │
    └──────────────────┘   └──────────────┘   └──────────────┘   └────────┘
        0 rows → 404/409      dup → 409          failure → 500, rollback

    The conditional UPDATE is the reservation: of two concurrent requests for
    one slot, the store lets exactly one change the row. The unique
    bookings.slot_id constraint backs it up.

Post-commit notifications (calendar, e-mail) are scheduled by the route.
"""

import calendar
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from speakerhub.access import Identity
from speakerhub.exceptions import (
    AuthorizationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    SpeakerHubError,
)
from speakerhub.models.booking import Booking
from speakerhub.models.profile import Profile, SpeakerProfile
from speakerhub.models.slot import SessionSlot
from speakerhub.schemas.booking import (
    AttendeeIncome,
    BookingResponse,
    BookingSlot,
    BookingUser,
    MonthlyIncome,
    QRCodeResponse,
    SpeakerIncomeResponse,
)
from speakerhub.services.ticket_service import TicketService, ticket_service

logger = logging.getLogger(__name__)

# Eager-load everything a BookingResponse needs (relationships are lazy="raise")
BOOKING_DETAIL = (
    joinedload(Booking.user),
    joinedload(Booking.slot).joinedload(SessionSlot.speaker).joinedload(SpeakerProfile.profile),
)


def booking_to_response(booking: Booking) -> BookingResponse:
    """Serialize a booking loaded with BOOKING_DETAIL."""
    slot = booking.slot
    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        slot_id=booking.slot_id,
        created_at=booking.created_at,
        qr_code_url=booking.qr_code_url,
        checked_in=booking.checked_in,
        calendar_event_id=booking.calendar_event_id,
        slot=BookingSlot(
            id=slot.id,
            speaker_id=slot.speaker_id,
            speaker_name=slot.speaker.profile.full_name,
            session_date=slot.session_date,
            hour=slot.hour,
            is_booked=slot.is_booked,
        ),
        user=BookingUser(
            id=booking.user.id,
            full_name=booking.user.full_name,
            email=booking.user.email,
        ),
    )


class BookingService:

    def __init__(self, tickets: TicketService = ticket_service):
        self.tickets = tickets

    async def create_booking(
        self,
        db: AsyncSession,
        identity: Identity,
        slot_id: int,
    ) -> BookingResponse:
        """
        Reserve a slot for the caller and issue the QR ticket, atomically.

        Commits before returning, so the booking is durable by the time
        post-booking notifications run.

        Raises:
            NotFoundError:         slot (or the caller's account) does not exist
            ConflictError:         slot already booked, including a lost race
            TicketGenerationError: QR rendering failed; nothing is kept
            DatabaseError:         unexpected store failure; nothing is kept
        """
        try:
            attendee = await db.get(Profile, identity.user_id)
            if attendee is None:
                raise NotFoundError(resource="user", resource_id=identity.user_id)

            # ── Step 1: Reserve the slot ──────────────────────────────────
            reserved = await db.execute(
                update(SessionSlot)
                .where(SessionSlot.id == slot_id, SessionSlot.is_booked.is_(False))
                .values(is_booked=True)
                .execution_options(synchronize_session=False)
            )
            if reserved.rowcount == 0:
                exists = await db.execute(select(SessionSlot.id).where(SessionSlot.id == slot_id))
                if exists.first() is None:
                    raise NotFoundError(resource="slot", resource_id=str(slot_id))
                raise ConflictError("Slot is already booked.", context={"slot_id": slot_id})

            # ── Step 2: Insert the booking ────────────────────────────────
            booking = Booking(user_id=identity.user_id, slot_id=slot_id, checked_in=False)
            db.add(booking)
            try:
                await db.flush()
            except IntegrityError:
                raise ConflictError("Slot is already booked.", context={"slot_id": slot_id})

            result = await db.execute(
                select(Booking)
                .options(*BOOKING_DETAIL)
                .where(Booking.id == booking.id)
                .execution_options(populate_existing=True)
            )
            booking = result.scalar_one()
            slot = booking.slot

            # ── Step 3: Ticket ────────────────────────────────────────────
            payload = self.tickets.build_payload(
                booking_id=booking.id,
                user_id=booking.user_id,
                speaker_id=slot.speaker_id,
                session_date=slot.session_date,
                hour=slot.hour,
            )
            booking.qr_code_url = await self.tickets.render_data_url_async(
                self.tickets.encode_payload(payload)
            )

            # ── Step 4: Commit ────────────────────────────────────────────
            await db.commit()

        except SpeakerHubError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Booking transaction failed for slot %s: %s", slot_id, e, exc_info=True)
            raise DatabaseError(
                message="Could not complete the booking. Please try again.",
                context={"slot_id": slot_id},
            )

        logger.info(
            "Booking %s created: user=%s slot=%s (%s %02d:00)",
            booking.id, booking.user_id, slot_id, slot.session_date, slot.hour,
        )
        return booking_to_response(booking)

    async def my_bookings(self, db: AsyncSession, identity: Identity) -> List[BookingResponse]:
        """The caller's bookings, newest first."""
        result = await db.execute(
            select(Booking)
            .options(*BOOKING_DETAIL)
            .where(Booking.user_id == identity.user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return [booking_to_response(b) for b in result.scalars().all()]

    async def _speaker_bookings(self, db: AsyncSession, speaker_id: str) -> List[Booking]:
        result = await db.execute(
            select(Booking)
            .join(SessionSlot, Booking.slot_id == SessionSlot.id)
            .options(*BOOKING_DETAIL)
            .where(SessionSlot.speaker_id == speaker_id)
            .order_by(SessionSlot.session_date.desc(), SessionSlot.hour.asc())
        )
        return list(result.scalars().all())

    async def speaker_bookings(self, db: AsyncSession, identity: Identity) -> List[BookingResponse]:
        """Bookings on the caller's slots, by date (latest first) then hour."""
        return [booking_to_response(b) for b in await self._speaker_bookings(db, identity.user_id)]

    async def get_qr(self, db: AsyncSession, identity: Identity, booking_id: int) -> QRCodeResponse:
        """
        Raises:
            NotFoundError:      no such booking, or it has no ticket
            AuthorizationError: the booking belongs to someone else
        """
        booking = await db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError(resource="booking", resource_id=str(booking_id))
        if booking.user_id != identity.user_id:
            raise AuthorizationError(
                "You do not have permission to view this QR code.",
                context={"booking_id": booking_id},
            )
        if not booking.qr_code_url:
            raise NotFoundError(resource="QR code", resource_id=str(booking_id))
        return QRCodeResponse(qr_code_url=booking.qr_code_url)

    async def income_summary(
        self,
        db: AsyncSession,
        identity: Identity,
        today: Optional[date] = None,
    ) -> SpeakerIncomeResponse:
        """
        Earnings of the calling speaker: every booked session is billed at the
        current hourly price.
        """
        today = today or date.today()
        speaker = await db.get(SpeakerProfile, identity.user_id)
        price = float(speaker.price_per_hour) if speaker else 0.0
        bookings = await self._speaker_bookings(db, identity.user_id)

        per_month: Dict[Tuple[int, int], int] = defaultdict(int)
        per_attendee: Dict[str, int] = defaultdict(int)
        attendees: Dict[str, Profile] = {}
        for booking in bookings:
            when = booking.slot.session_date
            per_month[(when.year, when.month)] += 1
            per_attendee[booking.user_id] += 1
            attendees[booking.user_id] = booking.user

        monthly = [
            MonthlyIncome(
                month=f"{calendar.month_name[month]} {year}",
                sessions=count,
                income=round(count * price, 2),
            )
            for (year, month), count in sorted(per_month.items(), reverse=True)
        ]
        by_attendee = sorted(
            (
                AttendeeIncome(
                    id=user_id,
                    name=attendees[user_id].full_name,
                    email=attendees[user_id].email,
                    sessions=count,
                    income=round(count * price, 2),
                )
                for user_id, count in per_attendee.items()
            ),
            key=lambda a: (-a.income, -a.sessions, a.name),
        )

        return SpeakerIncomeResponse(
            total_sessions=len(bookings),
            price_per_hour=price,
            total_income=round(len(bookings) * price, 2),
            current_month_income=round(per_month.get((today.year, today.month), 0) * price, 2),
            monthly=monthly,
            by_attendee=by_attendee,
        )


# Singleton
booking_service = BookingService()
