"""
SpeakerHub Backend — Speaker Service
======================================

What:  Public speaker directory, speaker profile updates and slot
       publication/listing.
Who:   Called by the /api/speakers route handlers.

Speaker profiles are created lazily: a SPEAKER account that never had one
gets an empty profile (price 0) on its first profile update or first slot.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from speakerhub.access import Identity
from speakerhub.config import settings
from speakerhub.exceptions import ConflictError, NotFoundError, ValidationError
from speakerhub.models.profile import Profile, Role, SpeakerProfile
from speakerhub.models.slot import SessionSlot
from speakerhub.schemas.speaker import (
    SlotCreate,
    SlotResponse,
    SpeakerListItem,
    SpeakerProfileResponse,
    SpeakerProfileUpdate,
)

logger = logging.getLogger(__name__)


class SpeakerService:

    async def list_speakers(self, db: AsyncSession) -> List[SpeakerListItem]:
        """All SPEAKER accounts, ordered by name. Missing profiles read as empty."""
        result = await db.execute(
            select(Profile, SpeakerProfile)
            .outerjoin(SpeakerProfile, SpeakerProfile.id == Profile.id)
            .where(Profile.role == Role.SPEAKER)
            .order_by(Profile.full_name, Profile.id)
        )
        return [
            SpeakerListItem(
                id=profile.id,
                full_name=profile.full_name,
                email=profile.email,
                expertise=speaker.expertise if speaker else None,
                bio=speaker.bio if speaker else None,
                price_per_hour=speaker.price_per_hour if speaker else 0.0,
                avatar_url=speaker.avatar_url if speaker else None,
            )
            for profile, speaker in result.all()
        ]

    async def ensure_speaker_profile(self, db: AsyncSession, speaker_id: str) -> SpeakerProfile:
        """
        Return the caller's speaker profile, creating an empty one if absent.

        Raises:
            NotFoundError: the identity itself does not exist.
        """
        speaker = await db.get(SpeakerProfile, speaker_id)
        if speaker is not None:
            return speaker

        if await db.get(Profile, speaker_id) is None:
            raise NotFoundError(resource="speaker", resource_id=speaker_id)

        speaker = SpeakerProfile(id=speaker_id, price_per_hour=0)
        db.add(speaker)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("Speaker profile was created concurrently. Please retry.")
        logger.info("Created speaker profile for %s", speaker_id)
        return speaker

    async def update_profile(
        self,
        db: AsyncSession,
        identity: Identity,
        update: SpeakerProfileUpdate,
    ) -> SpeakerProfileResponse:
        speaker = await self.ensure_speaker_profile(db, identity.user_id)

        changes = update.model_dump(exclude_unset=True)
        if changes.get("price_per_hour", 0) is None:
            changes.pop("price_per_hour")
        for field, value in changes.items():
            setattr(speaker, field, value)
        await db.flush()

        profile = await db.get(Profile, identity.user_id)
        logger.info("Speaker %s updated %s", identity.user_id, ", ".join(sorted(changes)))
        return SpeakerProfileResponse(
            id=speaker.id,
            full_name=profile.full_name,
            email=profile.email,
            expertise=speaker.expertise,
            bio=speaker.bio,
            price_per_hour=speaker.price_per_hour,
            avatar_url=speaker.avatar_url,
        )

    async def create_slot(
        self,
        db: AsyncSession,
        identity: Identity,
        request: SlotCreate,
        today: Optional[date] = None,
    ) -> SlotResponse:
        """
        Publish one bookable hour.

        Raises:
            ValidationError: hour outside the bookable range, or a past date
            ConflictError:   the caller already has a slot at that date and hour
        """
        if request.hour not in settings.slot_hours:
            raise ValidationError(
                f"Invalid hour. Must be between {settings.slot_first_hour} "
                f"and {settings.slot_last_hour} (inclusive).",
                field="hour",
            )
        if request.session_date < (today or date.today()):
            raise ValidationError("Cannot create slots for past dates.", field="session_date")

        await self.ensure_speaker_profile(db, identity.user_id)

        existing = await db.execute(
            select(SessionSlot.id).where(
                SessionSlot.speaker_id == identity.user_id,
                SessionSlot.session_date == request.session_date,
                SessionSlot.hour == request.hour,
            )
        )
        if existing.first() is not None:
            raise ConflictError("A slot for this date and hour already exists.")

        slot = SessionSlot(
            speaker_id=identity.user_id,
            session_date=request.session_date,
            hour=request.hour,
            is_booked=False,
        )
        db.add(slot)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("A slot for this date and hour already exists.")

        logger.info(
            "Speaker %s published slot %s (%s %02d:00)",
            identity.user_id, slot.id, slot.session_date, slot.hour,
        )
        return SlotResponse.model_validate(slot)

    async def list_slots(
        self,
        db: AsyncSession,
        speaker_id: str,
        session_date: date,
        viewer: Optional[Identity] = None,
    ) -> List[SlotResponse]:
        """
        Slots of one speaker on one date, by hour.

        The speaker sees every slot; anyone else only the unbooked ones.

        Raises:
            NotFoundError: no speaker profile with that id.
        """
        if await db.get(SpeakerProfile, speaker_id) is None:
            raise NotFoundError(resource="speaker", resource_id=speaker_id)

        query = select(SessionSlot).where(
            SessionSlot.speaker_id == speaker_id,
            SessionSlot.session_date == session_date,
        )
        if viewer is None or viewer.user_id != speaker_id:
            query = query.where(SessionSlot.is_booked.is_(False))

        result = await db.execute(query.order_by(SessionSlot.hour))
        return [SlotResponse.model_validate(slot) for slot in result.scalars().all()]


# Singleton
speaker_service = SpeakerService()
