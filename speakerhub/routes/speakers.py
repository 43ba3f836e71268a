"""
SpeakerHub Backend — Speaker Route Handlers
=============================================

What:  Speaker directory, speaker profile updates, slot listing and creation.

    GET  /api/speakers                       public
    PUT  /api/speakers/me                    SPEAKER
    GET  /api/speakers/slots/{speaker_id}    public; the speaker also sees booked slots
    POST /api/speakers/slots                 SPEAKER
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from speakerhub.access import Identity, get_optional_identity, require_roles
from speakerhub.database import get_db_session
from speakerhub.models.profile import Role
from speakerhub.schemas.common import ErrorResponse
from speakerhub.schemas.speaker import (
    SlotCreate,
    SlotResponse,
    SpeakerListItem,
    SpeakerProfileResponse,
    SpeakerProfileUpdate,
)
from speakerhub.services.speaker_service import speaker_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/speakers", tags=["Speakers"])


@router.get(
    "",
    response_model=List[SpeakerListItem],
    summary="List all speakers",
)
async def list_speakers(db: AsyncSession = Depends(get_db_session)) -> List[SpeakerListItem]:
    return await speaker_service.list_speakers(db)


@router.put(
    "/me",
    response_model=SpeakerProfileResponse,
    responses={
        400: {"description": "No fields given, or negative price", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        403: {"description": "Caller is not a speaker", "model": ErrorResponse},
    },
    summary="Update the caller's speaker profile",
    description="Partial update of expertise, bio and price_per_hour. The profile is created if missing.",
)
async def update_my_profile(
    body: SpeakerProfileUpdate,
    identity: Identity = Depends(require_roles(Role.SPEAKER)),
    db: AsyncSession = Depends(get_db_session),
) -> SpeakerProfileResponse:
    return await speaker_service.update_profile(db, identity, body)


@router.get(
    "/slots/{speaker_id}",
    response_model=List[SlotResponse],
    responses={
        400: {"description": "Missing or malformed date", "model": ErrorResponse},
        404: {"description": "Unknown speaker", "model": ErrorResponse},
    },
    summary="List a speaker's slots on a date",
    description=(
        "Returns slots ordered by hour. Other callers see only unbooked slots; "
        "the speaker (authenticated) sees all of them."
    ),
)
async def list_slots(
    speaker_id: str,
    session_date: date = Query(alias="date", description="YYYY-MM-DD"),
    viewer: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db_session),
) -> List[SlotResponse]:
    return await speaker_service.list_slots(db, speaker_id, session_date, viewer)


@router.post(
    "/slots",
    response_model=SlotResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Hour out of range or date in the past", "model": ErrorResponse},
        403: {"description": "Caller is not a speaker", "model": ErrorResponse},
        409: {"description": "Slot already exists", "model": ErrorResponse},
    },
    summary="Publish a bookable slot",
)
async def create_slot(
    body: SlotCreate,
    identity: Identity = Depends(require_roles(Role.SPEAKER)),
    db: AsyncSession = Depends(get_db_session),
) -> SlotResponse:
    return await speaker_service.create_slot(db, identity, body)
