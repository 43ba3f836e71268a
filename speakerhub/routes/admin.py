"""
SpeakerHub Backend — Admin Route Handlers
===========================================

What:  POST /api/admin/checkin (scan a ticket) and GET /api/admin/stats.
Who:   The admin dashboard's QR scanner and statistics panel.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from speakerhub.access import Identity, require_roles
from speakerhub.database import get_db_session
from speakerhub.models.profile import Role
from speakerhub.schemas.admin import CheckInRequest, CheckInResponse, StatsResponse
from speakerhub.schemas.common import ErrorResponse
from speakerhub.services.admin_service import admin_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post(
    "/checkin",
    response_model=CheckInResponse,
    responses={
        400: {"description": "Malformed payload, or payload disagrees with the booking", "model": ErrorResponse},
        403: {"description": "Caller is not an admin", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
        409: {"description": "Already checked in", "model": ErrorResponse},
    },
    summary="Check in a ticket holder",
)
async def check_in(
    body: CheckInRequest,
    identity: Identity = Depends(require_roles(Role.ADMIN)),
    db: AsyncSession = Depends(get_db_session),
) -> CheckInResponse:
    logger.info("Check-in scan by %s", identity.user_id)
    return await admin_service.check_in(db, body.qr_payload)


@router.get(
    "/stats",
    response_model=StatsResponse,
    responses={403: {"description": "Caller is not an admin", "model": ErrorResponse}},
    summary="Booking and attendance statistics",
)
async def stats(
    identity: Identity = Depends(require_roles(Role.ADMIN)),
    db: AsyncSession = Depends(get_db_session),
) -> StatsResponse:
    return await admin_service.stats(db)
