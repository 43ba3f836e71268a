"""
SpeakerHub Backend — Auth Route Handlers
==========================================

What:  POST /api/auth/signup, /api/auth/verify-otp, /api/auth/login, and the
       Google OAuth consent flow (GET /api/auth/google, /google/callback).
Who:   Called by the signup, verification and login pages, and by a speaker
       connecting a Google Calendar.

These are the only routes behind the per-IP auth rate limiter.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from speakerhub.database import get_db_session
from speakerhub.schemas.auth import (
    GoogleAuthUrlResponse,
    GoogleCallbackResponse,
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
    VerifyOtpRequest,
)
from speakerhub.schemas.common import ErrorResponse, MessageResponse
from speakerhub.services.auth_service import auth_service
from speakerhub.services.google_oauth_service import google_oauth_service
from speakerhub.services.sms_service import sms_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid body or unknown role", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        429: {"description": "Too many auth requests", "model": ErrorResponse},
    },
    summary="Register a new account",
    description=(
        "Creates an unverified account and sends a one-time code by SMS. "
        "Role defaults to ATTENDEE; `USER` is accepted as an alias."
    ),
)
async def signup(
    body: SignupRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> SignupResponse:
    response, code = await auth_service.signup(db, body)
    background_tasks.add_task(sms_service.send_otp, body.phone, code)
    return response


@router.post(
    "/verify-otp",
    response_model=MessageResponse,
    responses={
        400: {"description": "Malformed or wrong code, or already verified", "model": ErrorResponse},
        404: {"description": "Unknown email", "model": ErrorResponse},
    },
    summary="Verify an account with its one-time code",
)
async def verify_otp(
    body: VerifyOtpRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await auth_service.verify_otp(db, body)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        403: {"description": "Account not verified", "model": ErrorResponse},
    },
    summary="Exchange credentials for an access token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    return await auth_service.login(db, body)


@router.get(
    "/google",
    response_model=GoogleAuthUrlResponse,
    summary="Google consent screen URL",
    description=(
        "Returns the URL the client opens to grant calendar access. "
        "Answers `demo-auth-url` while the OAuth client is not configured."
    ),
)
async def google_auth_url() -> GoogleAuthUrlResponse:
    return GoogleAuthUrlResponse(auth_url=google_oauth_service.authorization_url())


@router.get(
    "/google/callback",
    response_model=GoogleCallbackResponse,
    responses={
        400: {"description": "Missing authorization code", "model": ErrorResponse},
        502: {"description": "Google refused or did not answer the exchange", "model": ErrorResponse},
    },
    summary="Exchange a Google authorization code for tokens",
)
async def google_callback(
    code: str = Query(min_length=1, max_length=2048, description="Authorization code from Google"),
) -> GoogleCallbackResponse:
    tokens = await google_oauth_service.exchange_code(code)
    return GoogleCallbackResponse(tokens=tokens)
