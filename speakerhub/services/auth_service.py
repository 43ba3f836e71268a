"""
SpeakerHub Backend — Auth Service
===================================

What:  Signup, one-time-code verification and login.
How:   Profiles are created unverified; a one-time code is issued and sent by
       SMS (scheduled by the route after the response); verification flips
       `otp_verified`; login checks verification, then the bcrypt password,
       and issues a JWT.
Who:   Called by the /api/auth route handlers.

One-time code modes (settings.otp_strict):
    False (default)  any well-formed code verifies; signup returns the demo
                     code so the flow can be completed without SMS
    True             the issued code must match its bcrypt hash and be used
                     within OTP_TTL_MINUTES
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from speakerhub.config import settings
from speakerhub.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from speakerhub.models.profile import Profile, Role, SpeakerProfile
from speakerhub.schemas.auth import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
    UserSummary,
    VerifyOtpRequest,
)
from speakerhub.schemas.common import MessageResponse
from speakerhub.security import (
    create_access_token,
    generate_otp,
    hash_secret,
    is_well_formed_otp,
    verify_secret,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class AuthService:

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[Profile]:
        result = await db.execute(select(Profile).where(Profile.email == email.lower()))
        return result.scalar_one_or_none()

    async def signup(self, db: AsyncSession, request: SignupRequest) -> Tuple[SignupResponse, str]:
        """
        Register an unverified identity.

        Returns:
            (response, one_time_code). The route sends the code by SMS after
            responding.

        Raises:
            ConflictError: email already registered (including a concurrent signup).
        """
        email = request.email.lower()
        if await self._find_by_email(db, email) is not None:
            raise ConflictError("User with this email already exists.", context={"email": email})

        password_hash = await asyncio.to_thread(hash_secret, request.password)

        if settings.otp_strict:
            code = generate_otp()
            otp_hash = await asyncio.to_thread(hash_secret, code)
            otp_expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.otp_ttl_minutes)
        else:
            code = settings.demo_otp
            otp_hash = None
            otp_expires_at = None

        profile = Profile(
            email=email,
            password=password_hash,
            full_name=request.full_name,
            phone=request.phone,
            role=request.role,
            otp_verified=False,
            otp_hash=otp_hash,
            otp_expires_at=otp_expires_at,
        )
        db.add(profile)
        try:
            await db.flush()
            if request.role is Role.SPEAKER:
                db.add(SpeakerProfile(id=profile.id, price_per_hour=0))
                await db.flush()
        except IntegrityError:
            logger.info("Signup lost a race for email %s", email)
            raise ConflictError("User with this email already exists.", context={"email": email})

        logger.info("Signed up %s as %s (id=%s)", email, request.role.value, profile.id)

        response = SignupResponse(
            message="User created successfully. Please verify your account with the OTP sent to your phone.",
            user_id=profile.id,
            demo_otp=None if settings.otp_strict else code,
        )
        return response, code

    async def verify_otp(self, db: AsyncSession, request: VerifyOtpRequest) -> MessageResponse:
        """
        Raises:
            NotFoundError:   unknown email
            ValidationError: already verified, malformed code, or (strict
                             mode) wrong or expired code
        """
        profile = await self._find_by_email(db, request.email)
        if profile is None:
            raise NotFoundError(resource="user")
        if profile.otp_verified:
            raise ValidationError("User is already verified.")
        if not is_well_formed_otp(request.otp):
            raise ValidationError(
                f"Invalid OTP format. Must be {settings.otp_length} digits.", field="otp"
            )

        if settings.otp_strict:
            expired = (
                profile.otp_expires_at is None
                or _as_utc(profile.otp_expires_at) < datetime.now(timezone.utc)
            )
            matches = profile.otp_hash is not None and await asyncio.to_thread(
                verify_secret, request.otp, profile.otp_hash
            )
            if expired or not matches:
                logger.info("Rejected one-time code for %s (expired=%s)", profile.email, expired)
                raise ValidationError("Invalid or expired OTP.", field="otp")

        profile.otp_verified = True
        profile.otp_hash = None
        profile.otp_expires_at = None
        await db.flush()

        logger.info("Verified %s", profile.email)
        return MessageResponse(message="OTP verified successfully. You can now log in.")

    async def login(self, db: AsyncSession, request: LoginRequest) -> LoginResponse:
        """
        Raises:
            AuthenticationError: unknown email or wrong password (same message)
            AuthorizationError:  account not verified yet, reported before
                                 the password is checked
        """
        profile = await self._find_by_email(db, request.email)
        if profile is None:
            raise AuthenticationError("Invalid email or password.")
        if not profile.otp_verified:
            raise AuthorizationError("Account not verified. Please verify your OTP first.")
        if not await asyncio.to_thread(verify_secret, request.password, profile.password):
            logger.info("Failed login for %s", profile.email)
            raise AuthenticationError("Invalid email or password.")

        token, expires_at = create_access_token(profile.id, profile.email, profile.role)
        logger.info("Login %s (%s)", profile.email, profile.role.value)

        return LoginResponse(
            message="Login successful",
            token=token,
            expiry=expires_at,
            user=UserSummary(
                id=profile.id,
                email=profile.email,
                full_name=profile.full_name,
                role=profile.role,
            ),
        )


# Singleton
auth_service = AuthService()
