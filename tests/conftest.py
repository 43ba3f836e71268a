"""
SpeakerHub Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment variables are set before anything from `speakerhub` is
       imported, so the settings singleton and the engine point at a
       throwaway SQLite file. Each test that needs the database gets a fresh
       schema created from the ORM metadata.

Fixture Hierarchy:
    db_schema      create_all / drop_all around one test
    ├── db_session     AsyncSession for service-level tests
    ├── factory        inserts profiles, speakers, slots, bookings
    ├── test_client    httpx AsyncClient over a token-auth app
    └── demo_client    httpx AsyncClient over a demo-mode app
    auth_headers   builds a Bearer header for an identity
"""

import os
import tempfile

# Must run before any speakerhub import
_TEST_DIR = tempfile.mkdtemp(prefix="speakerhub_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/speakerhub_test.db"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DEMO_MODE"] = "false"
os.environ["OTP_STRICT"] = "false"
os.environ["AUTH_RATE_LIMIT_REQUESTS"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"
for _key in (
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_FROM_NUMBER",
    "SENDGRID_API_KEY",
    "GOOGLE_CALENDAR_TOKEN",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_REDIRECT_URI",
):
    os.environ[_key] = ""

from datetime import date, timedelta  # noqa: E402
from typing import Dict, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from speakerhub.config import settings  # noqa: E402
from speakerhub.database import Base, async_session_factory, engine  # noqa: E402
from speakerhub.models import Booking, Profile, Role, SessionSlot, SpeakerProfile  # noqa: E402
from speakerhub.security import create_access_token, hash_secret  # noqa: E402

DEFAULT_PASSWORD = "secret123"


def future_date(days: int = 7) -> date:
    return date.today() + timedelta(days=days)


class DataFactory:
    """Inserts committed rows for tests. Every method returns the new row."""

    password = DEFAULT_PASSWORD

    def __init__(self):
        self._counter = 0
        self._password_hash = hash_secret(DEFAULT_PASSWORD, rounds=4)

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def profile(
        self,
        role: Role = Role.ATTENDEE,
        verified: bool = True,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        profile_id: Optional[str] = None,
    ) -> Profile:
        n = self._next()
        profile = Profile(
            email=email or f"{role.value.lower()}{n}@example.com",
            password=self._password_hash,
            full_name=full_name or f"{role.value.title()} {n}",
            phone=f"+1555000{n:04d}",
            role=role,
            otp_verified=verified,
        )
        if profile_id:
            profile.id = profile_id
        async with async_session_factory() as db:
            db.add(profile)
            await db.commit()
        return profile

    async def speaker(
        self,
        full_name: Optional[str] = None,
        price_per_hour: float = 100.0,
        profile_id: Optional[str] = None,
    ) -> Profile:
        profile = await self.profile(Role.SPEAKER, full_name=full_name, profile_id=profile_id)
        async with async_session_factory() as db:
            db.add(SpeakerProfile(
                id=profile.id,
                expertise="Distributed systems",
                bio="Talks about queues.",
                price_per_hour=price_per_hour,
            ))
            await db.commit()
        return profile

    async def slot(
        self,
        speaker_id: str,
        session_date: Optional[date] = None,
        hour: int = 10,
        is_booked: bool = False,
    ) -> SessionSlot:
        slot = SessionSlot(
            speaker_id=speaker_id,
            session_date=session_date or future_date(),
            hour=hour,
            is_booked=is_booked,
        )
        async with async_session_factory() as db:
            db.add(slot)
            await db.commit()
        return slot

    async def booking(
        self,
        user_id: str,
        slot: SessionSlot,
        checked_in: bool = False,
        qr_code_url: Optional[str] = "data:image/png;base64,AAAA",
    ) -> Booking:
        booking = Booking(
            user_id=user_id,
            slot_id=slot.id,
            checked_in=checked_in,
            qr_code_url=qr_code_url,
        )
        async with async_session_factory() as db:
            db.add(booking)
            await db.execute(
                SessionSlot.__table__.update()
                .where(SessionSlot.id == slot.id)
                .values(is_booked=True)
            )
            await db.commit()
        return booking


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_schema():
    """Fresh tables for one test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_schema):
    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def factory(db_schema) -> DataFactory:
    return DataFactory()


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def auth_headers():
    """
    Bearer header for a profile.

    Usage:
        headers = auth_headers(attendee)
        await test_client.get("/api/bookings/my", headers=headers)
    """
    def _headers(profile: Profile) -> Dict[str, str]:
        token, _ = create_access_token(profile.id, profile.email, profile.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def test_client(db_schema):
    """AsyncClient over a freshly built app with token authentication."""
    from speakerhub.main import create_app

    app = create_app(settings.model_copy(update={"demo_mode": False}))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def demo_client(db_schema):
    """AsyncClient over an app built with demo mode on."""
    from speakerhub.main import create_app

    app = create_app(settings.model_copy(update={"demo_mode": True}))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
