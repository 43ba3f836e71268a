"""
SpeakerHub Backend — Identity and Speaker Profile Models
==========================================================

What:  ORM models for the `profiles` and `speaker_profiles` tables, plus the
       closed Role enumeration used at every authorization checkpoint.
How:   A Profile is an account (attendee, speaker or admin). A SpeakerProfile
       extends a SPEAKER account one-to-one and shares its primary key.

Table Design:
    - String ids: UUID4 strings generated in Python. Demo identities use
      readable fixed ids ("demo-speaker-id"), so the column is not a native UUID.
    - password: bcrypt hash, never the plaintext.
    - otp_hash / otp_expires_at: only populated when OTP_STRICT is on.
    - speaker_profiles.id is both PK and FK; deleting a profile removes it.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from speakerhub.database import Base


class Role(str, enum.Enum):
    """Account roles. The set is closed; authorization code handles each member."""

    ATTENDEE = "ATTENDEE"
    SPEAKER = "SPEAKER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: str) -> "Role":
        """
        Case-insensitive lookup. "USER" is accepted for ATTENDEE, the name
        older clients send.

        Raises:
            ValueError for anything else.
        """
        normalized = value.strip().upper()
        if normalized == "USER":
            return cls.ATTENDEE
        return cls(normalized)


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    """
    An identity that can sign in.

    Lifecycle:
        1. Created unverified at signup (otp_verified = False)
        2. Verified once through the one-time code
        3. Never deleted in normal operation
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="user_role", native_enum=False, length=20),
        nullable=False,
        default=Role.ATTENDEE,
    )
    otp_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    otp_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    otp_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    speaker_profile: Mapped[Optional["SpeakerProfile"]] = relationship(
        back_populates="profile",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="raise",
    )
    bookings: Mapped[List["Booking"]] = relationship(  # noqa: F821
        back_populates="user",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}', role={self.role.value})>"


class SpeakerProfile(Base):
    """Public-facing speaker data: expertise, hourly price, biography."""

    __tablename__ = "speaker_profiles"

    id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    expertise: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price_per_hour: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False), nullable=False, default=0
    )
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    __table_args__ = (
        CheckConstraint("price_per_hour >= 0", name="ck_speaker_price_non_negative"),
    )

    profile: Mapped[Profile] = relationship(back_populates="speaker_profile", lazy="raise")
    slots: Mapped[List["SessionSlot"]] = relationship(  # noqa: F821
        back_populates="speaker",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<SpeakerProfile(id={self.id}, price_per_hour={self.price_per_hour})>"
