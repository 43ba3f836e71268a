"""
SpeakerHub Backend — Booking Model
====================================

What:  ORM model for `bookings`: an attendee's reservation of one slot,
       carrying the QR check-in ticket.

Lifecycle:
    1. Inserted by the booking transaction right after the slot is reserved
    2. qr_code_url set inside the same transaction
    3. calendar_event_id set later by the post-booking task (optional)
    4. checked_in flipped once, by the admin check-in (never reverts)
    5. Never deleted

slot_id is UNIQUE: the store itself refuses a second booking for a slot.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from speakerhub.database import Base
from speakerhub.models.profile import Profile
from speakerhub.models.slot import SessionSlot


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slot_id: Mapped[int] = mapped_column(
        ForeignKey("session_slots.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    # PNG data URL ("data:image/png;base64,...")
    qr_code_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    calendar_event_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    user: Mapped[Profile] = relationship(back_populates="bookings", lazy="raise")
    slot: Mapped[SessionSlot] = relationship(back_populates="booking", lazy="raise")

    __table_args__ = (
        Index("idx_bookings_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, user={self.user_id}, slot={self.slot_id}, "
            f"checked_in={self.checked_in})>"
        )
