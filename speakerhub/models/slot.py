"""
SpeakerHub Backend — Session Slot Model
=========================================

What:  ORM model for `session_slots`: one bookable hour of one speaker.
How:   (speaker_id, session_date, hour) is unique. `is_booked` is flipped only
       by the booking transaction, with a conditional UPDATE.

Query Patterns:
    - Slots of a speaker on a date: WHERE speaker_id = :s AND session_date = :d
      → served by the unique constraint's index
    - Reserve: UPDATE ... SET is_booked = true WHERE id = :id AND is_booked IS false
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from speakerhub.database import Base
from speakerhub.models.profile import SpeakerProfile


class SessionSlot(Base):
    __tablename__ = "session_slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    speaker_id: Mapped[str] = mapped_column(
        ForeignKey("speaker_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    session_date: Mapped[date] = mapped_column(Date, nullable=False)
    hour: Mapped[int] = mapped_column(Integer, nullable=False)
    is_booked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    speaker: Mapped[SpeakerProfile] = relationship(back_populates="slots", lazy="raise")
    booking: Mapped[Optional["Booking"]] = relationship(  # noqa: F821
        back_populates="slot",
        uselist=False,
        lazy="raise",
    )

    __table_args__ = (
        UniqueConstraint("speaker_id", "session_date", "hour", name="uq_slot_speaker_date_hour"),
    )

    def __repr__(self) -> str:
        return (
            f"<SessionSlot(id={self.id}, speaker={self.speaker_id}, "
            f"date={self.session_date}, hour={self.hour}, booked={self.is_booked})>"
        )
