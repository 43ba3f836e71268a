"""
SpeakerHub Backend — Speaker and Slot Schemas
===============================================

What:  Public speaker listing, speaker profile updates, and slot bodies.

The public listing keeps the camelCase keys the client renders
(fullName, pricePerHour). Profile and slot payloads are snake_case, matching
the request bodies speakers send (price_per_hour, session_date).
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator

# Largest value a NUMERIC(10, 2) column holds
MAX_PRICE_PER_HOUR = 99_999_999.99


class SpeakerListItem(BaseModel):
    id: str
    full_name: str = Field(alias="fullName")
    email: str
    expertise: Optional[str] = None
    bio: Optional[str] = None
    price_per_hour: float = Field(alias="pricePerHour")
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")

    model_config = {"populate_by_name": True}


class SpeakerProfileUpdate(BaseModel):
    """
    Partial update of the caller's speaker profile.

    At least one field must be present; price_per_hour must be a finite amount between
    0 and MAX_PRICE_PER_HOUR.
    """
    expertise: Optional[str] = Field(default=None, max_length=2000)
    price_per_hour: Optional[float] = Field(
        default=None, ge=0, le=MAX_PRICE_PER_HOUR, allow_inf_nan=False
    )
    bio: Optional[str] = Field(default=None, max_length=5000)

    @model_validator(mode="after")
    def require_one_field(self) -> "SpeakerProfileUpdate":
        if not self.model_fields_set & {"expertise", "price_per_hour", "bio"}:
            raise ValueError(
                "At least one field (expertise, price_per_hour, bio) must be provided."
            )
        return self


class SpeakerProfileResponse(BaseModel):
    id: str
    full_name: str
    email: str
    expertise: Optional[str] = None
    bio: Optional[str] = None
    price_per_hour: float
    avatar_url: Optional[str] = None


class SlotCreate(BaseModel):
    """Hour bounds and the not-in-the-past rule are checked by SpeakerService."""
    session_date: date = Field(description="YYYY-MM-DD")
    hour: int


class SlotResponse(BaseModel):
    id: int
    speaker_id: str
    session_date: date
    hour: int
    is_booked: bool

    model_config = {"from_attributes": True}
