"""
SpeakerHub Backend — Admin Schemas
====================================

What:  Check-in request/response and the aggregate statistics payload.
       Keys are camelCase, the shape the admin dashboard consumes.
"""

from typing import List

from pydantic import BaseModel, Field

from speakerhub.schemas.booking import BookingResponse


class CheckInRequest(BaseModel):
    # The raw JSON string read from the ticket's QR code
    qr_payload: str = Field(alias="qrPayload", min_length=2, max_length=2048)

    model_config = {"populate_by_name": True}


class CheckInResponse(BaseModel):
    message: str
    booking: BookingResponse


class SpeakerStat(BaseModel):
    speaker_id: str = Field(alias="speakerId")
    speaker_name: str = Field(alias="speakerName")
    count: int

    model_config = {"populate_by_name": True}


class StatsResponse(BaseModel):
    total_bookings: int = Field(alias="totalBookings")
    checked_in_bookings: int = Field(alias="checkedInBookings")
    checked_in_percentage: int = Field(alias="checkedInPercentage")
    top_speakers: List[SpeakerStat] = Field(alias="topSpeakers")

    model_config = {"populate_by_name": True}
