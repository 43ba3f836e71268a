"""
SpeakerHub Backend — Booking, Ticket and Income Schemas
=========================================================

What:  API contract for bookings, the QR ticket payload, and the speaker
       income summary.

QR payload wire format (the exact JSON encoded in the ticket image):
    {"bookingId": 41, "userId": "…", "speakerId": "…", "date": "2026-10-20", "hour": 10}
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from speakerhub.schemas.common import MAX_ROW_ID


class BookingCreate(BaseModel):
    slot_id: int = Field(alias="slotId", ge=1, le=MAX_ROW_ID)

    model_config = {"populate_by_name": True}


class QRPayload(BaseModel):
    """Content of a booking ticket. Field order is the serialized key order."""
    booking_id: int = Field(alias="bookingId", ge=1, le=MAX_ROW_ID)
    user_id: str = Field(alias="userId", min_length=1)
    speaker_id: str = Field(alias="speakerId", min_length=1)
    session_date: date = Field(alias="date")
    hour: int

    model_config = {"populate_by_name": True}


class BookingSlot(BaseModel):
    id: int
    speaker_id: str
    speaker_name: str
    session_date: date
    hour: int
    is_booked: bool


class BookingUser(BaseModel):
    id: str
    full_name: str
    email: str


class BookingResponse(BaseModel):
    id: int
    user_id: str
    slot_id: int
    created_at: datetime
    qr_code_url: Optional[str] = None
    checked_in: bool
    calendar_event_id: Optional[str] = None
    slot: BookingSlot
    user: BookingUser


class QRCodeResponse(BaseModel):
    qr_code_url: str


class MonthlyIncome(BaseModel):
    month: str = Field(description="e.g. 'October 2026'")
    sessions: int
    income: float


class AttendeeIncome(BaseModel):
    id: str
    name: str
    email: str
    sessions: int
    income: float


class SpeakerIncomeResponse(BaseModel):
    total_sessions: int
    price_per_hour: float
    total_income: float
    current_month_income: float
    monthly: List[MonthlyIncome]
    by_attendee: List[AttendeeIncome]
