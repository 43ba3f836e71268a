"""
SpeakerHub Backend — Shared Response Schemas
==============================================

What:  Error envelope, plain message response and health check payload,
       shared by every route module.
"""

from typing import Optional

from pydantic import BaseModel, Field

# Upper bound of the integer primary keys (32-bit INTEGER / SERIAL columns)
MAX_ROW_ID = 2**31 - 1


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "conflict",
            "message": "Slot is already booked.",
            "details": {"slot_id": 12},
            "request_id": "1f0c2a9e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Health of the service, its database, and which integrations are live or simulated."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    demo_mode: bool = Field(description="Whether authentication is bypassed")
    sms: str = Field(description="configured or simulated")
    email: str = Field(description="configured or simulated")
    calendar: str = Field(description="configured or simulated")
    uptime_seconds: float = Field(description="Seconds since service started")
