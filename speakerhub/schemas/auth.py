"""
SpeakerHub Backend — Auth Request/Response Schemas
====================================================

What:  Typed bodies for signup, OTP verification, login and the Google
       OAuth consent flow.
How:   Field aliases keep the camelCase wire names the web client sends
       (fullName, userId, demoOtp); `populate_by_name` lets services build
       them with snake_case keyword arguments.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from speakerhub.models.profile import Role


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    full_name: str = Field(alias="fullName", min_length=1, max_length=255)
    phone: str = Field(min_length=4, max_length=32)
    role: Role = Field(default=Role.ATTENDEE)

    model_config = {"populate_by_name": True}

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, v):
        """Accepts any casing and the legacy USER alias; None means ATTENDEE."""
        if v is None:
            return Role.ATTENDEE
        if isinstance(v, Role):
            return v
        try:
            return Role.parse(str(v))
        except ValueError:
            allowed = ", ".join(r.value for r in Role)
            raise ValueError(f"Invalid role '{v}'. Must be one of: {allowed}")


class SignupResponse(BaseModel):
    message: str
    user_id: str = Field(alias="userId")
    # Present only while one-time codes run in demo mode
    demo_otp: Optional[str] = Field(default=None, alias="demoOtp")

    model_config = {"populate_by_name": True}


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=1, max_length=16)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserSummary(BaseModel):
    id: str
    email: str
    full_name: str = Field(alias="fullName")
    role: Role

    model_config = {"populate_by_name": True}


class LoginResponse(BaseModel):
    message: str = "Login successful"
    token: str = Field(description="Bearer access token (JWT)")
    expiry: datetime = Field(description="Token expiry (UTC ISO 8601)")
    user: UserSummary


class GoogleAuthUrlResponse(BaseModel):
    auth_url: str = Field(alias="authUrl", description="Google consent screen URL")

    model_config = {"populate_by_name": True}


class GoogleTokens(BaseModel):
    """Token set returned by Google's OAuth token endpoint."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    token_type: Optional[str] = None


class GoogleCallbackResponse(BaseModel):
    message: str = "Google authentication successful"
    tokens: GoogleTokens
