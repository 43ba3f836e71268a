"""
SpeakerHub Backend — SMS Service (Twilio)
===========================================

What:  Delivers one-time verification codes by text message.
How:   Twilio Messages REST API (form-encoded POST, HTTP basic auth with the
       account SID and auth token). Simulated when Twilio is not configured.
Who:   AuthService schedules `send_otp()` as a background task after signup.
"""

import logging
from typing import Optional

import httpx

from speakerhub.config import settings
from speakerhub.exceptions import IntegrationError
from speakerhub.services.integrations_base import HttpIntegration

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SmsService(HttpIntegration):
    provider = "twilio"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport)

    @property
    def configured(self) -> bool:
        return settings.sms_configured

    async def send_sms(self, to: str, body: str) -> None:
        """
        Send a text message.

        Raises:
            IntegrationError: Twilio unreachable or rejected the message.
        """
        if not self.configured:
            logger.info("SMS simulated (Twilio not configured) to=%s body=%r", _mask(to), body)
            return

        url = f"{TWILIO_API_BASE}/Accounts/{settings.twilio_account_sid}/Messages.json"
        response = await self._call(
            url,
            data={"To": to, "From": settings.twilio_from_number, "Body": body},
            auth=(settings.twilio_account_sid, settings.twilio_auth_token),
        )
        logger.info("SMS sent to %s (sid=%s)", _mask(to), self._read_field(response, "sid"))

    async def send_otp(self, phone: str, code: str) -> None:
        """
        Background-task entry point: send the verification code, log failures.

        Signup has already answered the client; a lost SMS is recoverable
        (the code can be reissued), so failures stop here.
        """
        body = (
            f"Your SpeakerHub verification code is {code}. "
            f"It expires in {settings.otp_ttl_minutes} minutes."
        )
        try:
            await self.send_sms(phone, body)
        except IntegrationError as e:
            logger.warning("Verification SMS not delivered: %s (%s)", e.message, e.context)


def _mask(phone: str) -> str:
    """Keep the last 3 digits only, for logs."""
    return f"***{phone[-3:]}" if len(phone) > 3 else "***"


# Singleton
sms_service = SmsService()
