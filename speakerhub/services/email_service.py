"""
SpeakerHub Backend — E-mail Service (SendGrid)
================================================

What:  Sends the booking confirmation e-mail with the QR ticket attached.
How:   SendGrid v3 `mail/send` (JSON body, bearer API key). Simulated when
       no API key is configured.
Who:   The post-booking notification task.
"""

import base64
import html
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from speakerhub.config import settings
from speakerhub.services.integrations_base import HttpIntegration
from speakerhub.services.ticket_service import ticket_service

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class EmailService(HttpIntegration):
    provider = "sendgrid"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport)

    @property
    def configured(self) -> bool:
        return settings.email_configured

    async def send_email(
        self,
        to: str,
        subject: str,
        text: str,
        html_body: str,
        attachments: Optional[List[Dict[str, str]]] = None,
    ) -> None:
        """
        Raises:
            IntegrationError: SendGrid unreachable or rejected the message.
        """
        if not self.configured:
            logger.info(
                "E-mail simulated (SendGrid not configured) to=%s subject=%r attachments=%d",
                to,
                subject,
                len(attachments or []),
            )
            return

        payload: Dict[str, Any] = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": settings.email_from},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": text},
                {"type": "text/html", "value": html_body},
            ],
        }
        if attachments:
            payload["attachments"] = attachments

        await self._call(
            SENDGRID_SEND_URL,
            json=payload,
            headers={"Authorization": f"Bearer {settings.sendgrid_api_key}"},
        )
        logger.info("E-mail sent to %s: %s", to, subject)

    async def send_booking_confirmation(
        self,
        to: str,
        attendee_name: str,
        speaker_name: str,
        session_date: date,
        hour: int,
        qr_code_url: Optional[str],
    ) -> None:
        formatted_date = session_date.strftime("%A, %B %d, %Y")
        subject = f"Booking Confirmation: Session with {speaker_name}"
        text = (
            f"Hello {attendee_name},\n\n"
            f"Your session with {speaker_name} has been confirmed for "
            f"{formatted_date} at {hour}:00.\n\n"
            "Please find attached your QR code for check-in.\n"
        )
        html_body = (
            "<h2>Booking Confirmation</h2>"
            f"<p>Hello {html.escape(attendee_name)},</p>"
            f"<p>Your session with <strong>{html.escape(speaker_name)}</strong> is confirmed.</p>"
            f"<p><strong>Date:</strong> {formatted_date}<br>"
            f"<strong>Time:</strong> {hour}:00</p>"
            "<p>Please find attached your QR code for check-in.</p>"
        )

        attachments = []
        png = ticket_service.png_bytes(qr_code_url)
        if png is not None:
            attachments.append({
                "content": base64.b64encode(png).decode("ascii"),
                "filename": "qr-code.png",
                "type": "image/png",
                "disposition": "attachment",
            })

        await self.send_email(to, subject, text, html_body, attachments)


# Singleton
email_service = EmailService()
