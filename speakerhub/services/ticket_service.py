"""
SpeakerHub Backend — Ticket Service (QR payload and image)
============================================================

What:  Builds the JSON payload identifying a booking, renders it as a PNG QR
       code, and parses payloads scanned back at the venue.
How:   `qrcode` + Pillow. Rendering is CPU-bound, so callers on the event loop
       use `render_data_url_async()`, which runs in a worker thread.
Who:   BookingService (inside the booking transaction), AdminService
       (check-in), EmailService (attachment).

Payload:
    {"bookingId": 41, "userId": "…", "speakerId": "…", "date": "2026-10-20", "hour": 10}

    Keys always appear in that order; the date is ISO (YYYY-MM-DD).
"""

import asyncio
import base64
import io
import logging
from datetime import date
from typing import Optional

import qrcode
from pydantic import ValidationError as PydanticValidationError

from speakerhub.exceptions import TicketGenerationError, ValidationError
from speakerhub.schemas.booking import QRPayload

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"


class TicketService:
    """
    Stateless QR ticket helper.

    QR settings: error correction M (~15%), 10 px modules, 4-module quiet zone,
    version chosen automatically to fit the payload.
    """

    def __init__(self, box_size: int = 10, border: int = 4):
        self.box_size = box_size
        self.border = border

    # ── Payload ───────────────────────────────────────────────────────────

    def build_payload(
        self,
        booking_id: int,
        user_id: str,
        speaker_id: str,
        session_date: date,
        hour: int,
    ) -> QRPayload:
        return QRPayload(
            booking_id=booking_id,
            user_id=user_id,
            speaker_id=speaker_id,
            session_date=session_date,
            hour=hour,
        )

    def encode_payload(self, payload: QRPayload) -> str:
        """Compact JSON with the camelCase keys the scanner app expects."""
        return payload.model_dump_json(by_alias=True)

    def parse_payload(self, raw: str) -> QRPayload:
        """
        Parse a scanned payload.

        Raises:
            ValidationError: not JSON, or missing/mistyped fields.
        """
        try:
            return QRPayload.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.info("Rejected QR payload: %d validation error(s)", e.error_count())
            raise ValidationError(
                message="Invalid QR code data.",
                field="qrPayload",
                context={"errors": e.error_count()},
            )

    # ── Image ─────────────────────────────────────────────────────────────

    def build_qr(self, data: str) -> qrcode.QRCode:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(data)
        qr.make(fit=True)
        return qr

    def render_data_url(self, data: str) -> str:
        """
        Render `data` as a PNG QR code and return it as a data URL.

        Raises:
            TicketGenerationError: the encoder or the image backend failed.
        """
        try:
            image = self.build_qr(data).make_image(fill_color="black", back_color="white")
            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
        except Exception as e:
            logger.error("QR rendering failed: %s", e, exc_info=True)
            raise TicketGenerationError(context={"error_type": type(e).__name__})

        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"{DATA_URL_PREFIX}{encoded}"

    async def render_data_url_async(self, data: str) -> str:
        return await asyncio.to_thread(self.render_data_url, data)

    @staticmethod
    def png_bytes(data_url: Optional[str]) -> Optional[bytes]:
        """Decode a stored ticket data URL back to raw PNG bytes (None if absent or foreign)."""
        if not data_url or not data_url.startswith(DATA_URL_PREFIX):
            return None
        return base64.b64decode(data_url[len(DATA_URL_PREFIX):])


# Singleton
ticket_service = TicketService()
