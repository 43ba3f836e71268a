"""
SpeakerHub Backend — Calendar Service (Google Calendar)
=========================================================

What:  Creates a calendar event for a booked session and returns its id.
How:   Google Calendar v3 `events.insert` with a configured OAuth bearer
       token. Without a token the event is simulated and a local id of the
       form `event_<hex>` is returned, so bookings still record an event id.
Who:   The post-booking notification task.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from speakerhub.config import settings
from speakerhub.services.integrations_base import HttpIntegration

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"


@dataclass
class CalendarEvent:
    summary: str
    description: str
    start: datetime
    end: datetime
    attendees: List[str] = field(default_factory=list)

    @classmethod
    def for_session(
        cls,
        speaker_name: str,
        speaker_email: str,
        attendee_name: str,
        attendee_email: str,
        session_date: date,
        hour: int,
    ) -> "CalendarEvent":
        start = datetime.combine(session_date, time(hour=hour), tzinfo=timezone.utc)
        return cls(
            summary=f"Session: {speaker_name} & {attendee_name}",
            description=(
                f"Booked session between {speaker_name} (Speaker) "
                f"and {attendee_name} (Attendee)."
            ),
            start=start,
            end=start + timedelta(hours=1),
            attendees=[speaker_email, attendee_email],
        )

    def to_google(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "description": self.description,
            "start": {"dateTime": self.start.isoformat(), "timeZone": "UTC"},
            "end": {"dateTime": self.end.isoformat(), "timeZone": "UTC"},
            "attendees": [{"email": email} for email in self.attendees],
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 30},
                ],
            },
        }


class CalendarService(HttpIntegration):
    provider = "google_calendar"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport)

    @property
    def configured(self) -> bool:
        return settings.calendar_configured

    async def create_event(self, event: CalendarEvent) -> str:
        """
        Returns:
            The provider's event id, or a simulated one when unconfigured.

        Raises:
            IntegrationError: Google unreachable or rejected the event.
        """
        if not self.configured:
            event_id = f"event_{secrets.token_hex(6)}"
            logger.info(
                "Calendar event simulated (Google Calendar not configured): %s at %s → %s",
                event.summary,
                event.start.isoformat(),
                event_id,
            )
            return event_id

        calendar_id = quote(settings.google_calendar_id, safe="")
        response = await self._call(
            f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events",
            params={"sendUpdates": "all"},
            json=event.to_google(),
            headers={"Authorization": f"Bearer {settings.google_calendar_token}"},
        )
        event_id = self._read_field(response, "id")
        logger.info("Calendar event created: %s", event_id)
        return event_id


# Singleton
calendar_service = CalendarService()
