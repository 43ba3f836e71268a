"""
SpeakerHub Backend — Outbound Integration Tests
=================================================

What we test:
    ✅ SMS, e-mail and calendar are simulated while unconfigured
    ✅ Configured providers send the expected request (httpx.MockTransport)
    ✅ Rejected requests (4xx) raise IntegrationError without retrying
    ✅ Retryable statuses are retried, then succeed
    ✅ send_otp() never lets a provider failure escape
    ✅ Success answers missing the expected field raise IntegrationError
    ✅ Retry backoff stays within the configured bounds
    ✅ Google OAuth consent URL and code exchange
"""

import base64
import json
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import patch

import httpx
import pytest

from speakerhub.config import settings
from speakerhub.exceptions import IntegrationError
from speakerhub.services.calendar_service import CalendarEvent, CalendarService
from speakerhub.services.email_service import SENDGRID_SEND_URL, EmailService
from speakerhub.services.google_oauth_service import (
    CALENDAR_SCOPES,
    GOOGLE_TOKEN_URL,
    GoogleOAuthService,
)
from speakerhub.services.integrations_base import RETRY_WAIT
from speakerhub.services.sms_service import SmsService
from speakerhub.services.ticket_service import TicketService


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def no_network(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected outbound request to {request.url}")


class TestSmsService:

    @pytest.mark.asyncio
    async def test_simulated_without_credentials(self):
        service = SmsService(transport=httpx.MockTransport(no_network))
        assert service.configured is False
        await service.send_sms("+15550001234", "hello")

    @pytest.mark.asyncio
    async def test_sends_through_twilio(self):
        recorder = Recorder(httpx.Response(201, json={"sid": "SM123"}))
        service = SmsService(transport=recorder.transport)

        with patch.object(settings, "twilio_account_sid", "AC123"), \
             patch.object(settings, "twilio_auth_token", "token"), \
             patch.object(settings, "twilio_from_number", "+15559999999"):
            await service.send_otp("+15550001234", "123456")

        assert len(recorder.requests) == 1
        request = recorder.requests[0]
        assert request.url.path == "/2010-04-01/Accounts/AC123/Messages.json"
        form = dict(pair.split("=", 1) for pair in request.content.decode().split("&"))
        assert form["To"] == "%2B15550001234"
        assert "123456" in form["Body"]
        expected_auth = base64.b64encode(b"AC123:token").decode()
        assert request.headers["Authorization"] == f"Basic {expected_auth}"

    @pytest.mark.asyncio
    async def test_rejection_raises_without_retry(self):
        recorder = Recorder(httpx.Response(400, json={"message": "bad number"}))
        service = SmsService(transport=recorder.transport)

        with patch.object(settings, "twilio_account_sid", "AC123"), \
             patch.object(settings, "twilio_auth_token", "token"), \
             patch.object(settings, "twilio_from_number", "+15559999999"):
            with pytest.raises(IntegrationError) as exc_info:
                await service.send_sms("+15550001234", "hello")

        assert exc_info.value.provider == "twilio"
        assert exc_info.value.context["status_code"] == 400
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_send_otp_swallows_failures(self):
        recorder = Recorder(httpx.Response(401, json={"message": "bad credentials"}))
        service = SmsService(transport=recorder.transport)

        with patch.object(settings, "twilio_account_sid", "AC123"), \
             patch.object(settings, "twilio_auth_token", "token"), \
             patch.object(settings, "twilio_from_number", "+15559999999"):
            await service.send_otp("+15550001234", "123456")

        assert len(recorder.requests) == 1


class TestEmailService:

    @pytest.mark.asyncio
    async def test_simulated_without_api_key(self):
        service = EmailService(transport=httpx.MockTransport(no_network))
        await service.send_email("a@example.com", "Hi", "text", "<p>html</p>")

    @pytest.mark.asyncio
    async def test_confirmation_attaches_ticket(self):
        recorder = Recorder(httpx.Response(202))
        service = EmailService(transport=recorder.transport)
        qr_code_url = TicketService().render_data_url('{"bookingId": 1}')

        with patch.object(settings, "sendgrid_api_key", "SG.key"):
            await service.send_booking_confirmation(
                to="bob@example.com",
                attendee_name="Bob",
                speaker_name="Ada",
                session_date=date(2030, 5, 6),
                hour=14,
                qr_code_url=qr_code_url,
            )

        request = recorder.requests[0]
        assert str(request.url) == SENDGRID_SEND_URL
        assert request.headers["Authorization"] == "Bearer SG.key"
        body = json.loads(request.content)
        assert body["personalizations"] == [{"to": [{"email": "bob@example.com"}]}]
        assert body["subject"] == "Booking Confirmation: Session with Ada"
        assert "Monday, May 06, 2030" in body["content"][0]["value"]
        assert "14:00" in body["content"][0]["value"]
        attachment = body["attachments"][0]
        assert attachment["filename"] == "qr-code.png"
        assert attachment["type"] == "image/png"
        assert base64.b64decode(attachment["content"]).startswith(b"\x89PNG")

    @pytest.mark.asyncio
    async def test_confirmation_without_ticket_has_no_attachment(self):
        recorder = Recorder(httpx.Response(202))
        service = EmailService(transport=recorder.transport)

        with patch.object(settings, "sendgrid_api_key", "SG.key"):
            await service.send_booking_confirmation(
                to="bob@example.com",
                attendee_name="Bob",
                speaker_name="Ada",
                session_date=date(2030, 5, 6),
                hour=9,
                qr_code_url=None,
            )

        assert "attachments" not in json.loads(recorder.requests[0].content)

    @pytest.mark.asyncio
    async def test_retryable_status_then_success(self):
        recorder = Recorder(httpx.Response(503), httpx.Response(202))
        service = EmailService(transport=recorder.transport)

        with patch.object(settings, "sendgrid_api_key", "SG.key"):
            await service.send_email("a@example.com", "Hi", "text", "<p>html</p>")

        assert len(recorder.requests) == 2


class TestCalendarService:

    def setup_method(self):
        self.event = CalendarEvent.for_session(
            speaker_name="Ada",
            speaker_email="ada@example.com",
            attendee_name="Bob",
            attendee_email="bob@example.com",
            session_date=date(2030, 5, 6),
            hour=14,
        )

    def test_event_for_session(self):
        assert self.event.summary == "Session: Ada & Bob"
        assert self.event.start == datetime(2030, 5, 6, 14, tzinfo=timezone.utc)
        assert self.event.end == datetime(2030, 5, 6, 15, tzinfo=timezone.utc)
        google = self.event.to_google()
        assert google["attendees"] == [{"email": "ada@example.com"}, {"email": "bob@example.com"}]
        assert google["start"]["timeZone"] == "UTC"

    @pytest.mark.asyncio
    async def test_simulated_event_id(self):
        service = CalendarService(transport=httpx.MockTransport(no_network))
        event_id = await service.create_event(self.event)
        assert event_id.startswith("event_")
        assert len(event_id) == len("event_") + 12

    @pytest.mark.asyncio
    async def test_creates_google_event(self):
        recorder = Recorder(httpx.Response(200, json={"id": "gcal-42"}))
        service = CalendarService(transport=recorder.transport)

        with patch.object(settings, "google_calendar_token", "ya29.token"), \
             patch.object(settings, "google_calendar_id", "team@example.com"):
            event_id = await service.create_event(self.event)

        assert event_id == "gcal-42"
        request = recorder.requests[0]
        assert request.url.raw_path.startswith(b"/calendar/v3/calendars/team%40example.com/events")
        assert request.url.params["sendUpdates"] == "all"
        assert request.headers["Authorization"] == "Bearer ya29.token"
        assert json.loads(request.content)["summary"] == "Session: Ada & Bob"

    @pytest.mark.asyncio
    async def test_rejected_event_raises(self):
        recorder = Recorder(httpx.Response(403, json={"error": "forbidden"}))
        service = CalendarService(transport=recorder.transport)

        with patch.object(settings, "google_calendar_token", "ya29.token"):
            with pytest.raises(IntegrationError) as exc_info:
                await service.create_event(self.event)

        assert exc_info.value.provider == "google_calendar"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, json={}),
            httpx.Response(200, json=["gcal-42"]),
            httpx.Response(200, text="not json"),
        ],
    )
    async def test_success_without_event_id_raises(self, response):
        service = CalendarService(transport=Recorder(response).transport)

        with patch.object(settings, "google_calendar_token", "ya29.token"):
            with pytest.raises(IntegrationError) as exc_info:
                await service.create_event(self.event)

        assert exc_info.value.message == "google_calendar returned an unexpected response"
        assert exc_info.value.context["missing"] == "id"


class TestUnreadableSmsAnswer:

    @pytest.mark.asyncio
    async def test_send_sms_raises_and_send_otp_logs(self):
        recorder = Recorder(httpx.Response(201, text="queued"))
        service = SmsService(transport=recorder.transport)

        with patch.object(settings, "twilio_account_sid", "AC123"), \
             patch.object(settings, "twilio_auth_token", "token"), \
             patch.object(settings, "twilio_from_number", "+15559999999"):
            with pytest.raises(IntegrationError):
                await service.send_sms("+15550001234", "hello")
            await service.send_otp("+15550001234", "123456")

        assert len(recorder.requests) == 2


class TestRetryWait:

    @pytest.mark.parametrize("attempt", [1, 2, 3, 10])
    def test_wait_stays_within_bounds(self, attempt):
        state = SimpleNamespace(attempt_number=attempt)
        low = min(
            settings.integration_retry_min_wait * 2 ** (attempt - 1),
            settings.integration_retry_max_wait,
        )

        wait = RETRY_WAIT(state)

        assert low <= wait <= low + 1


class TestGoogleOAuthService:

    def configured(self):
        return patch.multiple(
            settings,
            google_client_id="client-1",
            google_client_secret="shh",
            google_redirect_uri="http://localhost:8000/api/auth/google/callback",
        )

    def test_placeholder_url_without_credentials(self):
        assert GoogleOAuthService().authorization_url() == "demo-auth-url"

    def test_consent_url(self):
        with self.configured():
            url = httpx.URL(GoogleOAuthService().authorization_url())

        assert url.host == "accounts.google.com"
        assert url.params["client_id"] == "client-1"
        assert url.params["redirect_uri"] == "http://localhost:8000/api/auth/google/callback"
        assert url.params["response_type"] == "code"
        assert url.params["access_type"] == "offline"
        assert url.params["prompt"] == "consent"
        assert url.params["scope"].split() == list(CALENDAR_SCOPES)

    @pytest.mark.asyncio
    async def test_exchange_code(self):
        recorder = Recorder(httpx.Response(200, json={
            "access_token": "ya29.fresh",
            "refresh_token": "1//refresh",
            "expires_in": 3599,
            "scope": " ".join(CALENDAR_SCOPES),
            "token_type": "Bearer",
        }))
        service = GoogleOAuthService(transport=recorder.transport)

        with self.configured():
            tokens = await service.exchange_code("4/abc")

        assert tokens.access_token == "ya29.fresh"
        assert tokens.refresh_token == "1//refresh"
        request = recorder.requests[0]
        assert str(request.url) == GOOGLE_TOKEN_URL
        form = dict(pair.split("=", 1) for pair in request.content.decode().split("&"))
        assert form["code"] == "4%2Fabc"
        assert form["grant_type"] == "authorization_code"
        assert form["client_secret"] == "shh"

    @pytest.mark.asyncio
    async def test_exchange_without_credentials(self):
        service = GoogleOAuthService(transport=httpx.MockTransport(no_network))
        with pytest.raises(IntegrationError) as exc_info:
            await service.exchange_code("4/abc")
        assert exc_info.value.message == "Google OAuth is not configured"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(400, json={"error": "invalid_grant"}),
            httpx.Response(200, json={"token_type": "Bearer"}),
            httpx.Response(200, json={"access_token": "ya29.x", "expires_in": "soon"}),
        ],
    )
    async def test_failed_exchange_raises(self, response):
        service = GoogleOAuthService(transport=Recorder(response).transport)

        with self.configured():
            with pytest.raises(IntegrationError) as exc_info:
                await service.exchange_code("4/abc")

        assert exc_info.value.provider == "google_oauth"
