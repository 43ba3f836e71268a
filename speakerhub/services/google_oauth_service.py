"""
SpeakerHub Backend — Google OAuth Service
===========================================

What:  Obtains Google Calendar credentials through the OAuth consent flow.
How:   `authorization_url()` builds the consent screen URL (offline access,
       forced consent so a refresh token is issued). `exchange_code()` posts
       the returned code to Google's token endpoint.
Who:   GET /api/auth/google and /api/auth/google/callback.

The access token obtained here is what GOOGLE_CALENDAR_TOKEN expects.
Without a client id, secret and redirect URI the consent URL is the
placeholder "demo-auth-url" and no code can be exchanged.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from speakerhub.config import settings
from speakerhub.exceptions import IntegrationError
from speakerhub.schemas.auth import GoogleTokens
from speakerhub.services.integrations_base import HttpIntegration

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
CALENDAR_SCOPES = (
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
)
DEMO_AUTH_URL = "demo-auth-url"


class GoogleOAuthService(HttpIntegration):
    provider = "google_oauth"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport)

    @property
    def configured(self) -> bool:
        return settings.google_oauth_configured

    def authorization_url(self) -> str:
        if not self.configured:
            logger.warning("Google OAuth not configured; returning placeholder consent URL")
            return DEMO_AUTH_URL

        url = httpx.URL(
            GOOGLE_AUTH_URL,
            params={
                "client_id": settings.google_client_id,
                "redirect_uri": settings.google_redirect_uri,
                "response_type": "code",
                "scope": " ".join(CALENDAR_SCOPES),
                "access_type": "offline",
                "prompt": "consent",
            },
        )
        return str(url)

    async def exchange_code(self, code: str) -> GoogleTokens:
        """
        Trade an authorization code for tokens.

        Raises:
            IntegrationError: not configured, Google unreachable, the code was
                rejected, or the answer carried no access token.
        """
        if not self.configured:
            raise IntegrationError(self.provider, message="Google OAuth is not configured")

        response = await self._call(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "redirect_uri": settings.google_redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        self._read_field(response, "access_token")
        try:
            tokens = GoogleTokens.model_validate(response.json())
        except PydanticValidationError as e:
            raise IntegrationError(
                self.provider,
                message=f"{self.provider} returned an unexpected response",
                context={"errors": e.error_count()},
            )
        logger.info(
            "Google OAuth code exchanged (refresh token %s)",
            "issued" if tokens.refresh_token else "not issued",
        )
        return tokens


# Singleton
google_oauth_service = GoogleOAuthService()
