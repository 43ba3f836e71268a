"""
SpeakerHub Backend — Outbound Integration Base
================================================

What:  Shared plumbing for the SMS, e-mail and calendar providers.
How:   Each provider subclasses HttpIntegration, reports whether it is
       configured, and sends requests through `_call()`, which wraps
       httpx.AsyncClient with a timeout and tenacity retries.
Who:   SmsService, EmailService, CalendarService, GoogleOAuthService.

Retry policy:
    Retried:      connection/timeout errors, HTTP 429 and 5xx
    Not retried:  other 4xx (bad credentials, rejected payload)
    Exhausted or rejected → IntegrationError. Notification callers log it;
    only the OAuth code exchange returns it to the client, as a 502.
    A success response missing the expected field (`_read_field()`) is
    reported the same way.

Unconfigured providers do not call out at all: they log what would have been
sent and report success, so local runs and demos work without credentials.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from speakerhub.config import settings
from speakerhub.exceptions import IntegrationError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Exponential backoff capped at the configured maximum, plus up to 1s of jitter
RETRY_WAIT = wait_exponential(
    multiplier=settings.integration_retry_min_wait,
    max=settings.integration_retry_max_wait,
) + wait_random(0, 1)


class RetryableStatusError(Exception):
    """Provider answered with a status worth retrying."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"retryable HTTP status {status_code}")


class HttpIntegration(ABC):
    """
    Base class for providers reached over HTTP.

    `transport` is forwarded to httpx.AsyncClient; tests pass an
    httpx.MockTransport to observe requests without a network.
    """

    provider: str = "integration"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    @property
    @abstractmethod
    def configured(self) -> bool:
        """True when credentials are present and real calls will be made."""
        ...

    def _client(self, **kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=settings.integration_timeout,
            transport=self._transport,
            **kwargs,
        )

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, RetryableStatusError)),
        stop=stop_after_attempt(settings.integration_retry_attempts),
        wait=RETRY_WAIT,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _post_with_retry(self, url: str, **kwargs: Any) -> httpx.Response:
        async with self._client() as client:
            response = await client.post(url, **kwargs)
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise RetryableStatusError(response.status_code)
        return response

    async def _call(self, url: str, **kwargs: Any) -> httpx.Response:
        """
        POST to the provider.

        Raises:
            IntegrationError: unreachable after retries, or the request was rejected.
        """
        try:
            response = await self._post_with_retry(url, **kwargs)
        except (httpx.TransportError, RetryableStatusError) as e:
            logger.error("%s unreachable after retries: %s", self.provider, e)
            raise IntegrationError(
                self.provider,
                message=f"{self.provider} is unavailable",
                context={"error_type": type(e).__name__},
            )

        if response.is_error:
            logger.error(
                "%s rejected request with HTTP %d: %s",
                self.provider,
                response.status_code,
                response.text[:200],
            )
            raise IntegrationError(
                self.provider,
                message=f"{self.provider} rejected the request",
                context={"status_code": response.status_code},
            )
        return response

    def _read_field(self, response: httpx.Response, key: str) -> Any:
        """
        Return `key` from a JSON object response body.

        Raises:
            IntegrationError: the body is not a JSON object or lacks `key`.
        """
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or key not in body:
            logger.error(
                "%s answered HTTP %d without %r: %s",
                self.provider,
                response.status_code,
                key,
                response.text[:200],
            )
            raise IntegrationError(
                self.provider,
                message=f"{self.provider} returned an unexpected response",
                context={"status_code": response.status_code, "missing": key},
            )
        return body[key]
