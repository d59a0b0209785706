"""Notification channel implementations for alert and report delivery.

Provides an ABC for channels that transmit one rendered message to one
recipient, plus an HTTP mail-API implementation. Channels never raise for
delivery failures: they return a ``SendResult`` whose ``retryable`` flag
carries the Retryable/Permanent classification as advisory metadata.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from src.core.exceptions import (
    ChannelError,
    PermanentChannelError,
    RetryableChannelError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    """A rendered message addressed to a single recipient."""

    to: str
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class SendResult:
    """Outcome of one channel send."""

    success: bool
    error: str | None = None
    retryable: bool = False


def classify_status(status_code: int, body: str | None = None) -> ChannelError:
    """Map a non-2xx HTTP status to a channel error.

    429 and 5xx are retryable; every other status is permanent.
    """
    message = f"Channel returned HTTP {status_code}"
    if status_code == 429 or status_code >= 500:
        return RetryableChannelError(message, status_code=status_code, response_body=body)
    return PermanentChannelError(message, status_code=status_code, response_body=body)


class NotificationChannel(ABC):
    """Abstract base for notification delivery channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this channel (e.g. 'email')."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> SendResult:
        """Deliver a message.

        Args:
            message: Rendered message with a single recipient.

        Returns:
            SendResult describing success or failure.
        """


class HttpEmailChannel(NotificationChannel):
    """Sends mail through a JSON HTTP API (Resend/Postmark style).

    Creates a new ``httpx.AsyncClient`` per call (short-lived, no pooling).
    """

    def __init__(
        self,
        api_url: str,
        from_address: str,
        api_key: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_url = api_url
        self._from_address = from_address
        self._api_key = api_key
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "email"

    def _build_payload(self, message: EmailMessage) -> dict:
        return {
            "from": self._from_address,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    async def _post(self, message: EmailMessage) -> None:
        """POST the message, raising a ChannelError on any failure."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._api_url,
                    json=self._build_payload(message),
                    headers=self._headers(),
                )
        except httpx.TimeoutException as e:
            raise RetryableChannelError(f"Mail API timed out: {e}") from e
        except httpx.TransportError as e:
            raise RetryableChannelError(f"Mail API unreachable: {e}") from e

        if not resp.is_success:
            raise classify_status(resp.status_code, resp.text)

    async def send(self, message: EmailMessage) -> SendResult:
        try:
            await self._post(message)
        except ChannelError as e:
            logger.warning(
                "Email to %s failed (%s): %s",
                message.to,
                "retryable" if e.retryable else "permanent",
                e,
            )
            return SendResult(success=False, error=str(e), retryable=e.retryable)
        return SendResult(success=True)
