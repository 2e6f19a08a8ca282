"""Notification service port and the SendGrid mail adapter."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailAddress:
    email: str
    display_name: str = ""


@dataclass(frozen=True)
class EmailMessage:
    """A plain-text message."""

    sender: EmailAddress
    to: EmailAddress
    subject: str
    body: str
    bcc: Optional[EmailAddress] = None


class NotificationError(Exception):
    """A message could not be delivered to the mail provider."""


class NotificationService(ABC):
    """Abstract notification interface."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        """
        Send one message.

        Raises:
            NotificationError: If the provider did not accept the message
        """
        ...


def _address(address: EmailAddress) -> dict[str, str]:
    payload = {"email": address.email}
    if address.display_name:
        payload["name"] = address.display_name
    return payload


class SendGridNotifier(NotificationService):
    """Sends mail through the SendGrid v3 mail/send API."""

    def __init__(self, client: httpx.AsyncClient, api_key: str, api_base: str = "https://api.sendgrid.com"):
        self.client = client
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")

    def build_payload(self, message: EmailMessage) -> dict[str, Any]:
        personalization: dict[str, Any] = {"to": [_address(message.to)]}
        if message.bcc and message.bcc.email.lower() != message.to.email.lower():
            personalization["bcc"] = [_address(message.bcc)]
        return {
            "personalizations": [personalization],
            "from": _address(message.sender),
            "subject": message.subject,
            "content": [{"type": "text/plain", "value": message.body}],
        }

    async def send(self, message: EmailMessage) -> None:
        try:
            response = await self.client.post(
                f"{self.api_base}/v3/mail/send",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=self.build_payload(message),
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"SendGrid request failed: {e}") from e

        if not response.is_success:
            raise NotificationError(
                f"SendGrid rejected message (status {response.status_code}): {response.text[:200]}"
            )

        logger.info(
            "Email accepted by SendGrid",
            extra={"subject": message.subject, "status_code": response.status_code}
        )
