from __future__ import annotations

from functools import lru_cache
from typing import Protocol

from twilio.rest import Client

from .config import get_settings


class MessageTransport(Protocol):
    def send(self, to: str, from_: str, body: str) -> str | None:
        """Send one SMS and return the provider's message id, if any."""
        ...


class TwilioTransport:
    """MessageTransport backed by the Twilio REST API."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def send(self, to: str, from_: str, body: str) -> str | None:
        # No timeout or retry here: the Twilio HTTP client's defaults apply.
        message = self.client.messages.create(to=to, from_=from_, body=body)
        return message.sid


@lru_cache
def get_twilio_client() -> Client | None:
    """
    Process-wide Twilio client, built once from settings.

    Returns None when TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN are not
    configured; callers treat that as "SMS disabled", not as an error.
    """
    settings = get_settings()

    if not settings.twilio_account_sid or not settings.twilio_auth_token:
        return None

    return Client(settings.twilio_account_sid, settings.twilio_auth_token)


def get_transport() -> TwilioTransport | None:
    client = get_twilio_client()
    return TwilioTransport(client) if client is not None else None
