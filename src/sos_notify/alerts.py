from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_TYPE: Final[str] = "sos"
SAFE_MESSAGE: Final[str] = "I'm safe now."
SOS_MESSAGE: Final[str] = "SOS!"


def _scalar_to_str(value: object) -> str | None:
    """str() of a truthy string/number/bool; None for anything else."""
    if not value or not isinstance(value, str | int | float | bool):
        return None
    return value if isinstance(value, str) else str(value)


class RecipientRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    phone: str | None = None
    # Not used when composing messages, so any shape is accepted.
    name: Any = None

    @field_validator("phone", mode="before")
    @classmethod
    def _lenient_phone(cls, value: object) -> str | None:
        # A phone that is not a string or number counts as no phone
        if isinstance(value, bool):
            return None
        return _scalar_to_str(value)


class AlertRecord(BaseModel):
    """
    An alert document as written to the `alerts` collection by the app.

    Parsing is lenient field by field: an odd `type`, `message` or recipient
    entry never makes the whole record invalid.
    """

    model_config = ConfigDict(extra="ignore")

    type: str = DEFAULT_TYPE
    message: str | None = None
    recipients: list[RecipientRef] = []

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: object) -> str:
        # null and "" both mean "no type given"
        if not value:
            return DEFAULT_TYPE
        return value if isinstance(value, str) else str(value)

    @field_validator("message", mode="before")
    @classmethod
    def _lenient_message(cls, value: object) -> str | None:
        return _scalar_to_str(value)

    @field_validator("recipients", mode="before")
    @classmethod
    def _lenient_recipients(cls, value: object) -> list[dict[str, Any]]:
        if not isinstance(value, list | tuple):
            return []
        # Entries that are not objects have no phone and are skipped later
        return [dict(entry) if isinstance(entry, Mapping) else {} for entry in value]


@dataclass(frozen=True)
class SendAttempt:
    to: str
    from_: str
    body: str


@dataclass(frozen=True)
class SendResult:
    to: str
    ok: bool
    error: str | None = None
    sid: str | None = None

    @classmethod
    def success(cls, to: str, sid: str | None = None) -> SendResult:
        return cls(to=to, ok=True, sid=sid)

    @classmethod
    def failure(cls, to: str, error: str) -> SendResult:
        return cls(to=to, ok=False, error=error)


def effective_message(record: AlertRecord) -> str:
    """
    Body to send for this alert.

    An explicit message wins whenever it is a non-empty string, even if it is
    only whitespace. Otherwise the default depends on the alert type.
    """
    if record.message:
        return record.message
    return SAFE_MESSAGE if record.type == "safe" else SOS_MESSAGE


def recipient_phones(record: AlertRecord) -> list[str]:
    """Trimmed, non-empty phone numbers in recipient order (duplicates kept)."""
    phones = ((r.phone or "").strip() for r in record.recipients)
    return [p for p in phones if p]


def plan_sends(record: AlertRecord, from_number: str) -> list[SendAttempt]:
    body = effective_message(record)
    return [
        SendAttempt(to=phone, from_=from_number, body=body) for phone in recipient_phones(record)
    ]
