from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import ValidationError

from .alerts import AlertRecord, SendAttempt, SendResult, plan_sends
from .twilio_client import MessageTransport

logger = logging.getLogger(__name__)


class Notifier:
    """
    Fan an alert out as one SMS per recipient.

    The transport and sender number are injected so tests can pass a fake.
    If either is missing the notifier runs in no-send mode: it logs once and
    returns without touching the network.

    `notify` never raises. Each send runs in its own worker thread (the
    Twilio client is blocking); all of them are awaited together and a
    failure in one has no effect on the others.
    """

    def __init__(self, transport: MessageTransport | None, from_number: str | None) -> None:
        self.transport = transport
        self.from_number = from_number

    @property
    def configured(self) -> bool:
        return self.transport is not None and bool(self.from_number)

    async def notify(self, record: AlertRecord | Mapping[str, Any] | None) -> list[SendResult]:
        """
        Send the alert to every recipient with a phone number and log each outcome.

        Returns the per-recipient results (empty when nothing was sent).
        """
        if record is None or (isinstance(record, Mapping) and not record):
            return []

        if not isinstance(record, AlertRecord):
            try:
                record = AlertRecord.model_validate(record)
            except ValidationError as exc:
                logger.error("Ignoring malformed alert record: %s", exc)
                return []

        transport = self.transport
        from_number = self.from_number
        if transport is None or not from_number:
            logger.info("Twilio not configured, skipping SMS send.")
            return []

        results = await self.send_all(plan_sends(record, from_number))

        for result in results:
            if result.ok:
                logger.info("SMS sent to %s", result.to)
            else:
                logger.error("Failed to send SMS to %s: %s", result.to, result.error)

        return results

    async def send_all(self, attempts: Iterable[SendAttempt]) -> list[SendResult]:
        """
        Run every attempt concurrently and collect the outcomes (no logging).

        Each attempt gets its own worker thread, so all sends start at once
        however many recipients there are.
        """
        transport = self.transport
        if transport is None:
            raise RuntimeError("Twilio transport is not configured")

        attempts = list(attempts)
        if not attempts:
            return []

        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(
            max_workers=len(attempts), thread_name_prefix="sms_send"
        ) as executor:
            return list(
                await asyncio.gather(
                    *(self._send_one(loop, executor, transport, a) for a in attempts)
                )
            )

    @staticmethod
    async def _send_one(
        loop: asyncio.AbstractEventLoop,
        executor: ThreadPoolExecutor,
        transport: MessageTransport,
        attempt: SendAttempt,
    ) -> SendResult:
        try:
            sid = await loop.run_in_executor(
                executor, transport.send, attempt.to, attempt.from_, attempt.body
            )
        except Exception as exc:
            return SendResult.failure(attempt.to, str(exc) or type(exc).__name__)
        return SendResult.success(attempt.to, sid)
