from __future__ import annotations

import logging
from functools import lru_cache

from .config import get_settings
from .notifier import Notifier
from .triggers import DocumentSnapshot, EventContext, registry
from .twilio_client import get_transport

logger = logging.getLogger(__name__)

ALERTS_COLLECTION = "alerts"


@lru_cache
def get_notifier() -> Notifier:
    """Process-wide Notifier wired to the configured Twilio account."""
    settings = get_settings()
    return Notifier(transport=get_transport(), from_number=settings.twilio_from_number)


@registry.on_document_created(f"{ALERTS_COLLECTION}/{{alertId}}")
async def on_alert_create(snapshot: DocumentSnapshot, context: EventContext) -> None:
    if not snapshot.exists:
        return
    logger.debug(
        "Alert %s created at %s",
        context.params.get("alertId"),
        context.timestamp.isoformat(),
    )
    await get_notifier().notify(snapshot.data)
