"""
Create-event triggers for the document store.

Handlers subscribe to a path pattern such as ``alerts/{alertId}``. When a
document is created at a matching path, each handler is awaited with a
snapshot of the new document and the wildcard values from the path.

Only create events exist; updates and deletes are never dispatched.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

_WILDCARD_RE = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")


@dataclass(frozen=True)
class DocumentSnapshot:
    path: str
    data: dict[str, Any] | None

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def exists(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class EventContext:
    params: dict[str, str]
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


Handler = Callable[[DocumentSnapshot, EventContext], Awaitable[None]]


def match_path(pattern: str, path: str) -> dict[str, str] | None:
    """
    Match a document path against a pattern.

    Segments are compared one by one; ``{name}`` captures a single segment.
    Returns the captured params, or None if the path does not match.

      >>> match_path("alerts/{alertId}", "alerts/abc")
      {'alertId': 'abc'}
    """
    pattern_parts = pattern.strip("/").split("/")
    path_parts = path.strip("/").split("/")
    if len(pattern_parts) != len(path_parts):
        return None

    params: dict[str, str] = {}
    for expected, actual in zip(pattern_parts, path_parts):
        if not actual:
            return None
        wildcard = _WILDCARD_RE.match(expected)
        if wildcard:
            params[wildcard.group(1)] = actual
        elif expected != actual:
            return None
    return params


class TriggerRegistry:
    def __init__(self) -> None:
        self._created: list[tuple[str, Handler]] = []

    def on_document_created(self, pattern: str) -> Callable[[Handler], Handler]:
        def register(handler: Handler) -> Handler:
            self._created.append((pattern, handler))
            return handler

        return register

    async def fire_created(self, path: str, data: dict[str, Any] | None) -> int:
        """
        Dispatch a create event for `path` to every matching handler.

        Returns how many handlers ran. A failing handler is logged and does
        not stop the others.
        """
        snapshot = DocumentSnapshot(path=path, data=data)
        ran = 0
        for pattern, handler in list(self._created):
            params = match_path(pattern, path)
            if params is None:
                continue
            ran += 1
            try:
                await handler(snapshot, EventContext(params=params))
            except Exception:
                name = getattr(handler, "__name__", repr(handler))
                logger.exception("Trigger %s failed for %s", name, path)
        return ran


registry = TriggerRegistry()
