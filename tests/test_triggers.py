from __future__ import annotations

import asyncio
import logging

import pytest

from sos_notify.triggers import DocumentSnapshot, EventContext, TriggerRegistry, match_path


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("alerts/{alertId}", "alerts/abc123", {"alertId": "abc123"}),
        ("alerts/{alertId}", "/alerts/abc123/", {"alertId": "abc123"}),
        ("users/{uid}/alerts/{alertId}", "users/u1/alerts/a1", {"uid": "u1", "alertId": "a1"}),
        ("alerts/{alertId}", "contacts/abc123", None),
        ("alerts/{alertId}", "alerts", None),
        ("alerts/{alertId}", "alerts/abc/extra", None),
        ("alerts/fixed", "alerts/fixed", {}),
    ],
)
def test_match_path(pattern: str, path: str, expected: dict[str, str] | None) -> None:
    assert match_path(pattern, path) == expected


def test_fire_created_dispatches_snapshot_and_params() -> None:
    registry = TriggerRegistry()
    seen: list[tuple[DocumentSnapshot, EventContext]] = []

    @registry.on_document_created("alerts/{alertId}")
    async def handler(snapshot: DocumentSnapshot, context: EventContext) -> None:
        seen.append((snapshot, context))

    ran = asyncio.run(registry.fire_created("alerts/a1", {"type": "sos"}))

    assert ran == 1
    snapshot, context = seen[0]
    assert snapshot.id == "a1"
    assert snapshot.exists
    assert snapshot.data == {"type": "sos"}
    assert context.params == {"alertId": "a1"}
    assert context.event_id


def test_fire_created_skips_other_collections() -> None:
    registry = TriggerRegistry()
    calls: list[str] = []

    @registry.on_document_created("alerts/{alertId}")
    async def handler(snapshot: DocumentSnapshot, context: EventContext) -> None:
        calls.append(snapshot.path)

    assert asyncio.run(registry.fire_created("contacts/c1", {"phone": "+1555"})) == 0
    assert calls == []


def test_failing_handler_does_not_stop_others(caplog: pytest.LogCaptureFixture) -> None:
    registry = TriggerRegistry()
    calls: list[str] = []

    @registry.on_document_created("alerts/{alertId}")
    async def broken(snapshot: DocumentSnapshot, context: EventContext) -> None:
        raise ValueError("boom")

    @registry.on_document_created("alerts/{alertId}")
    async def working(snapshot: DocumentSnapshot, context: EventContext) -> None:
        calls.append(snapshot.id)

    with caplog.at_level(logging.ERROR, logger="sos_notify.triggers"):
        ran = asyncio.run(registry.fire_created("alerts/a2", {}))

    assert ran == 2
    assert calls == ["a2"]
    assert any("broken" in r.getMessage() for r in caplog.records)


class RecordingNotifier:
    def __init__(self) -> None:
        self.records: list[object] = []

    async def notify(self, record: object) -> list[object]:
        self.records.append(record)
        return []


def test_alert_trigger_passes_document_to_notifier(monkeypatch: pytest.MonkeyPatch) -> None:
    from sos_notify.functions import on_alert_create

    notifier = RecordingNotifier()
    monkeypatch.setattr("sos_notify.functions.get_notifier", lambda: notifier)
    context = EventContext(params={"alertId": "a1"})

    asyncio.run(on_alert_create(DocumentSnapshot("alerts/a1", {"type": "sos"}), context))

    assert notifier.records == [{"type": "sos"}]


def test_alert_trigger_ignores_missing_document(monkeypatch: pytest.MonkeyPatch) -> None:
    from sos_notify.functions import on_alert_create

    notifier = RecordingNotifier()
    monkeypatch.setattr("sos_notify.functions.get_notifier", lambda: notifier)
    context = EventContext(params={"alertId": "gone"})

    asyncio.run(on_alert_create(DocumentSnapshot("alerts/gone", None), context))

    assert notifier.records == []
