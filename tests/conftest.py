from __future__ import annotations

import os
import tempfile
import threading
from collections.abc import Iterator
from pathlib import Path

import pytest

# The engine is created when sos_notify.db is imported, so point it at a
# throwaway sqlite file before any test module imports the package.
os.environ.setdefault(
    "DATABASE_URL", f"sqlite:///{Path(tempfile.mkdtemp()) / 'sos_notify_test.db'}"
)

TWILIO_ENV_VARS = (
    "TWILIO_ACCOUNT_SID",
    "TWILIO_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_TOKEN",
    "TWILIO_FROM_NUMBER",
    "TWILIO_FROM",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Start every test with no Twilio credentials and fresh caches."""
    from sos_notify.config import get_settings
    from sos_notify.functions import get_notifier
    from sos_notify.twilio_client import get_twilio_client

    for name in TWILIO_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RUNTIME_CONFIG_PATH", str(tmp_path / "missing.runtimeconfig.json"))

    caches = (get_settings, get_twilio_client, get_notifier)
    for cached in caches:
        cached.cache_clear()
    yield
    for cached in caches:
        cached.cache_clear()


class FakeTransport:
    """Records every send; numbers in `fail_for` raise instead of sending."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.sent: list[tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def send(self, to: str, from_: str, body: str) -> str | None:
        if to in self.fail_for:
            raise RuntimeError(f"carrier rejected {to}")
        with self._lock:
            self.sent.append((to, from_, body))
            return f"SM{len(self.sent):04d}"


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
