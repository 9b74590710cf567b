from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel


class ConfigError(RuntimeError):
    """Raised when the runtime config file exists but cannot be used."""


def _first_env(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def load_runtime_config(path: Path) -> dict[str, Any]:
    """
    Read the platform runtime config file (e.g. .runtimeconfig.json).

    Expected shape:

      { "twilio": { "sid": "...", "token": "...", "from": "+1..." } }

    A missing file means "nothing configured there" and returns {}.
    """
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Could not read runtime config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Runtime config {path} must contain a JSON object")
    return data


class Settings(BaseModel):
    # Project root (repo root in local dev, /app in Docker)
    project_root: Path = Path(__file__).resolve().parents[2]

    # Database URL for the alert document store:
    # - Default for local dev: sqlite file in the project root (sos_notify.db)
    # - Override in Docker / production using the DATABASE_URL env var
    database_url: str | None = None

    log_level: str = "INFO"

    # Secondary config store; env vars win over anything found here.
    runtime_config_path: Path | None = None

    # --- Twilio settings for outbound SMS ---
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_from_number: str | None = None

    def model_post_init(self, __context: object) -> None:  # type: ignore[override]
        def _set(name: str, value: object) -> None:
            object.__setattr__(self, name, value)

        if self.database_url is None:
            _set(
                "database_url",
                os.getenv("DATABASE_URL", f"sqlite:///{self.project_root / 'sos_notify.db'}"),
            )

        level = os.getenv("LOG_LEVEL")
        if level:
            _set("log_level", level)

        env_path = os.getenv("RUNTIME_CONFIG_PATH")
        if env_path:
            _set("runtime_config_path", Path(env_path))
        elif self.runtime_config_path is None:
            _set("runtime_config_path", self.project_root / ".runtimeconfig.json")

        runtime = load_runtime_config(self.runtime_config_path)  # type: ignore[arg-type]
        twilio_cfg = runtime.get("twilio") or {}
        if not isinstance(twilio_cfg, dict):
            raise ConfigError("Runtime config key 'twilio' must be an object")

        fields = {
            "twilio_account_sid": (("TWILIO_ACCOUNT_SID", "TWILIO_SID"), "sid"),
            "twilio_auth_token": (("TWILIO_AUTH_TOKEN", "TWILIO_TOKEN"), "token"),
            "twilio_from_number": (("TWILIO_FROM_NUMBER", "TWILIO_FROM"), "from"),
        }
        for name, (env_names, key) in fields.items():
            if getattr(self, name):
                continue
            value = _first_env(*env_names) or twilio_cfg.get(key)
            _set(name, str(value) if value else None)

    @property
    def sms_configured(self) -> bool:
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_number
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
