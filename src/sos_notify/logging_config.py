"""
Logging setup for the alert host.

Usage:
    from sos_notify.logging_config import setup_logging

    setup_logging()
    logger = logging.getLogger(__name__)
"""

from __future__ import annotations

import logging
import sys

from .config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging() -> None:
    """Configure the root logger once from Settings.log_level."""
    settings = get_settings()
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    # Leave handlers installed by the host (uvicorn, pytest) alone
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    # Quieten noisy libraries
    logging.getLogger("twilio.http_client").setLevel(logging.WARNING)
