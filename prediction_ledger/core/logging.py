"""Process-wide logging setup."""

from __future__ import annotations

import logging

from prediction_ledger.core.config import Settings

_configured = False


def configure_logging(settings: Settings) -> None:
    """Apply level and format from settings once per process."""
    global _configured
    if _configured:
        return
    level = logging.DEBUG if settings.debug else getattr(logging, settings.logging.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=settings.logging.format)
    logging.getLogger("prediction_ledger").setLevel(level)
    _configured = True


__all__ = ["configure_logging"]
