"""Logging setup for the inventory backend."""
import logging

from core.config import settings

_configured = False


class _ExtraFormatter(logging.Formatter):
    """Formatter that appends the ``extra={...}`` fields of a record."""

    _reserved = set(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        extras = {k: v for k, v in vars(record).items() if k not in self._reserved}
        if extras:
            msg += " " + " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
        return msg


def configure_logging(level: str | None = None) -> None:
    """Configure the ``inventory`` logger hierarchy once per process."""
    global _configured
    if _configured:
        return

    level_name = (level or settings.log_level).upper()
    root = logging.getLogger("inventory")
    root.setLevel(getattr(logging, level_name, logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(_ExtraFormatter(settings.log_format))
    root.addHandler(handler)

    _configured = True
