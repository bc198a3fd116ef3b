"""Logging setup for structured engine logs."""

import logging
from typing import Any

from tripshare.app.config import Settings

logger = logging.getLogger(__name__)


class StructuredFormatter(logging.Formatter):
    """Formatter that appends the ``structured`` extra payload to the message."""

    def format(self, record: logging.LogRecord) -> str:
        """Render the record, then any structured fields as key=value pairs."""
        message = super().format(record)
        structured: dict[str, Any] | None = getattr(record, "structured", None)

        if structured:
            fields = " ".join(f"{key}={value}" for key, value in sorted(structured.items()))
            message = f"{message} | {fields}"

        return message


def configure_logging(settings: Settings) -> None:
    """Install a root handler using the structured formatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level.upper())

    logger.debug("Logging configured", extra={"structured": {"level": settings.log_level}})
