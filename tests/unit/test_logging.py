"""Unit tests for structured logging setup."""

import logging

from tripshare.app.config import Settings
from tripshare.app.utils.logging import StructuredFormatter, configure_logging


def test_structured_fields_are_appended() -> None:
    """Structured extras render as sorted key=value pairs."""
    formatter = StructuredFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "Trip imported", None, None)
    record.structured = {"trip_id": 4, "destinations": 2}

    assert formatter.format(record) == "INFO Trip imported | destinations=2 trip_id=4"


def test_plain_records_are_unchanged() -> None:
    """Records without extras format normally."""
    formatter = StructuredFormatter("%(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)

    assert formatter.format(record) == "hello"


def test_configure_logging_sets_level_and_handler() -> None:
    """The root logger gets one structured handler at the configured level."""
    root = logging.getLogger()
    previous_handlers, previous_level = root.handlers[:], root.level

    try:
        configure_logging(Settings(log_level="debug"))

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
    finally:
        root.handlers = previous_handlers
        root.setLevel(previous_level)
