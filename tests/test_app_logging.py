"""Tests for logging configuration."""

import logging

import pytest

from ontrack.app_logging import PACKAGE_LOGGER, configure_logging


def test_repeated_configuration_only_changes_level() -> None:
    configure_logging("warning")
    logger = configure_logging("debug")

    assert logger.name == PACKAGE_LOGGER
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_numeric_level_is_accepted() -> None:
    logger = configure_logging(logging.ERROR)

    assert logger.level == logging.ERROR


def test_unknown_level_name_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("chatty")

    assert logging.getLogger(PACKAGE_LOGGER).handlers == []


def test_handler_formats_records_with_logger_name() -> None:
    logger = configure_logging()
    record = logging.LogRecord(
        name="ontrack.services.metrics",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Active period is empty: metric=%s",
        args=("STEPS",),
        exc_info=None,
    )

    text = logger.handlers[0].format(record)

    assert "WARNING ontrack.services.metrics: Active period is empty: metric=STEPS" in text
