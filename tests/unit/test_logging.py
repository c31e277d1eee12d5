"""Tests for logging setup."""

import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from exhibit_desk.utils.logging import log_registry_events, setup_logging


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Start and finish each test with the package logger unconfigured."""
    _reset()
    yield
    _reset()


def _reset():
    logger = logging.getLogger("exhibit_desk")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_rich_console_handler(self):
        logger = setup_logging(level="warning")

        assert logger.name == "exhibit_desk"
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)

    def test_plain_console_handler(self):
        logger = setup_logging(rich_output=False)

        handler = logger.handlers[0]
        assert not isinstance(handler, RichHandler)
        assert isinstance(handler, logging.StreamHandler)

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging(level="chatty")

        assert logger.level == logging.INFO

    def test_repeated_setup_replaces_handlers(self):
        """Calling setup twice does not duplicate output."""
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1

    def test_log_file_receives_debug(self, tmp_path: Path):
        """The log file gets DEBUG records even when the console is at INFO."""
        log_file = tmp_path / "logs" / "exhibits.log"
        logger = setup_logging(level="INFO", log_file=log_file)

        logging.getLogger("exhibit_desk.registry").debug("attached f1 to 12B")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert logger.handlers[0].level == logging.INFO
        assert "attached f1 to 12B" in log_file.read_text(encoding="utf-8")


class TestRegistryEvents:
    """Tests for log_registry_events()."""

    def test_events_logged(self, registry, caplog):
        caplog.set_level(logging.DEBUG, logger="exhibit_desk.events")
        log_registry_events(registry)

        registry.create(1, "A")

        assert "created: exhibit 1A" in caplog.text

    def test_unsubscribe_stops_logging(self, registry, caplog):
        caplog.set_level(logging.DEBUG, logger="exhibit_desk.events")
        stop = log_registry_events(registry)

        stop()
        registry.create(1, "A")

        assert "created: exhibit 1A" not in caplog.text
