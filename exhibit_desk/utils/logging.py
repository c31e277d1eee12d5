"""Logging for Exhibit Desk.

Everything logs under the ``exhibit_desk`` logger. The CLI configures it once
per invocation with ``setup_logging``; library users may configure it
themselves or leave it to the host application.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from rich.console import Console
from rich.logging import RichHandler


ROOT_LOGGER = "exhibit_desk"
EVENTS_LOGGER = f"{ROOT_LOGGER}.events"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Log records go to stderr so command output on stdout stays clean
console = Console(stderr=True)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    rich_output: bool = True,
) -> logging.Logger:
    """
    Configure the ``exhibit_desk`` logger.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Console log level name (unknown names fall back to INFO)
        log_file: Optional file that receives every record at DEBUG
        rich_output: Rich console handler instead of a plain stream handler

    Returns:
        The package logger
    """
    console_level = logging.getLevelName(level.upper())
    if not isinstance(console_level, int):
        console_level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(console_level, rich_output))

    if log_file:
        logger.addHandler(_file_handler(Path(log_file)))
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(console_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get the logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)


def log_registry_events(
    registry: Any,
    level: int = logging.DEBUG,
) -> Callable[[], None]:
    """
    Log every committed change of an exhibit registry.

    Args:
        registry: Anything with ``subscribe(listener)``, normally an ExhibitRegistry
        level: Level the events are logged at

    Returns:
        Function that stops the logging
    """
    events_logger = logging.getLogger(EVENTS_LOGGER)

    def listener(event) -> None:
        events_logger.log(
            level,
            f"{event.kind.value}: exhibit {event.exhibit_number} ({event.exhibit_id})",
        )

    return registry.subscribe(listener)


def _console_handler(level: int, rich_output: bool) -> logging.Handler:
    if rich_output:
        handler: logging.Handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
    handler.setLevel(level)
    return handler


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    handler.setLevel(logging.DEBUG)
    return handler
