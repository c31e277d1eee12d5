"""Utility modules for Exhibit Desk."""

from .logging import (
    console,
    get_logger,
    log_registry_events,
    setup_logging,
)


__all__ = [
    "setup_logging",
    "get_logger",
    "log_registry_events",
    "console",
]
