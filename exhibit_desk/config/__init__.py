"""Configuration for Exhibit Desk."""

from .settings import (
    CitationConfig,
    ExhibitConfig,
    Settings,
    configure,
    get_settings,
)

__all__ = [
    "CitationConfig",
    "ExhibitConfig",
    "Settings",
    "configure",
    "get_settings",
]
