"""Configuration settings for Exhibit Desk."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class ExhibitConfig:
    """Configuration for exhibit numbering."""

    max_number: Optional[int] = None  # Ceiling for the sequencer, unbounded when None
    title_prefix: str = "Exhibit "
    default_type: str = "document"


@dataclass
class CitationConfig:
    """Configuration for citation lookup."""

    suggestion_limit: int = 8
    recent_history_limit: int = 5


@dataclass
class Settings:
    """Main settings container."""

    exhibits: ExhibitConfig = field(default_factory=ExhibitConfig)
    citations: CitationConfig = field(default_factory=CitationConfig)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        settings = cls()

        if max_number := os.getenv("EXHIBIT_MAX_NUMBER"):
            settings.exhibits.max_number = int(max_number)

        if prefix := os.getenv("EXHIBIT_TITLE_PREFIX"):
            settings.exhibits.title_prefix = prefix

        if limit := os.getenv("CITATION_SUGGESTION_LIMIT"):
            settings.citations.suggestion_limit = int(limit)

        if limit := os.getenv("CITATION_RECENT_LIMIT"):
            settings.citations.recent_history_limit = int(limit)

        if log_level := os.getenv("LOG_LEVEL"):
            settings.log_level = log_level

        if log_file := os.getenv("EXHIBIT_DESK_LOG_FILE"):
            settings.log_file = Path(log_file)

        return settings


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure(settings: Optional[Settings]) -> None:
    """Set the global settings instance (None resets to environment defaults)."""
    global _settings
    _settings = settings
