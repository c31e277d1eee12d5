"""Data models for Exhibit Desk."""

from .citation import (
    CitationHistory,
    CitationReference,
    CitationTarget,
    NotFound,
    NotFoundReason,
)
from .exhibit import (
    Exhibit,
    ExhibitFile,
    ExhibitState,
    ExhibitType,
    FileRecord,
)

__all__ = [
    # Exhibit
    "Exhibit",
    "ExhibitFile",
    "ExhibitState",
    "ExhibitType",
    "FileRecord",
    # Citation
    "CitationHistory",
    "CitationReference",
    "CitationTarget",
    "NotFound",
    "NotFoundReason",
]
