"""Exhibit Desk - exhibit identity and citation management for legal cases."""

__version__ = "0.1.0"

from .citations import CitationResolver
from .identifiers import Identifier, detect, parse
from .models import CitationTarget, Exhibit, ExhibitFile, NotFound
from .registry import ExhibitRegistry

__all__ = [
    "__version__",
    "CitationResolver",
    "CitationTarget",
    "Exhibit",
    "ExhibitFile",
    "ExhibitRegistry",
    "Identifier",
    "NotFound",
    "detect",
    "parse",
]
