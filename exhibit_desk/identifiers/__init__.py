"""Exhibit identifiers: grammar, sequencing and filename detection."""

from .detector import ExhibitDetector, detect, strip_extension
from .grammar import (
    Identifier,
    InvalidIdentifier,
    ParsedIdentifier,
    format_identifier,
    make_identifier,
    next_letter,
    parse,
    parse_strict,
    sort_key,
)
from .sequencer import next_identifier

__all__ = [
    # Grammar
    "Identifier",
    "InvalidIdentifier",
    "ParsedIdentifier",
    "format_identifier",
    "make_identifier",
    "next_letter",
    "parse",
    "parse_strict",
    "sort_key",
    # Sequencer
    "next_identifier",
    # Detection
    "ExhibitDetector",
    "detect",
    "strip_extension",
]
