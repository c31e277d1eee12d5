"""Citation autocomplete and scanning of citations in document text.

The editor renders citations as bracketed tokens, ``[12B]`` or ``[12B:4]``.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..models import CitationReference, Exhibit
from ..registry.registry import ExhibitRegistry
from .resolver import parse_reference


# Relevance scores for suggestions
EXACT_MATCH = 100
PREFIX_MATCH = 90
CONTAINS_MATCH = 70
TITLE_MATCH = 50

CITATION_PATTERN = re.compile(r"\[\s*([0-9]+[A-Za-z](?:\s*:\s*[0-9]+)?)\s*\]")

# An unfinished citation right before the cursor: "[12" or "[12B:"
OPEN_CITATION_PATTERN = re.compile(r"\[([A-Z0-9]*:?[0-9]*)$", re.IGNORECASE | re.ASCII)


@dataclass(frozen=True)
class CitationSuggestion:
    """An exhibit offered while a citation is being typed."""

    exhibit: Exhibit
    relevance: int
    citation_ref: str
    display_text: str


@dataclass(frozen=True)
class CitationMatch:
    """A citation found in document text."""

    reference: CitationReference
    start: int
    end: int

    @property
    def text(self) -> str:
        return f"[{self.reference}]"


@dataclass(frozen=True)
class PartialCitation:
    """A citation the user is still typing."""

    exhibit_part: str
    has_page_separator: bool
    page_part: str


def suggest(
    registry: ExhibitRegistry,
    partial: str,
    limit: Optional[int] = None,
) -> list[CitationSuggestion]:
    """
    Suggest exhibits matching partially typed input.

    Exhibit number matches rank above title matches. Ties keep exhibit
    display order.

    Args:
        registry: Registry to search
        partial: Text typed so far
        limit: Maximum number of suggestions (default from settings)

    Returns:
        Suggestions, best first
    """
    needle = (partial or "").strip().lower()
    if not needle:
        return []

    if limit is None:
        limit = registry.settings.citations.suggestion_limit

    suggestions = []
    for exhibit in registry.list_sorted():
        number = exhibit.exhibit_number.lower()

        if number == needle:
            relevance = EXACT_MATCH
        elif number.startswith(needle):
            relevance = PREFIX_MATCH
        elif needle in number:
            relevance = CONTAINS_MATCH
        elif needle in (exhibit.title or "").lower():
            relevance = TITLE_MATCH
        else:
            continue

        suggestions.append(CitationSuggestion(
            exhibit=exhibit,
            relevance=relevance,
            citation_ref=exhibit.exhibit_number,
            display_text=f"{exhibit.exhibit_number} - {exhibit.title}",
        ))

    # sorted() is stable, so display order survives within a relevance tier
    suggestions = sorted(suggestions, key=lambda s: -s.relevance)
    return suggestions[:limit]


def find_citations(text: str) -> list[CitationMatch]:
    """
    Find bracketed citations in document text.

    Args:
        text: Document text

    Returns:
        Matches in document order
    """
    matches = []
    for match in CITATION_PATTERN.finditer(text or ""):
        reference = parse_reference(re.sub(r"\s+", "", match.group(1)))
        if reference is None:
            continue
        matches.append(CitationMatch(reference=reference, start=match.start(), end=match.end()))
    return matches


def citation_context(before_cursor: str) -> Optional[PartialCitation]:
    """
    Detect a citation being typed at the end of ``before_cursor``.

    Returns:
        PartialCitation, or None when the cursor is not inside a citation
    """
    match = OPEN_CITATION_PATTERN.search(before_cursor or "")
    if not match:
        return None

    exhibit_part, separator, page_part = match.group(1).partition(":")
    return PartialCitation(
        exhibit_part=exhibit_part,
        has_page_separator=bool(separator),
        page_part=page_part,
    )
