"""Citation resolution, history and autocomplete."""

from .resolver import (
    CitationResolver,
    Resolution,
    format_reference,
    parse_reference,
)
from .suggest import (
    CitationMatch,
    CitationSuggestion,
    PartialCitation,
    citation_context,
    find_citations,
    suggest,
)

__all__ = [
    # Resolver
    "CitationResolver",
    "Resolution",
    "format_reference",
    "parse_reference",
    # Suggestions
    "CitationMatch",
    "CitationSuggestion",
    "PartialCitation",
    "citation_context",
    "find_citations",
    "suggest",
]
