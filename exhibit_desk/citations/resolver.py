"""Citation resolution against an exhibit registry.

A citation reference is plain text: ``<identifier>`` or
``<identifier>:<page>`` (e.g. ``12B`` or ``12B:4``). Resolution never raises;
references that cannot be resolved come back as ``NotFound``.
"""

import threading
from datetime import datetime
from typing import Any, Callable, Optional, Union

from ..config.settings import Settings, get_settings
from ..identifiers.grammar import Identifier, parse
from ..models import (
    CitationHistory,
    CitationReference,
    CitationTarget,
    Exhibit,
    ExhibitFile,
    NotFound,
    NotFoundReason,
)
from ..registry.registry import ExhibitRegistry
from ..utils.logging import get_logger

logger = get_logger(__name__)


Resolution = Union[CitationTarget, NotFound]


def parse_reference(text: str) -> Optional[CitationReference]:
    """
    Parse a citation reference.

    Args:
        text: Reference such as "12B" or "12b:4"

    Returns:
        CitationReference, or None if the text is malformed
    """
    if not isinstance(text, str):
        return None

    head, separator, page_text = text.strip().partition(":")

    identifier = parse(head)
    if not isinstance(identifier, Identifier):
        return None

    page = None
    if separator:
        page_text = page_text.strip()
        if not page_text.isascii() or not page_text.isdigit():
            return None
        page = int(page_text)
        if page < 1:
            return None

    return CitationReference(identifier=identifier, page=page)


def format_reference(identifier: Union[Identifier, str], page: Optional[int] = None) -> str:
    """Format a citation reference ("12B" or "12B:4")."""
    text = str(identifier)
    return f"{text}:{page}" if page else text


class CitationResolver:
    """Resolves citation references and keeps their usage history.

    History rows are keyed by the literal reference text, so a reference to
    an exhibit that was later deleted keeps its own row.
    """

    def __init__(
        self,
        registry: ExhibitRegistry,
        on_insert: Optional[Callable[[str, CitationTarget], None]] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            registry: Registry to resolve against
            on_insert: Editor callback receiving (reference text, target)
            settings: Settings (global settings when omitted)
            clock: Time source, for tests
        """
        self.registry = registry
        self.on_insert = on_insert
        self.settings = settings or get_settings()
        self._clock = clock or datetime.now
        self._history: dict[str, CitationHistory] = {}
        self._lock = threading.Lock()

    def resolve(self, reference: str) -> Resolution:
        """
        Resolve a reference to a file and page.

        The exhibit's primary file is used, else its only (or first) file.
        The page is the cited page, else that file's own default page.
        Successful resolutions are counted in the history.

        Args:
            reference: Reference text

        Returns:
            CitationTarget, or NotFound with the reason
        """
        literal = reference.strip() if isinstance(reference, str) else str(reference)

        parsed = parse_reference(literal)
        if parsed is None:
            return NotFound(reference=literal, reason=NotFoundReason.MALFORMED)

        # Attach/detach on another thread must not change the exhibit mid-read
        with self.registry.locked():
            exhibit = self.registry.find_by_number(parsed.identifier)
            if exhibit is None:
                logger.debug(f"Citation {literal}: no exhibit {parsed.identifier}")
                return NotFound(reference=literal, reason=NotFoundReason.NO_EXHIBIT)

            chosen = _target_file(exhibit)
            if chosen is None:
                logger.debug(f"Citation {literal}: exhibit {exhibit.exhibit_number} has no files")
                return NotFound(reference=literal, reason=NotFoundReason.NO_FILES)

            target = CitationTarget(
                file_id=chosen.file_id,
                page=parsed.page if parsed.page is not None else chosen.page_number,
                exhibit_id=exhibit.id,
                exhibit_number=exhibit.exhibit_number,
            )

        with self._lock:
            record = self._history.get(literal)
            if record is None:
                record = CitationHistory(exhibit_reference=literal)
                self._history[literal] = record
            record.record_access(target, self._clock())

        return target

    def insert(self, reference: str) -> Resolution:
        """
        Validate a reference and ask the editor to place it at the cursor.

        The editor callback only runs for references that resolve; the
        document itself is never touched here.

        Returns:
            The resolution result
        """
        text = str(reference).strip()
        result = self.resolve(text)
        if not isinstance(result, CitationTarget):
            logger.debug(f"Not inserting unresolved citation {result.reference} ({result.reason.value})")
            return result

        if self.on_insert is not None:
            self.on_insert(str(parse_reference(text)), result)
        return result

    # ========== History ==========

    def get_history(self, reference: str) -> Optional[CitationHistory]:
        """Get the history row for a literal reference."""
        return self._history.get(reference.strip())

    def history(self) -> list[CitationHistory]:
        """All history rows, most recently used first."""
        with self._lock:
            rows = list(self._history.values())
        return sorted(rows, key=lambda r: r.last_accessed_at, reverse=True)

    def recent(self, limit: Optional[int] = None) -> list[CitationHistory]:
        """Most recently used references."""
        if limit is None:
            limit = self.settings.citations.recent_history_limit
        return self.history()[:limit]

    def clear_history(self) -> None:
        """Forget all citation history."""
        with self._lock:
            self._history.clear()

    # ========== Serialization ==========

    def to_dict(self) -> dict[str, Any]:
        """Convert history to dictionary for serialization."""
        return {"history": [r.to_dict() for r in self.history()]}

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        registry: ExhibitRegistry,
        on_insert: Optional[Callable[[str, CitationTarget], None]] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "CitationResolver":
        """Create a resolver with history restored from a dictionary."""
        resolver = cls(registry, on_insert=on_insert, settings=settings, clock=clock)
        for row in data.get("history") or []:
            try:
                record = CitationHistory.from_dict(row)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed citation history row: {e}")
                continue
            resolver._history[record.exhibit_reference] = record
        return resolver


def _target_file(exhibit: Exhibit) -> Optional[ExhibitFile]:
    if exhibit.primary_file is not None:
        return exhibit.primary_file
    if exhibit.files:
        return exhibit.files[0]
    return None
