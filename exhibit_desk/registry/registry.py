"""Exhibit registry for a single case.

The registry exclusively owns the case's exhibits and their file links.
Every mutation runs under one re-entrant lock, so the compound
"create the exhibit if absent, then attach the file" step in
``attach_file`` cannot interleave with another writer.

Format and uniqueness failures are reported through result objects
(``CreateResult``, ``AttachResult``) rather than raised.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from ..config.settings import Settings, get_settings
from ..exceptions import (
    DuplicateIdentifierError,
    ExhibitError,
    ExhibitNotFoundError,
    InvalidExhibitTypeError,
    InvalidIdentifierError,
)
from ..identifiers.detector import ExhibitDetector
from ..identifiers.grammar import (
    Identifier,
    InvalidIdentifier,
    ParsedIdentifier,
    make_identifier,
    parse,
)
from ..identifiers.sequencer import next_identifier
from ..models import Exhibit, ExhibitFile, ExhibitType, FileRecord
from ..utils.logging import get_logger

logger = get_logger(__name__)


IdentifierInput = Union[str, Identifier, InvalidIdentifier]


class RegistryEventKind(str, Enum):
    """Kinds of committed registry mutations."""

    CREATED = "created"
    UPDATED = "updated"
    FILE_ATTACHED = "file_attached"
    FILE_DETACHED = "file_detached"
    RENUMBERED = "renumbered"
    DELETED = "deleted"


@dataclass(frozen=True)
class RegistryEvent:
    """Change notification sent to subscribers."""

    kind: RegistryEventKind
    exhibit_id: str
    exhibit_number: str


@dataclass
class CreateResult:
    """Outcome of creating or renumbering an exhibit."""

    exhibit: Optional[Exhibit] = None
    error: Optional[ExhibitError] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.exhibit is not None


@dataclass
class AttachResult:
    """Outcome of attaching a file to an exhibit."""

    exhibit: Optional[Exhibit] = None
    exhibit_file: Optional[ExhibitFile] = None
    created: bool = False  # The exhibit did not exist before this call
    attached: bool = False  # A new file link was appended
    error: Optional[ExhibitError] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.exhibit is not None


@dataclass
class AutoAssignSummary:
    """Counts from a batch auto-detection pass."""

    created: int = 0  # Exhibits created
    attached: int = 0  # Files attached
    skipped: int = 0  # Files already linked to an exhibit
    unmatched: int = 0  # Files with no detectable identifier
    failed: int = 0  # Files the registry refused to attach
    assignments: dict[str, str] = field(default_factory=dict)  # file_id -> exhibit number

    @property
    def total(self) -> int:
        return self.attached + self.skipped + self.unmatched + self.failed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "created": self.created,
            "attached": self.attached,
            "skipped": self.skipped,
            "unmatched": self.unmatched,
            "failed": self.failed,
            "assignments": dict(self.assignments),
        }


class ExhibitRegistry:
    """Owns the exhibits of one case and enforces their invariants.

    - exhibit numbers are unique within the case
    - at most one file per exhibit is primary
    - display order is derived from the exhibit number, never stored
    """

    def __init__(
        self,
        case_id: str = "",
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize an empty registry.

        Args:
            case_id: Owning case
            settings: Settings (global settings when omitted)
            clock: Time source, for tests
        """
        self.case_id = case_id
        self.settings = settings or get_settings()
        self._clock = clock or datetime.now
        self._exhibits: dict[str, Exhibit] = {}
        self._by_number: dict[str, str] = {}  # exhibit number -> exhibit id
        self._listeners: list[Callable[[RegistryEvent], None]] = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._exhibits)

    def __contains__(self, exhibit_id: object) -> bool:
        return exhibit_id in self._exhibits

    def __iter__(self) -> Iterator[Exhibit]:
        return iter(self.list_sorted())

    def locked(self) -> threading.RLock:
        """The registry lock, for readers that need a consistent view.

        Usage:
            with registry.locked():
                exhibit = registry.find_by_number("12B")
                files = list(exhibit.files)
        """
        return self._lock

    # ========== Queries ==========

    def get(self, exhibit_id: str) -> Optional[Exhibit]:
        """Get an exhibit by internal ID."""
        return self._exhibits.get(exhibit_id)

    def find_by_number(self, identifier: IdentifierInput) -> Optional[Exhibit]:
        """Get an exhibit by its exhibit number ("12b" and "12B" are the same)."""
        exhibit_id = self._by_number.get(_number_key(identifier))
        if exhibit_id is None:
            return None
        return self._exhibits.get(exhibit_id)

    def exhibit_for_file(self, file_id: str) -> Optional[Exhibit]:
        """Get the first exhibit (in display order) holding a file."""
        for exhibit in self.list_sorted():
            if exhibit.get_file(file_id) is not None:
                return exhibit
        return None

    def files_for(self, identifier: IdentifierInput) -> list[ExhibitFile]:
        """Get the files attached to an exhibit number."""
        exhibit = self.find_by_number(identifier)
        return list(exhibit.files) if exhibit else []

    def list_sorted(self) -> list[Exhibit]:
        """
        List exhibits in display order.

        Valid numbers sort by (number, letter); malformed numbers follow,
        ordered by their raw text. A new list is built on every call.
        """
        with self._lock:
            exhibits = list(self._exhibits.values())
        return sorted(exhibits, key=lambda e: e.identifier.sort_key)

    def identifiers(self) -> list[Identifier]:
        """Valid identifiers currently assigned, in display order."""
        return [
            e.identifier for e in self.list_sorted()
            if isinstance(e.identifier, Identifier)
        ]

    def next_identifier(self) -> Identifier:
        """
        Propose an unused identifier for a new exhibit.

        Malformed exhibit numbers do not take part in the numeric maximum;
        they cannot collide with a proposal since proposals always parse.

        Raises:
            SequencerExhaustedError: Only when a max_number ceiling is configured
        """
        with self._lock:
            return next_identifier(
                self.identifiers(),
                max_number=self.settings.exhibits.max_number,
            )

    # ========== Mutations ==========

    def create(
        self,
        number: int,
        letter: str,
        title: str = "",
        description: str = "",
        exhibit_type: Optional[Union[ExhibitType, str]] = None,
        is_key_evidence: bool = False,
    ) -> CreateResult:
        """
        Create an empty (draft) exhibit.

        Args:
            number: Exhibit number (>= 1)
            letter: Exhibit letter
            title: Title (defaults to "Exhibit <number>")
            description: Longer description
            exhibit_type: Kind of evidence (default from settings)
            is_key_evidence: Key evidence flag

        Returns:
            CreateResult with the exhibit, or an InvalidIdentifierError /
            InvalidExhibitTypeError / DuplicateIdentifierError
        """
        try:
            identifier = make_identifier(number, letter)
            kind = self._exhibit_type(exhibit_type)
        except (InvalidIdentifierError, InvalidExhibitTypeError) as e:
            return CreateResult(error=e)

        with self._lock:
            key = str(identifier)
            if key in self._by_number:
                logger.debug(f"Rejected duplicate exhibit {key} in case {self.case_id}")
                return CreateResult(error=DuplicateIdentifierError(key))

            exhibit = self._insert(
                key,
                title=title,
                description=description,
                exhibit_type=kind,
                is_key_evidence=is_key_evidence,
            )

        self._notify(RegistryEventKind.CREATED, exhibit)
        return CreateResult(exhibit=exhibit)

    def create_from_input(self, raw: str, **metadata: Any) -> CreateResult:
        """Create an exhibit from a typed identifier such as "12b"."""
        parsed = parse(raw)
        if not isinstance(parsed, Identifier):
            return CreateResult(error=InvalidIdentifierError(str(raw)))
        return self.create(parsed.number, parsed.letter, **metadata)

    def attach_file(
        self,
        file_id: str,
        identifier: IdentifierInput,
        as_primary: bool = False,
        page_number: Optional[int] = None,
        section: Optional[str] = None,
    ) -> AttachResult:
        """
        Attach a file to the exhibit with the given number.

        The exhibit is created first when missing. Attaching a file that is
        already in the exhibit keeps a single link (page and section are
        refreshed when given). With ``as_primary`` the previous primary file
        is demoted in the same step.

        Args:
            file_id: ID of the externally owned file
            identifier: Exhibit number
            as_primary: Make this the exhibit's primary file
            page_number: Default page for citations of this file
            section: Optional section label

        Returns:
            AttachResult
        """
        parsed = _coerce(identifier)
        key = str(parsed)
        events: list[RegistryEventKind] = []

        with self._lock:
            exhibit = self.find_by_number(parsed)
            created = False

            if exhibit is None:
                # Malformed numbers may be attached to, but never created
                if not parsed.is_valid:
                    return AttachResult(error=InvalidIdentifierError(key))
                try:
                    kind = self._exhibit_type(None)
                except InvalidExhibitTypeError as e:
                    return AttachResult(error=e)
                exhibit = self._insert(key, exhibit_type=kind)
                created = True
                events.append(RegistryEventKind.CREATED)

            now = self._clock()
            link = exhibit.get_file(file_id)
            attached = link is None

            if link is None:
                link = ExhibitFile(
                    file_id=file_id,
                    exhibit_id=exhibit.id,
                    page_number=page_number,
                    section=section,
                    added_at=now,
                )
                exhibit.files.append(link)
            else:
                if page_number is not None:
                    link.page_number = page_number
                if section is not None:
                    link.section = section

            if as_primary:
                for other in exhibit.files:
                    other.is_primary = other is link

            exhibit.updated_at = now
            events.append(RegistryEventKind.FILE_ATTACHED)

        logger.debug(
            f"Attached file {file_id} to exhibit {key}"
            f"{' (new exhibit)' if created else ''}{' as primary' if as_primary else ''}"
        )
        for kind in events:
            self._notify(kind, exhibit)

        return AttachResult(
            exhibit=exhibit,
            exhibit_file=link,
            created=created,
            attached=attached,
        )

    def detach_file(self, exhibit_id: str, file_id: str) -> bool:
        """
        Remove a file from an exhibit.

        Returns:
            True if removed, False if the exhibit or link was not found
        """
        with self._lock:
            exhibit = self._exhibits.get(exhibit_id)
            if exhibit is None:
                return False

            link = exhibit.get_file(file_id)
            if link is None:
                return False

            exhibit.files.remove(link)
            exhibit.updated_at = self._clock()

        self._notify(RegistryEventKind.FILE_DETACHED, exhibit)
        return True

    def delete(self, exhibit_id: str) -> None:
        """Delete an exhibit and its file links. Unknown IDs are ignored."""
        with self._lock:
            exhibit = self._exhibits.pop(exhibit_id, None)
            if exhibit is None:
                return
            self._by_number.pop(_number_key(exhibit.exhibit_number), None)
            exhibit.files.clear()

        logger.debug(f"Deleted exhibit {exhibit.exhibit_number} from case {self.case_id}")
        self._notify(RegistryEventKind.DELETED, exhibit)

    def set_key_evidence(self, exhibit_id: str, flag: bool) -> Optional[Exhibit]:
        """
        Set or clear the key evidence flag.

        Returns:
            Updated exhibit or None if not found
        """
        with self._lock:
            exhibit = self._exhibits.get(exhibit_id)
            if exhibit is None:
                return None
            exhibit.is_key_evidence = bool(flag)
            exhibit.updated_at = self._clock()

        self._notify(RegistryEventKind.UPDATED, exhibit)
        return exhibit

    def update(
        self,
        exhibit_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        exhibit_type: Optional[Union[ExhibitType, str]] = None,
    ) -> Optional[Exhibit]:
        """
        Update exhibit metadata.

        The type is validated before anything changes.

        Returns:
            Updated exhibit or None if not found

        Raises:
            InvalidExhibitTypeError: If exhibit_type is not a known type
        """
        kind = self._exhibit_type(exhibit_type) if exhibit_type is not None else None

        with self._lock:
            exhibit = self._exhibits.get(exhibit_id)
            if exhibit is None:
                return None

            if title is not None:
                exhibit.title = title.strip() or self._default_title(exhibit.exhibit_number)
            if description is not None:
                exhibit.description = description.strip()
            if kind is not None:
                exhibit.exhibit_type = kind
            exhibit.updated_at = self._clock()

        self._notify(RegistryEventKind.UPDATED, exhibit)
        return exhibit

    def renumber(self, exhibit_id: str, identifier: IdentifierInput) -> CreateResult:
        """
        Give an exhibit a new number.

        Existing citations of the old number stop resolving. A default title
        follows the new number.

        Returns:
            CreateResult with the exhibit, or the reason it was refused
        """
        parsed = _coerce(identifier)
        if not isinstance(parsed, Identifier):
            return CreateResult(error=InvalidIdentifierError(str(parsed)))

        new_key = str(parsed)

        with self._lock:
            exhibit = self._exhibits.get(exhibit_id)
            if exhibit is None:
                return CreateResult(error=ExhibitNotFoundError(exhibit_id))

            old_key = _number_key(exhibit.exhibit_number)
            if new_key == old_key:
                return CreateResult(exhibit=exhibit)
            if new_key in self._by_number:
                return CreateResult(error=DuplicateIdentifierError(new_key))

            del self._by_number[old_key]
            self._by_number[new_key] = exhibit.id
            if exhibit.title == self._default_title(exhibit.exhibit_number):
                exhibit.title = self._default_title(new_key)
            exhibit.exhibit_number = new_key
            exhibit.updated_at = self._clock()

        logger.debug(f"Renumbered exhibit {old_key} -> {new_key}")
        self._notify(RegistryEventKind.RENUMBERED, exhibit)
        return CreateResult(exhibit=exhibit)

    def auto_assign(
        self,
        files: Iterable[FileRecord],
        detector: Optional[ExhibitDetector] = None,
    ) -> AutoAssignSummary:
        """
        Attach unassigned files to exhibits detected from their names.

        Files are applied one at a time. A file becomes primary when its
        exhibit had no files yet, and files that detect the same new number
        end up grouped in one exhibit.

        Args:
            files: File records from the file-management layer
            detector: Detector to use (default ExhibitDetector)

        Returns:
            AutoAssignSummary with per-outcome counts
        """
        detector = detector or ExhibitDetector()
        summary = AutoAssignSummary()

        for file_record, identifier in detector.detect_many(files):
            with self._lock:
                if self.exhibit_for_file(file_record.id) is not None:
                    summary.skipped += 1
                    continue

                if identifier is None:
                    summary.unmatched += 1
                    continue

                existing = self.find_by_number(identifier)
                result = self.attach_file(
                    file_record.id,
                    identifier,
                    as_primary=existing is None or existing.is_draft,
                )

            if not result.success:
                logger.warning(f"Could not assign {file_record.name} to exhibit {identifier}: {result.error}")
                summary.failed += 1
                continue

            if result.created:
                summary.created += 1
            if result.attached:
                summary.attached += 1
            summary.assignments[file_record.id] = str(identifier)

        logger.debug(
            f"Auto-assign for case {self.case_id}: {summary.created} created, "
            f"{summary.attached} attached, {summary.skipped} skipped, {summary.unmatched} unmatched, "
            f"{summary.failed} failed"
        )
        return summary

    # ========== Notifications ==========

    def subscribe(self, listener: Callable[[RegistryEvent], None]) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: RegistryEventKind, exhibit: Exhibit) -> None:
        event = RegistryEvent(kind=kind, exhibit_id=exhibit.id, exhibit_number=exhibit.exhibit_number)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Registry listener failed on {kind.value} {exhibit.exhibit_number}: {e}")

    # ========== Internals ==========

    def _default_title(self, exhibit_number: str) -> str:
        return f"{self.settings.exhibits.title_prefix}{exhibit_number}"

    def _exhibit_type(self, value: Optional[Union[ExhibitType, str]]) -> ExhibitType:
        """Validate an exhibit type; None means the configured default."""
        if value is None:
            value = self.settings.exhibits.default_type
        if isinstance(value, ExhibitType):
            return value
        if not isinstance(value, str):
            raise InvalidExhibitTypeError(str(value))
        try:
            return ExhibitType(value.strip().lower())
        except ValueError:
            raise InvalidExhibitTypeError(value) from None

    def _insert(
        self,
        key: str,
        title: str = "",
        description: str = "",
        exhibit_type: ExhibitType = ExhibitType.DOCUMENT,
        is_key_evidence: bool = False,
    ) -> Exhibit:
        """Add a new exhibit. Caller holds the lock and has checked uniqueness."""
        exhibit = Exhibit.new(
            exhibit_number=key,
            case_id=self.case_id,
            title=title.strip() or self._default_title(key),
            description=description.strip(),
            exhibit_type=exhibit_type,
            is_key_evidence=is_key_evidence,
            now=self._clock(),
        )
        self._exhibits[exhibit.id] = exhibit
        self._by_number[key] = exhibit.id
        logger.debug(f"Created exhibit {key} in case {self.case_id}")
        return exhibit

    def _restore(self, exhibit: Exhibit) -> bool:
        """Add a previously stored exhibit, normalizing its number."""
        parsed = parse(exhibit.exhibit_number)
        key = str(parsed) if parsed.is_valid else exhibit.exhibit_number

        if key in self._by_number or exhibit.id in self._exhibits:
            logger.warning(f"Skipping duplicate stored exhibit {exhibit.exhibit_number} ({exhibit.id})")
            return False

        exhibit.exhibit_number = key
        exhibit.case_id = exhibit.case_id or self.case_id

        # Keep only the last primary flag
        primaries = [f for f in exhibit.files if f.is_primary]
        for stale in primaries[:-1]:
            stale.is_primary = False

        self._exhibits[exhibit.id] = exhibit
        self._by_number[key] = exhibit.id
        return True

    # ========== Serialization ==========

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "case_id": self.case_id,
            "exhibits": [e.to_dict() for e in self.list_sorted()],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "ExhibitRegistry":
        """Create from dictionary."""
        registry = cls(case_id=data.get("case_id", ""), settings=settings, clock=clock)
        for row in data.get("exhibits") or []:
            try:
                exhibit = Exhibit.from_dict(row)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed stored exhibit: {e}")
                continue
            registry._restore(exhibit)
        return registry


def _coerce(identifier: IdentifierInput) -> ParsedIdentifier:
    if isinstance(identifier, (Identifier, InvalidIdentifier)):
        return identifier
    return parse(identifier)


def _number_key(identifier: IdentifierInput) -> str:
    """Uniqueness key: normalized form when valid, raw text otherwise."""
    return str(_coerce(identifier))
