"""Citation data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..identifiers.grammar import Identifier


class NotFoundReason(str, Enum):
    """Why a citation could not be resolved."""

    MALFORMED = "malformed"  # Reference text does not parse
    NO_EXHIBIT = "no_exhibit"  # No exhibit with that number (or it was deleted)
    NO_FILES = "no_files"  # Exhibit exists but is still a draft


@dataclass(frozen=True)
class CitationReference:
    """A parsed citation such as ``12B`` or ``12B:4``."""

    identifier: Identifier
    page: Optional[int] = None

    def __str__(self) -> str:
        if self.page is None:
            return str(self.identifier)
        return f"{self.identifier}:{self.page}"


@dataclass(frozen=True)
class CitationTarget:
    """Successful resolution of a citation to a file and page."""

    file_id: str
    page: Optional[int] = None
    exhibit_id: Optional[str] = None
    exhibit_number: Optional[str] = None

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True)
class NotFound:
    """Resolution outcome for a citation with no target.

    This is a normal result; callers should decline to navigate.
    """

    reference: str
    reason: NotFoundReason

    @property
    def found(self) -> bool:
        return False


@dataclass
class CitationHistory:
    """Usage record for one literal citation string."""

    exhibit_reference: str
    target_file_id: Optional[str] = None
    target_page: Optional[int] = None
    last_accessed_at: datetime = field(default_factory=datetime.now)
    access_count: int = 0

    def record_access(self, target: CitationTarget, when: datetime) -> None:
        """Count one successful resolution."""
        self.target_file_id = target.file_id
        self.target_page = target.page
        self.last_accessed_at = when
        self.access_count += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "exhibit_reference": self.exhibit_reference,
            "target_file_id": self.target_file_id,
            "target_page": self.target_page,
            "last_accessed_at": self.last_accessed_at.isoformat(),
            "access_count": self.access_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CitationHistory":
        """Create from dictionary."""
        last_accessed = data.get("last_accessed_at")
        if isinstance(last_accessed, str):
            last_accessed = datetime.fromisoformat(last_accessed)

        return cls(
            exhibit_reference=str(data["exhibit_reference"]),
            target_file_id=data.get("target_file_id"),
            target_page=data.get("target_page"),
            last_accessed_at=last_accessed or datetime.now(),
            access_count=int(data.get("access_count", 0)),
        )
