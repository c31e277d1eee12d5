"""Exhibit data models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..identifiers.grammar import ParsedIdentifier, parse


class ExhibitType(str, Enum):
    """Kind of evidence an exhibit holds."""

    DOCUMENT = "document"
    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"
    PHYSICAL = "physical"
    DIGITAL = "digital"
    OTHER = "other"


class ExhibitState(str, Enum):
    """Derived lifecycle state of an exhibit."""

    DRAFT = "draft"  # No files attached yet
    POPULATED = "populated"


@dataclass
class FileRecord:
    """A file as described by the file-management layer.

    Only the id and name are ever read; file bytes stay with the owner.
    """

    id: str
    name: str
    project_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "project_id": self.project_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileRecord":
        """Create from dictionary."""
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            project_id=data.get("project_id"),
        )


@dataclass
class ExhibitFile:
    """Membership of one file in an exhibit."""

    file_id: str
    exhibit_id: str
    page_number: Optional[int] = None
    section: Optional[str] = None
    is_primary: bool = False
    added_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = {
            "file_id": self.file_id,
            "exhibit_id": self.exhibit_id,
            "is_primary": self.is_primary,
            "added_at": self.added_at.isoformat(),
        }
        if self.page_number is not None:
            result["page_number"] = self.page_number
        if self.section:
            result["section"] = self.section
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExhibitFile":
        """Create from dictionary."""
        added_at = data.get("added_at")
        if isinstance(added_at, str):
            added_at = datetime.fromisoformat(added_at)

        return cls(
            file_id=str(data["file_id"]),
            exhibit_id=str(data["exhibit_id"]),
            page_number=data.get("page_number"),
            section=data.get("section"),
            is_primary=bool(data.get("is_primary", False)),
            added_at=added_at or datetime.now(),
        )


@dataclass
class Exhibit:
    """An evidentiary grouping of files within one case.

    Attributes:
        id: Internal storage key, never reused
        exhibit_number: Human-facing identifier (e.g. "12B"), unique per case
        case_id: Owning case
        title: Short descriptive title
        description: Longer description
        exhibit_type: Kind of evidence
        is_key_evidence: Flag for key evidence
        files: Attached files in attachment order
        created_at: Creation time
        updated_at: Last modification time
    """

    id: str
    exhibit_number: str
    case_id: str = ""
    title: str = ""
    description: str = ""
    exhibit_type: ExhibitType = ExhibitType.DOCUMENT
    is_key_evidence: bool = False
    files: list[ExhibitFile] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def new(
        cls,
        exhibit_number: str,
        case_id: str = "",
        title: str = "",
        description: str = "",
        exhibit_type: ExhibitType = ExhibitType.DOCUMENT,
        is_key_evidence: bool = False,
        now: Optional[datetime] = None,
    ) -> "Exhibit":
        """Create a new exhibit with a generated ID and timestamps."""
        now = now or datetime.now()
        return cls(
            id=str(uuid.uuid4()),
            exhibit_number=exhibit_number,
            case_id=case_id,
            title=title,
            description=description,
            exhibit_type=ExhibitType(exhibit_type),
            is_key_evidence=is_key_evidence,
            created_at=now,
            updated_at=now,
        )

    @property
    def identifier(self) -> ParsedIdentifier:
        """Parsed form of the exhibit number."""
        return parse(self.exhibit_number)

    @property
    def is_draft(self) -> bool:
        """Check if no files are attached yet."""
        return not self.files

    @property
    def state(self) -> ExhibitState:
        return ExhibitState.DRAFT if self.is_draft else ExhibitState.POPULATED

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def primary_file(self) -> Optional[ExhibitFile]:
        """The file marked primary, if any."""
        for exhibit_file in self.files:
            if exhibit_file.is_primary:
                return exhibit_file
        return None

    def get_file(self, file_id: str) -> Optional[ExhibitFile]:
        """Get an attached file by ID."""
        for exhibit_file in self.files:
            if exhibit_file.file_id == file_id:
                return exhibit_file
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "exhibit_number": self.exhibit_number,
            "case_id": self.case_id,
            "title": self.title,
            "description": self.description,
            "exhibit_type": self.exhibit_type.value,
            "is_key_evidence": self.is_key_evidence,
            "files": [f.to_dict() for f in self.files],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Exhibit":
        """Create from dictionary."""
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        updated_at = data.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)

        return cls(
            id=str(data["id"]),
            exhibit_number=str(data["exhibit_number"]),
            case_id=data.get("case_id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            exhibit_type=ExhibitType(data.get("exhibit_type", "document")),
            is_key_evidence=bool(data.get("is_key_evidence", False)),
            files=[ExhibitFile.from_dict(f) for f in data.get("files") or []],
            created_at=created_at or datetime.now(),
            updated_at=updated_at or datetime.now(),
        )
