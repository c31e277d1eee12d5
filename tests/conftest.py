"""Shared pytest fixtures for Exhibit Desk tests."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest


class FakeClock:
    """Clock that advances one second per reading."""

    def __init__(self, start: datetime = datetime(2025, 1, 15, 10, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop the global settings so environment changes don't leak between tests."""
    from exhibit_desk.config.settings import configure

    configure(None)
    yield
    configure(None)


@pytest.fixture
def settings():
    """Default settings, independent of the environment."""
    from exhibit_desk.config.settings import Settings

    return Settings()


@pytest.fixture
def clock() -> FakeClock:
    """Deterministic clock."""
    return FakeClock()


@pytest.fixture
def registry(settings, clock):
    """An empty registry for case TEST-001."""
    from exhibit_desk.registry import ExhibitRegistry

    return ExhibitRegistry(case_id="TEST-001", settings=settings, clock=clock)


@pytest.fixture
def populated_registry(registry):
    """Registry holding exhibits 1A, 1B and 2A, with files on 1A and 2A."""
    registry.create(1, "A", title="Lease agreement")
    registry.create(1, "B", title="Rent ledger")
    registry.create(2, "A", title="Photo of unit", exhibit_type="photo")

    registry.attach_file("file-lease", "1A", as_primary=True)
    registry.attach_file("file-photo", "2A", page_number=3)
    return registry


@pytest.fixture
def resolver(registry, settings, clock):
    """Resolver bound to the empty registry fixture."""
    from exhibit_desk.citations import CitationResolver

    return CitationResolver(registry, settings=settings, clock=clock)


@pytest.fixture
def sample_files():
    """File records as handed over by the file-management layer."""
    from exhibit_desk.models import FileRecord

    return [
        FileRecord(id="f1", name="Exhibit 12-B_contract.pdf", project_id="P1"),
        FileRecord(id="f2", name="12b_contract_signature_page.pdf", project_id="P1"),
        FileRecord(id="f3", name="3A photo of damage.jpg", project_id="P1"),
        FileRecord(id="f4", name="meeting notes.docx", project_id="P1"),
    ]


@pytest.fixture
def sample_case_dir(tmp_path: Path) -> Path:
    """Create an empty case directory."""
    case_dir = tmp_path / "test_case"
    case_dir.mkdir()
    return case_dir


@pytest.fixture
def sample_registry_dict() -> dict:
    """Stored registry data, including a malformed legacy number."""
    return {
        "case_id": "TEST-001",
        "exhibits": [
            {
                "id": "ex-2",
                "exhibit_number": "2a",
                "title": "Photo",
                "exhibit_type": "photo",
                "files": [
                    {"file_id": "f2", "exhibit_id": "ex-2", "is_primary": True, "page_number": 2},
                ],
                "created_at": "2025-01-15T10:00:00",
                "updated_at": "2025-01-15T10:00:00",
            },
            {
                "id": "ex-legacy",
                "exhibit_number": "Exhibit A",
                "title": "Old style exhibit",
                "files": [],
            },
            {
                "id": "ex-1",
                "exhibit_number": "1A",
                "title": "Contract",
                "exhibit_type": "document",
                "is_key_evidence": True,
                "files": [
                    {"file_id": "f1", "exhibit_id": "ex-1", "is_primary": False},
                ],
            },
        ],
    }
