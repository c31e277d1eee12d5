"""Tests for exhibit snapshot storage."""

import pytest
import yaml

from exhibit_desk.exceptions import ExhibitStorageError
from exhibit_desk.storage import (
    CITATIONS_FILE,
    REGISTRY_FILE,
    ExhibitStorage,
    init_exhibit_storage,
)


class TestExhibitStorage:
    """Tests for ExhibitStorage."""

    def test_init_creates_directory(self, sample_case_dir):
        """Initialization creates exhibits/ and an empty registry."""
        storage = init_exhibit_storage(sample_case_dir, case_id="CASE-9")

        assert (sample_case_dir / "exhibits").is_dir()
        assert (sample_case_dir / "exhibits" / REGISTRY_FILE).exists()
        assert storage.is_initialized
        assert storage.load_registry().case_id == "CASE-9"

    def test_init_keeps_existing_registry(self, sample_case_dir):
        """Running init twice does not wipe exhibits."""
        storage = init_exhibit_storage(sample_case_dir)
        registry = storage.load_registry()
        registry.create(1, "A")
        storage.save_registry(registry)

        init_exhibit_storage(sample_case_dir, case_id="OTHER")

        assert len(storage.load_registry()) == 1

    def test_case_id_defaults_to_directory(self, sample_case_dir):
        storage = ExhibitStorage(sample_case_dir)

        assert not storage.is_initialized
        assert storage.load_registry().case_id == "test_case"

    def test_registry_round_trip(self, sample_case_dir, populated_registry, settings):
        """Saved exhibits load back with their files."""
        storage = ExhibitStorage(sample_case_dir, settings=settings)

        storage.save_registry(populated_registry)
        loaded = storage.load_registry()

        assert [e.exhibit_number for e in loaded.list_sorted()] == ["1A", "1B", "2A"]
        assert loaded.find_by_number("1A").primary_file.file_id == "file-lease"
        assert loaded.settings is settings

    def test_registry_file_is_readable_yaml(self, sample_case_dir, populated_registry):
        """The snapshot is plain YAML in display order."""
        storage = ExhibitStorage(sample_case_dir)
        storage.save_registry(populated_registry)

        with open(storage.registry_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        assert data["case_id"] == "TEST-001"
        assert [e["exhibit_number"] for e in data["exhibits"]] == ["1A", "1B", "2A"]

    def test_resolver_round_trip(self, sample_case_dir, populated_registry, resolver):
        """Citation history is saved next to the registry."""
        storage = ExhibitStorage(sample_case_dir)
        resolver.resolve("1A:2")

        storage.save_resolver(resolver)
        loaded = storage.load_resolver(populated_registry)

        assert (sample_case_dir / "exhibits" / CITATIONS_FILE).exists()
        assert loaded.get_history("1A:2").access_count == 1
        assert loaded.registry is populated_registry

    def test_missing_history_is_empty(self, sample_case_dir, registry):
        storage = ExhibitStorage(sample_case_dir)

        assert storage.load_resolver(registry).history() == []

    def test_corrupted_yaml_raises(self, sample_case_dir):
        """Unparseable snapshots raise ExhibitStorageError."""
        storage = init_exhibit_storage(sample_case_dir)
        storage.registry_path.write_text("exhibits: [unclosed", encoding="utf-8")

        with pytest.raises(ExhibitStorageError):
            storage.load_registry()

    def test_non_mapping_raises(self, sample_case_dir):
        """A snapshot that is not a mapping is rejected."""
        storage = init_exhibit_storage(sample_case_dir)
        storage.registry_path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ExhibitStorageError, match="Unexpected content"):
            storage.load_registry()
