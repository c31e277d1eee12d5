"""Tests for citation parsing, resolution and history."""

import threading

import pytest

from exhibit_desk.citations import CitationResolver, format_reference, parse_reference
from exhibit_desk.identifiers import Identifier
from exhibit_desk.models import CitationReference, CitationTarget, NotFound, NotFoundReason


class TestParseReference:
    """Tests for parse_reference()."""

    def test_identifier_only(self):
        assert parse_reference("12b") == CitationReference(Identifier(12, "B"))

    def test_identifier_and_page(self):
        assert parse_reference(" 12B:4 ") == CitationReference(Identifier(12, "B"), page=4)

    @pytest.mark.parametrize("text", [
        "",
        "12",
        "12B:",
        "12B:0",
        "12B:-1",
        "12B:four",
        "12B:4:5",
        "Exhibit A:3",
        ":4",
    ])
    def test_malformed(self, text):
        """Malformed references give None."""
        assert parse_reference(text) is None

    def test_str_is_normalized(self):
        """A parsed reference prints in canonical form."""
        assert str(parse_reference("007c:09")) == "7C:9"

    def test_format_reference(self):
        assert format_reference(Identifier(12, "B")) == "12B"
        assert format_reference("12B", 4) == "12B:4"


class TestResolve:
    """Tests for CitationResolver.resolve()."""

    @pytest.fixture
    def case(self, registry):
        """12B has a primary file P; 7A is a draft."""
        registry.create(12, "B", title="Contract")
        registry.attach_file("P", "12B", as_primary=True)
        registry.attach_file("Q", "12B", page_number=9)
        registry.create(7, "A", title="Pending")
        return registry

    def test_page_from_reference(self, case, resolver):
        """'12B:4' resolves to the primary file at page 4."""
        result = resolver.resolve("12B:4")

        assert isinstance(result, CitationTarget)
        assert result.found
        assert result.file_id == "P"
        assert result.page == 4
        assert result.exhibit_number == "12B"

    def test_no_page(self, case, resolver):
        """'12B' resolves to the primary file with no page."""
        result = resolver.resolve("12B")

        assert result.file_id == "P"
        assert result.page is None

    def test_case_insensitive(self, case, resolver):
        """Lowercase references resolve the same exhibit."""
        assert resolver.resolve("12b:4").file_id == "P"

    def test_draft_has_no_files(self, case, resolver):
        """A draft exhibit gives NotFound(no_files)."""
        result = resolver.resolve("7A")

        assert isinstance(result, NotFound)
        assert not result.found
        assert result.reason == NotFoundReason.NO_FILES

    def test_unknown_exhibit(self, case, resolver):
        """An unused number gives NotFound(no_exhibit)."""
        assert resolver.resolve("99Z").reason == NotFoundReason.NO_EXHIBIT

    def test_malformed(self, case, resolver):
        """Unparseable text gives NotFound(malformed) without raising."""
        result = resolver.resolve("12B:abc")

        assert result.reason == NotFoundReason.MALFORMED
        assert result.reference == "12B:abc"

    def test_non_string(self, resolver):
        """Non-string input is reported as malformed."""
        assert resolver.resolve(None).reason == NotFoundReason.MALFORMED

    def test_deleted_exhibit(self, case, resolver):
        """After deletion the citation no longer resolves."""
        case.delete(case.find_by_number("12B").id)

        assert resolver.resolve("12B:4").reason == NotFoundReason.NO_EXHIBIT

    def test_falls_back_to_first_file(self, registry, resolver):
        """Without a primary file the first attached file is used."""
        registry.attach_file("only", "3A", page_number=2)
        registry.attach_file("second", "3A")

        result = resolver.resolve("3A")

        assert result.file_id == "only"
        assert result.page == 2

    def test_cited_page_overrides_file_page(self, registry, resolver):
        """The cited page wins over the file's own default page."""
        registry.attach_file("only", "3A", page_number=2)

        assert resolver.resolve("3A:7").page == 7

    def test_primary_change_is_seen(self, case, resolver):
        """Resolution reflects the registry at call time."""
        case.attach_file("Q", "12B", as_primary=True)

        result = resolver.resolve("12B")

        assert result.file_id == "Q"
        assert result.page == 9

    def test_waits_for_registry_lock(self, registry, resolver):
        """Resolution sees a detach made while it waited on the registry lock."""
        registry.attach_file("P", "1A")
        results = []

        with registry.locked():
            worker = threading.Thread(target=lambda: results.append(resolver.resolve("1A")))
            worker.start()
            worker.join(timeout=0.2)
            assert worker.is_alive()
            registry.detach_file(registry.find_by_number("1A").id, "P")

        worker.join()
        assert results[0].reason == NotFoundReason.NO_FILES


class TestHistory:
    """Tests for citation history."""

    @pytest.fixture
    def case(self, registry):
        registry.attach_file("a", "1A", as_primary=True)
        registry.attach_file("b", "2A", as_primary=True)
        return registry

    def test_counts_successful_resolutions(self, case, resolver):
        """Each successful resolution increments the access count."""
        resolver.resolve("1A:3")
        resolver.resolve("1A:3")

        record = resolver.get_history("1A:3")
        assert record.access_count == 2
        assert record.target_file_id == "a"
        assert record.target_page == 3

    def test_first_resolution_creates_row(self, case, resolver):
        """A new reference starts its history at one access."""
        assert resolver.get_history("1A:3") is None

        resolver.resolve("1A:3")

        assert resolver.get_history("1A:3").access_count == 1

    def test_deleted_exhibit_keeps_history(self, case, resolver):
        """Deleting an exhibit leaves earlier history rows untouched."""
        resolver.resolve("1A")
        before = resolver.get_history("1A").to_dict()

        case.delete(case.find_by_number("1A").id)
        result = resolver.resolve("1A")

        assert result.reason == NotFoundReason.NO_EXHIBIT
        assert resolver.get_history("1A").to_dict() == before

    def test_failures_not_recorded(self, case, resolver):
        """NotFound outcomes leave no history."""
        resolver.resolve("9Z")
        resolver.resolve("junk")

        assert resolver.history() == []

    def test_keyed_by_literal_text(self, case, resolver):
        """Different spellings get separate rows."""
        resolver.resolve("1A")
        resolver.resolve("1A:2")

        assert {r.exhibit_reference for r in resolver.history()} == {"1A", "1A:2"}

    def test_most_recent_first(self, case, resolver):
        """history() is ordered by last access."""
        resolver.resolve("1A")
        resolver.resolve("2A")
        resolver.resolve("1A")

        assert [r.exhibit_reference for r in resolver.history()] == ["1A", "2A"]

    def test_recent_uses_configured_limit(self, case, resolver):
        """recent() defaults to the configured limit."""
        resolver.settings.citations.recent_history_limit = 2
        for page in range(1, 6):
            resolver.resolve(f"1A:{page}")

        assert [r.exhibit_reference for r in resolver.recent()] == ["1A:5", "1A:4"]
        assert len(resolver.recent(limit=10)) == 5

    def test_clear_history(self, case, resolver):
        resolver.resolve("1A")

        resolver.clear_history()

        assert resolver.history() == []
        assert resolver.get_history("1A") is None

    def test_round_trip(self, case, resolver, settings):
        """History survives to_dict()/from_dict()."""
        resolver.resolve("1A")
        resolver.resolve("2A:4")

        restored = CitationResolver.from_dict(resolver.to_dict(), case, settings=settings)

        assert [r.exhibit_reference for r in restored.history()] == ["2A:4", "1A"]
        assert restored.get_history("2A:4").target_page == 4

    def test_from_dict_skips_bad_rows(self, case, settings):
        """Rows without a reference are dropped."""
        data = {"history": [{"access_count": 3}, {"exhibit_reference": "1A", "access_count": 1}]}

        restored = CitationResolver.from_dict(data, case, settings=settings)

        assert [r.exhibit_reference for r in restored.history()] == ["1A"]

    def test_from_dict_skips_non_mapping_rows(self, case, settings):
        data = {"history": ["12B", None, {"exhibit_reference": "1A"}]}

        restored = CitationResolver.from_dict(data, case, settings=settings)

        assert [r.exhibit_reference for r in restored.history()] == ["1A"]

    def test_from_dict_null_history(self, case, settings):
        assert CitationResolver.from_dict({"history": None}, case, settings=settings).history() == []


class TestInsert:
    """Tests for CitationResolver.insert()."""

    def test_callback_on_success(self, registry, settings, clock):
        """A resolvable reference is handed to the editor in canonical form."""
        registry.attach_file("P", "12B", as_primary=True)
        inserted = []
        resolver = CitationResolver(
            registry,
            on_insert=lambda text, target: inserted.append((text, target.file_id)),
            settings=settings,
            clock=clock,
        )

        result = resolver.insert(" 12b:4 ")

        assert result.found
        assert inserted == [("12B:4", "P")]

    def test_no_callback_on_failure(self, registry, settings):
        """Unresolvable references are not inserted."""
        inserted = []
        resolver = CitationResolver(
            registry,
            on_insert=lambda text, target: inserted.append(text),
            settings=settings,
        )

        result = resolver.insert("12B")

        assert result.reason == NotFoundReason.NO_EXHIBIT
        assert inserted == []

    def test_without_callback(self, registry, resolver):
        """insert() works with no editor attached."""
        registry.attach_file("P", "1A")

        assert resolver.insert("1A").file_id == "P"
