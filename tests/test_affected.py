"""Tests for the read-only affected-file scan."""

from pathlib import Path

from scopepath_cli.affected import (
    check_file_for_references,
    scan_affected_files,
    scan_affected_files_for_multiple,
)
from scopepath_cli.models import SuggestionInput
from scopepath_cli.scanner import scan_scripts


def _records(project: Path, options: SuggestionInput):
    records = scan_scripts(project / "Game", options)
    return {r.relative_path: r for r in records}


class TestScanAffectedFiles:
    """Tests for scan_affected_files."""

    def test_widget_references(self, sample_project: Path, game_options: SuggestionInput):
        """Test the references found for the Widget file."""
        widget = _records(sample_project, game_options)["Core/Widget.cs"]

        reports = scan_affected_files(widget, sample_project)

        assert [(r.relative_path, r.references) for r in reports] == [
            ("App/Main.cs", ["using Legacy", "Type: Widget"]),
            ("App/Report.cs", ["FQ: Legacy.Widget"]),
        ]

    def test_import_without_usage_not_reported(self, sample_project: Path, game_options: SuggestionInput):
        """Test that an import alone is not a reference."""
        widget = _records(sample_project, game_options)["Core/Widget.cs"]
        paths = [r.relative_path for r in scan_affected_files(widget, sample_project)]
        assert "App/Settings.cs" not in paths

    def test_scan_never_writes(self, sample_project: Path, game_options: SuggestionInput, snapshot):
        """Test that scanning leaves every file untouched."""
        records = _records(sample_project, game_options)
        before = snapshot(sample_project)

        first = scan_affected_files(records["Core/Widget.cs"], sample_project)
        second = scan_affected_files(records["Core/Widget.cs"], sample_project)

        assert first == second
        assert snapshot(sample_project) == before

    def test_unscoped_record(self, sample_project: Path, game_options: SuggestionInput):
        """Test a record without a current scope."""
        loose = _records(sample_project, game_options)["Loose.cs"]
        assert scan_affected_files(loose, sample_project) == []

    def test_missing_search_root(self, sample_project: Path, game_options: SuggestionInput):
        """Test a search folder that does not exist."""
        widget = _records(sample_project, game_options)["Core/Widget.cs"]
        assert scan_affected_files(widget, sample_project / "missing") == []


class TestCheckFileForReferences:
    """Tests for the single-file check."""

    def test_qualified_references_deduplicated(self, temp_dir: Path, write_source):
        """Test that each qualified reference is listed once."""
        path = write_source("A.cs", "class A { Foo.W a; Foo.W b; Foo.Other c; }\n")
        report = check_file_for_references(path, "Foo", ["W"], temp_dir)
        assert report.references == ["FQ: Foo.W"]
        assert report.relative_path == "A.cs"

    def test_no_references(self, temp_dir: Path, write_source):
        """Test a file with no references."""
        path = write_source("A.cs", "using Foo;\nclass A { Other o; }\n")
        assert check_file_for_references(path, "Foo", ["W"], temp_dir) is None

    def test_unreadable_file(self, temp_dir: Path):
        """Test that an undecodable file is skipped."""
        path = temp_dir / "Bad.cs"
        path.write_bytes(b"\xff\xfe\xfd")
        assert check_file_for_references(path, "Foo", ["W"], temp_dir) is None


class TestScanMultiple:
    """Tests for scan_affected_files_for_multiple."""

    def test_selected_records_only(self, sample_project: Path, game_options: SuggestionInput):
        """Test that only selected records are scanned."""
        records = _records(sample_project, game_options)
        records["Utils/Helper.cs"].is_selected = True
        calls = []

        result = scan_affected_files_for_multiple(
            records.values(), sample_project, progress=lambda f, m: calls.append(f)
        )

        helper_path = records["Utils/Helper.cs"].file_path
        assert list(result) == [helper_path]
        assert [r.relative_path for r in result[helper_path]] == ["App/Main.cs"]
        assert result[helper_path][0].references == ["using Legacy.Utils", "Type: Helper"]
        assert calls == sorted(calls)
        assert calls[-1] == 1.0
