"""Integration tests for CLI commands."""

import json
from pathlib import Path

from typer.testing import CliRunner

from scopepath_cli.cli import app

runner = CliRunner()


def _scan_json(*args):
    result = runner.invoke(app, ["scan", *args, "--json"])
    assert result.exit_code == 0, result.stdout
    return json.loads(result.stdout)


class TestVersion:
    def test_version(self):
        """Test the --version option."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "ScopePath CLI v" in result.stdout


class TestScanCommand:
    """Tests for 'scopepath scan'."""

    def test_scan_json(self, sample_project: Path):
        """Test JSON output of scan."""
        records = _scan_json(str(sample_project / "Game"))

        assert [r["relative_path"] for r in records] == [
            "Core/Widget.cs",
            "Loose.cs",
            "Player.cs",
            "Utils/Helper.cs",
        ]
        assert records[0]["current_scope_name"] == "Legacy"
        assert records[0]["suggested_scope_name"] == "Game.Core"
        assert records[0]["needs_change"] is True
        assert records[1]["has_no_scope"] is True

    def test_scan_summary(self, sample_project: Path):
        """Test the summary line of scan."""
        result = runner.invoke(app, ["scan", str(sample_project / "Game")])

        assert result.exit_code == 0
        assert "Scan complete. 4 files found. 2 need change, 1 without scope, 0 conflicts." in result.stdout

    def test_scan_only_changes(self, sample_project: Path):
        """Test hiding files that are already correct."""
        records = _scan_json(str(sample_project / "Game"), "--only-changes")
        assert [r["relative_path"] for r in records] == ["Core/Widget.cs", "Loose.cs", "Utils/Helper.cs"]

    def test_scan_prefix_and_exclude(self, sample_project: Path):
        """Test scan with a prefix and an exclusion."""
        records = _scan_json(str(sample_project / "Game"), "--prefix", "Studio", "--exclude", "Core")
        assert records[0]["suggested_scope_name"] == "Studio.Game"

    def test_scan_project_root(self, sample_project: Path):
        """Test naming from a project root instead of the source folder."""
        records = _scan_json(
            str(sample_project / "Game"), "--no-use-source-as-root", "--root", str(sample_project)
        )
        assert records[0]["suggested_scope_name"] == f"{sample_project.name}.Game.Core"

    def test_scan_unknown_syntax(self, sample_project: Path):
        """Test scan with an unknown syntax preset."""
        result = runner.invoke(app, ["scan", str(sample_project / "Game"), "--syntax", "cobol"])
        assert result.exit_code != 0

    def test_scan_nonexistent_path(self):
        """Test scanning a non-existent path."""
        result = runner.invoke(app, ["scan", "/nonexistent/path"])
        assert result.exit_code != 0


class TestSuggestCommand:
    """Tests for 'scopepath suggest'."""

    def test_suggest(self, sample_project: Path):
        """Test suggesting a scope for one file."""
        game = sample_project / "Game"
        result = runner.invoke(
            app, ["suggest", str(game / "Core" / "Widget.cs"), "--root", str(game), "--prefix", "Studio"]
        )

        assert result.exit_code == 0
        assert result.stdout.splitlines()[0] == "Studio.Game.Core"
        assert "Conflict" not in result.stdout

    def test_suggest_warns_on_conflict(self, temp_dir: Path, write_source):
        """Test the conflict warning of suggest."""
        path = write_source("Proj/Utils/Utils.cs", "namespace Old;\npublic static class Utils {}\n")

        result = runner.invoke(app, ["suggest", str(path), "--root", str(temp_dir / "Proj")])

        assert result.exit_code == 0
        assert "Proj.Utils" in result.stdout
        assert "Conflict" in result.stdout


class TestPreviewCommand:
    """Tests for 'scopepath preview'."""

    def test_preview_lists_affected_files(self, sample_project: Path, snapshot):
        """Test that preview lists references without writing."""
        before = snapshot(sample_project)

        result = runner.invoke(app, ["preview", str(sample_project / "Game"), "--search", str(sample_project)])

        assert result.exit_code == 0
        assert "App/Report.cs" in result.stdout
        assert "FQ: Legacy.Widget" in result.stdout
        assert "2 file(s) to rename, 3 affected file(s)." in result.stdout
        assert snapshot(sample_project) == before


class TestApplyCommand:
    """Tests for 'scopepath apply'."""

    def test_apply(self, sample_project: Path):
        """Test applying all suggested renames."""
        result = runner.invoke(
            app, ["apply", str(sample_project / "Game"), "--search", str(sample_project), "-y"]
        )

        assert result.exit_code == 0
        assert (
            "Complete. 2/2 renamed, 5 file(s) modified, 3 reference(s) updated, "
            "2 unused import(s) removed." in result.stdout
        )
        main = (sample_project / "App" / "Main.cs").read_text()
        assert "using Game.Core;\nusing Game.Utils;\n" in main
        assert "using Legacy" not in main

    def test_apply_twice(self, sample_project: Path):
        """Test that a second apply finds nothing to do."""
        args = ["apply", str(sample_project / "Game"), "--search", str(sample_project), "-y"]
        runner.invoke(app, args)

        result = runner.invoke(app, args)

        assert result.exit_code == 0
        assert "No files need a new scope." in result.stdout

    def test_apply_cancelled(self, sample_project: Path, snapshot):
        """Test declining the confirmation."""
        before = snapshot(sample_project)

        result = runner.invoke(
            app, ["apply", str(sample_project / "Game"), "--search", str(sample_project)], input="n\n"
        )

        assert result.exit_code == 0
        assert "Cancelled" in result.stdout
        assert snapshot(sample_project) == before

    def test_apply_with_override(self, sample_project: Path):
        """Test a hand-edited scope for one file."""
        result = runner.invoke(
            app,
            [
                "apply", str(sample_project / "Game"),
                "--search", str(sample_project),
                "--set", "Core/Widget.cs=Game.Widgets",
                "--filter", "Core/*",
                "-y",
            ],
        )

        assert result.exit_code == 0
        assert "namespace Game.Widgets;" in (sample_project / "Game" / "Core" / "Widget.cs").read_text()
        assert "namespace Legacy.Utils" in (sample_project / "Game" / "Utils" / "Helper.cs").read_text()

    def test_apply_bad_override(self, sample_project: Path):
        """Test an override naming an unknown file."""
        result = runner.invoke(
            app,
            ["apply", str(sample_project / "Game"), "--search", str(sample_project), "--set", "Nope.cs=X", "-y"],
        )
        assert result.exit_code != 0

    def test_apply_include_unscoped(self, sample_project: Path):
        """Test adding a scope to an unscoped file."""
        result = runner.invoke(
            app,
            [
                "apply", str(sample_project / "Game"),
                "--search", str(sample_project),
                "--include-unscoped",
                "--filter", "Loose.cs",
                "-y",
            ],
        )

        assert result.exit_code == 0
        assert "namespace Game;" in (sample_project / "Game" / "Loose.cs").read_text()

    def test_apply_skips_conflicts(self, temp_dir: Path, write_source, snapshot):
        """Test that conflicting files are skipped by default."""
        write_source("Proj/Utils/Utils.cs", "namespace Old;\npublic static class Utils {}\n")
        before = snapshot(temp_dir)

        result = runner.invoke(app, ["apply", str(temp_dir / "Proj"), "--search", str(temp_dir), "-y"])

        assert result.exit_code == 0
        assert "Skipping" in result.stdout
        assert "No files need a new scope." in result.stdout
        assert snapshot(temp_dir) == before

    def test_apply_allow_conflicts(self, temp_dir: Path, write_source):
        """Test renaming a conflicting file on request."""
        path = write_source("Proj/Utils/Utils.cs", "namespace Old;\npublic static class Utils {}\n")

        result = runner.invoke(
            app, ["apply", str(temp_dir / "Proj"), "--search", str(temp_dir), "--allow-conflicts", "-y"]
        )

        assert result.exit_code == 0
        assert "namespace Proj.Utils;" in path.read_text()


class TestConfigCommands:
    """Tests for 'scopepath config'."""

    def test_set_show_reset(self, sample_project: Path):
        """Test saving, showing and resetting settings."""
        result = runner.invoke(app, ["config", "set", "--prefix", "Studio"])
        assert result.exit_code == 0
        assert "Saved" in result.stdout

        records = _scan_json(str(sample_project / "Game"))
        assert records[0]["suggested_scope_name"] == "Studio.Game.Core"

        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Studio" in result.stdout

        result = runner.invoke(app, ["config", "reset"])
        assert result.exit_code == 0
        records = _scan_json(str(sample_project / "Game"))
        assert records[0]["suggested_scope_name"] == "Game.Core"

    def test_set_without_options(self):
        """Test config set without any option."""
        result = runner.invoke(app, ["config", "set"])
        assert result.exit_code == 1

    def test_set_unknown_syntax(self):
        """Test config set with an unknown syntax preset."""
        result = runner.invoke(app, ["config", "set", "--syntax", "cobol"])
        assert result.exit_code != 0

    def test_saved_search_root(self, sample_project: Path):
        """Test apply using the saved search folder."""
        runner.invoke(app, ["config", "set", "--search", str(sample_project)])

        result = runner.invoke(app, ["apply", str(sample_project / "Game"), "-y"])

        assert result.exit_code == 0
        assert "Game.Core.Widget" in (sample_project / "App" / "Report.cs").read_text()
