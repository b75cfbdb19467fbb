"""Tests for CLI commands."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch, mock_repository):
    """Current directory with one prose file and git replaced by a mock."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "notes.md").write_text("We utilize the cache.\n")
    with patch("unslop.session.GitRepository", return_value=mock_repository):
        yield tmp_path


class TestCLI:
    """Tests for CLI commands."""

    def test_cli_help(self, runner):
        """Test that CLI shows help."""
        from unslop.cli import cli

        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "scan" in result.output
        assert "remediate" in result.output

    def test_scan_writes_report(self, runner, workspace):
        """Test scanning explicit paths."""
        from unslop.cli import cli

        result = runner.invoke(cli, ["scan", "notes.md"])

        assert result.exit_code == 0
        assert "findings" in result.output
        assert (workspace / ".unslop" / "report.json").exists()

    def test_scan_nothing_in_scope(self, runner, workspace):
        """Test that an empty scope is a successful no-op."""
        from unslop.cli import cli

        result = runner.invoke(cli, ["scan", "logo.png"])

        assert result.exit_code == 0
        assert "Nothing to scan" in result.output
        assert not (workspace / ".unslop").exists()

    def test_scan_rejects_unknown_category(self, runner, workspace):
        from unslop.cli import cli

        result = runner.invoke(cli, ["scan", "--category", "bogus", "notes.md"])

        assert result.exit_code == 2
        assert "Unknown category" in result.output

    def test_scan_rejects_bad_pr_ref(self, runner, workspace):
        from unslop.cli import cli

        result = runner.invoke(cli, ["scan", "notes.md", "--pr", "not-a-ref"])

        assert result.exit_code == 1
        assert "OWNER/REPO#NUMBER" in result.output

    def test_remediate_without_report(self, runner, workspace):
        """Test the corrective message when no scan has run."""
        from unslop.cli import cli

        result = runner.invoke(cli, ["remediate"])

        assert result.exit_code == 1
        assert "No report found" in result.output

    def test_remediate_dry_run(self, runner, workspace):
        """Test that a dry run shows edits and leaves files alone."""
        from unslop.cli import cli

        runner.invoke(cli, ["scan", "notes.md"])
        result = runner.invoke(cli, ["remediate", "--dry-run"])

        assert result.exit_code == 0
        assert "Dry run" in result.output
        assert "1 edits planned" in result.output
        assert (workspace / "notes.md").read_text() == "We utilize the cache.\n"
        assert (workspace / ".unslop" / "report.json").exists()

    def test_remediate_apply(self, runner, workspace):
        """Test applying safe fixes and removing the report."""
        from unslop.cli import cli

        runner.invoke(cli, ["scan", "notes.md"])
        result = runner.invoke(cli, ["remediate"])

        assert result.exit_code == 0
        assert "report removed" in result.output
        assert (workspace / "notes.md").read_text() == "We use the cache.\n"
        assert not (workspace / ".unslop" / "report.json").exists()

    def test_remediate_category_notes_dropped_findings(self, runner, workspace):
        """Test that findings outside --category are reported when the report is removed."""
        from unslop.cli import cli

        (workspace / "notes.md").write_text("We utilize the cache.\nI hope this helps!\n")
        runner.invoke(cli, ["scan", "notes.md"])
        result = runner.invoke(cli, ["remediate", "--category", "vocabulary"])

        assert result.exit_code == 0
        assert "report removed" in result.output
        assert "1 unapplied findings" in result.output
        assert (workspace / "notes.md").read_text() == "We use the cache.\nI hope this helps!\n"

    def test_remediate_dirty_tree(self, runner, workspace, mock_repository):
        from unslop.cli import cli

        runner.invoke(cli, ["scan", "notes.md"])
        mock_repository.dirty_paths.return_value = ["notes.md"]
        result = runner.invoke(cli, ["remediate"])

        assert result.exit_code == 1
        assert "Commit or stash" in result.output

    def test_report_show_json(self, runner, workspace):
        from unslop.cli import cli

        runner.invoke(cli, ["scan", "notes.md"])
        result = runner.invoke(cli, ["report", "show", "--json"])

        assert result.exit_code == 0
        assert '"schema_version": 1' in result.output
        assert '"original_text": "utilize"' in result.output

    def test_config_validate_invalid(self, runner, tmp_path):
        """Test that config errors are listed and fail the command."""
        from unslop.cli import cli

        config_path = tmp_path / "unslop.yaml"
        config_path.write_text("pool:\n  max_concurrency: 99\nremediation:\n  rollback_strategy: tape\n")

        result = runner.invoke(cli, ["config", "validate", "--config", str(config_path)])

        assert result.exit_code == 1
        assert "max_concurrency" in result.output
        assert "rollback_strategy" in result.output

    def test_config_validate_valid(self, runner, tmp_path):
        from unslop.cli import cli

        config_path = tmp_path / "unslop.yaml"
        config_path.write_text("scan:\n  base_ref: develop\n")

        result = runner.invoke(cli, ["config", "validate", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "valid" in result.output.lower()


def test_version(runner):
    from unslop import __version__
    from unslop.cli import cli

    result = runner.invoke(cli, ["--version"])

    assert __version__ in result.output
