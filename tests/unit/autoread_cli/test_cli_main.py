"""Unit tests for the autoread operator CLI."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from autoread import __version__
from autoread_cli.console import console
from autoread_cli.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep long temp paths on one line so they can be matched."""
    monkeypatch.setattr(console, "width", 500)


@pytest.fixture
def cli_state_dir(state_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("AUTOREAD_STATE_DIR", str(state_dir))
    return state_dir


class TestVersion:
    """Tests for --version."""

    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"autoread version {__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "patterns" in result.output
        assert "locate" in result.output


class TestPatternsCommand:
    """Tests for 'autoread patterns'."""

    def test_defaults(self, project: Path):
        result = runner.invoke(app, ["patterns", str(project)])

        assert result.exit_code == 0
        assert "Source: built-in defaults" in result.output
        assert "AGENTS.md" in result.output
        assert "CONTRIBUTING.md" in result.output

    def test_local_file(self, project: Path):
        config = project / ".autoread"
        config.write_text("# ours\nNOTES.md\ndocs/\n")

        result = runner.invoke(app, ["patterns", str(project / "sub")])

        assert result.exit_code == 0
        assert f"Source: {config}" in result.output
        assert "NOTES.md" in result.output
        assert "docs/" in result.output
        assert "AGENTS.md" not in result.output

    def test_empty_local_file(self, project: Path):
        (project / "autoread").write_text("# nothing here\n")

        result = runner.invoke(app, ["patterns", str(project)])

        assert result.exit_code == 0
        assert "No patterns configured." in result.output

    def test_not_a_directory(self, tmp_path: Path):
        result = runner.invoke(app, ["patterns", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "Not a directory" in result.output


class TestLocateCommand:
    """Tests for 'autoread locate'."""

    def test_lists_entries(self, project: Path):
        agents = project / "AGENTS.md"
        agents.write_text("x")
        (project / "docs").mkdir()
        (project / "docs" / "a.md").write_text("a")
        (project / ".autoread").write_text("AGENTS.md\ndocs\n")

        result = runner.invoke(app, ["locate", str(project / "sub")])

        assert result.exit_code == 0
        assert "Autoread Entries" in result.output
        assert str(agents) in result.output
        assert "directory" in result.output

    def test_nothing_found(self, project: Path):
        result = runner.invoke(app, ["locate", str(project)])

        assert result.exit_code == 0
        assert "No autoread entries found." in result.output


class TestSeenCommands:
    """Tests for the 'autoread seen' group."""

    def test_mark_then_check(self, cli_state_dir: Path, project: Path):
        target = str(project / "AGENTS.md")

        marked = runner.invoke(app, ["seen", "mark", "sess1", target])
        checked = runner.invoke(app, ["seen", "check", "sess1", target])

        assert marked.exit_code == 0
        assert f"Marked {target}" in marked.output
        assert checked.exit_code == 0
        assert "seen" in checked.output

    def test_mark_twice(self, cli_state_dir: Path, project: Path):
        target = str(project / "AGENTS.md")
        runner.invoke(app, ["seen", "mark", "sess1", target])

        result = runner.invoke(app, ["seen", "mark", "sess1", target])

        assert result.exit_code == 0
        assert "Already seen" in result.output

    def test_check_not_seen_exits_one(self, cli_state_dir: Path, project: Path):
        result = runner.invoke(app, ["seen", "check", "sess1", str(project / "AGENTS.md")])

        assert result.exit_code == 1
        assert "not seen" in result.output

    def test_relative_path_is_normalized(
        self, cli_state_dir: Path, project: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.chdir(project)

        runner.invoke(app, ["seen", "mark", "sess1", "AGENTS.md"])
        result = runner.invoke(app, ["seen", "list", "sess1"])

        assert str(project / "AGENTS.md") in result.output

    def test_list_sorted(self, cli_state_dir: Path):
        runner.invoke(app, ["seen", "mark", "sess1", "/b.md"])
        runner.invoke(app, ["seen", "mark", "sess1", "/a.md"])

        result = runner.invoke(app, ["seen", "list", "sess1"])

        assert result.exit_code == 0
        assert result.output.index("/a.md") < result.output.index("/b.md")

    def test_list_empty(self, cli_state_dir: Path):
        result = runner.invoke(app, ["seen", "list", "sess1"])

        assert result.exit_code == 0
        assert "Nothing surfaced yet" in result.output

    def test_empty_session_rejected(self, cli_state_dir: Path):
        result = runner.invoke(app, ["seen", "list", ""])
        assert result.exit_code == 2

    def test_sessions_are_independent(self, cli_state_dir: Path):
        runner.invoke(app, ["seen", "mark", "sess1", "/a.md"])

        result = runner.invoke(app, ["seen", "check", "sess2", "/a.md"])

        assert result.exit_code == 1
