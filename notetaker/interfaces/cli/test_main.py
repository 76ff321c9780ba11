"""Tests for the CLI commands."""

from pathlib import Path

from typer.testing import CliRunner

from notetaker import __version__

from .main import app

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_init_then_purge(tmp_path: Path) -> None:
    db_path = tmp_path / "cli.db"

    result = runner.invoke(app, ["init", "--db", str(db_path)])
    assert result.exit_code == 0
    assert db_path.exists()

    result = runner.invoke(app, ["purge-otps", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "Cleared 0" in result.output


def test_users_unknown_email(tmp_path: Path) -> None:
    result = runner.invoke(app, ["users", "ghost@example.com", "--db", str(tmp_path / "cli.db")])
    assert result.exit_code == 1
