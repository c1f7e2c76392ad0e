"""Tests for the unseen CLI."""

import re

import pytest
from typer.testing import CliRunner

from unseen.cli.main import app
from unseen.config import Settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch, db_url):
    monkeypatch.setenv("HOME", str(tmp_path))
    settings = Settings()
    settings.general.db_url = db_url
    settings.general.data_dir = tmp_path / "data"
    monkeypatch.setattr("unseen.config._settings", settings)
    return settings


def _verify(owner="alice"):
    result = runner.invoke(app, ["profile", "verify", "-o", owner])
    code = re.search(r"Verification code: (\d{6})", result.output).group(1)
    return runner.invoke(app, ["profile", "verify", "--code", code, "-o", owner])


class TestInit:
    def test_init_writes_config(self, tmp_path):
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / "data").is_dir()
        config = tmp_path / ".config/unseen/config.toml"
        assert config.exists()
        assert "[aura]" in config.read_text()


class TestOwnerResolution:
    def test_missing_owner(self):
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "No owner" in result.output

    def test_owner_from_settings(self, isolated_settings):
        isolated_settings.general.owner_id = "alice"
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "alice" in result.output


class TestIntentCommands:
    def test_declare_and_show(self):
        result = runner.invoke(app, ["intent", "declare", "Write the parser", "-o", "alice"])
        assert result.exit_code == 0
        assert "Intent declared" in result.output

        result = runner.invoke(app, ["intent", "show", "-o", "alice"])
        assert "Write the parser" in result.output

    def test_resolve(self):
        runner.invoke(app, ["intent", "declare", "Quick fix", "-o", "alice"])
        result = runner.invoke(app, ["intent", "resolve", "-o", "alice"])
        assert result.exit_code == 0
        result = runner.invoke(app, ["intent", "show", "--history", "-o", "alice"])
        assert "without_focus" in result.output

    def test_resolve_nothing(self):
        result = runner.invoke(app, ["intent", "resolve", "-o", "alice"])
        assert result.exit_code == 1


class TestFocusCommand:
    def test_run_without_intent(self):
        result = runner.invoke(app, ["focus", "run", "-o", "alice"])
        assert result.exit_code == 1
        assert "Cannot begin focus" in result.output

    def test_full_loop_with_reflection(self):
        steps = ["note", "Escapes", "Backslash handling", "finish", "Parser works", "y", "done", "rushed", "test first"]
        result = runner.invoke(
            app, ["focus", "run", "-i", "Write the parser", "-o", "alice"], input="\n".join(steps) + "\n",
        )
        assert result.exit_code == 0, result.output
        assert "Reflection saved" in result.output

        result = runner.invoke(app, ["vault", "list", "-o", "alice"])
        assert "Escapes" in result.output

        result = runner.invoke(app, ["intent", "show", "--history", "-o", "alice"])
        assert "reflected" in result.output

    def test_deferred_then_submitted(self):
        steps = ["abandon", "n"]
        result = runner.invoke(
            app, ["focus", "run", "-i", "Try an idea", "-o", "alice"], input="\n".join(steps) + "\n",
        )
        assert result.exit_code == 0, result.output
        assert "deferred" in result.output

        result = runner.invoke(app, ["reflect", "pending", "-o", "alice"])
        assert "Try an idea" in result.output

        session_id = re.search(r"\b([0-9a-f]{8})\b", result.output).group(1)
        result = runner.invoke(app, ["reflect", "submit", session_id, "--insight", "too big", "-o", "alice"])
        assert result.exit_code == 0, result.output
        assert "Reflection saved" in result.output

        result = runner.invoke(app, ["reflect", "pending", "-o", "alice"])
        assert "No pending reflections" in result.output


class TestRecordCommands:
    def test_vault_add_and_list(self):
        result = runner.invoke(app, ["vault", "add", "Locks", "Use one lock", "--type", "solution", "-o", "alice"])
        assert result.exit_code == 0
        result = runner.invoke(app, ["vault", "list", "-o", "alice"])
        assert "Locks" in result.output
        assert "unverified" in result.output

    def test_vault_rejects_note(self):
        result = runner.invoke(app, ["vault", "add", "Scratch", "x", "--type", "note", "-o", "alice"])
        assert result.exit_code == 1

    def test_log_add(self):
        result = runner.invoke(app, ["log", "add", "unseen", "tracker", "--decision", "sqlite", "-o", "alice"])
        assert result.exit_code == 0
        assert "Project log added" in result.output


class TestProfileAndAura:
    def test_verify_then_earn(self):
        runner.invoke(app, ["profile", "setup", "--name", "Alice", "--email", "a@example.com",
                            "--focus-area", "compilers", "-o", "alice"])
        result = _verify()
        assert result.exit_code == 0
        assert "Verified" in result.output

        runner.invoke(app, ["log", "add", "unseen", "tracker", "-o", "alice"])
        result = runner.invoke(app, ["aura", "show", "-o", "alice"])
        assert "Aura: 3" in result.output

    def test_wrong_code(self):
        runner.invoke(app, ["profile", "verify", "-o", "alice"])
        result = runner.invoke(app, ["profile", "verify", "--code", "abc", "-o", "alice"])
        assert result.exit_code == 1

    def test_decay_nothing_to_do(self):
        result = runner.invoke(app, ["aura", "decay", "-o", "alice"])
        assert result.exit_code == 0
        assert "No decay" in result.output
