"""
Tests for the uiauto-heal maintenance CLI.
"""

import pytest

from uiauto_heal.cli import main
from uiauto_heal.events import HealingEvent, HealingEventLog
from uiauto_heal.history import HealingHistoryFile
from uiauto_heal.strategy import by_css, by_id


@pytest.fixture
def settings_file(tmp_path):
    (tmp_path / "locators").mkdir()
    (tmp_path / "locators" / "login.properties").write_text(
        "username = id=user;name=user\nsubmit = css=#go\n", encoding="utf-8"
    )
    path = tmp_path / "healing.yaml"
    path.write_text(
        "locators_dir: locators\n"
        "history_file: logs/history.properties\n"
        "events_file: logs/events.csv\n",
        encoding="utf-8",
    )
    return path


class TestCli:
    """Subcommands against a small workspace."""

    def test_list(self, settings_file, tmp_path, capsys):
        HealingHistoryFile(str(tmp_path / "logs" / "history.properties")).write({"login.username": 1})

        assert main(["-c", str(settings_file), "list"]) == 0

        out = capsys.readouterr().out.splitlines()
        assert out == ["login.submit", "login.username  (healed -> 1)"]

    def test_show(self, settings_file, capsys):
        assert main(["-c", str(settings_file), "show", "login.username"]) == 0
        out = capsys.readouterr().out
        assert "0. id=user  [primary]" in out
        assert "1. name=user" in out

    def test_show_unknown(self, settings_file, capsys):
        assert main(["-c", str(settings_file), "show", "nope"]) == 1
        assert "Unknown element" in capsys.readouterr().err

    def test_stats(self, settings_file, tmp_path, capsys):
        log = HealingEventLog(str(tmp_path / "logs" / "events.csv"))
        log.append(HealingEvent.create("login.username", by_id("user"), by_css("#u"), 1))

        assert main(["-c", str(settings_file), "stats"]) == 0
        assert "Total healing events: 1" in capsys.readouterr().out

    def test_validate(self, settings_file, capsys):
        assert main(["-c", str(settings_file), "validate"]) == 0
        assert "Elements: 2" in capsys.readouterr().out

    def test_validate_empty_catalog(self, tmp_path, capsys):
        path = tmp_path / "healing.yaml"
        path.write_text("locators_dir: empty\n", encoding="utf-8")
        assert main(["-c", str(path), "validate"]) == 2

    def test_reset_history(self, settings_file, tmp_path, capsys):
        store = HealingHistoryFile(str(tmp_path / "logs" / "history.properties"))
        store.write({"login.username": 1})

        assert main(["-c", str(settings_file), "reset-history"]) == 0
        assert not store.exists()
        assert main(["-c", str(settings_file), "reset-history"]) == 0
        assert "No healing history" in capsys.readouterr().out

    def test_bad_config(self, tmp_path, capsys):
        path = tmp_path / "healing.yaml"
        path.write_text("unknown_key: 1\n", encoding="utf-8")
        assert main(["-c", str(path), "list"]) == 1
        assert "ERROR" in capsys.readouterr().err
