"""
Tests for the healing history file.
"""

import pytest

from uiauto_heal.history import HealingHistoryFile, format_history, parse_history


class TestHistoryFormat:
    """Tests for the flat key/value format."""

    def test_round_trip(self):
        entries = {"login.username": 2, "home.title": 0, "cart.total": 1}
        assert parse_history(format_history(entries)) == entries

    def test_sorted_and_deterministic(self):
        text = format_history({"b": 1, "a": 0})
        assert text.splitlines()[1:] == ["a = 0", "b = 1"]
        assert format_history({"a": 0, "b": 1}) == text

    def test_invalid_index_skipped(self):
        assert parse_history("a = 1\nb = x\nno separator\n") == {"a": 1}


class TestHealingHistoryFile:
    """Tests for reading and rewriting the file."""

    def test_missing_file_reads_empty(self, tmp_path):
        assert HealingHistoryFile(str(tmp_path / "none.properties")).read() == {}

    def test_write_creates_directories(self, tmp_path):
        path = tmp_path / "deep" / "dir" / "history.properties"
        store = HealingHistoryFile(str(path))
        store.write({"x": 3})
        assert path.exists()
        assert store.read() == {"x": 3}

    def test_delete(self, tmp_path):
        store = HealingHistoryFile(str(tmp_path / "h.properties"))
        assert store.delete() is False
        store.write({"x": 1})
        assert store.delete() is True
        assert not store.exists()


class TestHistoryKeyEscaping:
    """Element ids with separator, comment and whitespace characters."""

    @pytest.mark.parametrize("element_id", [
        "form.a=b",
        "#hash.field",
        "!bang.field",
        "form.a:b",
        "form.with space",
        "form.back\\slash",
        "form.line\nbreak",
        "form.tab\tsep",
        "form.\u2028sep",
        " leading",
        "trailing ",
        "form.\\u0041",
    ])
    def test_id_round_trips(self, element_id):
        entries = {element_id: 2, "plain.id": 1}
        assert parse_history(format_history(entries)) == entries

    def test_escaped_lines_stay_single_lines(self):
        text = format_history({"a\nb": 1, "#c": 0})
        assert text.splitlines()[1:] == ["\\#c = 0", "a\\nb = 1"]

    def test_file_round_trip(self, tmp_path):
        entries = {"form.a=b": 2, "#hash.field": 2, "!bang.field": 2}
        store = HealingHistoryFile(str(tmp_path / "h.properties"))
        store.write(entries)
        assert store.read() == entries
