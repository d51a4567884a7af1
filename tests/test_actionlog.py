"""
Tests for the action logger and tracked element operations.
"""

import json

import pytest

from uiauto_heal.actionlogger import ACTION_LOGGER, ActionRecord, redact_metadata
from uiauto_heal.context import ActionContextManager, tracked_action


class Widget:
    """Minimal object with the attributes tracked_action reads."""

    element_id = "form.widget"
    current_strategy = "id=widget"

    @tracked_action("send_keys")
    def send_keys(self, text, token=None):
        return text

    @tracked_action("outer")
    def outer(self):
        return self.inner()

    @tracked_action("inner")
    def inner(self):
        return ActionContextManager.current().parent_id

    @tracked_action("fail")
    def fail(self):
        raise RuntimeError("password=hunter22 rejected")


@pytest.fixture
def jsonl_log(tmp_path):
    path = tmp_path / "actions.jsonl"
    ACTION_LOGGER.configure(console=False, file_path=str(path), format="jsonl")
    ACTION_LOGGER.enable()
    yield path
    ACTION_LOGGER.disable()
    ACTION_LOGGER.configure()


def _records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestRedaction:
    """Metadata redaction."""

    def test_sensitive_key(self):
        assert redact_metadata("click", {"token": "abc"}) == {"token": "****"}

    def test_typed_text_masked_then_truncated(self):
        result = redact_metadata("send_keys", {"text": "password=hunter22"})
        assert result["text"] == "password=*..."

    def test_other_actions_not_truncated(self):
        assert redact_metadata("click", {"note": "a long note value"}) == {"note": "a long note value"}


class TestActionRecord:
    """Line formatting."""

    def test_line_contains_fields(self):
        line = ActionRecord(action="heal", event="healing", element="a.b", strategy="css=.x", attempt=2).to_line()
        assert "event=healing" in line
        assert "element='a.b'" in line
        assert "strategy='css=.x'" in line
        assert "attempt=2" in line


class TestTrackedAction:
    """Decorated operations."""

    def test_disabled_logger_writes_nothing(self, tmp_path):
        path = tmp_path / "quiet.log"
        ACTION_LOGGER.configure(console=False, file_path=str(path))
        try:
            Widget().send_keys("hello")
        finally:
            ACTION_LOGGER.configure()
        assert not path.exists()

    def test_finish_record(self, jsonl_log):
        Widget().send_keys("password=hunter22", token=object())

        (record,) = _records(jsonl_log)
        assert record["event"] == "action_finish"
        assert record["element"] == "form.widget"
        assert record["strategy"] == "id=widget"
        assert "token" not in record["metadata"]
        assert "hunter22" not in json.dumps(record)

    def test_nested_action_records_parent(self, jsonl_log):
        parent_id = Widget().outer()

        inner, outer = _records(jsonl_log)
        assert inner["action"] == "inner"
        assert inner["metadata"]["parent"] == parent_id == outer["action_id"]

    def test_error_record_masks_exception(self, jsonl_log):
        with pytest.raises(RuntimeError):
            Widget().fail()

        (record,) = _records(jsonl_log)
        assert record["status"] == "error"
        assert record["exception"]["type"] == "RuntimeError"
        assert "hunter22" not in json.dumps(record)
