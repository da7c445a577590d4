import json
import logging
import sys

import pytest

from todo_api.logging_config import JSONFormatter, setup_logging


def make_record(msg="store call failed", exc_info=None, **extra):
    record = logging.LogRecord("todo_api.handlers", logging.ERROR, __file__, 10, msg, None, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:
    def test_extras_are_top_level_keys(self):
        record = make_record(operation="update", owner="user-1", todo_id="t-1", error_code="ThrottlingException")
        out = json.loads(JSONFormatter().format(record))
        assert out["message"] == "store call failed"
        assert out["level"] == "ERROR"
        assert out["logger"] == "todo_api.handlers"
        assert out["operation"] == "update"
        assert out["owner"] == "user-1"
        assert out["todo_id"] == "t-1"
        assert out["error_code"] == "ThrottlingException"
        assert "exception" not in out
        assert "status_code" not in out

    def test_exception_is_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record(exc_info=sys.exc_info())
        out = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in out["exception"]


class TestSetupLogging:
    def test_repeated_setup_keeps_one_handler(self, root_logger):
        setup_logging("DEBUG", "json")
        setup_logging("WARNING", "json")
        ours = [h for h in root_logger.handlers if h.get_name() == "todo_api"]
        assert len(ours) == 1
        assert isinstance(ours[0].formatter, JSONFormatter)
        assert root_logger.level == logging.WARNING

    def test_text_format(self, root_logger):
        setup_logging("INFO", "text")
        ours = [h for h in root_logger.handlers if h.get_name() == "todo_api"]
        assert len(ours) == 1
        assert not isinstance(ours[0].formatter, JSONFormatter)
