"""Tests for logging configuration and token redaction."""

import json
import logging

import pytest

from tokengate.core.logging import (
    REDACTED,
    JSONFormatter,
    TokenRedactionFilter,
    get_logger,
    redact,
    setup_logging,
)

SAMPLE_JWT = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9"
    ".eyJzdWIiOiIxIiwianRpIjoiYSJ9"
    ".c2lnbmF0dXJlLWJ5dGVzLWhlcmU"
)


def _record(msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord("tokengate.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRedact:
    def test_masks_compact_jwt(self):
        assert redact(f"got {SAMPLE_JWT} from client") == f"got {REDACTED} from client"

    def test_masks_bearer_credential(self):
        assert redact("Authorization: Bearer abc.def") == f"Authorization: Bearer {REDACTED}"

    def test_leaves_jti_alone(self):
        text = "Rejected token 4f0c3a52-7d1e-4b8a-9a61-2f3d9c0e8b11: not found or revoked"
        assert redact(text) == text


class TestTokenRedactionFilter:
    def test_filter_rewrites_formatted_message(self):
        record = _record("header was %s", f"Bearer {SAMPLE_JWT}")

        assert TokenRedactionFilter().filter(record) is True
        assert SAMPLE_JWT not in record.getMessage()
        assert REDACTED in record.getMessage()

    def test_filter_keeps_clean_records(self):
        record = _record("Issued token %s", "jti-1")
        TokenRedactionFilter().filter(record)
        assert record.args == ("jti-1",)


class TestJSONFormatter:
    def test_basic_fields(self):
        line = json.loads(JSONFormatter().format(_record('quote " and\nnewline')))

        assert line["level"] == "INFO"
        assert line["logger"] == "tokengate.test"
        assert line["message"] == 'quote " and\nnewline'
        assert "timestamp" in line

    def test_context_fields_lifted(self):
        record = _record("Issued token", jti="jti-1", tenant="example.com", actor="ops@example.com")
        line = json.loads(JSONFormatter().format(record))

        assert line["jti"] == "jti-1"
        assert line["tenant"] == "example.com"
        assert line["actor"] == "ops@example.com"
        assert "code" not in line


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)

    def test_structured_handler_installed(self):
        setup_logging(level="DEBUG", format_type="structured")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)
        assert any(isinstance(f, TokenRedactionFilter) for f in handler.filters)

    def test_dev_format_and_quiet_third_party(self):
        setup_logging(level="INFO", format_type="dev")

        handler = logging.getLogger().handlers[0]
        assert not isinstance(handler.formatter, JSONFormatter)
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_get_logger_prefix(self):
        assert get_logger("main").name == "tokengate.main"
