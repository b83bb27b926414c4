"""Tests for taskguard.logging module."""

from __future__ import annotations

import json
import logging
import threading
from logging.handlers import QueueHandler

import pytest

from taskguard import (
    AuditConfig,
    AuditFormatter,
    AuditLog,
    GuardConfig,
    LogLevel,
    Principal,
    Role,
    get_guard_logger,
    redact_secrets,
    safe_log_value,
    safe_preview,
    setup_logging,
    shutdown_logging,
)


def _record(msg: str = "hello", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("taskguard.test", level, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSafePreview:
    """Tests for safe_preview function."""

    def test_none_value(self) -> None:
        assert safe_preview(None) == ""

    def test_string_with_whitespace(self) -> None:
        """Whitespace is collapsed to single spaces."""
        assert safe_preview("hello\n\tworld  test") == "hello world test"

    def test_string_truncation(self) -> None:
        result = safe_preview("a" * 300, limit=100)
        assert len(result) == 100
        assert result.endswith("…")

    def test_dict_value(self) -> None:
        result = safe_preview({"task": "t1", "order": 2})
        assert '"task": "t1"' in result

    def test_other_value(self) -> None:
        assert safe_preview(42) == "42"


class TestRedactSecrets:
    """Tests for redact_secrets function."""

    def test_password_pattern(self) -> None:
        result = redact_secrets('password: "secret123"')
        assert "[REDACTED]" in result
        assert "secret123" not in result

    def test_bearer_token(self) -> None:
        result = redact_secrets("Authorization: Bearer abc123def456")
        assert "abc123def456" not in result

    def test_plain_text_untouched(self) -> None:
        assert redact_secrets("Denied task:update on task:42") == "Denied task:update on task:42"

    def test_non_string_passthrough(self) -> None:
        assert redact_secrets(42) == 42  # type: ignore[arg-type]

    def test_safe_log_value(self) -> None:
        assert "hunter2" not in safe_log_value("password=hunter2")
        assert "hunter2" in safe_log_value("token=hunter2", redact=False)


class TestAuditFormatter:
    """Tests for the structured formatter."""

    def test_json_output(self) -> None:
        formatter = AuditFormatter(json_format=True)
        data = json.loads(formatter.format(_record("Denied", user_id="u1", request_id="req-1")))
        assert data["message"] == "Denied"
        assert data["level"] == "INFO"
        assert data["logger"] == "taskguard.test"
        assert data["user_id"] == "u1"
        assert data["request_id"] == "req-1"

    def test_extra_fields_included(self) -> None:
        formatter = AuditFormatter(json_format=True)
        data = json.loads(formatter.format(_record(audit_id="abc", allowed=False)))
        assert data["audit_id"] == "abc"
        assert data["allowed"] == "False"

    def test_context_can_be_excluded(self) -> None:
        formatter = AuditFormatter(include_context=False, json_format=True)
        data = json.loads(formatter.format(_record(user_id="u1")))
        assert "user_id" not in data

    def test_message_redacted(self) -> None:
        formatter = AuditFormatter(json_format=True)
        data = json.loads(formatter.format(_record("api_key=abcdef123456")))
        assert "abcdef123456" not in data["message"]

    def test_plain_text_output(self) -> None:
        formatter = AuditFormatter(json_format=False)
        line = formatter.format(_record("Listing tasks", user_id="u1"))
        assert "INFO" in line
        assert "user_id=u1" in line
        assert line.endswith(": Listing tasks")


class TestGuardLogger:
    """Tests for the principal-bound logger adapter."""

    def test_bound_ids(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_guard_logger("taskguard.test.bound", user_id="u1", request_id="req-9")
        with caplog.at_level(logging.INFO, logger="taskguard.test.bound"):
            logger.info("Listing tasks")
        record = caplog.records[-1]
        assert record.user_id == "u1"
        assert record.request_id == "req-9"

    def test_principal_kwarg(self, caplog: pytest.LogCaptureFixture) -> None:
        principal = Principal(id="admin@acme.com", role=Role.ADMIN, organization_id="acme")
        logger = get_guard_logger("taskguard.test.principal")
        with caplog.at_level(logging.INFO, logger="taskguard.test.principal"):
            logger.info("Updating task", principal=principal)
        record = caplog.records[-1]
        assert record.user_id == "admin@acme.com"
        assert not hasattr(record, "request_id")

    def test_caller_extra_not_mutated(self, caplog: pytest.LogCaptureFixture) -> None:
        """The caller's extra dict is copied, not written into."""
        logger = get_guard_logger("taskguard.test.extra", user_id="u1", request_id="req-1")
        extra = {"task_id": "t1"}
        with caplog.at_level(logging.INFO, logger="taskguard.test.extra"):
            logger.info("Updating task", extra=extra)
        assert extra == {"task_id": "t1"}
        record = caplog.records[-1]
        assert record.task_id == "t1"
        assert record.user_id == "u1"


class TestSetupLogging:
    """Tests for setup_logging."""

    AUDIT_LOGGERS = ("taskguard.audit", "tasks.audit", "tasks.audit.queued")

    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        shutdown_logging()
        root.handlers[:] = handlers
        root.setLevel(level)
        for name in self.AUDIT_LOGGERS:
            audit_logger = logging.getLogger(name)
            audit_logger.handlers.clear()
            audit_logger.propagate = True
            audit_logger.setLevel(logging.NOTSET)

    def test_installs_single_formatter_handler(self) -> None:
        config = GuardConfig(log_level=LogLevel.WARNING)
        setup_logging(config, json_format=False)
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        formatter = root.handlers[0].formatter
        assert isinstance(formatter, AuditFormatter)
        assert formatter.json_format is False

    def test_audit_and_service_loggers_follow_level(self) -> None:
        config = GuardConfig(
            log_level="DEBUG",
            service_name="tasks-api",
            audit=AuditConfig(logger_name="tasks.audit"),
        )
        setup_logging(config)
        assert logging.getLogger("tasks.audit").level == logging.DEBUG
        assert logging.getLogger("tasks-api").level == logging.DEBUG

    def test_audit_logger_routed_through_queue(self) -> None:
        config = GuardConfig(audit=AuditConfig(logger_name="tasks.audit"))
        setup_logging(config)
        setup_logging(config)
        audit_logger = logging.getLogger("tasks.audit")
        assert [type(h) for h in audit_logger.handlers] == [QueueHandler]
        assert audit_logger.propagate is False

    def test_audit_record_does_not_wait_on_slow_handler(self) -> None:
        config = GuardConfig(audit=AuditConfig(logger_name="tasks.audit.queued"))
        setup_logging(config)
        console = logging.getLogger().handlers[0]

        release = threading.Event()
        seen: list[str] = []

        def slow_handle(record: logging.LogRecord) -> None:
            release.wait(5)
            seen.append(record.getMessage())

        console.handle = slow_handle  # type: ignore[method-assign]

        entry = AuditLog(config.audit).record(user_id="u1", action="GET /tasks", resource="rbac", allowed=False)
        assert entry.allowed is False
        assert seen == []

        release.set()
        shutdown_logging()
        assert len(seen) == 1
        assert "[AUDIT] u1 GET /tasks on rbac: denied" in seen[0]
