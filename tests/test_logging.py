"""Tests for JSONL event logging."""

import json
from pathlib import Path

import pytest

from mindmem.logging import (
    JSONLLogger,
    LogEntry,
    configure_logger,
    get_logger,
    reset_logger,
)


@pytest.fixture
def logger(tmp_path: Path) -> JSONLLogger:
    return JSONLLogger(log_dir=tmp_path)


def read_events(logger: JSONLLogger) -> list[dict]:
    return [json.loads(line) for line in logger.log_path.read_text().splitlines()]


def test_log_entry_to_dict():
    """None values and empty extras are left out."""
    entry = LogEntry(timestamp="2024-01-01T00:00:00Z", event="test", success=False)
    data = entry.to_dict()

    assert data == {"timestamp": "2024-01-01T00:00:00Z", "event": "test", "success": False}


def test_log_creates_dir_and_file(tmp_path: Path):
    logger = JSONLLogger(log_dir=tmp_path / "nested" / "logs")
    logger.log("test_event")
    assert logger.log_path.exists()


def test_log_trigger_recorded(logger: JSONLLogger):
    logger.log_trigger_recorded("mood", "m1")
    logger.log_trigger_recorded("journal", "j1", replaced="mood")

    first, second = read_events(logger)
    assert first["event"] == "trigger_recorded"
    assert first["kind"] == "mood"
    assert "extra" not in first
    assert second["extra"] == {"replaced": "mood"}


def test_log_trigger_consumed(logger: JSONLLogger):
    logger.log_trigger_consumed("chat-summary", "c1", "u1", True, error="ignored")
    logger.log_trigger_consumed("chat-summary", "c2", "u1", False, error="boom")

    ok, failed = read_events(logger)
    assert ok["success"] is True
    assert "error" not in ok
    assert failed["error"] == "boom"


def test_log_memory_update(logger: JSONLLogger):
    logger.log_memory_update("journal", "u1", True, duration_ms=12.5, memory_chars=300)

    (event,) = read_events(logger)
    assert event["event"] == "memory_update"
    assert event["user_id"] == "u1"
    assert event["duration_ms"] == 12.5
    assert event["extra"] == {"memory_chars": 300}


def test_unicode_kept(logger: JSONLLogger):
    logger.log_memory_update("mood", "u1", False, error="sin conexión")
    assert "sin conexión" in logger.log_path.read_text(encoding="utf-8")


def test_rotation(tmp_path: Path):
    logger = JSONLLogger(log_dir=tmp_path, max_size_mb=0.0001)
    for i in range(20):
        logger.log("event", subject_id=f"s{i}")

    rotated = [p for p in tmp_path.glob("events_*.jsonl")]
    assert rotated
    assert logger.log_path.exists()


def test_configure_logger(tmp_path: Path):
    try:
        configured = configure_logger(tmp_path)
        assert get_logger() is configured
        assert configured.log_dir == tmp_path
    finally:
        reset_logger()
