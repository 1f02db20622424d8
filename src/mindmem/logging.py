"""JSONL event log for trigger and memory-update observability."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class LogEntry:
    """A single log entry."""

    timestamp: str
    event: str
    user_id: str | None = None
    kind: str | None = None
    subject_id: str | None = None
    success: bool | None = None
    duration_ms: float | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None and v != {} and v != []}


class JSONLLogger:
    """Logger that writes structured events in JSONL format."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "events.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        if log_dir is None:
            log_dir = Path.home() / ".mindmem" / "logs"
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        """Current log file path."""
        return self.log_dir / self.filename

    def _rotate_if_needed(self) -> None:
        """Rotate log file if it exceeds max size."""
        if not self.log_path.exists():
            return

        if self.log_path.stat().st_size >= self.max_size_bytes:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            rotated_name = f"{self.log_path.stem}_{timestamp}.jsonl"
            self.log_path.rename(self.log_dir / rotated_name)

    def _write(self, entry: LogEntry) -> None:
        """Write a log entry to the file."""
        self._rotate_if_needed()

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")

    def log(
        self,
        event: str,
        *,
        user_id: str | None = None,
        kind: str | None = None,
        subject_id: str | None = None,
        success: bool | None = None,
        duration_ms: float | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            user_id=user_id,
            kind=kind,
            subject_id=subject_id,
            success=success,
            duration_ms=duration_ms,
            error=error,
            extra=extra if extra else {},
        )
        self._write(entry)

    def log_trigger_recorded(self, kind: str, subject_id: str, *, replaced: str | None = None) -> None:
        """Log a trigger being written to the slot.

        Args:
            kind: Trigger kind.
            subject_id: Record that caused the trigger.
            replaced: Kind of the pending trigger this one overwrote, if any.
        """
        extra: dict[str, Any] = {"replaced": replaced} if replaced else {}
        self.log("trigger_recorded", kind=kind, subject_id=subject_id, **extra)

    def log_trigger_consumed(
        self,
        kind: str,
        subject_id: str,
        user_id: str,
        success: bool,
        *,
        error: str | None = None,
    ) -> None:
        """Log a trigger leaving the slot after its handler settled."""
        self.log(
            "trigger_consumed",
            user_id=user_id,
            kind=kind,
            subject_id=subject_id,
            success=success,
            error=error if not success else None,
        )

    def log_memory_update(
        self,
        kind: str,
        user_id: str,
        success: bool,
        *,
        duration_ms: float | None = None,
        error: str | None = None,
        memory_chars: int | None = None,
    ) -> None:
        """Log a memory update attempt."""
        extra: dict[str, Any] = {}
        if memory_chars is not None:
            extra["memory_chars"] = memory_chars
        self.log(
            "memory_update",
            user_id=user_id,
            kind=kind,
            success=success,
            duration_ms=duration_ms,
            error=error,
            **extra,
        )


# Global logger instance
_logger: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = JSONLLogger()
    return _logger


def configure_logger(log_dir: str | Path | None = None, max_size_mb: float = 10.0) -> JSONLLogger:
    """Configure and return the global logger."""
    global _logger
    _logger = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
    return _logger


def reset_logger() -> None:
    """Reset the global logger (for testing)."""
    global _logger
    _logger = None
