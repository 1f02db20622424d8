"""Durable single-value slots for the pending trigger."""

import os
from pathlib import Path
from typing import Protocol


class TriggerSlot(Protocol):
    """A key/value slot holding at most one serialized trigger."""

    def get(self) -> str | None:
        """Return the stored value, None if empty."""
        ...

    def set(self, value: str) -> None:
        """Store value, replacing whatever was there."""
        ...

    def clear(self) -> None:
        """Empty the slot. Clearing an empty slot is a no-op."""
        ...


class InMemorySlot:
    """Slot that lives only as long as the process."""

    def __init__(self, value: str | None = None) -> None:
        self._value = value

    def get(self) -> str | None:
        return self._value

    def set(self, value: str) -> None:
        self._value = value

    def clear(self) -> None:
        self._value = None


class JSONFileSlot:
    """Slot stored in a file so a pending trigger survives restarts.

    Writes go through a temporary file and a rename, so readers see either
    the old value or the new one.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def get(self) -> str | None:
        if not self.path.exists():
            return None
        value = self.path.read_text(encoding="utf-8")
        return value or None

    def set(self, value: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
