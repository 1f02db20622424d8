"""Data models for memory-update triggers."""

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class TriggerKind(Enum):
    """User activities that owe a memory update."""

    MOOD = "mood"
    JOURNAL = "journal"
    CHAT_SUMMARY = "chat-summary"
    VOICE_ENDED = "voice-ended"
    VIDEO_ENDED = "video-ended"
    MEDITATION = "meditation"


class TriggerState(Enum):
    """Lifecycle of the single trigger slot."""

    IDLE = "idle"
    PENDING = "pending"
    PROCESSING = "processing"


@dataclass(frozen=True)
class PendingTrigger:
    """A recorded intent to update memory.

    Attributes:
        kind: The activity that caused it.
        subject_id: The mood entry, journal entry, conversation, session
            or meditation that caused it.
    """

    kind: TriggerKind
    subject_id: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["kind"] = self.kind.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PendingTrigger":
        """Create from dictionary.

        Raises:
            KeyError: If a field is missing.
            ValueError: If the kind is unknown or subject_id is empty.
        """
        subject_id = data["subject_id"]
        if not isinstance(subject_id, str) or not subject_id:
            raise ValueError("subject_id must be a non-empty string")
        return cls(kind=TriggerKind(data["kind"]), subject_id=subject_id)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str) -> "PendingTrigger":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("trigger must be a JSON object")
        return cls.from_dict(data)
