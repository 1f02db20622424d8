"""Data models for the memory pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class UserRecord:
    """A user and their rolling memory.

    Attributes:
        id: Opaque user id.
        name: Display name, None if the user never set one.
        memory: Free-text summary of everything known about the user,
            None until onboarding completes.
        created_at: Epoch seconds when created.
        updated_at: Epoch seconds when last patched.
    """

    id: str
    name: str | None = None
    memory: str | None = None
    created_at: float | None = None
    updated_at: float | None = None


@dataclass(frozen=True)
class MoodEntry:
    """A mood check-in. Intensity is on a 1-10 scale."""

    id: str
    user_id: str
    mood: str
    intensity: int
    timestamp: float
    notes: str = ""
    ai_insight: str = ""


@dataclass(frozen=True)
class JournalEntry:
    """A journal entry written by the user."""

    id: str
    user_id: str
    title: str
    content: str
    created_at: float
    updated_at: float
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ChatConversation:
    """A text chat conversation with its rolling summary."""

    id: str
    user_id: str
    title: str
    rolling_summary: str | None
    message_count: int
    created_at: float
    updated_at: float


class SessionType(Enum):
    """Kinds of live sessions."""

    VOICE = "voice"
    VIDEO = "video"


@dataclass(frozen=True)
class SessionRecord:
    """A voice or video session.

    Voice sessions carry a vendor-produced transcript summary; video
    sessions carry the raw transcript and an AI summary.
    """

    id: str
    user_id: str
    type: SessionType
    start_time: float
    duration: int | None = None
    mood: str | None = None
    transcript: str | None = None
    transcript_summary: str | None = None
    ai_summary: str | None = None


@dataclass(frozen=True)
class MeditationRecord:
    """A completed guided meditation."""

    id: str
    user_id: str
    script: str
    duration: int
    completed_at: float
    preferences: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProfileAnswers:
    """Onboarding answers used to seed the first memory."""

    dob: str
    profession: str
    about_me: str


class BundleKind(Enum):
    """Tag of a FactBundle."""

    MOOD_ENTRIES = "mood_entries"
    JOURNAL_ENTRIES = "journal_entries"
    CHAT_CONVERSATION = "chat_conversation"
    VOICE_SESSION = "voice_session"
    VIDEO_SESSION = "video_session"
    MEDITATION_SESSION = "meditation_session"


@dataclass(frozen=True)
class FactBundle:
    """New information to fold into a user's memory.

    Built per update and never persisted on its own.

    Attributes:
        kind: Which activity produced the facts.
        data: A list of dicts for entry kinds, a single dict for
            conversation and session kinds.
    """

    kind: BundleKind
    data: dict[str, Any] | list[dict[str, Any]]


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of a memory update.

    A successful result carries the new memory; a failed one carries a
    human-readable reason.
    """

    success: bool
    memory: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, memory: str) -> "UpdateResult":
        return cls(success=True, memory=memory)

    @classmethod
    def err(cls, reason: str) -> "UpdateResult":
        return cls(success=False, error=reason)
