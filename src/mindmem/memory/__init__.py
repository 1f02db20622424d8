"""Memory module: rolling user memory and the records that feed it."""

from .bundles import FactBundleBuilder
from .models import (
    BundleKind,
    ChatConversation,
    FactBundle,
    JournalEntry,
    MeditationRecord,
    MoodEntry,
    ProfileAnswers,
    SessionRecord,
    SessionType,
    UpdateResult,
    UserRecord,
)
from .store import MemoryStore
from .synthesizer import ContextSynthesizer, render_bundle
from .updater import MemoryUpdater
from .writer import MemoryWriter

__all__ = [
    "BundleKind",
    "ChatConversation",
    "ContextSynthesizer",
    "FactBundle",
    "FactBundleBuilder",
    "JournalEntry",
    "MeditationRecord",
    "MemoryStore",
    "MemoryUpdater",
    "MemoryWriter",
    "MoodEntry",
    "ProfileAnswers",
    "SessionRecord",
    "SessionType",
    "UpdateResult",
    "UserRecord",
    "render_bundle",
]
