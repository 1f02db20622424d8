"""Builds fact bundles from the records behind a trigger."""

from dataclasses import asdict

from ..errors import MissingPrerequisiteError
from .models import BundleKind, FactBundle, SessionType
from .store import MemoryStore

DEFAULT_JOURNAL_LIMIT = 3


class FactBundleBuilder:
    """Loads the records relevant to a trigger and packs them into a bundle.

    Every lookup is scoped to the requesting user; the store raises
    AuthorizationError for records owned by someone else and
    SubjectNotFoundError for unknown ids.
    """

    def __init__(self, store: MemoryStore, journal_limit: int = DEFAULT_JOURNAL_LIMIT) -> None:
        self.store = store
        self.journal_limit = journal_limit

    def mood(self, user_id: str, entry_id: str) -> FactBundle:
        """All of the user's mood entries on the day of entry_id."""
        entry = self.store.get_mood_entry(entry_id, user_id)
        entries = self.store.mood_entries_for_day(user_id, entry.timestamp)
        if not entries:
            raise MissingPrerequisiteError("No mood entries found")
        return FactBundle(
            kind=BundleKind.MOOD_ENTRIES,
            data=[
                {
                    "mood": e.mood,
                    "intensity": e.intensity,
                    "timestamp": e.timestamp,
                    "notes": e.notes,
                    "ai_insight": e.ai_insight,
                }
                for e in entries
            ],
        )

    def journal(self, user_id: str, entry_id: str) -> FactBundle:
        """The user's most recent journal entries, ending with entry_id."""
        entry = self.store.get_journal_entry(entry_id, user_id)
        entries = self.store.recent_journal_entries(
            user_id, self.journal_limit, ending_with=entry.id
        )
        if not entries:
            raise MissingPrerequisiteError("No journal entries found")
        return FactBundle(
            kind=BundleKind.JOURNAL_ENTRIES,
            data=[
                {
                    "title": e.title,
                    "content": e.content,
                    "created_at": e.created_at,
                    "updated_at": e.updated_at,
                    "tags": list(e.tags),
                }
                for e in entries
            ],
        )

    def chat(self, user_id: str, conversation_id: str) -> FactBundle:
        conversation = self.store.get_conversation(conversation_id, user_id)
        if not conversation.rolling_summary:
            raise MissingPrerequisiteError("No conversation summary available")
        return FactBundle(
            kind=BundleKind.CHAT_CONVERSATION,
            data={
                "conversation_id": conversation.id,
                "title": conversation.title,
                "rolling_summary": conversation.rolling_summary,
                "message_count": conversation.message_count,
                "created_at": conversation.created_at,
                "updated_at": conversation.updated_at,
            },
        )

    def voice_session(self, user_id: str, session_id: str) -> FactBundle:
        session = self.store.get_session(session_id, user_id)
        if session.type is not SessionType.VOICE:
            raise MissingPrerequisiteError(f"Session {session_id} is not a voice session")
        if not session.transcript_summary:
            raise MissingPrerequisiteError("No transcript summary available")
        return FactBundle(
            kind=BundleKind.VOICE_SESSION,
            data={
                "session_id": session.id,
                "transcript_summary": session.transcript_summary,
                "start_time": session.start_time,
                "duration": session.duration,
                "mood": session.mood,
            },
        )

    def video_session(self, user_id: str, session_id: str) -> FactBundle:
        session = self.store.get_session(session_id, user_id)
        if session.type is not SessionType.VIDEO:
            raise MissingPrerequisiteError(f"Session {session_id} is not a video session")
        if not session.transcript:
            raise MissingPrerequisiteError("No transcript available")
        return FactBundle(
            kind=BundleKind.VIDEO_SESSION,
            data={
                "session_id": session.id,
                "transcript": session.transcript,
                "ai_summary": session.ai_summary,
                "start_time": session.start_time,
                "duration": session.duration,
                "mood": session.mood,
            },
        )

    def meditation(self, user_id: str, meditation_id: str) -> FactBundle:
        meditation = self.store.get_meditation(meditation_id, user_id)
        data = asdict(meditation)
        del data["id"], data["user_id"]
        return FactBundle(kind=BundleKind.MEDITATION_SESSION, data=data)
