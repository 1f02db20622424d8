"""SQLite storage for users and the records that feed their memory."""

import json
import sqlite3
import time
from datetime import datetime, timedelta
from datetime import time as dt_time
from pathlib import Path

from ..errors import AuthorizationError, SubjectNotFoundError
from .models import (
    ChatConversation,
    JournalEntry,
    MeditationRecord,
    MoodEntry,
    SessionRecord,
    SessionType,
    UserRecord,
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id          TEXT PRIMARY KEY,
    name        TEXT,
    memory      TEXT,
    created_at  REAL NOT NULL,
    updated_at  REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS mood_entries (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL REFERENCES users(id),
    mood        TEXT NOT NULL,
    intensity   INTEGER NOT NULL CHECK (intensity BETWEEN 1 AND 10),
    notes       TEXT NOT NULL DEFAULT '',
    ai_insight  TEXT NOT NULL DEFAULT '',
    timestamp   REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_mood_user_ts ON mood_entries(user_id, timestamp);

CREATE TABLE IF NOT EXISTS journal_entries (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL REFERENCES users(id),
    title       TEXT NOT NULL DEFAULT '',
    content     TEXT NOT NULL,
    tags        TEXT NOT NULL DEFAULT '[]',
    created_at  REAL NOT NULL,
    updated_at  REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_journal_user_created ON journal_entries(user_id, created_at);

CREATE TABLE IF NOT EXISTS conversations (
    id               TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL REFERENCES users(id),
    title            TEXT NOT NULL DEFAULT '',
    rolling_summary  TEXT,
    message_count    INTEGER NOT NULL DEFAULT 0,
    created_at       REAL NOT NULL,
    updated_at       REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    id                  TEXT PRIMARY KEY,
    user_id             TEXT NOT NULL REFERENCES users(id),
    type                TEXT NOT NULL,
    start_time          REAL NOT NULL,
    duration            INTEGER,
    mood                TEXT,
    transcript          TEXT,
    transcript_summary  TEXT,
    ai_summary          TEXT
);

CREATE TABLE IF NOT EXISTS meditations (
    id            TEXT PRIMARY KEY,
    user_id       TEXT NOT NULL REFERENCES users(id),
    script        TEXT NOT NULL,
    duration      INTEGER NOT NULL,
    preferences   TEXT NOT NULL DEFAULT '{}',
    completed_at  REAL NOT NULL
);
"""


class MemoryStore:
    """Persistent storage for users and their activity records.

    Every read keyed by a subject id is scoped to a user: asking for a
    record owned by someone else raises AuthorizationError.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the store with a database path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def init_db(self) -> None:
        """Create the tables if they don't exist."""
        conn = self._get_connection()
        conn.executescript(SCHEMA)
        conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _fetch_owned(
        self, table: str, kind: str, subject_id: str, user_id: str
    ) -> sqlite3.Row:
        """Fetch a row by id, enforcing that user_id owns it."""
        conn = self._get_connection()
        row = conn.execute(
            f"SELECT * FROM {table} WHERE id = ?", (subject_id,)
        ).fetchone()
        if row is None:
            raise SubjectNotFoundError(kind, subject_id)
        if row["user_id"] != user_id:
            raise AuthorizationError(kind, subject_id, user_id)
        return row

    # Users

    def create_user(self, user_id: str, name: str | None = None) -> UserRecord:
        """Insert a user with no memory yet."""
        now = time.time()
        conn = self._get_connection()
        conn.execute(
            "INSERT INTO users (id, name, memory, created_at, updated_at) "
            "VALUES (?, ?, NULL, ?, ?)",
            (user_id, name, now, now),
        )
        conn.commit()
        return UserRecord(id=user_id, name=name, created_at=now, updated_at=now)

    def get_user(self, user_id: str) -> UserRecord | None:
        """Get a user by id, None if absent."""
        conn = self._get_connection()
        row = conn.execute(
            "SELECT id, name, memory, created_at, updated_at FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()
        if row is None:
            return None
        return UserRecord(
            id=row["id"],
            name=row["name"],
            memory=row["memory"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def patch_memory(self, user_id: str, memory: str) -> None:
        """Overwrite a user's memory string.

        Raises:
            SubjectNotFoundError: If the user does not exist.
        """
        conn = self._get_connection()
        cursor = conn.execute(
            "UPDATE users SET memory = ?, updated_at = ? WHERE id = ?",
            (memory, time.time(), user_id),
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise SubjectNotFoundError("user", user_id)

    # Mood entries

    def add_mood_entry(self, entry: MoodEntry) -> MoodEntry:
        conn = self._get_connection()
        conn.execute(
            "INSERT INTO mood_entries (id, user_id, mood, intensity, notes, ai_insight, timestamp) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                entry.id,
                entry.user_id,
                entry.mood,
                entry.intensity,
                entry.notes,
                entry.ai_insight,
                entry.timestamp,
            ),
        )
        conn.commit()
        return entry

    def get_mood_entry(self, entry_id: str, user_id: str) -> MoodEntry:
        row = self._fetch_owned("mood_entries", "mood entry", entry_id, user_id)
        return self._row_to_mood(row)

    def mood_entries_for_day(self, user_id: str, timestamp: float) -> list[MoodEntry]:
        """Get a user's mood entries on the local calendar day of timestamp.

        Returns:
            Entries in chronological order.
        """
        day = datetime.fromtimestamp(timestamp).date()
        start = datetime.combine(day, dt_time.min).timestamp()
        end = datetime.combine(day + timedelta(days=1), dt_time.min).timestamp()

        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT * FROM mood_entries "
            "WHERE user_id = ? AND timestamp >= ? AND timestamp < ? "
            "ORDER BY timestamp",
            (user_id, start, end),
        )
        return [self._row_to_mood(row) for row in cursor.fetchall()]

    # Journal entries

    def add_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        conn = self._get_connection()
        conn.execute(
            "INSERT INTO journal_entries (id, user_id, title, content, tags, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                entry.id,
                entry.user_id,
                entry.title,
                entry.content,
                json.dumps(entry.tags),
                entry.created_at,
                entry.updated_at,
            ),
        )
        conn.commit()
        return entry

    def get_journal_entry(self, entry_id: str, user_id: str) -> JournalEntry:
        row = self._fetch_owned("journal_entries", "journal entry", entry_id, user_id)
        return self._row_to_journal(row)

    def recent_journal_entries(
        self, user_id: str, limit: int, ending_with: str | None = None
    ) -> list[JournalEntry]:
        """Get a user's most recent journal entries.

        Entries are ordered by creation time, then by insertion order.

        Args:
            user_id: Owner of the entries.
            limit: Maximum number of entries.
            ending_with: Id of the newest entry to include. Later entries,
                including ones with the same creation time, are left out.

        Returns:
            Up to `limit` entries in chronological order.
        """
        if limit <= 0:
            return []

        conn = self._get_connection()
        if ending_with is None:
            cursor = conn.execute(
                "SELECT * FROM journal_entries WHERE user_id = ? "
                "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (user_id, limit),
            )
        else:
            cursor = conn.execute(
                "SELECT * FROM journal_entries WHERE user_id = ? AND (created_at, rowid) <= "
                "(SELECT created_at, rowid FROM journal_entries WHERE id = ?) "
                "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (user_id, ending_with, limit),
            )
        entries = [self._row_to_journal(row) for row in cursor.fetchall()]
        entries.reverse()
        return entries

    # Chat conversations

    def add_conversation(self, conversation: ChatConversation) -> ChatConversation:
        conn = self._get_connection()
        conn.execute(
            "INSERT INTO conversations "
            "(id, user_id, title, rolling_summary, message_count, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                conversation.id,
                conversation.user_id,
                conversation.title,
                conversation.rolling_summary,
                conversation.message_count,
                conversation.created_at,
                conversation.updated_at,
            ),
        )
        conn.commit()
        return conversation

    def get_conversation(self, conversation_id: str, user_id: str) -> ChatConversation:
        row = self._fetch_owned("conversations", "conversation", conversation_id, user_id)
        return ChatConversation(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            rolling_summary=row["rolling_summary"],
            message_count=row["message_count"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def update_conversation_summary(
        self,
        conversation_id: str,
        user_id: str,
        summary: str,
        message_count: int | None = None,
    ) -> ChatConversation:
        """Replace a conversation's rolling summary."""
        current = self.get_conversation(conversation_id, user_id)
        count = current.message_count if message_count is None else message_count
        conn = self._get_connection()
        conn.execute(
            "UPDATE conversations SET rolling_summary = ?, message_count = ?, updated_at = ? "
            "WHERE id = ?",
            (summary, count, time.time(), conversation_id),
        )
        conn.commit()
        return self.get_conversation(conversation_id, user_id)

    # Voice and video sessions

    def add_session(self, session: SessionRecord) -> SessionRecord:
        conn = self._get_connection()
        conn.execute(
            "INSERT INTO sessions "
            "(id, user_id, type, start_time, duration, mood, transcript, transcript_summary, ai_summary) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                session.id,
                session.user_id,
                session.type.value,
                session.start_time,
                session.duration,
                session.mood,
                session.transcript,
                session.transcript_summary,
                session.ai_summary,
            ),
        )
        conn.commit()
        return session

    def get_session(self, session_id: str, user_id: str) -> SessionRecord:
        row = self._fetch_owned("sessions", "session", session_id, user_id)
        return SessionRecord(
            id=row["id"],
            user_id=row["user_id"],
            type=SessionType(row["type"]),
            start_time=row["start_time"],
            duration=row["duration"],
            mood=row["mood"],
            transcript=row["transcript"],
            transcript_summary=row["transcript_summary"],
            ai_summary=row["ai_summary"],
        )

    # Meditations

    def add_meditation(self, meditation: MeditationRecord) -> MeditationRecord:
        conn = self._get_connection()
        conn.execute(
            "INSERT INTO meditations (id, user_id, script, duration, preferences, completed_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                meditation.id,
                meditation.user_id,
                meditation.script,
                meditation.duration,
                json.dumps(meditation.preferences),
                meditation.completed_at,
            ),
        )
        conn.commit()
        return meditation

    def get_meditation(self, meditation_id: str, user_id: str) -> MeditationRecord:
        row = self._fetch_owned("meditations", "meditation", meditation_id, user_id)
        return MeditationRecord(
            id=row["id"],
            user_id=row["user_id"],
            script=row["script"],
            duration=row["duration"],
            completed_at=row["completed_at"],
            preferences=json.loads(row["preferences"]),
        )

    def _row_to_mood(self, row: sqlite3.Row) -> MoodEntry:
        """Convert a database row to a MoodEntry."""
        return MoodEntry(
            id=row["id"],
            user_id=row["user_id"],
            mood=row["mood"],
            intensity=row["intensity"],
            timestamp=row["timestamp"],
            notes=row["notes"],
            ai_insight=row["ai_insight"],
        )

    def _row_to_journal(self, row: sqlite3.Row) -> JournalEntry:
        """Convert a database row to a JournalEntry."""
        return JournalEntry(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            content=row["content"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            tags=json.loads(row["tags"]),
        )
