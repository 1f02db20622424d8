"""Memory updater: loads facts, synthesizes, and writes the new memory."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable

from ..errors import MissingPrerequisiteError, SubjectNotFoundError
from .bundles import FactBundleBuilder
from .models import FactBundle, ProfileAnswers, UpdateResult
from .store import MemoryStore
from .writer import MemoryWriter

if TYPE_CHECKING:
    from ..logging import JSONLLogger
    from .synthesizer import ContextSynthesizer

logger = logging.getLogger(__name__)


class MemoryUpdater:
    """Orchestrates one memory update per user activity.

    Each update loads the user and the facts behind the activity, asks the
    synthesizer for a replacement memory, and writes it. Missing data
    (no memory yet, unknown subject, no summary) yields a failed
    UpdateResult. Synthesis and authorization errors propagate; the
    memory is left untouched in both cases.
    """

    def __init__(
        self,
        store: MemoryStore,
        synthesizer: ContextSynthesizer,
        writer: MemoryWriter | None = None,
        builder: FactBundleBuilder | None = None,
        event_logger: JSONLLogger | None = None,
    ) -> None:
        self.store = store
        self.synthesizer = synthesizer
        self.writer = writer or MemoryWriter(store)
        self.builder = builder or FactBundleBuilder(store)
        self.event_logger = event_logger

    async def update_from_mood(self, user_id: str, entry_id: str) -> UpdateResult:
        return await self._update(user_id, "mood", lambda: self.builder.mood(user_id, entry_id))

    async def update_from_journal(self, user_id: str, entry_id: str) -> UpdateResult:
        return await self._update(
            user_id, "journal", lambda: self.builder.journal(user_id, entry_id)
        )

    async def update_from_chat(self, user_id: str, conversation_id: str) -> UpdateResult:
        return await self._update(
            user_id, "chat-summary", lambda: self.builder.chat(user_id, conversation_id)
        )

    async def update_from_voice_session(self, user_id: str, session_id: str) -> UpdateResult:
        return await self._update(
            user_id, "voice-ended", lambda: self.builder.voice_session(user_id, session_id)
        )

    async def update_from_video_session(self, user_id: str, session_id: str) -> UpdateResult:
        return await self._update(
            user_id, "video-ended", lambda: self.builder.video_session(user_id, session_id)
        )

    async def update_from_meditation(self, user_id: str, meditation_id: str) -> UpdateResult:
        return await self._update(
            user_id, "meditation", lambda: self.builder.meditation(user_id, meditation_id)
        )

    async def create_initial_memory(
        self, user_id: str, profile: ProfileAnswers
    ) -> UpdateResult:
        """Write a user's first memory from their onboarding answers.

        Args:
            user_id: The user completing onboarding.
            profile: Their answers.

        Returns:
            UpdateResult with the stored memory, or the reason it failed.

        Raises:
            SynthesisError: If the LLM call fails.
        """
        user = self.store.get_user(user_id)
        if user is None:
            return self._failed("onboarding", user_id, "User not found")

        start = time.monotonic()
        memory = await self._timed_synthesis(
            "onboarding", user_id, start, self.synthesizer.synthesize_initial(profile, user.name)
        )
        self.writer.replace(user_id, memory)
        return self._succeeded("onboarding", user_id, memory, start)

    async def _update(
        self,
        user_id: str,
        kind: str,
        build: Callable[[], FactBundle],
    ) -> UpdateResult:
        user = self.store.get_user(user_id)
        if user is None:
            return self._failed(kind, user_id, "User not found")

        # Ownership is enforced before the memory check
        try:
            bundle = build()
        except (MissingPrerequisiteError, SubjectNotFoundError) as e:
            return self._failed(kind, user_id, str(e))

        if not user.memory:
            return self._failed(kind, user_id, "Global memory not found")

        start = time.monotonic()
        memory = await self._timed_synthesis(
            kind, user_id, start, self.synthesizer.synthesize(user.memory, bundle)
        )
        self.writer.replace(user_id, memory)
        return self._succeeded(kind, user_id, memory, start)

    async def _timed_synthesis(
        self, kind: str, user_id: str, start: float, call: Awaitable[str]
    ) -> str:
        try:
            return await call
        except Exception as e:
            if self.event_logger:
                self.event_logger.log_memory_update(
                    kind,
                    user_id,
                    success=False,
                    duration_ms=(time.monotonic() - start) * 1000,
                    error=str(e),
                )
            raise

    def _failed(self, kind: str, user_id: str, reason: str) -> UpdateResult:
        logger.info("Skipped %s memory update for user %s: %s", kind, user_id, reason)
        if self.event_logger:
            self.event_logger.log_memory_update(kind, user_id, success=False, error=reason)
        return UpdateResult.err(reason)

    def _succeeded(self, kind: str, user_id: str, memory: str, start: float) -> UpdateResult:
        duration_ms = (time.monotonic() - start) * 1000
        logger.info("Updated memory for user %s from %s in %.0f ms", user_id, kind, duration_ms)
        if self.event_logger:
            self.event_logger.log_memory_update(
                kind,
                user_id,
                success=True,
                duration_ms=duration_ms,
                memory_chars=len(memory),
            )
        return UpdateResult.ok(memory)
