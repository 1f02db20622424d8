"""Registry of pending memory-update triggers.

A user activity records a trigger; a background step later consumes it by
running the handler for its kind. There is a single slot: recording a new
trigger replaces any pending one, including one being processed. Consuming
removes the consumed trigger whether the handler succeeded or not. Nothing
is retried.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from ..memory.models import UpdateResult
from ..notify import NotificationLevel, Notifier
from .models import PendingTrigger, TriggerKind, TriggerState
from .slot import TriggerSlot

if TYPE_CHECKING:
    from ..logging import JSONLLogger
    from ..memory.updater import MemoryUpdater

logger = logging.getLogger(__name__)

Handler = Callable[[str, str], Awaitable[UpdateResult]]
"""Memory update for one trigger kind, called as handler(user_id, subject_id)."""

PROGRESS_MESSAGES = {
    TriggerKind.MOOD: "Updating memory with your mood check-in...",
    TriggerKind.JOURNAL: "Updating memory with your journal entry...",
    TriggerKind.CHAT_SUMMARY: "Updating memory with your latest chat insights...",
    TriggerKind.VOICE_ENDED: "Finalizing your voice session and updating memory...",
    TriggerKind.VIDEO_ENDED: "Finalizing your video session and updating memory...",
    TriggerKind.MEDITATION: "Updating memory with your meditation...",
}
SUCCESS_MESSAGE = "Memory updated"


class TriggerRegistry:
    """Single-slot registry that dispatches triggers to update handlers."""

    def __init__(
        self,
        slot: TriggerSlot,
        notifier: Notifier | None = None,
        event_logger: JSONLLogger | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            slot: Durable storage for the pending trigger.
            notifier: Where progress and outcome messages go.
            event_logger: Optional JSONL event log.
        """
        self.slot = slot
        self.notifier = notifier
        self.event_logger = event_logger
        self._handlers: dict[TriggerKind, Handler] = {}
        self._processing = False

    @property
    def state(self) -> TriggerState:
        if self._processing:
            return TriggerState.PROCESSING
        if self.slot.get() is not None:
            return TriggerState.PENDING
        return TriggerState.IDLE

    def register(self, kind: TriggerKind, handler: Handler) -> None:
        """Register the handler for a trigger kind."""
        if kind in self._handlers:
            raise ValueError(f"Handler for '{kind.value}' already registered")
        self._handlers[kind] = handler

    def registered_kinds(self) -> list[TriggerKind]:
        return list(self._handlers.keys())

    def record(self, kind: TriggerKind, subject_id: str) -> PendingTrigger:
        """Record that a memory update is owed.

        Overwrites any pending trigger; the earlier one is dropped.

        Args:
            kind: The activity that happened.
            subject_id: The record it produced.

        Returns:
            The trigger now in the slot.
        """
        if not subject_id:
            raise ValueError("subject_id is required")

        previous = self.pending()
        trigger = PendingTrigger(kind=kind, subject_id=subject_id)
        self.slot.set(trigger.to_json())

        if previous is not None:
            logger.warning(
                "Replacing pending %s trigger for %s with %s trigger for %s",
                previous.kind.value,
                previous.subject_id,
                kind.value,
                subject_id,
            )
        if self.event_logger:
            self.event_logger.log_trigger_recorded(
                kind.value,
                subject_id,
                replaced=previous.kind.value if previous else None,
            )
        return trigger

    def pending(self) -> PendingTrigger | None:
        """Read the pending trigger, if any.

        A slot value that cannot be parsed is discarded.
        """
        raw = self.slot.get()
        if raw is None:
            return None
        try:
            return PendingTrigger.from_json(raw)
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning("Discarding unreadable pending trigger %r: %s", raw, e)
            self.slot.clear()
            return None

    async def consume(self, user_id: str | None) -> UpdateResult | None:
        """Run the pending trigger's handler and clear the slot.

        The slot is cleared whether the handler succeeds or fails. A newer
        trigger recorded while the handler runs is left pending.

        Args:
            user_id: The active user, None if not known yet.

        Returns:
            None if nothing ran (no trigger, no user, or already processing),
            otherwise the handler's result. Handler exceptions are turned
            into failed results.
        """
        if self._processing:
            return None

        trigger = self.pending()
        if trigger is None or user_id is None:
            return None

        handler = self._handlers.get(trigger.kind)
        if handler is None:
            logger.warning("No handler registered for trigger kind: %s", trigger.kind.value)
            self.slot.clear()
            return UpdateResult.err(f"No handler registered for '{trigger.kind.value}'")

        raw = self.slot.get()
        self._processing = True
        try:
            await self._notify(NotificationLevel.INFO, PROGRESS_MESSAGES[trigger.kind])
            try:
                result = await handler(user_id, trigger.subject_id)
            except Exception as e:
                logger.exception(
                    "Memory update for %s trigger %s failed",
                    trigger.kind.value,
                    trigger.subject_id,
                )
                result = UpdateResult.err(str(e))

            if result.success:
                await self._notify(NotificationLevel.SUCCESS, SUCCESS_MESSAGE)
            else:
                await self._notify(
                    NotificationLevel.ERROR, f"Memory update failed: {result.error}"
                )
        finally:
            # A trigger recorded while the handler ran stays pending
            if self.slot.get() == raw:
                self.slot.clear()
            self._processing = False

        if self.event_logger:
            self.event_logger.log_trigger_consumed(
                trigger.kind.value,
                trigger.subject_id,
                user_id,
                result.success,
                error=result.error,
            )
        return result

    async def _notify(self, level: NotificationLevel, message: str) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.notify(level, message)
        except Exception as e:
            logger.warning("Notification failed: %s", e)


def build_registry(
    updater: MemoryUpdater,
    slot: TriggerSlot,
    notifier: Notifier | None = None,
    event_logger: JSONLLogger | None = None,
) -> TriggerRegistry:
    """Create a registry with a handler for every trigger kind."""
    registry = TriggerRegistry(slot, notifier=notifier, event_logger=event_logger)
    registry.register(TriggerKind.MOOD, updater.update_from_mood)
    registry.register(TriggerKind.JOURNAL, updater.update_from_journal)
    registry.register(TriggerKind.CHAT_SUMMARY, updater.update_from_chat)
    registry.register(TriggerKind.VOICE_ENDED, updater.update_from_voice_session)
    registry.register(TriggerKind.VIDEO_ENDED, updater.update_from_video_session)
    registry.register(TriggerKind.MEDITATION, updater.update_from_meditation)
    return registry
