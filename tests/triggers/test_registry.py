"""Tests for the trigger registry."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from mindmem.logging import JSONLLogger
from mindmem.memory import UpdateResult
from mindmem.notify import NotificationLevel
from mindmem.triggers import (
    InMemorySlot,
    JSONFileSlot,
    TriggerKind,
    TriggerRegistry,
    TriggerState,
    build_registry,
)
from mindmem.triggers.registry import PROGRESS_MESSAGES, SUCCESS_MESSAGE


@pytest.fixture
def slot() -> InMemorySlot:
    return InMemorySlot()


@pytest.fixture
def notifier() -> MagicMock:
    notifier = MagicMock()
    notifier.notify = AsyncMock()
    return notifier


@pytest.fixture
def registry(slot: InMemorySlot, notifier: MagicMock) -> TriggerRegistry:
    return TriggerRegistry(slot, notifier=notifier)


def ok_handler(memory: str = "new memory") -> AsyncMock:
    return AsyncMock(return_value=UpdateResult.ok(memory))


class TestRecord:
    def test_record_fills_slot(self, registry: TriggerRegistry):
        registry.record(TriggerKind.MOOD, "m1")

        pending = registry.pending()
        assert pending.kind == TriggerKind.MOOD
        assert pending.subject_id == "m1"
        assert registry.state == TriggerState.PENDING

    def test_record_overwrites(self, registry: TriggerRegistry):
        registry.record(TriggerKind.MOOD, "m1")
        registry.record(TriggerKind.JOURNAL, "j1")

        pending = registry.pending()
        assert pending.kind == TriggerKind.JOURNAL
        assert pending.subject_id == "j1"

    def test_record_requires_subject(self, registry: TriggerRegistry):
        with pytest.raises(ValueError):
            registry.record(TriggerKind.MOOD, "")

    def test_idle_when_empty(self, registry: TriggerRegistry):
        assert registry.pending() is None
        assert registry.state == TriggerState.IDLE

    def test_corrupt_slot_is_discarded(self, slot: InMemorySlot, registry: TriggerRegistry):
        slot.set("not json")
        assert registry.pending() is None
        assert slot.get() is None

    def test_unknown_kind_in_slot_is_discarded(
        self, slot: InMemorySlot, registry: TriggerRegistry
    ):
        slot.set('{"kind": "dream", "subject_id": "x"}')
        assert registry.pending() is None
        assert slot.get() is None


class TestRegister:
    def test_duplicate_handler_rejected(self, registry: TriggerRegistry):
        registry.register(TriggerKind.MOOD, ok_handler())
        with pytest.raises(ValueError):
            registry.register(TriggerKind.MOOD, ok_handler())

    def test_build_registry_covers_every_kind(self, slot: InMemorySlot):
        registry = build_registry(MagicMock(), slot)
        assert set(registry.registered_kinds()) == set(TriggerKind)


class TestConsume:
    @pytest.mark.asyncio
    async def test_runs_handler_and_clears(
        self, registry: TriggerRegistry, slot: InMemorySlot, notifier: MagicMock
    ):
        handler = ok_handler()
        registry.register(TriggerKind.CHAT_SUMMARY, handler)
        registry.record(TriggerKind.CHAT_SUMMARY, "c1")

        result = await registry.consume("u1")

        assert result.success
        handler.assert_awaited_once_with("u1", "c1")
        assert slot.get() is None
        assert registry.state == TriggerState.IDLE
        levels = [c.args[0] for c in notifier.notify.await_args_list]
        assert levels == [NotificationLevel.INFO, NotificationLevel.SUCCESS]
        notifier.notify.assert_any_await(
            NotificationLevel.INFO, PROGRESS_MESSAGES[TriggerKind.CHAT_SUMMARY]
        )
        notifier.notify.assert_any_await(NotificationLevel.SUCCESS, SUCCESS_MESSAGE)

    @pytest.mark.asyncio
    async def test_only_latest_trigger_runs(self, registry: TriggerRegistry):
        mood = ok_handler()
        chat = ok_handler()
        registry.register(TriggerKind.MOOD, mood)
        registry.register(TriggerKind.CHAT_SUMMARY, chat)

        registry.record(TriggerKind.MOOD, "m1")
        registry.record(TriggerKind.CHAT_SUMMARY, "c1")
        await registry.consume("u1")

        mood.assert_not_awaited()
        chat.assert_awaited_once_with("u1", "c1")

    @pytest.mark.asyncio
    async def test_handler_exception_clears_slot(
        self, registry: TriggerRegistry, slot: InMemorySlot, notifier: MagicMock
    ):
        registry.register(TriggerKind.MOOD, AsyncMock(side_effect=RuntimeError("boom")))
        registry.record(TriggerKind.MOOD, "m1")

        result = await registry.consume("u1")

        assert not result.success
        assert result.error == "boom"
        assert slot.get() is None
        notifier.notify.assert_any_await(NotificationLevel.ERROR, "Memory update failed: boom")

    @pytest.mark.asyncio
    async def test_failed_result_clears_slot(
        self, registry: TriggerRegistry, slot: InMemorySlot, notifier: MagicMock
    ):
        registry.register(
            TriggerKind.JOURNAL, AsyncMock(return_value=UpdateResult.err("Global memory not found"))
        )
        registry.record(TriggerKind.JOURNAL, "j1")

        result = await registry.consume("u1")

        assert not result.success
        assert slot.get() is None
        notifier.notify.assert_any_await(
            NotificationLevel.ERROR, "Memory update failed: Global memory not found"
        )

    @pytest.mark.asyncio
    async def test_no_retry_after_failure(self, registry: TriggerRegistry):
        handler = AsyncMock(side_effect=RuntimeError("boom"))
        registry.register(TriggerKind.MOOD, handler)
        registry.record(TriggerKind.MOOD, "m1")

        await registry.consume("u1")
        second = await registry.consume("u1")

        assert second is None
        assert handler.await_count == 1

    @pytest.mark.asyncio
    async def test_trigger_recorded_during_processing_survives(
        self, registry: TriggerRegistry
    ):
        journal = ok_handler()

        async def mood(user_id: str, subject_id: str) -> UpdateResult:
            registry.record(TriggerKind.JOURNAL, "j2")
            return UpdateResult.ok("m")

        registry.register(TriggerKind.MOOD, mood)
        registry.register(TriggerKind.JOURNAL, journal)
        registry.record(TriggerKind.MOOD, "m1")

        await registry.consume("u1")

        pending = registry.pending()
        assert pending.kind == TriggerKind.JOURNAL
        assert pending.subject_id == "j2"

        result = await registry.consume("u1")
        assert result.success
        journal.assert_awaited_once_with("u1", "j2")
        assert registry.pending() is None

    @pytest.mark.asyncio
    async def test_trigger_recorded_during_failed_handler_survives(
        self, registry: TriggerRegistry
    ):
        async def mood(user_id: str, subject_id: str) -> UpdateResult:
            registry.record(TriggerKind.CHAT_SUMMARY, "c1")
            raise RuntimeError("boom")

        registry.register(TriggerKind.MOOD, mood)
        registry.record(TriggerKind.MOOD, "m1")

        result = await registry.consume("u1")

        assert not result.success
        assert registry.pending().kind == TriggerKind.CHAT_SUMMARY

    @pytest.mark.asyncio
    async def test_nothing_pending(self, registry: TriggerRegistry, notifier: MagicMock):
        assert await registry.consume("u1") is None
        notifier.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_user_keeps_trigger(
        self, registry: TriggerRegistry, slot: InMemorySlot
    ):
        handler = ok_handler()
        registry.register(TriggerKind.MOOD, handler)
        registry.record(TriggerKind.MOOD, "m1")

        assert await registry.consume(None) is None
        handler.assert_not_awaited()
        assert registry.pending() is not None

    @pytest.mark.asyncio
    async def test_no_handler(self, registry: TriggerRegistry, slot: InMemorySlot):
        registry.record(TriggerKind.MEDITATION, "med1")

        result = await registry.consume("u1")

        assert not result.success
        assert "meditation" in result.error
        assert slot.get() is None

    @pytest.mark.asyncio
    async def test_reentrant_consume_is_ignored(self, registry: TriggerRegistry):
        inner: list = []

        async def handler(user_id: str, subject_id: str) -> UpdateResult:
            assert registry.state == TriggerState.PROCESSING
            inner.append(await registry.consume(user_id))
            return UpdateResult.ok("m")

        registry.register(TriggerKind.MOOD, handler)
        registry.record(TriggerKind.MOOD, "m1")

        result = await registry.consume("u1")

        assert result.success
        assert inner == [None]

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_block_update(
        self, registry: TriggerRegistry, notifier: MagicMock, slot: InMemorySlot
    ):
        notifier.notify.side_effect = ConnectionError("offline")
        handler = ok_handler()
        registry.register(TriggerKind.MOOD, handler)
        registry.record(TriggerKind.MOOD, "m1")

        result = await registry.consume("u1")

        assert result.success
        handler.assert_awaited_once()
        assert slot.get() is None

    @pytest.mark.asyncio
    async def test_without_notifier(self, slot: InMemorySlot):
        registry = TriggerRegistry(slot)
        registry.register(TriggerKind.MOOD, ok_handler())
        registry.record(TriggerKind.MOOD, "m1")

        result = await registry.consume("u1")
        assert result.success


class TestDurability:
    @pytest.mark.asyncio
    async def test_pending_trigger_survives_restart(self, tmp_path: Path):
        path = tmp_path / "pending_trigger.json"
        TriggerRegistry(JSONFileSlot(path)).record(TriggerKind.VIDEO_ENDED, "s1")

        handler = ok_handler()
        registry = TriggerRegistry(JSONFileSlot(path))
        registry.register(TriggerKind.VIDEO_ENDED, handler)
        result = await registry.consume("u1")

        assert result.success
        handler.assert_awaited_once_with("u1", "s1")
        assert not path.exists()


class TestEventLog:
    @pytest.mark.asyncio
    async def test_logs_record_and_consume(self, slot: InMemorySlot, tmp_path: Path):
        event_logger = JSONLLogger(log_dir=tmp_path)
        registry = TriggerRegistry(slot, event_logger=event_logger)
        registry.register(TriggerKind.JOURNAL, ok_handler())

        registry.record(TriggerKind.MOOD, "m1")
        registry.record(TriggerKind.JOURNAL, "j1")
        await registry.consume("u1")

        events = [json.loads(line) for line in event_logger.log_path.read_text().splitlines()]
        assert [e["event"] for e in events] == [
            "trigger_recorded",
            "trigger_recorded",
            "trigger_consumed",
        ]
        assert "replaced" not in events[0].get("extra", {})
        assert events[1]["extra"]["replaced"] == "mood"
        assert events[2]["user_id"] == "u1"
        assert events[2]["success"] is True
