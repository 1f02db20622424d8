"""Pending memory-update triggers."""

from .models import PendingTrigger, TriggerKind, TriggerState
from .registry import Handler, TriggerRegistry, build_registry
from .slot import InMemorySlot, JSONFileSlot, TriggerSlot

__all__ = [
    "Handler",
    "InMemorySlot",
    "JSONFileSlot",
    "PendingTrigger",
    "TriggerKind",
    "TriggerRegistry",
    "TriggerSlot",
    "TriggerState",
    "build_registry",
]
