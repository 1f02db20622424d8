"""Shared fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from mindmem.memory import MemoryStore


@pytest.fixture
def store(tmp_path: Path) -> MemoryStore:
    """Create a MemoryStore with a temporary database."""
    store = MemoryStore(tmp_path / "test_memory.db")
    store.init_db()
    yield store
    store.close()


@pytest.fixture
def llm() -> AsyncMock:
    """An LLMClient whose complete() is an AsyncMock."""
    client = AsyncMock()
    client.complete = AsyncMock(return_value="Updated memory.")
    return client
