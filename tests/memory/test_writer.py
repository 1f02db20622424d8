"""Tests for MemoryWriter and UpdateResult."""

import pytest

from mindmem.errors import SubjectNotFoundError
from mindmem.memory import MemoryStore, MemoryWriter, UpdateResult


class TestMemoryWriter:
    def test_replace_overwrites(self, store: MemoryStore):
        store.create_user("u1")
        writer = MemoryWriter(store)

        writer.replace("u1", "first")
        writer.replace("u1", "second")

        assert store.get_user("u1").memory == "second"

    def test_replace_unknown_user(self, store: MemoryStore):
        with pytest.raises(SubjectNotFoundError):
            MemoryWriter(store).replace("ghost", "memory")


class TestUpdateResult:
    def test_ok(self):
        result = UpdateResult.ok("memory")
        assert result.success
        assert result.memory == "memory"
        assert result.error is None

    def test_err(self):
        result = UpdateResult.err("User not found")
        assert not result.success
        assert result.memory is None
        assert result.error == "User not found"
