"""Tests for trigger slots."""

from pathlib import Path

from mindmem.triggers import InMemorySlot, JSONFileSlot


class TestInMemorySlot:
    def test_empty_by_default(self):
        assert InMemorySlot().get() is None

    def test_set_replaces(self):
        slot = InMemorySlot("a")
        slot.set("b")
        assert slot.get() == "b"

    def test_clear(self):
        slot = InMemorySlot("a")
        slot.clear()
        slot.clear()
        assert slot.get() is None


class TestJSONFileSlot:
    def test_missing_file_is_empty(self, tmp_path: Path):
        assert JSONFileSlot(tmp_path / "slot.json").get() is None

    def test_empty_file_is_empty(self, tmp_path: Path):
        path = tmp_path / "slot.json"
        path.write_text("")
        assert JSONFileSlot(path).get() is None

    def test_set_creates_parent_dirs(self, tmp_path: Path):
        path = tmp_path / "nested" / "slot.json"
        JSONFileSlot(path).set('{"kind": "mood"}')
        assert path.read_text() == '{"kind": "mood"}'
        assert not path.with_suffix(".json.tmp").exists()

    def test_value_survives_new_instance(self, tmp_path: Path):
        path = tmp_path / "slot.json"
        JSONFileSlot(path).set("v1")
        assert JSONFileSlot(path).get() == "v1"

    def test_clear_removes_file(self, tmp_path: Path):
        path = tmp_path / "slot.json"
        slot = JSONFileSlot(path)
        slot.set("v1")
        slot.clear()
        slot.clear()
        assert not path.exists()
        assert slot.get() is None
