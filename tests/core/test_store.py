from __future__ import annotations

import json

import pytest

from study_tutor.core.store import KeyValueStore, StoreError


def test_missing_file_reads_as_empty(tmp_path) -> None:
    store = KeyValueStore(tmp_path / "store" / "state.json")
    assert store.get("theme") is None
    assert store.get("theme", "system") == "system"
    assert store.snapshot() == {}
    assert store.delete("theme") is False


def test_set_persists_and_preserves_other_keys(tmp_path) -> None:
    path = tmp_path / "store" / "state.json"
    store = KeyValueStore(path)

    store.set("theme", "dark")
    store.set("study_history", [{"id": "a"}])

    assert KeyValueStore(path).get("theme") == "dark"
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "theme": "dark",
        "study_history": [{"id": "a"}],
    }
    assert not list(path.parent.glob("*.tmp"))


def test_delete_removes_only_the_key(tmp_path) -> None:
    store = KeyValueStore(tmp_path / "state.json")
    store.set("api_key", "sk-1")
    store.set("theme", "light")

    assert store.delete("api_key") is True
    assert store.snapshot() == {"theme": "light"}


def test_last_write_wins(tmp_path) -> None:
    path = tmp_path / "state.json"
    first, second = KeyValueStore(path), KeyValueStore(path)
    first.set("theme", "dark")
    second.set("theme", "light")
    assert first.get("theme") == "light"


def test_unicode_is_kept_readable(tmp_path) -> None:
    path = tmp_path / "state.json"
    KeyValueStore(path).set("subject", "과학")
    assert "과학" in path.read_text(encoding="utf-8")


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_corrupt_store_raises(tmp_path, content: str) -> None:
    path = tmp_path / "state.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(StoreError):
        KeyValueStore(path).get("theme")
