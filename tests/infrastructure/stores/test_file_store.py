import json
from unittest.mock import patch

import pytest

from wordwise.domain.cache.ports import QuotaExceededError, StorageError
from wordwise.infrastructure.adapters.stores.file_store import JsonFileStore


def test_writes_survive_reopen(tmp_path):
    path = tmp_path / "nested" / "cache.json"
    store = JsonFileStore(path)
    store.set_item("a", "1")
    store.set_item("b", "2")
    store.remove_item("a")

    reopened = JsonFileStore(path)

    assert reopened.keys() == ["b"]
    assert json.loads(path.read_text()) == {"b": "2"}


def test_missing_file_starts_empty(tmp_path):
    assert JsonFileStore(tmp_path / "none.json").keys() == []


@pytest.mark.parametrize("content", ["{broken", "[1, 2]"])
def test_corrupt_file_starts_empty(tmp_path, content):
    path = tmp_path / "cache.json"
    path.write_text(content)

    store = JsonFileStore(path)

    assert store.keys() == []
    store.set_item("a", "1")
    assert json.loads(path.read_text()) == {"a": "1"}


def test_quota(tmp_path):
    store = JsonFileStore(tmp_path / "cache.json", quota_chars=8)
    store.set_item("k", "1234")

    with pytest.raises(QuotaExceededError):
        store.set_item("k2", "12345")
    assert store.get_item("k2") is None


def test_failed_flush_rolls_back(tmp_path):
    store = JsonFileStore(tmp_path / "cache.json")
    store.set_item("a", "1")

    with patch("wordwise.infrastructure.adapters.stores.file_store.os.replace") as mock_replace:
        mock_replace.side_effect = OSError("disk full")
        with pytest.raises(StorageError):
            store.set_item("a", "2")
        with pytest.raises(StorageError):
            store.set_item("b", "3")
        with pytest.raises(StorageError):
            store.remove_item("a")

    assert store.get_item("a") == "1"
    assert store.get_item("b") is None
    assert json.loads((tmp_path / "cache.json").read_text()) == {"a": "1"}
    assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]
