from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from helprota.storage import JsonDocumentStore


def test_load_returns_fallback_when_missing(tmp_path: Path) -> None:
    store = JsonDocumentStore(tmp_path / "data")

    assert (tmp_path / "data").is_dir()
    assert store.load("tasks", []) == []
    assert store.load("config", {"pin": "0000"}) == {"pin": "0000"}


def test_save_overwrites_whole_document(tmp_path: Path) -> None:
    store = JsonDocumentStore(tmp_path)

    store.save("tasks", [{"id": "a"}, {"id": "b"}])
    store.save("tasks", [{"id": "c"}])

    assert store.load("tasks", []) == [{"id": "c"}]
    raw = (tmp_path / "tasks.json").read_text(encoding="utf-8")
    assert json.loads(raw) == [{"id": "c"}]
    assert raw.startswith("[\n  {")


def test_save_keeps_non_ascii_text(tmp_path: Path) -> None:
    store = JsonDocumentStore(tmp_path)

    store.save("tasks", [{"category": "📦 기타"}])

    assert "📦 기타" in (tmp_path / "tasks.json").read_text(encoding="utf-8")


def test_unparsable_document_is_logged_and_ignored(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (tmp_path / "visits.json").write_text("{not json", encoding="utf-8")
    store = JsonDocumentStore(tmp_path)

    with caplog.at_level(logging.ERROR, logger="helprota.storage.json_store"):
        assert store.load("visits", []) == []

    assert any(record.message == "Failed to load document" for record in caplog.records)


def test_save_failure_propagates(tmp_path: Path) -> None:
    store = JsonDocumentStore(tmp_path)
    (tmp_path / "helpers.json").mkdir()

    with pytest.raises(OSError):
        store.save("helpers", [])
