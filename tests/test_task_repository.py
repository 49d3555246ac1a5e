from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from helprota.board import Board, InvalidInputError, NotFoundError, TaskRepository
from helprota.fanout import TASKS_CHANNEL
from helprota.storage import JsonDocumentStore


class RecordingPublisher:
    def __init__(self) -> None:
        self.messages: list[tuple[str, Any]] = []

    def __call__(self, channel: str, data: Any) -> None:
        self.messages.append((channel, data))


def _stored_tasks(board: Board) -> list[dict[str, Any]]:
    path = board.tasks._store.document_path("tasks")  # type: ignore[attr-defined]
    return json.loads(path.read_text(encoding="utf-8"))


def test_create_task_defaults(board: Board) -> None:
    task = board.tasks.create("buy milk")

    assert task.status == "waiting"
    assert task.claimed_by is None
    assert task.claimed_at is None
    assert task.completed_at is None
    assert task.description == ""
    assert task.category == "📦 기타"
    assert task.created_at == "2024-06-01T09:00:01+00:00"
    assert _stored_tasks(board)[0]["title"] == "buy milk"


def test_new_tasks_are_prepended(board: Board) -> None:
    first = board.tasks.create("first")
    second = board.tasks.create("second")

    assert [task.id for task in board.tasks.list()] == [second.id, first.id]
    assert [task["id"] for task in _stored_tasks(board)] == [second.id, first.id]


@pytest.mark.parametrize("title", [None, "", "   "])
def test_create_rejects_blank_title(board: Board, title: str | None) -> None:
    with pytest.raises(InvalidInputError):
        board.tasks.create(title)

    assert board.tasks.list() == []


def test_task_lifecycle_scenario(board: Board) -> None:
    task = board.tasks.create("buy milk")

    claimed = board.tasks.claim(task.id, "Sam")
    assert claimed.status == "reserved"
    assert claimed.claimed_by == "Sam"
    assert claimed.claimed_at is not None

    done = board.tasks.complete(task.id)
    assert done.status == "done"
    assert done.completed_at is not None
    assert done.claimed_by == "Sam"

    released = board.tasks.unclaim(task.id)
    assert released.status == "waiting"
    assert released.claimed_by is None
    assert released.claimed_at is None
    # completedAt survives an unclaim from done.
    assert released.completed_at == done.completed_at


def test_claim_then_unclaim_on_waiting_task_round_trips(board: Board) -> None:
    task = board.tasks.create("walk dog")

    board.tasks.claim(task.id, "Kim")
    result = board.tasks.unclaim(task.id)

    assert result.status == "waiting"
    assert (result.claimed_by, result.claimed_at) == (None, None)


def test_reclaim_overwrites_previous_claim(board: Board) -> None:
    task = board.tasks.create("fix fence")

    board.tasks.claim(task.id, "Kim")
    board.tasks.complete(task.id)
    again = board.tasks.claim(task.id, "Lee")

    assert again.status == "reserved"
    assert again.claimed_by == "Lee"


@pytest.mark.parametrize("operation", ["unclaim", "complete"])
def test_transitions_on_unknown_task_raise_not_found(board: Board, operation: str) -> None:
    with pytest.raises(NotFoundError):
        getattr(board.tasks, operation)("missing")


def test_claim_unknown_task_raises_not_found(board: Board) -> None:
    with pytest.raises(NotFoundError):
        board.tasks.claim("missing", "Sam")


def test_claim_fields_are_present_together(board: Board) -> None:
    a = board.tasks.create("a")
    b = board.tasks.create("b")
    board.tasks.claim(a.id, "Sam")
    board.tasks.claim(b.id, "Kim")
    board.tasks.unclaim(b.id)
    board.tasks.complete(a.id)

    for task in board.tasks.list():
        assert (task.claimed_by is None) == (task.claimed_at is None)


def test_update_overwrites_fields_without_transition_rules(board: Board) -> None:
    task = board.tasks.create("paint")

    updated = board.tasks.update(
        task.id,
        {"title": "paint shed", "status": "done", "claimedBy": "Sam", "desired_date": "2024-06-02"},
    )

    assert updated.title == "paint shed"
    assert updated.status == "done"
    assert updated.claimed_by == "Sam"
    assert updated.desired_date == "2024-06-02"
    assert _stored_tasks(board)[0]["desiredDate"] == "2024-06-02"


def test_update_ignores_identity_and_unknown_fields(board: Board) -> None:
    task = board.tasks.create("paint")

    updated = board.tasks.update(task.id, {"id": "other", "createdAt": "x", "colour": "red"})

    assert updated.id == task.id
    assert updated.created_at == task.created_at


def test_update_rejects_unknown_status(board: Board) -> None:
    task = board.tasks.create("paint")

    with pytest.raises(InvalidInputError):
        board.tasks.update(task.id, {"status": "archived"})

    assert board.tasks.get(task.id).status == "waiting"


def test_update_unknown_task_raises_not_found(board: Board) -> None:
    with pytest.raises(NotFoundError):
        board.tasks.update("missing", {"title": "x"})


def test_delete_is_idempotent(board: Board) -> None:
    keep = board.tasks.create("keep")
    drop = board.tasks.create("drop")

    board.tasks.delete(drop.id)
    board.tasks.delete(drop.id)
    board.tasks.delete("never-existed")

    assert [task.id for task in board.tasks.list()] == [keep.id]


def test_every_mutation_publishes_full_collection(tmp_path: Path) -> None:
    publisher = RecordingPublisher()
    tasks = TaskRepository(JsonDocumentStore(tmp_path), publish=publisher)

    task = tasks.create("a")
    tasks.claim(task.id, "Sam")
    tasks.complete(task.id)
    tasks.unclaim(task.id)
    tasks.update(task.id, {"twin": "b"})
    tasks.delete(task.id)

    assert [channel for channel, _ in publisher.messages] == [TASKS_CHANNEL] * 6
    assert publisher.messages[1][1][0]["status"] == "reserved"
    assert publisher.messages[-1][1] == []


def test_failed_transition_does_not_publish(tmp_path: Path) -> None:
    publisher = RecordingPublisher()
    tasks = TaskRepository(JsonDocumentStore(tmp_path), publish=publisher)

    with pytest.raises(NotFoundError):
        tasks.complete("missing")

    assert publisher.messages == []


def test_tasks_reload_from_disk(tmp_path: Path) -> None:
    store = JsonDocumentStore(tmp_path)
    tasks = TaskRepository(store)
    task = tasks.create("persisted", twin="pair")
    tasks.claim(task.id, "Sam")

    reloaded = TaskRepository(JsonDocumentStore(tmp_path))

    [restored] = reloaded.list()
    assert restored.id == task.id
    assert restored.twin == "pair"
    assert restored.claimed_by == "Sam"


def test_invalid_document_loads_as_empty(tmp_path: Path) -> None:
    (tmp_path / "tasks.json").write_text(json.dumps({"not": "a list"}), encoding="utf-8")

    assert TaskRepository(JsonDocumentStore(tmp_path)).list() == []


def test_legacy_task_with_null_title_loads(tmp_path: Path) -> None:
    (tmp_path / "tasks.json").write_text(
        json.dumps(
            [
                {
                    "id": "t1",
                    "title": None,
                    "status": "waiting",
                    "createdAt": "2024-01-01T00:00:00.000Z",
                    "claimedBy": None,
                    "claimedAt": None,
                    "completedAt": None,
                }
            ]
        ),
        encoding="utf-8",
    )

    [task] = TaskRepository(JsonDocumentStore(tmp_path)).list()
    assert task.title == ""
    assert task.description == ""


@pytest.mark.parametrize("helper_name", ["", "   "])
def test_claim_rejects_blank_helper_name(board: Board, helper_name: str) -> None:
    task = board.tasks.create("buy milk")

    with pytest.raises(InvalidInputError):
        board.tasks.claim(task.id, helper_name)

    current = board.tasks.get(task.id)
    assert current.status == "waiting"
    assert current.claimed_by is None


def test_invalid_task_is_kept_on_disk_next_to_valid_ones(tmp_path: Path) -> None:
    valid = {
        "id": "t0",
        "title": "water plants",
        "status": "waiting",
        "createdAt": "2024-01-01T00:00:00.000Z",
    }
    invalid = {
        "id": "t1",
        "title": "old task",
        "status": "cancelled",
        "createdAt": "2024-01-01T00:00:00.000Z",
    }
    (tmp_path / "tasks.json").write_text(json.dumps([valid, invalid]), encoding="utf-8")

    tasks = TaskRepository(JsonDocumentStore(tmp_path))
    assert [task.id for task in tasks.list()] == ["t0"]

    created = tasks.create("new task")

    stored = json.loads((tmp_path / "tasks.json").read_text(encoding="utf-8"))
    assert [task["id"] for task in stored] == [created.id, "t0", "t1"]
    assert stored[-1] == invalid

    tasks.delete("t1")
    stored = json.loads((tmp_path / "tasks.json").read_text(encoding="utf-8"))
    assert [task["id"] for task in stored] == [created.id, "t0"]
