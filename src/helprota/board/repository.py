"""In-memory collections backed by whole-document persistence.

Each repository owns one ordered collection. Every mutation rewrites the
collection's document and then publishes the full collection on its channel.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, Generic, Mapping, TypeVar
from uuid import uuid4

from pydantic import ValidationError

from ..fanout import HELPERS_CHANNEL, TASKS_CHANNEL, VISITS_CHANNEL
from ..storage import JsonDocumentStore
from .errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from .models import BoardConfig, CamelModel, Helper, Task, Visit, to_camel

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=CamelModel)

Publisher = Callable[[str, Any], Any]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _no_publish(channel: str, data: Any) -> None:
    return None


class _Collection(Generic[RecordT]):
    document: ClassVar[str]
    channel: ClassVar[str]
    model: ClassVar[type[CamelModel]]

    def __init__(
        self,
        store: JsonDocumentStore,
        *,
        publish: Publisher | None = None,
        clock: Clock | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._publish = publish or _no_publish
        self._clock = clock or _utcnow
        self._new_id = id_factory or (lambda: str(uuid4()))
        # Stored entries that fail validation; written back untouched on every save.
        self._rejected: list[Any] = []
        self._records: list[RecordT] = self._load()

    def _load(self) -> list[RecordT]:
        raw = self._store.load(self.document, [])
        if not isinstance(raw, list):
            logger.error(
                "Ignoring malformed document",
                extra={"document": self.document, "type": type(raw).__name__},
            )
            return []
        records: list[RecordT] = []
        for item in raw:
            try:
                records.append(self.model.model_validate(item))  # type: ignore[arg-type]
            except ValidationError as exc:
                self._rejected.append(item)
                logger.error(
                    "Keeping invalid record out of the collection",
                    extra={
                        "document": self.document,
                        "record_id": item.get("id") if isinstance(item, dict) else None,
                        "error": str(exc),
                    },
                )
        logger.info(
            "Loaded collection",
            extra={"document": self.document, "count": len(records), "rejected": len(self._rejected)},
        )
        return records

    def _now(self) -> str:
        return self._clock().isoformat()

    def _find(self, record_id: str) -> RecordT | None:
        for record in self._records:
            if record.id == record_id:  # type: ignore[attr-defined]
                return record
        return None

    def _require(self, record_id: str) -> RecordT:
        record = self._find(record_id)
        if record is None:
            raise NotFoundError("Not found")
        return record

    def _commit(self) -> None:
        snapshot = self.snapshot()
        self._store.save(self.document, snapshot + self._rejected)
        self._publish(self.channel, snapshot)

    def __len__(self) -> int:
        return len(self._records)

    def list(self) -> list[RecordT]:
        """Return the current records in stored order."""

        return list(self._records)

    def get(self, record_id: str) -> RecordT:
        return self._require(record_id)

    def snapshot(self) -> list[dict[str, Any]]:
        """Return the collection as a JSON-ready document."""

        return [record.to_document() for record in self._records]

    def delete(self, record_id: str) -> None:
        """Remove a record if present. Deleting an unknown id is not an error."""

        before = len(self._records)
        self._records = [record for record in self._records if record.id != record_id]  # type: ignore[attr-defined]
        self._rejected = [
            item
            for item in self._rejected
            if not (isinstance(item, dict) and item.get("id") == record_id)
        ]
        self._commit()
        logger.info(
            "Deleted record",
            extra={
                "document": self.document,
                "record_id": record_id,
                "removed": before - len(self._records),
            },
        )


class TaskRepository(_Collection[Task]):
    """Tasks, newest first, with the claim/unclaim/complete transitions.

    Transitions are not guarded by the current status: any transition applies
    to any task found by id, and concurrent claims are last-write-wins.
    """

    document = "tasks"
    channel = TASKS_CHANNEL
    model = Task

    def __init__(self, store: JsonDocumentStore, *, default_category: str = "", **kwargs: Any) -> None:
        self._default_category = default_category
        super().__init__(store, **kwargs)

    def create(
        self,
        title: str | None,
        description: str | None = None,
        category: str | None = None,
        desired_date: str | None = None,
        desired_time: str | None = None,
        twin: str | None = None,
    ) -> Task:
        if not title or not title.strip():
            raise InvalidInputError("Title required")

        task = Task(
            id=self._new_id(),
            title=title,
            description=description or "",
            category=category or self._default_category,
            desired_date=desired_date or "",
            desired_time=desired_time or "",
            twin=twin or "",
            status="waiting",
            created_at=self._now(),
        )
        self._records.insert(0, task)
        self._commit()
        logger.info("Created task", extra={"task_id": task.id})
        return task

    def update(self, task_id: str, fields: Mapping[str, Any]) -> Task:
        """Overwrite the given fields on a task.

        This is a raw patch for free-form edits. It does not go through the
        transitions below, so it can set any status and claim fields directly.
        ``id`` and ``createdAt`` cannot be patched and unknown keys are ignored.
        """

        task = self._require(task_id)
        updates = _patchable_fields(fields)
        # Validate the merged record before touching the stored one.
        try:
            merged = Task.model_validate({**task.to_document(), **updates})
        except ValidationError as exc:
            raise InvalidInputError(f"Invalid task fields: {exc.error_count()} error(s)") from exc
        for name in Task.model_fields:
            setattr(task, name, getattr(merged, name))
        self._commit()
        logger.info("Updated task", extra={"task_id": task_id, "fields": sorted(updates)})
        return task

    def claim(self, task_id: str, helper_name: str) -> Task:
        _require_helper_name(helper_name)
        task = self._require(task_id)
        task.status = "reserved"
        task.claimed_by = helper_name
        task.claimed_at = self._now()
        self._commit()
        logger.info("Claimed task", extra={"task_id": task_id, "helper": helper_name})
        return task

    def unclaim(self, task_id: str) -> Task:
        task = self._require(task_id)
        task.status = "waiting"
        task.claimed_by = None
        task.claimed_at = None
        self._commit()
        logger.info("Unclaimed task", extra={"task_id": task_id})
        return task

    def complete(self, task_id: str) -> Task:
        task = self._require(task_id)
        task.status = "done"
        task.completed_at = self._now()
        self._commit()
        logger.info("Completed task", extra={"task_id": task_id, "helper": task.claimed_by})
        return task


class VisitRepository(_Collection[Visit]):
    """Visit slots in insertion order; first booking wins."""

    document = "visits"
    channel = VISITS_CHANNEL
    model = Visit

    def create(self, date: str, start_time: str, end_time: str) -> Visit:
        visit = Visit(
            id=self._new_id(),
            date=date,
            start_time=start_time,
            end_time=end_time,
            created_at=self._now(),
        )
        self._records.append(visit)
        self._commit()
        logger.info("Created visit", extra={"visit_id": visit.id, "date": date})
        return visit

    def book(self, visit_id: str, helper_name: str) -> Visit:
        _require_helper_name(helper_name)
        visit = self._require(visit_id)
        if visit.is_booked:
            raise ConflictError("Already booked")
        visit.booked_by = helper_name
        visit.booked_at = self._now()
        self._commit()
        logger.info("Booked visit", extra={"visit_id": visit_id, "helper": helper_name})
        return visit

    def unbook(self, visit_id: str) -> Visit:
        visit = self._require(visit_id)
        visit.booked_by = None
        visit.booked_at = None
        self._commit()
        logger.info("Unbooked visit", extra={"visit_id": visit_id})
        return visit


class HelperRepository(_Collection[Helper]):
    """Helper roster, deduplicated by trimmed name."""

    document = "helpers"
    channel = HELPERS_CHANNEL
    model = Helper

    def find_by_name(self, name: str) -> Helper | None:
        for helper in self._records:
            if helper.name == name:
                return helper
        return None

    def register(self, name: str | None) -> Helper:
        """Return the helper with this name, creating it on first registration."""

        normalized = (name or "").strip()
        if not normalized:
            raise InvalidInputError("Name required")

        existing = self.find_by_name(normalized)
        if existing is not None:
            return existing

        helper = Helper(id=self._new_id(), name=normalized, joined_at=self._now())
        self._records.append(helper)
        self._commit()
        logger.info("Registered helper", extra={"helper_id": helper.id, "helper": normalized})
        return helper


class ConfigGate:
    """Holds the shared PIN. Changes are persisted but never broadcast."""

    document = "config"

    def __init__(self, store: JsonDocumentStore, *, default_pin: str = "0000") -> None:
        self._store = store
        self._config = self._load(default_pin)

    def _load(self, default_pin: str) -> BoardConfig:
        raw = self._store.load(self.document, None)
        if raw is None:
            return BoardConfig(pin=default_pin)
        try:
            return BoardConfig.model_validate(raw)
        except ValidationError as exc:
            logger.error(
                "Ignoring invalid document",
                extra={"document": self.document, "error": str(exc)},
            )
            return BoardConfig(pin=default_pin)

    def verify_pin(self, candidate: str | None) -> bool:
        return candidate == self._config.pin

    def set_pin(self, old_pin: str | None, new_pin: str) -> None:
        if not self.verify_pin(old_pin):
            raise ForbiddenError("Wrong PIN")
        self._config.pin = new_pin
        self._store.save(self.document, self._config.to_document())
        logger.info("PIN changed")


def _require_helper_name(helper_name: str | None) -> None:
    if not helper_name or not helper_name.strip():
        raise InvalidInputError("Helper name required")


_FIXED_TASK_FIELDS = {"id", "created_at"}


def _patchable_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Map incoming keys (camelCase or snake_case) to patchable Task aliases."""

    aliases = {
        name: to_camel(name)
        for name in Task.model_fields
        if name not in _FIXED_TASK_FIELDS
    }
    by_alias = {alias: alias for alias in aliases.values()}
    updates: dict[str, Any] = {}
    for key, value in fields.items():
        alias = aliases.get(key) or by_alias.get(key)
        if alias is not None:
            updates[alias] = value
    return updates


__all__ = [
    "ConfigGate",
    "HelperRepository",
    "Publisher",
    "TaskRepository",
    "VisitRepository",
]
