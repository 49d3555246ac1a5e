"""Coordination board: records, repositories and the owning container."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..config import HelprotaSettings
from ..fanout import HELPERS_CHANNEL, TASKS_CHANNEL, VISITS_CHANNEL, FanOut
from ..storage import JsonDocumentStore
from .errors import (
    BoardError,
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from .models import TASK_STATUSES, BoardConfig, Helper, Task, TaskStatus, Visit
from .repository import Clock, ConfigGate, HelperRepository, TaskRepository, VisitRepository


@dataclass(slots=True)
class Board:
    """All repositories of one data directory, constructed once at startup."""

    tasks: TaskRepository
    visits: VisitRepository
    helpers: HelperRepository
    config: ConfigGate
    fanout: FanOut

    @classmethod
    def open(
        cls,
        settings: HelprotaSettings,
        *,
        fanout: FanOut | None = None,
        clock: Clock | None = None,
    ) -> "Board":
        """Load every document from ``settings.data_dir`` and wire publishing."""

        store = JsonDocumentStore(settings.data_dir)
        fanout = fanout or FanOut(
            max_subscribers=settings.max_subscribers,
            queue_size=settings.subscriber_queue_size,
        )
        return cls(
            tasks=TaskRepository(
                store,
                default_category=settings.default_category,
                publish=fanout.publish,
                clock=clock,
            ),
            visits=VisitRepository(store, publish=fanout.publish, clock=clock),
            helpers=HelperRepository(store, publish=fanout.publish, clock=clock),
            config=ConfigGate(store, default_pin=settings.default_pin),
            fanout=fanout,
        )

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        """Current state of every broadcast collection, keyed by channel."""

        return {
            TASKS_CHANNEL: self.tasks.snapshot(),
            VISITS_CHANNEL: self.visits.snapshot(),
            HELPERS_CHANNEL: self.helpers.snapshot(),
        }


__all__ = [
    "Board",
    "BoardConfig",
    "BoardError",
    "ConfigGate",
    "ConflictError",
    "ForbiddenError",
    "Helper",
    "HelperRepository",
    "InvalidInputError",
    "NotFoundError",
    "TASK_STATUSES",
    "Task",
    "TaskRepository",
    "TaskStatus",
    "Visit",
    "VisitRepository",
]
