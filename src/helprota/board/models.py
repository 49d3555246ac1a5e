"""Record models for the coordination board.

Records serialise with camelCase keys so persisted documents and API payloads
share one shape.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

TaskStatus = Literal["waiting", "reserved", "done"]

TASK_STATUSES: tuple[str, ...] = ("waiting", "reserved", "done")


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


class CamelModel(BaseModel):
    """Base model with camelCase JSON serialization."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Task(CamelModel):
    """A unit of requested help."""

    id: str
    title: str = ""
    description: str = ""
    category: str = ""
    desired_date: str = ""
    desired_time: str = ""
    twin: str = ""
    status: TaskStatus = "waiting"
    created_at: str
    claimed_by: str | None = None
    claimed_at: str | None = None
    completed_at: str | None = None

    @field_validator("title", "description", "category", "desired_date", "desired_time", "twin", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Visit(CamelModel):
    """A bookable, single-occupancy time slot."""

    id: str
    date: str
    start_time: str
    end_time: str
    booked_by: str | None = None
    booked_at: str | None = None
    created_at: str

    @property
    def is_booked(self) -> bool:
        return self.booked_by is not None or self.booked_at is not None


class Helper(CamelModel):
    """A named volunteer, unique by trimmed name."""

    id: str
    name: str
    joined_at: str


class BoardConfig(CamelModel):
    """Shared settings persisted alongside the collections."""

    pin: str = Field(..., description="Shared PIN gating set-pin and verify-pin.")


__all__ = [
    "BoardConfig",
    "CamelModel",
    "Helper",
    "TASK_STATUSES",
    "Task",
    "TaskStatus",
    "Visit",
    "to_camel",
]
