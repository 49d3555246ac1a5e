"""MCP tool registration for Helprota."""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from typing import Any, Iterator

from fastmcp import Context, FastMCP

from ..board import Board, BoardError


@dataclass(slots=True)
class ToolHandles:
    list_tasks: Any
    create_task: Any
    update_task: Any
    delete_task: Any
    claim_task: Any
    unclaim_task: Any
    complete_task: Any
    list_visits: Any
    create_visit: Any
    book_visit: Any
    unbook_visit: Any
    delete_visit: Any
    list_helpers: Any
    register_helper: Any
    verify_pin: Any


@contextlib.contextmanager
def _board_errors() -> Iterator[None]:
    """Report board errors to MCP clients as plain ValueErrors."""

    try:
        yield
    except BoardError as exc:
        raise ValueError(f"{exc.message} ({exc.status_code})") from exc


def register_tools(server: FastMCP, *, board: Board) -> ToolHandles:
    """Register the board operations as MCP tools on the server."""

    async def _list_tasks(context: Context | None = None) -> list[dict[str, Any]]:
        """List all tasks, newest first."""

        tasks = board.tasks.snapshot()
        _emit_log(context, "debug", "Listing tasks", extra={"count": len(tasks)})
        return tasks

    async def _create_task(
        title: str,
        description: str | None = None,
        category: str | None = None,
        desired_date: str | None = None,
        desired_time: str | None = None,
        twin: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        with _board_errors():
            task = board.tasks.create(
                title,
                description=description,
                category=category,
                desired_date=desired_date,
                desired_time=desired_time,
                twin=twin,
            )
        _emit_log(context, "info", "Created task", extra={"task_id": task.id})
        return task.to_document()

    async def _update_task(
        task_id: str,
        fields: dict[str, Any],
        context: Context | None = None,
    ) -> dict[str, Any]:
        with _board_errors():
            task = board.tasks.update(task_id, fields)
        _emit_log(context, "info", "Updated task", extra={"task_id": task_id})
        return task.to_document()

    async def _delete_task(task_id: str, context: Context | None = None) -> dict[str, bool]:
        board.tasks.delete(task_id)
        _emit_log(context, "info", "Deleted task", extra={"task_id": task_id})
        return {"ok": True}

    async def _claim_task(
        task_id: str,
        helper_name: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        with _board_errors():
            task = board.tasks.claim(task_id, helper_name)
        _emit_log(
            context,
            "info",
            "Claimed task",
            extra={"task_id": task_id, "helper": helper_name},
        )
        return task.to_document()

    async def _unclaim_task(task_id: str, context: Context | None = None) -> dict[str, Any]:
        with _board_errors():
            task = board.tasks.unclaim(task_id)
        _emit_log(context, "info", "Unclaimed task", extra={"task_id": task_id})
        return task.to_document()

    async def _complete_task(task_id: str, context: Context | None = None) -> dict[str, Any]:
        with _board_errors():
            task = board.tasks.complete(task_id)
        _emit_log(context, "info", "Completed task", extra={"task_id": task_id})
        return task.to_document()

    tool_list_tasks = server.tool(
        name="list_tasks",
        description="List every task on the board with its status and claim details.",
    )(_list_tasks)

    tool_create_task = server.tool(
        name="create_task",
        description="Post a new task. It starts in the waiting state.",
    )(_create_task)

    tool_update_task = server.tool(
        name="update_task",
        description=(
            "Overwrite task fields directly. This bypasses claim/complete rules and is "
            "meant for corrections."
        ),
    )(_update_task)

    tool_delete_task = server.tool(
        name="delete_task",
        description="Remove a task. Unknown ids are ignored.",
    )(_delete_task)

    tool_claim_task = server.tool(
        name="claim_task",
        description="Reserve a task for a helper, replacing any earlier claim.",
    )(_claim_task)

    tool_unclaim_task = server.tool(
        name="unclaim_task",
        description="Release a task back to waiting and clear its claim.",
    )(_unclaim_task)

    tool_complete_task = server.tool(
        name="complete_task",
        description="Mark a task as done.",
    )(_complete_task)

    async def _list_visits(context: Context | None = None) -> list[dict[str, Any]]:
        visits = board.visits.snapshot()
        _emit_log(context, "debug", "Listing visits", extra={"count": len(visits)})
        return visits

    async def _create_visit(
        date: str,
        start_time: str,
        end_time: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        visit = board.visits.create(date, start_time, end_time)
        _emit_log(context, "info", "Created visit", extra={"visit_id": visit.id})
        return visit.to_document()

    async def _book_visit(
        visit_id: str,
        helper_name: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        with _board_errors():
            visit = board.visits.book(visit_id, helper_name)
        _emit_log(
            context,
            "info",
            "Booked visit",
            extra={"visit_id": visit_id, "helper": helper_name},
        )
        return visit.to_document()

    async def _unbook_visit(visit_id: str, context: Context | None = None) -> dict[str, Any]:
        with _board_errors():
            visit = board.visits.unbook(visit_id)
        _emit_log(context, "info", "Unbooked visit", extra={"visit_id": visit_id})
        return visit.to_document()

    async def _delete_visit(visit_id: str, context: Context | None = None) -> dict[str, bool]:
        board.visits.delete(visit_id)
        _emit_log(context, "info", "Deleted visit", extra={"visit_id": visit_id})
        return {"ok": True}

    tool_list_visits = server.tool(
        name="list_visits",
        description="List visit slots and who has booked them.",
    )(_list_visits)

    tool_create_visit = server.tool(
        name="create_visit",
        description="Open a new visit slot for a date and time range.",
    )(_create_visit)

    tool_book_visit = server.tool(
        name="book_visit",
        description="Book an open visit slot. Fails if someone already booked it.",
    )(_book_visit)

    tool_unbook_visit = server.tool(
        name="unbook_visit",
        description="Cancel the booking on a visit slot.",
    )(_unbook_visit)

    tool_delete_visit = server.tool(
        name="delete_visit",
        description="Remove a visit slot. Unknown ids are ignored.",
    )(_delete_visit)

    async def _list_helpers(context: Context | None = None) -> list[dict[str, Any]]:
        return board.helpers.snapshot()

    async def _register_helper(name: str, context: Context | None = None) -> dict[str, Any]:
        with _board_errors():
            helper = board.helpers.register(name)
        _emit_log(context, "info", "Registered helper", extra={"helper_id": helper.id})
        return helper.to_document()

    async def _verify_pin(pin: str, context: Context | None = None) -> dict[str, bool]:
        return {"ok": board.config.verify_pin(pin)}

    tool_list_helpers = server.tool(
        name="list_helpers",
        description="List registered helpers.",
    )(_list_helpers)

    tool_register_helper = server.tool(
        name="register_helper",
        description="Register a helper by name. Returns the existing helper if the name is taken.",
    )(_register_helper)

    tool_verify_pin = server.tool(
        name="verify_pin",
        description="Check whether a PIN matches the board PIN.",
    )(_verify_pin)

    return ToolHandles(
        list_tasks=tool_list_tasks,
        create_task=tool_create_task,
        update_task=tool_update_task,
        delete_task=tool_delete_task,
        claim_task=tool_claim_task,
        unclaim_task=tool_unclaim_task,
        complete_task=tool_complete_task,
        list_visits=tool_list_visits,
        create_visit=tool_create_visit,
        book_visit=tool_book_visit,
        unbook_visit=tool_unbook_visit,
        delete_visit=tool_delete_visit,
        list_helpers=tool_list_helpers,
        register_helper=tool_register_helper,
        verify_pin=tool_verify_pin,
    )


__all__ = ["register_tools", "ToolHandles"]

logger = logging.getLogger(__name__)


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)
