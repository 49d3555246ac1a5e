"""HTTP and WebSocket routes for the coordination board."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, Request, WebSocket
from fastapi.responses import JSONResponse
from pydantic import Field

from . import __version__
from .board import Board, BoardError
from .board.models import CamelModel
from .fanout import CLOSE, Subscriber

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["board"])
events_router = APIRouter(tags=["events"])


# ═══════════════════════════════════════════════════════════════
# REQUEST MODELS
# ═══════════════════════════════════════════════════════════════


class TaskCreateRequest(CamelModel):
    title: str | None = None
    description: str | None = None
    category: str | None = None
    desired_date: str | None = None
    desired_time: str | None = None
    twin: str | None = None


class HelperNameRequest(CamelModel):
    helper_name: str = Field(..., min_length=1)


class VisitCreateRequest(CamelModel):
    date: str
    start_time: str
    end_time: str


class HelperRegisterRequest(CamelModel):
    name: str | None = None


class PinVerifyRequest(CamelModel):
    pin: str | None = None


class PinChangeRequest(CamelModel):
    old_pin: str | None = None
    new_pin: str = Field(..., min_length=1)


async def get_board(request: Request) -> Board:
    return request.app.state.board


def _ok() -> dict[str, bool]:
    return {"ok": True}


async def board_error_handler(request: Request, exc: BoardError) -> JSONResponse:
    logger.info(
        "Rejected request",
        extra={"path": request.url.path, "status_code": exc.status_code, "error": exc.message},
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# ═══════════════════════════════════════════════════════════════
# TASKS
# ═══════════════════════════════════════════════════════════════


@router.get("/tasks")
async def list_tasks(board: Board = Depends(get_board)) -> list[dict[str, Any]]:
    return board.tasks.snapshot()


@router.post("/tasks")
async def create_task(body: TaskCreateRequest, board: Board = Depends(get_board)) -> dict[str, Any]:
    task = board.tasks.create(
        body.title,
        description=body.description,
        category=body.category,
        desired_date=body.desired_date,
        desired_time=body.desired_time,
        twin=body.twin,
    )
    return task.to_document()


@router.put("/tasks/{task_id}")
async def update_task(
    task_id: str,
    fields: dict[str, Any] = Body(...),
    board: Board = Depends(get_board),
) -> dict[str, Any]:
    return board.tasks.update(task_id, fields).to_document()


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, board: Board = Depends(get_board)) -> dict[str, bool]:
    board.tasks.delete(task_id)
    return _ok()


@router.post("/tasks/{task_id}/claim")
async def claim_task(
    task_id: str,
    body: HelperNameRequest,
    board: Board = Depends(get_board),
) -> dict[str, Any]:
    return board.tasks.claim(task_id, body.helper_name).to_document()


@router.post("/tasks/{task_id}/unclaim")
async def unclaim_task(task_id: str, board: Board = Depends(get_board)) -> dict[str, Any]:
    return board.tasks.unclaim(task_id).to_document()


@router.post("/tasks/{task_id}/complete")
async def complete_task(task_id: str, board: Board = Depends(get_board)) -> dict[str, Any]:
    return board.tasks.complete(task_id).to_document()


# ═══════════════════════════════════════════════════════════════
# VISITS
# ═══════════════════════════════════════════════════════════════


@router.get("/visits")
async def list_visits(board: Board = Depends(get_board)) -> list[dict[str, Any]]:
    return board.visits.snapshot()


@router.post("/visits")
async def create_visit(body: VisitCreateRequest, board: Board = Depends(get_board)) -> dict[str, Any]:
    return board.visits.create(body.date, body.start_time, body.end_time).to_document()


@router.post("/visits/{visit_id}/book")
async def book_visit(
    visit_id: str,
    body: HelperNameRequest,
    board: Board = Depends(get_board),
) -> dict[str, Any]:
    return board.visits.book(visit_id, body.helper_name).to_document()


@router.post("/visits/{visit_id}/unbook")
async def unbook_visit(visit_id: str, board: Board = Depends(get_board)) -> dict[str, Any]:
    return board.visits.unbook(visit_id).to_document()


@router.delete("/visits/{visit_id}")
async def delete_visit(visit_id: str, board: Board = Depends(get_board)) -> dict[str, bool]:
    board.visits.delete(visit_id)
    return _ok()


# ═══════════════════════════════════════════════════════════════
# HELPERS AND PIN
# ═══════════════════════════════════════════════════════════════


@router.get("/helpers")
async def list_helpers(board: Board = Depends(get_board)) -> list[dict[str, Any]]:
    return board.helpers.snapshot()


@router.post("/helpers")
async def register_helper(
    body: HelperRegisterRequest,
    board: Board = Depends(get_board),
) -> dict[str, Any]:
    return board.helpers.register(body.name).to_document()


@router.post("/verify-pin")
async def verify_pin(body: PinVerifyRequest, board: Board = Depends(get_board)) -> dict[str, bool]:
    return {"ok": board.config.verify_pin(body.pin)}


@router.post("/set-pin")
async def set_pin(body: PinChangeRequest, board: Board = Depends(get_board)) -> dict[str, bool]:
    board.config.set_pin(body.old_pin, body.new_pin)
    return _ok()


@router.get("/health")
async def health(board: Board = Depends(get_board)) -> dict[str, Any]:
    return {
        "status": "ok",
        "version": __version__,
        "subscribers": board.fanout.subscriber_count,
    }


# ═══════════════════════════════════════════════════════════════
# LIVE UPDATES
# ═══════════════════════════════════════════════════════════════


@events_router.websocket("/ws")
async def board_events(websocket: WebSocket) -> None:
    """Push every collection on connect, then each update as it is published."""
    board: Board = websocket.app.state.board
    await websocket.accept()

    subscriber = board.fanout.subscribe(board.snapshot())
    if subscriber is None:
        await websocket.close(code=4029, reason="Too many connections")
        return

    sender = asyncio.create_task(_pump(websocket, subscriber))
    receiver = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        done, pending = await asyncio.wait(
            {sender, receiver}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.debug(
                    "Event stream ended with error",
                    extra={"subscriber_id": subscriber.id, "error": str(task.exception())},
                )
    finally:
        board.fanout.unsubscribe(subscriber)


async def _pump(websocket: WebSocket, subscriber: Subscriber) -> None:
    while True:
        message = await subscriber.queue.get()
        if message is CLOSE:
            with contextlib.suppress(Exception):
                await websocket.close(code=4008, reason="Subscriber too slow")
            return
        await websocket.send_json(message)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Incoming messages are ignored; they only keep the connection alive.
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


def register_routes(app: FastAPI) -> None:
    app.include_router(router)
    app.include_router(events_router)
    app.add_exception_handler(BoardError, board_error_handler)


__all__ = ["get_board", "register_routes", "router", "events_router"]
