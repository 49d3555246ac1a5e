"""Server bootstrap for Helprota."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from fastmcp import Context, FastMCP

from . import __version__
from .api import register_routes
from .board import Board
from .config import HelprotaSettings, get_settings
from .tools import register_tools


def configure_logging(level: str) -> None:
    """Configure root logging for the Helprota server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def create_mcp_server(board: Board) -> FastMCP:
    """Instantiate the FastMCP server exposing the board as tools."""

    server = FastMCP(
        name="Helprota",
        version=__version__,
        instructions=(
            "Helprota is a shared help board. Use the tools to post tasks, let helpers "
            "claim and complete them, and book visit slots."
        ),
    )

    handles = register_tools(server, board=board)

    @server.resource(
        "resource://helprota/status",
        name="helprota_status",
        description="Collection sizes and task status counts for the board.",
        mime_type="application/json",
    )
    def status_resource(context: Context) -> str:
        """Return a JSON string summarizing the board."""

        status_counts: dict[str, int] = {}
        for task in board.tasks.list():
            status_counts[task.status] = status_counts.get(task.status, 0) + 1

        visits = board.visits.list()
        booked = sum(1 for visit in visits if visit.is_booked)
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server_version": __version__,
            "tasks": {"count": len(board.tasks), "status_counts": status_counts},
            "visits": {"count": len(visits), "booked": booked, "open": len(visits) - booked},
            "helpers": {"count": len(board.helpers)},
            "subscribers": board.fanout.subscriber_count,
            "request_id": getattr(context, "request_id", None),
        }
        return json.dumps(payload)

    setattr(server, "board", board)
    setattr(server, "tool_handles", handles)
    return server


def create_app(
    settings: Optional[HelprotaSettings] = None,
    board: Board | None = None,
) -> FastAPI:
    """Build the HTTP application around a board loaded from the data directory."""

    settings = settings or get_settings()
    board = board or Board.open(settings)

    mcp_app = None
    if settings.mcp_enabled:
        mcp_server = create_mcp_server(board)
        mcp_app = mcp_server.http_app(path="/mcp")

    app = FastAPI(
        title="Helprota",
        description="Shared help board for tasks, visits and helpers",
        version=__version__,
        lifespan=mcp_app.lifespan if mcp_app is not None else None,
    )
    app.state.board = board
    app.state.settings = settings
    register_routes(app)

    if mcp_app is not None:
        app.mount("/mcp-server", mcp_app)

    if settings.static_dir and settings.static_dir.exists():
        _mount_static(app, settings.static_dir)

    logging.getLogger(__name__).info(
        "Board loaded",
        extra={
            "data_dir": str(settings.data_dir),
            "tasks": len(board.tasks),
            "visits": len(board.visits),
            "helpers": len(board.helpers),
            "mcp_enabled": settings.mcp_enabled,
        },
    )
    return app


def _mount_static(app: FastAPI, static_dir: Path) -> None:
    """Serve the page shell and its assets."""

    @app.get("/")
    async def serve_index() -> FileResponse:
        return FileResponse(static_dir / "index.html")

    app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")


def main() -> None:
    """Entry point for running the Helprota server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    app = create_app(settings)
    logging.getLogger(__name__).info(
        "Launching Helprota server",
        extra={
            "version": __version__,
            "host": settings.host,
            "port": settings.port,
            "log_level": settings.log_level,
        },
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
