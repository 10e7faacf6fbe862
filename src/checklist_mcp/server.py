"""FastMCP server bootstrap for Checklist MCP."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from fastmcp import FastMCP

from . import __version__
from .config import ChecklistSettings, get_settings
from .storage import (
    DEFAULT_NAMESPACE,
    NamespaceManager,
    NamespaceStores,
    SessionRegistry,
    WorkInfoCache,
)
from .tools import register_tools


def configure_logging(level: str) -> None:
    """Configure root logging for the Checklist server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def create_server(
    settings: Optional[ChecklistSettings] = None,
    *,
    sessions: SessionRegistry | None = None,
    works: WorkInfoCache | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server and its per-namespace stores.

    Injected ``sessions`` and ``works`` back the default namespace.
    """

    settings = settings or get_settings()
    if sessions is None:
        sessions = SessionRegistry(settings.max_sessions)
    if works is None:
        works = WorkInfoCache(settings.max_work_info, sessions=sessions)
    namespaces = NamespaceManager(
        settings.max_namespaces,
        max_sessions=settings.max_sessions,
        max_work_info=settings.max_work_info,
        default=NamespaceStores(namespace=DEFAULT_NAMESPACE, sessions=sessions, works=works),
    )

    server = FastMCP(
        name="Checklist MCP",
        version=__version__,
        instructions=(
            "Checklist keeps a hierarchical TODO list per session and lets agents hand work "
            "over to each other. Use update_tasks to build the tree, mark_task_as_done as work "
            "completes, and save_current_work_info before handing off."
        ),
    )

    handles = register_tools(server, namespaces=namespaces)

    def status_resource() -> str:
        """Return a JSON string summarizing basic runtime state."""

        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server_version": __version__,
            "log_level": settings.log_level,
            "transport": settings.transport,
            "sessions": {
                **sessions.stats(),
                "recent": sessions.session_ids()[:5],
            },
            "works": {
                **works.stats(),
                "recent": [summary.to_dict() for summary in works.list_recent()[:5]],
            },
            "namespaces": namespaces.stats(),
        }
        return json.dumps(payload)

    server.resource(
        "resource://checklist/status",
        name="checklist_status",
        title="Checklist MCP Status",
        description="Provides session, work-info and namespace occupancy for the Checklist MCP server.",
        mime_type="application/json",
        tags={"status", "health"},
    )(status_resource)

    setattr(server, "sessions", sessions)
    setattr(server, "works", works)
    setattr(server, "namespaces", namespaces)
    setattr(server, "tool_handles", handles)
    setattr(server, "checklist_status", status_resource)
    return server


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="checklist-mcp",
        description="Run the Checklist MCP server.",
    )
    parser.add_argument("--transport", choices=["stdio", "http"], help="Transport to serve on")
    parser.add_argument("--host", help="Bind address for the http transport")
    parser.add_argument("--port", "-p", type=int, help="Port for the http transport")
    parser.add_argument(
        "--log-level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        type=str.upper,
        help="Override CHECKLIST_LOG_LEVEL",
    )
    return parser


def resolve_settings(argv: Sequence[str] | None = None) -> ChecklistSettings:
    """Apply command-line overrides on top of environment settings."""

    args = build_parser().parse_args(argv)
    overrides = {
        key: value
        for key, value in {
            "transport": args.transport,
            "host": args.host,
            "port": args.port,
            "log_level": args.log_level,
        }.items()
        if value is not None
    }
    settings = get_settings()
    return settings.model_copy(update=overrides) if overrides else settings


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for running the Checklist MCP server via CLI."""

    settings = resolve_settings(argv)
    configure_logging(settings.log_level)

    server = create_server(settings)
    logging.getLogger(__name__).info(
        "Launching Checklist MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "transport": settings.transport,
            "max_sessions": settings.max_sessions,
            "max_work_info": settings.max_work_info,
            "max_namespaces": settings.max_namespaces,
        },
    )
    if settings.transport == "http":
        server.run(transport="http", host=settings.host, port=settings.port)
    else:
        server.run()


if __name__ == "__main__":
    main()
