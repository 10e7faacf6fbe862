"""Tool registration for Checklist MCP."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.dependencies import get_http_headers

from ..errors import ChecklistError, TaskNotFound, WorkNotFound, validate_session_id
from ..storage import DEFAULT_NAMESPACE, NamespaceManager, validate_work_fields
from ..tasks import (
    EMPTY_TREE,
    TaskInput,
    TaskTree,
    format_task_tree,
    parse_path,
    validate_task_id,
    validate_work_id,
)

NAMESPACE_HEADER = "x-namespace"

RECENT_WORKS_HINT = (
    "If you find the required work info in the list above, extract the workId and call "
    "the `get_work_by_id` tool to get detailed information."
)


@dataclass(slots=True)
class ToolHandles:
    update_tasks: Any
    mark_task_as_done: Any
    get_all_tasks: Any
    save_current_work_info: Any
    get_recent_works_info: Any
    get_work_by_id: Any
    namespaces: NamespaceManager


def namespace_from_headers() -> str:
    """Return the namespace named by the ``X-Namespace`` request header.

    Calls outside an HTTP request (stdio transport) use the default namespace.
    """

    return get_http_headers().get(NAMESPACE_HEADER) or DEFAULT_NAMESPACE


def register_tools(
    server: FastMCP,
    *,
    namespaces: NamespaceManager,
    resolve_namespace: Callable[[], str] | None = None,
) -> ToolHandles:
    """Register the checklist and work-info tools on the server."""

    current_namespace = resolve_namespace or namespace_from_headers

    def _tool_error(operation: str, exc: ChecklistError) -> ToolError:
        _emit_log("warning", "Tool call failed", extra={"operation": operation, **exc.context()})
        return ToolError(str(exc))

    def _update_tasks(
        session_id: str,
        tasks: list[TaskInput],
        path: str = "/",
    ) -> dict[str, Any]:
        """Create, update, or remove tasks at a hierarchical path."""

        inputs = [TaskInput.model_validate(task) for task in tasks]
        try:
            validate_session_id(session_id)
            segments = parse_path(path)
            namespace = current_namespace()
            stores = namespaces.peek(namespace)
            entry = stores.sessions.peek(session_id, touch=False) if stores is not None else None
            if entry is None:
                # Rehearse on an empty tree; a failing call must not create or evict anything.
                TaskTree().replace_at(segments, inputs)
                stores = namespaces.get(namespace)
                entry = stores.sessions.get_or_create(session_id)
            with entry.lock:
                entry.tree.replace_at(segments, inputs)
                tree_view = format_task_tree(entry.tree.roots)
            stores.sessions.peek(session_id)
        except ChecklistError as exc:
            raise _tool_error("update_tasks", exc) from exc

        normalized = "/" + "/".join(segments)
        path_info = f" at path '{normalized}'" if segments else ""
        _emit_log(
            "info",
            "Updated tasks",
            extra={
                "namespace": namespace,
                "session_id": session_id,
                "path": normalized,
                "updated": len(inputs),
            },
        )
        return {
            "session_id": session_id,
            "path": normalized,
            "updated": len(inputs),
            "message": f"Successfully updated {len(inputs)} tasks{path_info} for session {session_id}.",
            "tree": tree_view,
        }

    def _mark_task_as_done(session_id: str, task_id: str) -> dict[str, Any]:
        """Mark one task DONE without touching its children."""

        try:
            validate_session_id(session_id)
            validate_task_id(task_id)
            stores = namespaces.peek(current_namespace())
            entry = stores.sessions.peek(session_id, touch=False) if stores is not None else None
            if entry is None:
                raise TaskNotFound(task_id)
            with entry.lock:
                entry.tree.mark_done(task_id)
                task_path = entry.tree.task_path(task_id)
                tree_view = format_task_tree(entry.tree.roots)
            stores.sessions.peek(session_id)
        except ChecklistError as exc:
            raise _tool_error("mark_task_as_done", exc) from exc

        _emit_log("info", "Marked task done", extra={"session_id": session_id, "task_id": task_id})
        return {
            "session_id": session_id,
            "task_id": task_id,
            "path": task_path,
            "message": f"Successfully marked task {task_id} as DONE",
            "tree": tree_view,
        }

    def _get_all_tasks(session_id: str) -> dict[str, Any]:
        """Return the session's full task hierarchy."""

        try:
            validate_session_id(session_id)
            stores = namespaces.peek(current_namespace())
        except ChecklistError as exc:
            raise _tool_error("get_all_tasks", exc) from exc

        entry = stores.sessions.peek(session_id) if stores is not None else None
        if entry is None:
            return {"session_id": session_id, "task_count": 0, "tree": EMPTY_TREE, "tasks": []}

        with entry.lock:
            payload = {
                "session_id": session_id,
                "task_count": entry.tree.count(),
                "tree": format_task_tree(entry.tree.roots),
                "tasks": entry.tree.to_dicts(),
            }
        _emit_log(
            "debug",
            "Listed tasks",
            extra={"session_id": session_id, "task_count": payload["task_count"]},
        )
        return payload

    tool_update = server.tool(
        name="update_tasks",
        description=(
            "Create or overwrite tasks at a hierarchical path ('/' is the root; '/a/b' is the "
            "child list of task b under task a). Tasks are matched by taskId: matches are "
            "updated, new ids are inserted, and tasks missing from the list are removed with "
            "their subtrees. Omit 'children' to keep a task's existing subtasks."
        ),
    )(_update_tasks)

    tool_mark_done = server.tool(
        name="mark_task_as_done",
        description="Search the whole session hierarchy for a taskId and set its status to DONE.",
    )(_mark_task_as_done)

    tool_get_all = server.tool(
        name="get_all_tasks",
        description="Retrieve the complete task hierarchy for a session as a formatted tree.",
    )(_get_all_tasks)

    def _save_current_work_info(
        work_summarize: str,
        work_description: str,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """Save a work summary, snapshotting the session's tasks when available."""

        try:
            validate_work_fields(work_description, work_summarize, session_id)
            stores = namespaces.get(current_namespace())
            result = stores.works.save(work_description, work_summarize, session_id)
        except ChecklistError as exc:
            raise _tool_error("save_current_work_info", exc) from exc

        messages = [f"Successfully saved work information with workId: {result.work_id}"]
        warnings: list[str] = []
        if result.warning is not None:
            warnings.append(str(result.warning))
            messages.append(f"Warning: {result.warning}")
        elif session_id:
            messages.append(
                f"Associated with session {session_id} and saved a snapshot of its tasks."
            )

        _emit_log(
            "info",
            "Saved work info",
            extra={
                "namespace": stores.namespace,
                "work_id": result.work_id,
                "new_entry": result.created,
                "session_id": session_id,
            },
        )
        return {
            "work_id": result.work_id,
            "timestamp": result.timestamp.isoformat(),
            "created": result.created,
            "message": "\n".join(messages),
            "warnings": warnings,
        }

    def _get_recent_works_info() -> dict[str, Any]:
        """List saved work summaries, most recently used first."""

        try:
            stores = namespaces.peek(current_namespace())
        except ChecklistError as exc:
            raise _tool_error("get_recent_works_info", exc) from exc

        recent = [summary.to_dict() for summary in stores.works.list_recent()] if stores else []
        _emit_log("debug", "Listed recent works", extra={"count": len(recent)})
        return {"works": recent, "hint": RECENT_WORKS_HINT}

    def _get_work_by_id(work_id: str) -> dict[str, Any]:
        """Return the full saved work info, including its task snapshot."""

        try:
            validate_work_id(work_id)
            stores = namespaces.peek(current_namespace())
            if stores is None:
                raise WorkNotFound(work_id)
            record = stores.works.get(work_id)
        except ChecklistError as exc:
            raise _tool_error("get_work_by_id", exc) from exc
        return record.to_dict()

    tool_save_work = server.tool(
        name="save_current_work_info",
        description=(
            "Save a detailed work summary plus a short description so another session can "
            "continue the work. Supplying session_id also stores a snapshot of that session's "
            "tasks; saving again for the same session overwrites the entry and keeps its workId."
        ),
    )(_save_current_work_info)

    tool_recent_works = server.tool(
        name="get_recent_works_info",
        description="List recently saved work info entries (workId, timestamp, description).",
    )(_get_recent_works_info)

    tool_work_by_id = server.tool(
        name="get_work_by_id",
        description="Retrieve full work info for an 8-digit workId, including any task snapshot.",
    )(_get_work_by_id)


    return ToolHandles(
        update_tasks=tool_update,
        mark_task_as_done=tool_mark_done,
        get_all_tasks=tool_get_all,
        save_current_work_info=tool_save_work,
        get_recent_works_info=tool_recent_works,
        get_work_by_id=tool_work_by_id,
        namespaces=namespaces,
    )


__all__ = [
    "NAMESPACE_HEADER",
    "RECENT_WORKS_HINT",
    "ToolHandles",
    "namespace_from_headers",
    "register_tools",
]

logger = logging.getLogger(__name__)


def _emit_log(level: str, message: str, *, extra: dict[str, Any] | None = None) -> None:
    log_method = getattr(logger, level, logger.info)
    log_method(message, extra=extra or {})
