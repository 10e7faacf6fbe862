"""Render task trees as indented branch diagrams."""

from __future__ import annotations

from typing import Sequence

from .models import TaskNode, TaskSnapshot, TaskStatus

EMPTY_TREE = "No tasks"

_MARKERS = {TaskStatus.DONE: "✓", TaskStatus.TODO: "○"}


def format_task_tree(nodes: Sequence[TaskNode | TaskSnapshot], indent: str = "") -> str:
    """Return one line per task, children nested beneath their parent."""

    if not nodes and not indent:
        return EMPTY_TREE

    lines: list[str] = []
    for index, node in enumerate(nodes):
        is_last = index == len(nodes) - 1
        branch = "└── " if is_last else "├── "
        lines.append(f"{indent}{branch}{_MARKERS[node.status]} {node.id}: {node.description}")
        if node.children:
            continuation = "    " if is_last else "│   "
            lines.append(format_task_tree(node.children, indent + continuation))
    return "\n".join(lines)


__all__ = ["EMPTY_TREE", "format_task_tree"]
