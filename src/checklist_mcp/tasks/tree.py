"""Path-addressed hierarchical task store."""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Sequence

from ..errors import DuplicateTaskId, PathNotFound, TaskNotFound, ValidationError
from .ids import unique_task_id, validate_task_id
from .models import TaskInput, TaskNode, TaskSnapshot, TaskStatus

PATH_MAX_LENGTH = 500


def parse_path(path: str | Sequence[str] | None) -> list[str]:
    """Split a ``/``-separated path into task id segments.

    ``None``, ``""`` and ``"/"`` address the root list. Leading and trailing
    slashes are ignored; empty inner segments are rejected.
    """

    if path is None:
        return []
    if not isinstance(path, str):
        return [validate_task_id(segment) for segment in path]

    text = path.strip()
    if len(text) > PATH_MAX_LENGTH:
        raise ValidationError("path", f"cannot exceed {PATH_MAX_LENGTH} characters")
    text = text.strip("/")
    if not text:
        return []
    segments = text.split("/")
    if any(segment == "" for segment in segments):
        raise ValidationError("path", "cannot contain consecutive slashes")
    return [validate_task_id(segment) for segment in segments]


def iter_nodes(nodes: Iterable[TaskNode]) -> Iterator[TaskNode]:
    """Yield every node depth-first, parents before children."""

    for node in nodes:
        yield node
        yield from iter_nodes(node.children)


class TaskTree:
    """Ordered list of root-level tasks belonging to one session."""

    def __init__(self, roots: Iterable[TaskNode] | None = None) -> None:
        self._roots: list[TaskNode] = list(roots or [])

    def __len__(self) -> int:
        return len(self._roots)

    @property
    def roots(self) -> tuple[TaskNode, ...]:
        return tuple(self._roots)

    def all_ids(self) -> set[str]:
        return {node.id for node in iter_nodes(self._roots)}

    def count(self) -> int:
        return sum(1 for _ in iter_nodes(self._roots))

    def _resolve(self, segments: Sequence[str]) -> list[TaskNode]:
        current = self._roots
        for index, segment in enumerate(segments):
            parent = next((node for node in current if node.id == segment), None)
            if parent is None:
                raise PathNotFound(segment, segments[:index])
            current = parent.children
        return current

    def read_at(self, path: str | Sequence[str] | None = None) -> tuple[TaskNode, ...]:
        """Return the child list addressed by ``path``."""

        return tuple(self._resolve(parse_path(path)))

    def replace_at(
        self,
        path: str | Sequence[str] | None,
        new_nodes: Sequence[TaskInput],
    ) -> tuple[TaskNode, ...]:
        """Reconcile the list at ``path`` against ``new_nodes`` by task id.

        Matching nodes keep their subtree unless the input supplies
        ``children``; unmatched nodes are removed with their descendants.
        Nothing is committed unless the whole fragment is valid.
        """

        target = self._resolve(parse_path(path))
        inputs = list(new_nodes)
        explicit_ids = _validate_fragment(inputs, "tasks")

        replaced_ids = {node.id for node in iter_nodes(target)}
        outside_ids = self.all_ids() - replaced_ids
        reserved = outside_ids | replaced_ids | explicit_ids
        reconciled = _reconcile(target, inputs, reserved)

        seen = set(outside_ids)
        for node in iter_nodes(reconciled):
            if node.id in seen:
                raise DuplicateTaskId(node.id)
            seen.add(node.id)

        target[:] = reconciled
        return tuple(target)

    def find_by_id(self, task_id: str) -> tuple[TaskNode, list[str]]:
        """Return the node and the ids leading to its parent."""

        found = _find(self._roots, task_id, [])
        if found is None:
            raise TaskNotFound(task_id)
        return found

    def task_path(self, task_id: str) -> str:
        _, parents = self.find_by_id(task_id)
        return "/" + "/".join([*parents, task_id])

    def mark_done(self, task_id: str) -> TaskNode:
        node, _ = self.find_by_id(task_id)
        node.status = TaskStatus.DONE
        return node

    def snapshot(self) -> tuple[TaskSnapshot, ...]:
        return tuple(node.snapshot() for node in self._roots)

    def to_dicts(self) -> list[dict[str, Any]]:
        return [node.to_dict() for node in self._roots]


def _validate_fragment(inputs: Sequence[TaskInput], field: str) -> set[str]:
    seen: set[str] = set()

    def visit(items: Sequence[TaskInput], prefix: str) -> None:
        for index, item in enumerate(items):
            location = f"{prefix}[{index}]"
            if item.id is not None and item.id.strip():
                validate_task_id(item.id)
                if item.id in seen:
                    raise DuplicateTaskId(item.id)
                seen.add(item.id)
            if not item.description or not item.description.strip():
                raise ValidationError(f"{location}.description", "cannot be empty")
            if item.children:
                visit(item.children, f"{location}.children")

    visit(inputs, field)
    return seen


def _reconcile(
    existing: Sequence[TaskNode],
    inputs: Sequence[TaskInput],
    reserved: set[str],
) -> list[TaskNode]:
    by_id = {node.id: node for node in existing}
    result: list[TaskNode] = []
    for item in inputs:
        task_id = item.id if item.id is not None and item.id.strip() else None
        if task_id is None:
            task_id = unique_task_id(reserved)
            reserved.add(task_id)

        current = by_id.get(task_id)
        if current is not None:
            status = item.status or current.status
            if item.children is None:
                children = current.children
            else:
                children = _reconcile(current.children, item.children, reserved)
        else:
            status = item.status or TaskStatus.TODO
            children = _reconcile([], item.children or [], reserved)

        result.append(
            TaskNode(id=task_id, description=item.description, status=status, children=children)
        )
    return result


def _find(
    nodes: Sequence[TaskNode], task_id: str, trail: list[str]
) -> tuple[TaskNode, list[str]] | None:
    for node in nodes:
        if node.id == task_id:
            return node, list(trail)
        found = _find(node.children, task_id, [*trail, node.id])
        if found is not None:
            return found
    return None


__all__ = ["PATH_MAX_LENGTH", "TaskTree", "iter_nodes", "parse_path"]
