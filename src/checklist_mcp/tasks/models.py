"""Task tree models: caller input, live nodes, and frozen snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    TODO = "TODO"
    DONE = "DONE"


class TaskInput(BaseModel):
    """A node as supplied by a caller of ``update_tasks``.

    ``children`` distinguishes three states: ``None`` keeps an existing
    subtree, ``[]`` prunes it, and a list is reconciled recursively.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Field(
        default=None,
        alias="taskId",
        description="Tree-wide unique id (1-20 chars, no / \\ : * ? \" < > | or space). Generated when blank.",
    )
    description: str = Field(default="", description="Text describing the task.")
    status: TaskStatus | None = Field(
        default=None,
        description="TODO or DONE. Omit to keep an existing task's status (new tasks start as TODO).",
    )
    children: list[TaskInput] | None = Field(
        default=None,
        description="Nested child tasks. Omit to keep existing children; pass [] to remove them.",
    )


TaskInput.model_rebuild()


@dataclass(slots=True)
class TaskNode:
    """A live node owned by exactly one session's task tree."""

    id: str
    description: str
    status: TaskStatus = TaskStatus.TODO
    children: list[TaskNode] = field(default_factory=list)

    def to_input(self) -> TaskInput:
        return TaskInput(
            id=self.id,
            description=self.description,
            status=self.status,
            children=[child.to_input() for child in self.children],
        )

    def snapshot(self) -> TaskSnapshot:
        return TaskSnapshot(
            id=self.id,
            description=self.description,
            status=self.status,
            children=tuple(child.snapshot() for child in self.children),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.id,
            "description": self.description,
            "status": self.status.value,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True, slots=True)
class TaskSnapshot:
    """Immutable deep copy of a task node, taken when work info is saved."""

    id: str
    description: str
    status: TaskStatus
    children: tuple[TaskSnapshot, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.id,
            "description": self.description,
            "status": self.status.value,
            "children": [child.to_dict() for child in self.children],
        }


__all__ = ["TaskInput", "TaskNode", "TaskSnapshot", "TaskStatus"]
