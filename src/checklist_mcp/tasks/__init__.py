"""Task tree models, identifiers, and formatting."""

from .formatter import EMPTY_TREE, format_task_tree
from .ids import (
    generate_task_id,
    generate_work_id,
    is_valid_work_id,
    unique_task_id,
    validate_task_id,
    validate_work_id,
)
from .models import TaskInput, TaskNode, TaskSnapshot, TaskStatus
from .tree import TaskTree, iter_nodes, parse_path

__all__ = [
    "EMPTY_TREE",
    "TaskInput",
    "TaskNode",
    "TaskSnapshot",
    "TaskStatus",
    "TaskTree",
    "format_task_tree",
    "generate_task_id",
    "generate_work_id",
    "is_valid_work_id",
    "iter_nodes",
    "parse_path",
    "unique_task_id",
    "validate_task_id",
    "validate_work_id",
]
