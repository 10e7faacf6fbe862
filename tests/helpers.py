from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Callable

from checklist_mcp.tasks import TaskInput, TaskStatus


def task(
    task_id: str | None,
    description: str = "do it",
    *,
    status: TaskStatus | None = None,
    children: list[TaskInput] | None = None,
) -> TaskInput:
    return TaskInput(id=task_id, description=description, status=status, children=children)


def ticking_clock(start: str = "2025-01-01T00:00:00+00:00") -> Callable[[], datetime]:
    base = datetime.fromisoformat(start).astimezone(timezone.utc)
    ticks = count()
    return lambda: base + timedelta(seconds=next(ticks))
