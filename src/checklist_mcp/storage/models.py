"""Data models for session and work-info storage."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..errors import SessionNotResolved
from ..tasks import TaskSnapshot, TaskTree


@dataclass(slots=True)
class SessionEntry:
    session_id: str
    tree: TaskTree
    created_at: datetime
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass(slots=True)
class WorkInfoSummary:
    work_id: str
    timestamp: datetime
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "workId": self.work_id,
            "work_timestamp": self.timestamp.isoformat(),
            "work_description": self.description,
        }


@dataclass(slots=True)
class WorkInfo:
    work_id: str
    timestamp: datetime
    description: str
    summary: str
    session_id: str | None = None
    tasks_snapshot: tuple[TaskSnapshot, ...] | None = None

    def summarize(self) -> WorkInfoSummary:
        return WorkInfoSummary(
            work_id=self.work_id,
            timestamp=self.timestamp,
            description=self.description,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "workId": self.work_id,
            "work_timestamp": self.timestamp.isoformat(),
            "work_description": self.description,
            "work_summarize": self.summary,
        }
        if self.session_id:
            payload["sessionId"] = self.session_id
        if self.tasks_snapshot is not None:
            payload["work_tasks"] = [task.to_dict() for task in self.tasks_snapshot]
        return payload


@dataclass(slots=True)
class SaveResult:
    """Outcome of a work-info save; ``warning`` is set when no snapshot could be taken."""

    record: WorkInfo
    created: bool
    warning: SessionNotResolved | None = None

    @property
    def work_id(self) -> str:
        return self.record.work_id

    @property
    def timestamp(self) -> datetime:
        return self.record.timestamp


__all__ = ["SaveResult", "SessionEntry", "WorkInfo", "WorkInfoSummary"]
