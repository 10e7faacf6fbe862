"""Bounded, least-recently-used cache of saved work summaries."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable

from ..errors import (
    DESCRIPTION_MAX_LENGTH,
    SUMMARY_MAX_LENGTH,
    SessionNotResolved,
    WorkNotFound,
    validate_session_id,
    validate_text,
)
from ..tasks import TaskSnapshot, generate_work_id, validate_work_id
from .models import SaveResult, WorkInfo, WorkInfoSummary
from .sessions import SessionRegistry

logger = logging.getLogger(__name__)


def validate_work_fields(
    description: str, summary: str, session_id: str | None = None
) -> str | None:
    """Check save arguments; returns the session id, or ``None`` when blank."""

    validate_text("work_description", description, max_length=DESCRIPTION_MAX_LENGTH)
    validate_text("work_summarize", summary, max_length=SUMMARY_MAX_LENGTH)
    if not session_id:
        return None
    return validate_session_id(session_id)


class WorkInfoCache:
    """Store work summaries keyed by 8-digit work id with LRU eviction.

    At most one live entry exists per session id: saving again for the same
    session overwrites that entry in place and keeps its work id. Task
    snapshots are read through ``sessions`` and never written back.
    """

    def __init__(
        self,
        capacity: int = 10,
        *,
        sessions: SessionRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("Work-info cache capacity must be >= 1")
        self._capacity = capacity
        self._sessions = sessions
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        # Ordered least recently used first.
        self._entries: OrderedDict[str, WorkInfo] = OrderedDict()
        self._by_session: dict[str, str] = {}
        self._lock = threading.Lock()
        logger.info("Work-info cache initialized", extra={"capacity": capacity})

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def is_empty(self) -> bool:
        return len(self) == 0

    def save(self, description: str, summary: str, session_id: str | None = None) -> SaveResult:
        session_id = validate_work_fields(description, summary, session_id)

        # Snapshot and commit happen under the cache lock so the newest
        # timestamp always carries the newest snapshot.
        with self._lock:
            snapshot, warning = self._take_snapshot(session_id)
            now = self._clock()
            existing_id = self._by_session.get(session_id) if session_id is not None else None
            if existing_id is not None:
                record = self._entries[existing_id]
                record.description = description
                record.summary = summary
                record.timestamp = now
                if snapshot is not None:
                    record.tasks_snapshot = snapshot
                self._entries.move_to_end(existing_id)
                logger.debug(
                    "Overwrote work info for session",
                    extra={"work_id": existing_id, "session_id": session_id},
                )
                return SaveResult(record=replace(record), created=False, warning=warning)

            work_id = generate_work_id(self._entries.keys())
            if len(self._entries) >= self._capacity:
                self._evict_lru()
            record = WorkInfo(
                work_id=work_id,
                timestamp=now,
                description=description,
                summary=summary,
                session_id=session_id,
                tasks_snapshot=snapshot,
            )
            self._entries[work_id] = record
            if session_id is not None:
                self._by_session[session_id] = work_id
            logger.debug(
                "Saved work info",
                extra={"work_id": work_id, "cache_size": len(self._entries)},
            )
            return SaveResult(record=replace(record), created=True, warning=warning)

    def get(self, work_id: str) -> WorkInfo:
        validate_work_id(work_id)
        with self._lock:
            record = self._entries.get(work_id)
            if record is None:
                raise WorkNotFound(work_id)
            self._entries.move_to_end(work_id)
            return replace(record)

    def list_recent(self) -> list[WorkInfoSummary]:
        """Return summaries of live entries, most recently used first."""

        with self._lock:
            return [record.summarize() for record in reversed(self._entries.values())]

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "count": len(self._entries),
                "capacity": self._capacity,
                "sessions": len(self._by_session),
            }

    def clear(self) -> None:
        with self._lock:
            previous = len(self._entries)
            self._entries.clear()
            self._by_session.clear()
        logger.info("Work-info cache cleared", extra={"previous_size": previous})

    def _take_snapshot(
        self, session_id: str | None
    ) -> tuple[tuple[TaskSnapshot, ...] | None, SessionNotResolved | None]:
        if session_id is None:
            return None, None
        entry = self._sessions.peek(session_id) if self._sessions is not None else None
        if entry is None:
            logger.warning(
                "Work info saved without task snapshot",
                extra={"session_id": session_id},
            )
            return None, SessionNotResolved(session_id)
        with entry.lock:
            return entry.tree.snapshot(), None

    def _evict_lru(self) -> None:
        work_id, record = self._entries.popitem(last=False)
        if record.session_id is not None and self._by_session.get(record.session_id) == work_id:
            del self._by_session[record.session_id]
        logger.info(
            "Evicted least recently used work info",
            extra={
                "work_id": work_id,
                "work_description": record.description,
                "cache_size": len(self._entries),
            },
        )


__all__ = ["WorkInfoCache", "validate_work_fields"]
