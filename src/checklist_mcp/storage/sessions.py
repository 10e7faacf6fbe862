"""Bounded, least-recently-used registry of per-session task trees."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Callable

from ..tasks import TaskTree
from .models import SessionEntry

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Map session ids to task trees, evicting the least recently used session when full.

    Any successful ``get_or_create`` or ``peek`` moves the session to the
    most-recently-used position. ``has`` never changes the order.
    """

    def __init__(
        self,
        capacity: int = 100,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("Session registry capacity must be >= 1")
        self._capacity = capacity
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        # Ordered least recently used first.
        self._entries: OrderedDict[str, SessionEntry] = OrderedDict()
        self._lock = threading.Lock()
        logger.info("Session registry initialized", extra={"capacity": capacity})

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_create(self, session_id: str) -> SessionEntry:
        """Return the session's entry, creating an empty tree if needed."""

        with self._lock:
            entry = self._entries.get(session_id)
            if entry is not None:
                self._entries.move_to_end(session_id)
                return entry

            if len(self._entries) >= self._capacity:
                self._evict_lru()
            entry = SessionEntry(session_id=session_id, tree=TaskTree(), created_at=self._clock())
            self._entries[session_id] = entry
            logger.debug(
                "Created session",
                extra={"session_id": session_id, "cache_size": len(self._entries)},
            )
            return entry

    def peek(self, session_id: str, *, touch: bool = True) -> SessionEntry | None:
        """Return the session's entry without creating one.

        A hit moves the session to the most-recently-used position unless
        ``touch`` is false.
        """

        with self._lock:
            entry = self._entries.get(session_id)
            if entry is not None and touch:
                self._entries.move_to_end(session_id)
            return entry

    def has(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._entries

    def session_ids(self) -> list[str]:
        """Return live session ids, most recently used first."""

        with self._lock:
            return list(reversed(self._entries.keys()))

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {"count": len(self._entries), "capacity": self._capacity}

    def clear(self) -> None:
        with self._lock:
            previous = len(self._entries)
            self._entries.clear()
        logger.info("Session registry cleared", extra={"previous_size": previous})

    def _evict_lru(self) -> None:
        session_id, entry = self._entries.popitem(last=False)
        logger.info(
            "Evicted least recently used session",
            extra={
                "session_id": session_id,
                "task_count": entry.tree.count(),
                "cache_size": len(self._entries),
            },
        )


__all__ = ["SessionRegistry"]
