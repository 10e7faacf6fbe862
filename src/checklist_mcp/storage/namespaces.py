"""Per-namespace isolation of session registries and work-info caches."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

from ..errors import validate_namespace
from .sessions import SessionRegistry
from .work_info import WorkInfoCache

DEFAULT_NAMESPACE = "default"

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class NamespaceStores:
    namespace: str
    sessions: SessionRegistry
    works: WorkInfoCache


class NamespaceManager:
    """Lazily create one session registry and work-info cache per namespace.

    Namespaces are kept in least-recently-used order and the oldest one is
    dropped, with all of its sessions and work info, once ``capacity`` is
    reached. The ``default`` namespace is never evicted or cleared.
    """

    def __init__(
        self,
        capacity: int = 32,
        *,
        max_sessions: int = 100,
        max_work_info: int = 10,
        default: NamespaceStores | None = None,
    ) -> None:
        if capacity < 2:
            raise ValueError("Namespace capacity must be >= 2")
        self._capacity = capacity
        self._max_sessions = max_sessions
        self._max_work_info = max_work_info
        # Ordered least recently used first.
        self._stores: OrderedDict[str, NamespaceStores] = OrderedDict()
        self._lock = threading.Lock()
        self._stores[DEFAULT_NAMESPACE] = default or self._build(DEFAULT_NAMESPACE)
        logger.info(
            "Namespace manager initialized",
            extra={"capacity": capacity, "max_sessions": max_sessions, "max_work_info": max_work_info},
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def default(self) -> NamespaceStores:
        with self._lock:
            return self._stores[DEFAULT_NAMESPACE]

    def __len__(self) -> int:
        with self._lock:
            return len(self._stores)

    def get(self, namespace: str | None = None) -> NamespaceStores:
        """Return the namespace's stores, creating them on first use."""

        namespace = validate_namespace(namespace or DEFAULT_NAMESPACE)
        with self._lock:
            stores = self._stores.get(namespace)
            if stores is not None:
                self._stores.move_to_end(namespace)
                return stores

            if len(self._stores) >= self._capacity:
                self._evict_lru()
            stores = self._build(namespace)
            self._stores[namespace] = stores
            logger.info(
                "Created namespace stores",
                extra={"namespace": namespace, "namespace_count": len(self._stores)},
            )
            return stores

    def peek(self, namespace: str | None = None) -> NamespaceStores | None:
        namespace = validate_namespace(namespace or DEFAULT_NAMESPACE)
        with self._lock:
            stores = self._stores.get(namespace)
            if stores is not None:
                self._stores.move_to_end(namespace)
            return stores

    def has(self, namespace: str) -> bool:
        with self._lock:
            return namespace in self._stores

    def namespaces(self) -> list[str]:
        """Return live namespaces, most recently used first."""

        with self._lock:
            return list(reversed(self._stores.keys()))

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "count": len(self._stores),
                "capacity": self._capacity,
                "namespaces": {
                    name: {"sessions": len(stores.sessions), "works": len(stores.works)}
                    for name, stores in reversed(self._stores.items())
                },
            }

    def clear(self, namespace: str) -> bool:
        """Drop a namespace and everything in it; returns whether it existed."""

        if namespace == DEFAULT_NAMESPACE:
            return False
        with self._lock:
            stores = self._stores.pop(namespace, None)
        if stores is None:
            return False
        logger.info("Cleared namespace", extra={"namespace": namespace})
        return True

    def _build(self, namespace: str) -> NamespaceStores:
        sessions = SessionRegistry(self._max_sessions)
        works = WorkInfoCache(self._max_work_info, sessions=sessions)
        return NamespaceStores(namespace=namespace, sessions=sessions, works=works)

    def _evict_lru(self) -> None:
        victim = next(name for name in self._stores if name != DEFAULT_NAMESPACE)
        stores = self._stores.pop(victim)
        logger.info(
            "Evicted least recently used namespace",
            extra={
                "namespace": victim,
                "session_count": len(stores.sessions),
                "namespace_count": len(self._stores),
            },
        )


__all__ = ["DEFAULT_NAMESPACE", "NamespaceManager", "NamespaceStores"]
