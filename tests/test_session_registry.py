from __future__ import annotations

import threading

import pytest

from checklist_mcp.storage import SessionRegistry
from tests.helpers import task, ticking_clock


def test_get_or_create_returns_same_tree() -> None:
    registry = SessionRegistry(3, clock=ticking_clock())

    first = registry.get_or_create("alpha")
    first.tree.replace_at("/", [task("a")])
    again = registry.get_or_create("alpha")

    assert again is first
    assert [node.id for node in again.tree.roots] == ["a"]
    assert len(registry) == 1


def test_lru_eviction_follows_access_order() -> None:
    registry = SessionRegistry(2)

    registry.get_or_create("A")
    registry.get_or_create("B")
    registry.get_or_create("C")

    assert not registry.has("A")
    assert registry.has("B") and registry.has("C")

    registry.get_or_create("B")
    registry.get_or_create("D")

    assert not registry.has("C")
    assert registry.has("B") and registry.has("D")
    assert registry.session_ids() == ["D", "B"]


def test_peek_marks_recent_but_has_does_not() -> None:
    registry = SessionRegistry(2)
    registry.get_or_create("A")
    registry.get_or_create("B")

    assert registry.has("A")
    registry.get_or_create("C")
    assert not registry.has("A")

    assert registry.peek("B") is not None
    registry.get_or_create("D")
    assert registry.has("B")
    assert not registry.has("C")


def test_failed_peek_does_not_alter_order() -> None:
    registry = SessionRegistry(3)
    for session_id in ("A", "B", "C"):
        registry.get_or_create(session_id)

    assert registry.peek("missing") is None
    assert registry.session_ids() == ["C", "B", "A"]
    assert len(registry) == 3


def test_eviction_discards_tree_and_logs(caplog) -> None:
    caplog.set_level("INFO", logger="checklist_mcp.storage.sessions")
    registry = SessionRegistry(1)
    registry.get_or_create("old").tree.replace_at("/", [task("x"), task("y")])

    registry.get_or_create("new")

    assert registry.peek("old") is None
    recreated = registry.get_or_create("old")
    assert recreated.tree.roots == ()
    evictions = [
        record for record in caplog.records if "Evicted least recently used session" in record.getMessage()
    ]
    assert evictions[0].session_id == "old"
    assert evictions[0].task_count == 2


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SessionRegistry(0)


def test_concurrent_creation_never_exceeds_capacity() -> None:
    registry = SessionRegistry(5)
    barrier = threading.Barrier(20)

    def worker(index: int) -> None:
        barrier.wait()
        for round_number in range(25):
            registry.get_or_create(f"s-{index}-{round_number}")

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry) == 5
    assert registry.stats() == {"count": 5, "capacity": 5}


def test_concurrent_updates_on_one_session_are_serialized() -> None:
    registry = SessionRegistry(2)
    entry = registry.get_or_create("shared")
    entry.tree.replace_at("/", [task("root", "Root", children=[])])

    def worker(index: int) -> None:
        for step in range(20):
            current = registry.get_or_create("shared")
            with current.lock:
                existing = [node.to_input() for node in current.tree.read_at("/root")]
                current.tree.replace_at("/root", [*existing, task(f"t{index}-{step}")])

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    children = entry.tree.read_at("/root")
    assert len(children) == 8 * 20
    assert len({node.id for node in children}) == 8 * 20


def test_clear_drops_all_sessions() -> None:
    registry = SessionRegistry(4)
    registry.get_or_create("A")
    registry.get_or_create("B")

    registry.clear()

    assert len(registry) == 0
    assert registry.session_ids() == []


def test_peek_without_touch_keeps_order() -> None:
    registry = SessionRegistry(3)
    for session_id in ("A", "B", "C"):
        registry.get_or_create(session_id)

    assert registry.peek("A", touch=False) is not None
    assert registry.session_ids() == ["C", "B", "A"]

    registry.peek("A")
    assert registry.session_ids() == ["A", "C", "B"]
