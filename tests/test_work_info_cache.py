from __future__ import annotations

import threading

import pytest

from checklist_mcp.errors import (
    InvalidWorkId,
    SessionNotResolved,
    ValidationError,
    WorkNotFound,
)
from checklist_mcp.storage import SessionRegistry, WorkInfoCache
from checklist_mcp.tasks import TaskSnapshot, TaskStatus, TaskTree, is_valid_work_id
from tests.helpers import task, ticking_clock


def _cache(capacity: int = 10, registry: SessionRegistry | None = None) -> WorkInfoCache:
    return WorkInfoCache(capacity, sessions=registry, clock=ticking_clock())


def test_save_without_session_creates_entry() -> None:
    cache = _cache()

    result = cache.save("Refactor parser", "Split tokenizer from parser.")

    assert result.created is True
    assert result.warning is None
    assert is_valid_work_id(result.work_id)
    record = cache.get(result.work_id)
    assert record.summary == "Split tokenizer from parser."
    assert record.session_id is None
    assert record.tasks_snapshot is None
    assert "work_tasks" not in record.to_dict()


def test_empty_cache_lists_nothing() -> None:
    cache = _cache()

    assert cache.list_recent() == []
    assert cache.is_empty()


def test_list_recent_follows_access_order() -> None:
    cache = _cache()
    first = cache.save("one", "1").work_id
    second = cache.save("two", "2").work_id
    third = cache.save("three", "3").work_id

    assert [item.work_id for item in cache.list_recent()] == [third, second, first]

    cache.get(first)

    assert [item.work_id for item in cache.list_recent()] == [first, third, second]
    assert [item.description for item in cache.list_recent()] == ["one", "three", "two"]


def test_eleventh_entry_evicts_least_recently_touched(caplog) -> None:
    caplog.set_level("INFO", logger="checklist_mcp.storage.work_info")
    cache = _cache(10)
    work_ids = [cache.save(f"work {index}", "body", f"s{index}").work_id for index in range(10)]
    cache.get(work_ids[0])

    cache.save("work 10", "body", "s10")

    assert len(cache) == 10
    with pytest.raises(WorkNotFound):
        cache.get(work_ids[1])
    assert cache.get(work_ids[0]).description == "work 0"
    assert any(
        getattr(record, "work_id", None) == work_ids[1]
        for record in caplog.records
        if "Evicted least recently used work info" in record.getMessage()
    )


def test_same_session_overwrites_and_keeps_work_id() -> None:
    registry = SessionRegistry(5)
    registry.get_or_create("sess-1").tree.replace_at("/", [task("a", "Plan")])
    cache = _cache(registry=registry)
    other = cache.save("other", "unrelated").work_id

    first = cache.save("v1", "first summary", "sess-1")
    second = cache.save("v2", "second summary", "sess-1")

    assert second.created is False
    assert second.work_id == first.work_id
    assert len(cache) == 2
    record = cache.get(first.work_id)
    assert record.summary == "second summary"
    assert record.description == "v2"
    assert record.timestamp > first.timestamp
    assert [item.work_id for item in cache.list_recent()] == [first.work_id, other]


def test_snapshot_is_unaffected_by_later_tree_changes() -> None:
    registry = SessionRegistry(5)
    entry = registry.get_or_create("sess")
    entry.tree.replace_at("/", [task("a", "Plan", children=[task("b", "Research")])])
    cache = _cache(registry=registry)

    work_id = cache.save("handoff", "state before changes", "sess").work_id
    entry.tree.mark_done("a")
    entry.tree.replace_at("/a", [task("c", "Something new")])
    entry.tree.replace_at("/", [task("z", "Replaced")])

    snapshot = cache.get(work_id).tasks_snapshot
    assert snapshot is not None
    assert [item.id for item in snapshot] == ["a"]
    assert snapshot[0].status is TaskStatus.TODO
    assert [child.id for child in snapshot[0].children] == ["b"]
    assert cache.get(work_id).to_dict()["work_tasks"][0]["taskId"] == "a"


def test_overwrite_refreshes_snapshot() -> None:
    registry = SessionRegistry(5)
    entry = registry.get_or_create("sess")
    entry.tree.replace_at("/", [task("a", "Plan")])
    cache = _cache(registry=registry)

    work_id = cache.save("v1", "one", "sess").work_id
    entry.tree.mark_done("a")
    cache.save("v2", "two", "sess")

    snapshot = cache.get(work_id).tasks_snapshot
    assert snapshot is not None
    assert snapshot[0].status is TaskStatus.DONE


def test_unknown_session_warns_and_saves_without_snapshot(caplog) -> None:
    caplog.set_level("WARNING", logger="checklist_mcp.storage.work_info")
    cache = _cache(registry=SessionRegistry(2))

    result = cache.save("orphan", "no tasks here", "ghost")

    assert isinstance(result.warning, SessionNotResolved)
    assert isinstance(result.warning, UserWarning)
    assert result.warning.session_id == "ghost"
    record = cache.get(result.work_id)
    assert record.tasks_snapshot is None
    assert record.session_id == "ghost"
    assert any(entry.levelname == "WARNING" for entry in caplog.records)


def test_overwrite_after_session_eviction_keeps_previous_snapshot() -> None:
    registry = SessionRegistry(1)
    registry.get_or_create("sess").tree.replace_at("/", [task("a", "Plan")])
    cache = _cache(registry=registry)
    work_id = cache.save("v1", "one", "sess").work_id

    registry.get_or_create("someone-else")
    result = cache.save("v2", "two", "sess")

    assert result.work_id == work_id
    assert isinstance(result.warning, SessionNotResolved)
    record = cache.get(work_id)
    assert record.summary == "two"
    assert record.tasks_snapshot is not None
    assert record.tasks_snapshot[0].id == "a"


def test_evicted_session_entry_is_recreated_with_new_id() -> None:
    cache = _cache(1)
    cache.save("first", "one", "sess-a")
    cache.save("second", "two", "sess-b")

    again = cache.save("third", "three", "sess-a")

    assert again.created is True
    assert len(cache) == 1
    assert [item.description for item in cache.list_recent()] == ["third"]


def test_saving_with_session_marks_it_recently_used() -> None:
    registry = SessionRegistry(2)
    registry.get_or_create("A")
    registry.get_or_create("B")
    cache = _cache(registry=registry)

    cache.save("snap", "body", "A")
    registry.get_or_create("C")

    assert registry.has("A")
    assert not registry.has("B")


@pytest.mark.parametrize(
    ("description", "summary", "field"),
    [
        ("", "body", "work_description"),
        ("   ", "body", "work_description"),
        ("x" * 201, "body", "work_description"),
        ("ok", "", "work_summarize"),
        ("ok", "y" * 5001, "work_summarize"),
    ],
)
def test_invalid_text_is_rejected_without_storing(description: str, summary: str, field: str) -> None:
    cache = _cache()

    with pytest.raises(ValidationError) as excinfo:
        cache.save(description, summary)

    assert excinfo.value.field == field
    assert cache.is_empty()


def test_invalid_session_id_is_rejected() -> None:
    cache = _cache()

    with pytest.raises(ValidationError) as excinfo:
        cache.save("ok", "body", "bad session!")

    assert excinfo.value.field == "sessionId"
    assert cache.is_empty()


def test_empty_session_id_is_treated_as_absent() -> None:
    cache = _cache()

    first = cache.save("one", "body", "")
    second = cache.save("two", "body", "")

    assert first.warning is None
    assert first.work_id != second.work_id
    assert len(cache) == 2


def test_get_rejects_malformed_and_missing_ids() -> None:
    cache = _cache()

    with pytest.raises(InvalidWorkId):
        cache.get("1234")
    with pytest.raises(InvalidWorkId):
        cache.get("00000001")
    with pytest.raises(WorkNotFound):
        cache.get("12345678")


def test_returned_records_are_copies() -> None:
    cache = _cache()
    work_id = cache.save("desc", "body").work_id

    record = cache.get(work_id)
    record.summary = "tampered"

    assert cache.get(work_id).summary == "body"


def test_stats_and_clear() -> None:
    cache = _cache(3)
    cache.save("a", "1", "s1")
    cache.save("b", "2")

    assert cache.stats() == {"count": 2, "capacity": 3, "sessions": 1}

    cache.clear()

    assert cache.stats() == {"count": 0, "capacity": 3, "sessions": 0}


class _GatedTree(TaskTree):
    """Tree whose first snapshot blocks until released; snapshots are numbered."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def snapshot(self):
        self.calls += 1
        call = self.calls
        if call == 1:
            self.entered.set()
            self.release.wait(timeout=5)
        return (TaskSnapshot(id="a", description=f"call {call}", status=TaskStatus.TODO),)


def test_concurrent_saves_for_one_session_keep_newest_snapshot() -> None:
    registry = SessionRegistry(2)
    entry = registry.get_or_create("sess")
    gated = _GatedTree()
    entry.tree = gated
    cache = _cache(registry=registry)

    first = threading.Thread(target=cache.save, args=("first", "one", "sess"))
    first.start()
    assert gated.entered.wait(timeout=5)
    second = threading.Thread(target=cache.save, args=("second", "two", "sess"))
    second.start()
    second.join(timeout=0.2)
    gated.release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    (record,) = [cache.get(summary.work_id) for summary in cache.list_recent()]
    assert record.description == "second"
    assert record.tasks_snapshot[0].description == "call 2"
