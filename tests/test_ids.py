from __future__ import annotations

import pytest

from checklist_mcp.errors import IdSpaceExhausted, InvalidTaskId, InvalidWorkId
from checklist_mcp.tasks import ids
from checklist_mcp.tasks.ids import (
    TASK_ID_FORBIDDEN,
    generate_task_id,
    generate_work_id,
    is_valid_work_id,
    unique_task_id,
    validate_task_id,
    validate_work_id,
)


def test_generated_task_ids_are_valid() -> None:
    for _ in range(200):
        task_id = generate_task_id()
        assert 3 <= len(task_id) <= 8
        assert validate_task_id(task_id) == task_id


@pytest.mark.parametrize("task_id", ["a", "task-1", "A_b.c", "123", "@#$%&+=!", "x" * 20, "ünï"])
def test_validate_task_id_accepts(task_id: str) -> None:
    assert validate_task_id(task_id) == task_id


@pytest.mark.parametrize("task_id", ["", "x" * 21, "a b", "a/b", "a\\b", 'a"b', "a|b", "a:b", "*", "?", "<>"])
def test_validate_task_id_rejects(task_id: str) -> None:
    with pytest.raises(InvalidTaskId):
        validate_task_id(task_id)


def test_forbidden_set_matches_path_unsafe_characters() -> None:
    assert TASK_ID_FORBIDDEN == frozenset('/\\:*?"<>| ')


def test_unique_task_id_avoids_existing(monkeypatch) -> None:
    sequence = iter(["taken", "taken", "fresh"])
    monkeypatch.setattr(ids, "generate_task_id", lambda: next(sequence))

    assert unique_task_id({"taken"}) == "fresh"


def test_unique_task_id_gives_up(monkeypatch) -> None:
    monkeypatch.setattr(ids, "generate_task_id", lambda: "same")

    with pytest.raises(IdSpaceExhausted):
        unique_task_id({"same"}, attempts=5)


def test_generated_work_ids_are_eight_digits() -> None:
    live: set[str] = set()
    for _ in range(200):
        work_id = generate_work_id(live)
        assert work_id not in live
        assert is_valid_work_id(work_id)
        live.add(work_id)


def test_generate_work_id_gives_up_on_collisions(monkeypatch) -> None:
    monkeypatch.setattr(ids._rng, "randint", lambda low, high: 12345678)

    with pytest.raises(IdSpaceExhausted) as excinfo:
        generate_work_id({"12345678"}, attempts=3)

    assert excinfo.value.attempts == 3


@pytest.mark.parametrize("work_id", ["10000000", "99999999", "54321987"])
def test_valid_work_ids(work_id: str) -> None:
    assert validate_work_id(work_id) == work_id


@pytest.mark.parametrize("work_id", ["", "1234567", "123456789", "0000001a", "00000001", "1234 678", "１２３４５６７８"])
def test_invalid_work_ids(work_id: str) -> None:
    assert not is_valid_work_id(work_id)
    with pytest.raises(InvalidWorkId):
        validate_work_id(work_id)
