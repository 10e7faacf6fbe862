"""Identifier generation and validation for task ids and work ids."""

from __future__ import annotations

import random
from typing import Collection

from ..errors import IdSpaceExhausted, InvalidTaskId, InvalidWorkId

TASK_ID_MAX_LENGTH = 20
TASK_ID_FORBIDDEN = frozenset('/\\:*?"<>| ')
TASK_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_@#$%&+=!."

WORK_ID_MIN = 10_000_000
WORK_ID_MAX = 99_999_999
MAX_ID_ATTEMPTS = 1000

_rng = random.SystemRandom()


def generate_task_id() -> str:
    """Return a random 3-8 character task id; uniqueness is the caller's concern."""

    length = _rng.randint(3, 8)
    return "".join(_rng.choice(TASK_ID_ALPHABET) for _ in range(length))


def unique_task_id(existing: Collection[str], *, attempts: int = MAX_ID_ATTEMPTS) -> str:
    """Generate task ids until one is absent from ``existing``."""

    for _ in range(attempts):
        candidate = generate_task_id()
        if candidate not in existing:
            return candidate
    raise IdSpaceExhausted("task ID", attempts)


def validate_task_id(task_id: str) -> str:
    if not isinstance(task_id, str) or not 1 <= len(task_id) <= TASK_ID_MAX_LENGTH:
        raise InvalidTaskId(str(task_id), f"length must be 1-{TASK_ID_MAX_LENGTH} characters")
    bad = sorted({char for char in task_id if char in TASK_ID_FORBIDDEN})
    if bad:
        shown = ", ".join(repr(char) for char in bad)
        raise InvalidTaskId(task_id, f"contains forbidden characters {shown}")
    return task_id


def is_valid_work_id(work_id: object) -> bool:
    if not isinstance(work_id, str) or len(work_id) != 8:
        return False
    if not (work_id.isascii() and work_id.isdigit()):
        return False
    return WORK_ID_MIN <= int(work_id) <= WORK_ID_MAX


def validate_work_id(work_id: str) -> str:
    if not is_valid_work_id(work_id):
        raise InvalidWorkId(str(work_id))
    return work_id


def generate_work_id(live_ids: Collection[str], *, attempts: int = MAX_ID_ATTEMPTS) -> str:
    """Return an 8-digit work id that does not collide with ``live_ids``."""

    for _ in range(attempts):
        candidate = str(_rng.randint(WORK_ID_MIN, WORK_ID_MAX))
        if candidate not in live_ids:
            return candidate
    raise IdSpaceExhausted("work ID", attempts)


__all__ = [
    "TASK_ID_ALPHABET",
    "TASK_ID_FORBIDDEN",
    "TASK_ID_MAX_LENGTH",
    "generate_task_id",
    "generate_work_id",
    "is_valid_work_id",
    "unique_task_id",
    "validate_task_id",
    "validate_work_id",
]
