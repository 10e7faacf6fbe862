"""Error taxonomy shared by the task tree, the stores, and the tool layer."""

from __future__ import annotations

import re
from typing import Sequence

SESSION_ID_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 200
SUMMARY_MAX_LENGTH = 5000

_SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class ChecklistError(Exception):
    """Base class for recoverable failures raised by the checklist core."""

    def context(self) -> dict[str, object]:
        """Return structured details suitable for log ``extra`` payloads."""

        return {"error": type(self).__name__}


class ValidationError(ChecklistError):
    """Raised when a required field is missing, empty, or out of bounds."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def context(self) -> dict[str, object]:
        return {**super().context(), "field": self.field}


class InvalidTaskId(ChecklistError):
    """Raised when a task id violates the length or character rules."""

    def __init__(self, task_id: str, reason: str) -> None:
        super().__init__(f"Task ID '{task_id}' is invalid: {reason}")
        self.task_id = task_id
        self.reason = reason

    def context(self) -> dict[str, object]:
        return {**super().context(), "task_id": self.task_id}


class InvalidWorkId(ChecklistError):
    """Raised when a work id is not an 8-digit numeric string."""

    def __init__(self, work_id: str) -> None:
        super().__init__(
            f"Work ID '{work_id}' is invalid: must be an 8-digit numeric string (10000000-99999999)"
        )
        self.work_id = work_id

    def context(self) -> dict[str, object]:
        return {**super().context(), "work_id": self.work_id}


class DuplicateTaskId(ChecklistError):
    """Raised when an update would leave two nodes sharing one id."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Duplicate task ID '{task_id}' found in the task tree")
        self.task_id = task_id

    def context(self) -> dict[str, object]:
        return {**super().context(), "task_id": self.task_id}


class PathNotFound(ChecklistError):
    """Raised when a path segment does not name a node at its level."""

    def __init__(self, segment: str, consumed: Sequence[str]) -> None:
        self.segment = segment
        self.consumed = list(consumed)
        location = "/" + "/".join(self.consumed)
        super().__init__(f"Path segment '{segment}' not found under '{location}'")

    def context(self) -> dict[str, object]:
        return {**super().context(), "segment": self.segment, "consumed": self.consumed}


class TaskNotFound(ChecklistError):
    """Raised when a task id does not exist anywhere in a tree."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with ID '{task_id}' not found")
        self.task_id = task_id

    def context(self) -> dict[str, object]:
        return {**super().context(), "task_id": self.task_id}


class WorkNotFound(ChecklistError):
    """Raised when no live work-info entry carries the requested id."""

    def __init__(self, work_id: str) -> None:
        super().__init__(f"Work not found for workId '{work_id}'")
        self.work_id = work_id

    def context(self) -> dict[str, object]:
        return {**super().context(), "work_id": self.work_id}


class IdSpaceExhausted(ChecklistError):
    """Raised when random id generation keeps colliding past its retry bound."""

    def __init__(self, kind: str, attempts: int) -> None:
        super().__init__(f"Could not generate a unique {kind} after {attempts} attempts")
        self.kind = kind
        self.attempts = attempts

    def context(self) -> dict[str, object]:
        return {**super().context(), "kind": self.kind, "attempts": self.attempts}


class SessionNotResolved(UserWarning):
    """Non-fatal: a work-info save named a session that is not live."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Session with ID '{session_id}' not found. No tasks were associated."
        )
        self.session_id = session_id


def _validate_identifier(field: str, value: str | None) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError(field, "must be a non-empty string")
    if len(value) > SESSION_ID_MAX_LENGTH:
        raise ValidationError(
            field, f"must be between 1 and {SESSION_ID_MAX_LENGTH} characters long"
        )
    if not _SESSION_ID_PATTERN.match(value):
        raise ValidationError(
            field,
            "can only contain alphanumeric characters, hyphens, and underscores",
        )
    return value


def validate_session_id(session_id: str | None) -> str:
    """Return the session id unchanged or raise ``ValidationError``."""

    return _validate_identifier("sessionId", session_id)


def validate_namespace(namespace: str | None) -> str:
    """Namespaces follow the session id rules."""

    return _validate_identifier("namespace", namespace)


def validate_text(field: str, value: str | None, *, max_length: int) -> str:
    """Require non-blank text no longer than ``max_length`` characters."""

    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "cannot be empty")
    if len(value) > max_length:
        raise ValidationError(field, f"cannot exceed {max_length} characters")
    return value


__all__ = [
    "ChecklistError",
    "DESCRIPTION_MAX_LENGTH",
    "DuplicateTaskId",
    "IdSpaceExhausted",
    "InvalidTaskId",
    "InvalidWorkId",
    "PathNotFound",
    "SESSION_ID_MAX_LENGTH",
    "SUMMARY_MAX_LENGTH",
    "SessionNotResolved",
    "TaskNotFound",
    "ValidationError",
    "WorkNotFound",
    "validate_namespace",
    "validate_session_id",
    "validate_text",
]
