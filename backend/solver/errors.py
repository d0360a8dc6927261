from __future__ import annotations

from typing import Any


class SchedulingError(RuntimeError):
    """Base for conditions that abort a generation run before any placement is attempted."""

    code = "SCHEDULING_ERROR"

    def __init__(self, message: str, *, issues: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.issues = list(issues or [])

    def to_payload(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "issues": list(self.issues)}


class ConfigurationError(SchedulingError):
    """Raised when the school configuration yields a malformed or insufficient slot catalog."""

    code = "CONFIGURATION_ERROR"


class IncompleteAssignmentError(SchedulingError):
    """Raised when assignment records are missing relations or expand to zero lessons."""

    code = "INCOMPLETE_ASSIGNMENT"
