"""Domain error taxonomy.

Every error carries a stable machine-readable ``code`` and the HTTP status the
global handler renders it with. Rule rejections of a run are NOT errors: a
rejected run is a successful verification outcome (see runs.validator).
"""

from __future__ import annotations

from typing import Any


class RuneraError(Exception):
    """Base class for errors surfaced to API clients."""

    code: str = "ERR_INTERNAL"
    status_code: int = 500

    def __init__(self, message: str, *, code: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class BadRequestError(RuneraError):
    code = "ERR_BAD_REQUEST"
    status_code = 400


class AuthenticationError(RuneraError):
    code = "ERR_UNAUTHORIZED"
    status_code = 401


class ForbiddenError(RuneraError):
    code = "ERR_FORBIDDEN"
    status_code = 403


class NotFoundError(RuneraError):
    code = "ERR_NOT_FOUND"
    status_code = 404


class NotEligibleError(RuneraError):
    """User does not satisfy an event's tier/distance/window requirements."""

    code = "ERR_NOT_ELIGIBLE"
    status_code = 403


class ParticipationCompletedError(RuneraError):
    code = "ERR_ALREADY_COMPLETED"
    status_code = 409


class InvalidTransitionError(RuneraError):
    """A status change that skips, repeats or reverses a state machine step."""

    code = "ERR_INVALID_TRANSITION"
    status_code = 409
