"""Recoverable errors raised by the tracker core and rendered by the API."""

from __future__ import annotations


class TrackerError(Exception):
    kind = "error"
    status_code = 400

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NotFoundError(TrackerError):
    kind = "not_found"
    status_code = 404


class InvalidStateError(TrackerError):
    kind = "invalid_state"
    status_code = 409


class InvalidInputError(TrackerError):
    kind = "invalid_input"
    status_code = 422


class UnauthorizedError(TrackerError):
    kind = "unauthorized"
    status_code = 403
