"""Error types surfaced by the matching entry point."""

from __future__ import annotations


class MatchingError(Exception):
    """Base class for failures reported to the caller.

    ``code`` mirrors the callable-function error codes the frontend expects.
    """

    code = "unknown"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentError(MatchingError, ValueError):
    """The listing payload is missing a required field or has a bad value."""

    code = "invalid-argument"


class InternalError(MatchingError):
    """The ranking could not be produced (store failure, timeout, ...)."""

    code = "internal"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
